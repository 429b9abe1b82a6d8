"""
Retry Module.

Bounded backoff for idempotent chain reads.
"""

from .retry import ReadOutcome, ReadRetryPolicy, retry_read

__all__ = [
    "ReadOutcome",
    "ReadRetryPolicy",
    "retry_read",
]
