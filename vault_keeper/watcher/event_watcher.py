"""
Event Watcher.

Debounces vault deposits into a single invest trigger. Each accepted
deposit replaces the pending one and restarts the timer; when the timer
elapses the pending deposit is consumed once.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol

from vault_keeper.chain.models import DecodedEvent
from vault_keeper.core.exceptions import ChainError, VaultKeeperError
from vault_keeper.core.logger import get_logger
from vault_keeper.execution.models import PendingDepositEvent
from vault_keeper.execution.state import OrchestrationState

logger = get_logger(__name__)

TriggerFn = Callable[[PendingDepositEvent], Awaitable[Any]]


class LogSource(Protocol):
    async def block_number(self) -> int: ...

    async def get_logs(
        self, kind: str, address: str, event_name: str, from_block: int, to_block: int
    ) -> list[DecodedEvent]: ...


class DepositLogPoller:
    """
    Polls the vault's ``Deposit`` logs block range by block range.

    The first poll starts at the chain head; earlier deposits are not
    replayed.
    """

    def __init__(
        self,
        source: LogSource,
        vault: str,
        start_block: Optional[int] = None,
        max_block_range: int = 2000,
    ):
        self._source = source
        self._vault = vault
        self._next_block = start_block
        self._max_block_range = max_block_range

    @property
    def next_block(self) -> Optional[int]:
        return self._next_block

    async def poll(self) -> list[PendingDepositEvent]:
        latest = await self._source.block_number()
        if self._next_block is None:
            self._next_block = latest
            logger.info(f"Watching deposits from block {latest}")

        if latest < self._next_block:
            return []

        from_block = self._next_block
        to_block = min(latest, from_block + self._max_block_range - 1)
        logs = await self._source.get_logs("vault", self._vault, "Deposit", from_block, to_block)
        self._next_block = to_block + 1

        events = [PendingDepositEvent.from_event(log) for log in logs]
        events.sort(key=lambda e: e.block_number)
        if events:
            logger.debug(f"Polled {len(events)} deposit(s) in [{from_block}, {to_block}]")
        return events


class EventWatcher:
    """
    Deposit-driven invest trigger.

    Example:
        >>> watcher = EventWatcher(state, keeper.invest_after_deposit, debounce_seconds=90)
        >>> watcher.handle_deposit(event)
        >>> await watcher.run(stop_event)
    """

    def __init__(
        self,
        state: OrchestrationState,
        trigger: TriggerFn,
        debounce_seconds: float = 90.0,
        poller: Optional[DepositLogPoller] = None,
        poll_interval: float = 5.0,
    ):
        self._state = state
        self._trigger = trigger
        self._debounce_seconds = debounce_seconds
        self._poller = poller
        self._poll_interval = poll_interval
        self._timer: Optional[asyncio.Task] = None
        self._firing: set[asyncio.Task] = set()
        self._triggers_fired = 0

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def triggers_fired(self) -> int:
        return self._triggers_fired

    def handle_deposit(self, event: PendingDepositEvent) -> bool:
        """
        Accept a deposit and restart the debounce timer.

        Returns:
            False when the event's block is not newer than the last handled
        """
        if not self._state.accept_deposit(event):
            return False

        logger.info(
            f"Deposit of {event.amount} by {event.source_address} at block "
            f"{event.block_number}; investing in {self._debounce_seconds:.0f}s unless superseded"
        )
        self._restart_timer()
        return True

    def _restart_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.create_task(self._debounce())

    async def _debounce(self) -> None:
        await asyncio.sleep(self._debounce_seconds)
        # Detach so a new deposit restarts a fresh timer instead of cancelling the trigger
        self._timer = None
        task = asyncio.create_task(self._fire())
        self._firing.add(task)
        task.add_done_callback(self._firing.discard)

    async def _fire(self) -> None:
        event = self._state.take_pending()
        if event is None:
            return
        if self._state.busy:
            logger.info(
                f"Skipping debounced invest for block {event.block_number}: "
                f"{self._state.operation.value if self._state.operation else 'operation'} in progress"
            )
            return

        self._triggers_fired += 1
        try:
            await self._trigger(event)
        except VaultKeeperError as e:
            logger.error(f"Invest after deposit at block {event.block_number} failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error in deposit trigger: {e}")

    async def wait_idle(self) -> None:
        """Wait for a pending timer and any running trigger to finish."""
        while self._timer is not None or self._firing:
            pending = [task for task in (self._timer, *self._firing) if task is not None]
            await asyncio.gather(*pending, return_exceptions=True)

    async def run(self, stop_event: asyncio.Event) -> None:
        """Poll deposits until ``stop_event`` is set."""
        if self._poller is None:
            raise ValueError("EventWatcher.run needs a DepositLogPoller")

        logger.info(f"Event watcher started (poll every {self._poll_interval}s)")
        try:
            while not stop_event.is_set():
                try:
                    for event in await self._poller.poll():
                        self.handle_deposit(event)
                except ChainError as e:
                    logger.warning(f"Deposit poll failed: {e}")

                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self._poll_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self.stop()
            logger.info("Event watcher stopped")

    async def stop(self) -> None:
        """Cancel the debounce timer and let any running trigger finish."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            await asyncio.gather(self._timer, return_exceptions=True)
        self._timer = None
        if self._firing:
            await asyncio.gather(*self._firing, return_exceptions=True)
