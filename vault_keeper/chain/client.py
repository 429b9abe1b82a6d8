"""
Web3 Chain Gateway.

Async JSON-RPC access for the keeper: retried reads, ``eth_call``
simulation, gas estimation, signed submission and receipt decoding.
Writes are never retried here.
"""

import asyncio
from typing import Any, Optional

import aiohttp
from eth_account import Account
from eth_utils import to_checksum_address
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.logs import DISCARD

from vault_keeper.core.exceptions import (
    ChainReadError,
    EstimationFailure,
    ReceiptTimeout,
    SimulationRevert,
    SubmissionFailure,
)
from vault_keeper.core.logger import get_logger
from vault_keeper.core.retry import ReadRetryPolicy, retry_read

from .abis import ABIS, RECEIPT_EVENTS
from .models import ContractCall, DecodedEvent, Role, TxReceipt
from .revert import decode_revert

logger = get_logger(__name__)

NETWORK_ERRORS = (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError)


def revert_reason(error: ContractLogicError) -> str:
    """Readable reason for a contract revert raised by web3."""
    data = getattr(error, "data", None)
    if isinstance(data, (str, bytes)) and data:
        return decode_revert(data)
    message = getattr(error, "message", None) or str(error)
    return message.replace("execution reverted: ", "").strip() or "Reverted without reason"


class Web3Gateway:
    """
    Chain gateway backed by ``AsyncWeb3``.

    Example:
        >>> gateway = Web3Gateway(
        ...     rpc_url="https://rpc.sepolia.org",
        ...     chain_id=11155111,
        ...     private_key=os.environ["MANAGER_PK"],
        ...     access_controller="0x...",
        ...     event_sources={"0xVault": "vault", "0xExchanger": "exchanger"},
        ... )
        >>> await gateway.has_role(Role.MANAGER, gateway.account)
        True
    """

    def __init__(
        self,
        rpc_url: str,
        chain_id: int,
        private_key: str = "",
        access_controller: Optional[str] = None,
        event_sources: Optional[dict[str, str]] = None,
        request_timeout: float = 30.0,
        receipt_timeout: float = 300.0,
        read_retry_attempts: int = 3,
        w3: Optional[AsyncWeb3] = None,
    ):
        self._chain_id = chain_id
        self._receipt_timeout = receipt_timeout
        self._access_controller = access_controller
        self._event_sources = {
            to_checksum_address(address): kind
            for address, kind in (event_sources or {}).items()
        }
        self._read_retry = ReadRetryPolicy(
            max_attempts=read_retry_attempts,
            fatal=(ContractLogicError,),
        )
        self._account = Account.from_key(private_key) if private_key else None

        if w3 is None:
            provider = AsyncWeb3.AsyncHTTPProvider(
                rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=request_timeout)},
            )
            w3 = AsyncWeb3(provider)
        self._w3 = w3

    @classmethod
    def from_config(cls, config) -> "Web3Gateway":
        """Build a gateway from an ``AppConfig``."""
        return cls(
            rpc_url=config.chain.rpc_url,
            chain_id=config.chain.chain_id,
            private_key=config.chain.private_key,
            access_controller=config.vault.access_controller,
            event_sources={
                config.vault.address: "vault",
                config.vault.exchanger: "exchanger",
            },
            request_timeout=config.chain.request_timeout,
            receipt_timeout=config.chain.receipt_timeout,
            read_retry_attempts=config.chain.read_retry_attempts,
        )

    @property
    def account(self) -> Optional[str]:
        """Address of the signing account, if a key is configured."""
        return self._account.address if self._account else None

    @property
    def w3(self) -> AsyncWeb3:
        return self._w3

    async def close(self) -> None:
        await self._w3.provider.disconnect()

    # =========================================================================
    # Reads
    # =========================================================================

    def contract(self, kind: str, address: str):
        return self._w3.eth.contract(address=to_checksum_address(address), abi=ABIS[kind])

    def _function(self, call: ContractCall):
        contract = self.contract(call.contract, call.address)
        return getattr(contract.functions, call.function)(*call.args)

    async def read(self, call: ContractCall, block_identifier: Any = "latest") -> Any:
        """
        Execute a view call with bounded retry.

        Raises:
            ChainReadError: When every attempt fails or the call reverts
        """
        fn = self._function(call)
        outcome = await retry_read(fn.call, block_identifier=block_identifier, policy=self._read_retry)
        if not outcome.success:
            error = outcome.error
            reason = revert_reason(error) if isinstance(error, ContractLogicError) else str(error)
            raise ChainReadError(
                f"Read {call.describe()} failed: {reason}",
                details={"attempts": outcome.attempts},
            ) from error
        return outcome.value

    async def block_number(self) -> int:
        outcome = await retry_read(lambda: self._w3.eth.block_number, policy=self._read_retry)
        if not outcome.success:
            raise ChainReadError(f"Failed to read block number: {outcome.error}") from outcome.error
        return int(outcome.value)

    async def has_role(self, role: Role, account: str) -> bool:
        if not self._access_controller:
            raise ChainReadError("Access controller address not configured")
        call = ContractCall("access", self._access_controller, role.value, (to_checksum_address(account),))
        return bool(await self.read(call))

    async def get_logs(
        self,
        kind: str,
        address: str,
        event_name: str,
        from_block: int,
        to_block: int,
    ) -> list[DecodedEvent]:
        """Decoded logs of one event type emitted by ``address`` in a block range."""
        contract = self.contract(kind, address)
        event = getattr(contract.events, event_name)()
        outcome = await retry_read(
            event.get_logs,
            from_block=from_block,
            to_block=to_block,
            policy=self._read_retry,
        )
        if not outcome.success:
            raise ChainReadError(
                f"get_logs {event_name} [{from_block}, {to_block}] failed: {outcome.error}"
            ) from outcome.error
        return [self._to_event(log) for log in outcome.value]

    # =========================================================================
    # Writes
    # =========================================================================

    async def simulate(self, call: ContractCall, sender: str) -> Any:
        """
        Dry-run ``call`` from ``sender`` via ``eth_call``.

        Raises:
            SimulationRevert: The call would revert
            ChainReadError: The node could not be reached
        """
        fn = self._function(call)
        try:
            return await fn.call({"from": to_checksum_address(sender)})
        except ContractLogicError as e:
            raw = e.data if isinstance(e.data, str) else None
            raise SimulationRevert(revert_reason(e), raw_data=raw) from e
        except NETWORK_ERRORS as e:
            raise ChainReadError(f"Simulation of {call.describe()} failed: {e}") from e

    async def estimate_gas(self, call: ContractCall, sender: str) -> int:
        fn = self._function(call)
        try:
            return int(await fn.estimate_gas({"from": to_checksum_address(sender)}))
        except ContractLogicError as e:
            raise EstimationFailure(f"Gas estimation reverted: {revert_reason(e)}") from e
        except NETWORK_ERRORS as e:
            raise EstimationFailure(f"Gas estimation failed: {e}") from e

    async def send(self, call: ContractCall, sender: str, gas_limit: int) -> str:
        """
        Sign and broadcast ``call``.

        Returns:
            Transaction hash (0x-prefixed hex)

        Raises:
            SubmissionFailure: Signing or broadcast failed
        """
        if self._account is None:
            raise SubmissionFailure("No private key configured for submission")
        if to_checksum_address(sender) != self._account.address:
            raise SubmissionFailure(f"Sender {sender} does not match signer {self._account.address}")

        fn = self._function(call)
        try:
            nonce = await self._w3.eth.get_transaction_count(self._account.address, "pending")
            tx = await fn.build_transaction({
                "from": self._account.address,
                "gas": gas_limit,
                "nonce": nonce,
                "chainId": self._chain_id,
            })
            signed = self._account.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except NETWORK_ERRORS as e:
            raise SubmissionFailure(f"Submitting {call.describe()} failed: {e}") from e

        return Web3.to_hex(tx_hash)

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """
        Wait for the receipt of ``tx_hash`` and decode known events.

        Raises:
            ReceiptTimeout: No receipt within ``receipt_timeout``
            SubmissionFailure: The node failed while waiting
        """
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._receipt_timeout
            )
        except TimeExhausted as e:
            raise ReceiptTimeout(
                f"No receipt after {self._receipt_timeout:.0f}s", tx_hash=tx_hash
            ) from e
        except NETWORK_ERRORS as e:
            raise SubmissionFailure(f"Waiting for receipt failed: {e}", tx_hash=tx_hash) from e

        return TxReceipt(
            tx_hash=tx_hash,
            status=int(receipt["status"]),
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt.get("gasUsed", 0)),
            events=self._decode_events(receipt),
        )

    def _decode_events(self, receipt) -> list[DecodedEvent]:
        events = []
        for address, kind in self._event_sources.items():
            contract = self.contract(kind, address)
            for event_name in RECEIPT_EVENTS.get(kind, ()):
                logs = getattr(contract.events, event_name)().process_receipt(receipt, errors=DISCARD)
                events.extend(
                    self._to_event(log) for log in logs
                    if to_checksum_address(log["address"]) == address
                )
        events.sort(key=lambda event: event.log_index)
        return events

    @staticmethod
    def _to_event(log) -> DecodedEvent:
        tx_hash = log.get("transactionHash")
        return DecodedEvent(
            name=log["event"],
            address=to_checksum_address(log["address"]),
            args=dict(log["args"]),
            log_index=int(log.get("logIndex", 0)),
            block_number=int(log.get("blockNumber", 0)),
            tx_hash=Web3.to_hex(tx_hash) if tx_hash else "",
        )
