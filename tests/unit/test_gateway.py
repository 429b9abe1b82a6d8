"""
Tests for Web3 Gateway guards that fail before any RPC traffic.
"""

import pytest
from eth_account import Account

from vault_keeper.chain import Web3Gateway
from vault_keeper.chain.models import ContractCall, Role
from vault_keeper.core.exceptions import ChainReadError, SubmissionFailure
from tests.mocks import MANAGER, VAULT

PRIVATE_KEY = "0x" + "11" * 32


def gateway(**kwargs) -> Web3Gateway:
    return Web3Gateway("http://127.0.0.1:8545", 31337, **kwargs)


class TestGatewayGuards:
    """Tests for signer and configuration checks."""

    def test_account_from_key(self):
        assert gateway(private_key=PRIVATE_KEY).account == Account.from_key(PRIVATE_KEY).address

    def test_read_only_without_key(self):
        assert gateway().account is None

    def test_from_config(self, config_factory):
        config = config_factory(chain={"rpc_url": "http://127.0.0.1:8545", "private_key": PRIVATE_KEY})
        assert Web3Gateway.from_config(config).account == Account.from_key(PRIVATE_KEY).address

    @pytest.mark.asyncio
    async def test_send_without_key(self):
        call = ContractCall("vault", VAULT, "investIdle", ([[]],))
        with pytest.raises(SubmissionFailure):
            await gateway().send(call, MANAGER, 100_000)

    @pytest.mark.asyncio
    async def test_send_from_foreign_sender(self):
        call = ContractCall("vault", VAULT, "investIdle", ([[]],))
        with pytest.raises(SubmissionFailure):
            await gateway(private_key=PRIVATE_KEY).send(call, MANAGER, 100_000)

    @pytest.mark.asyncio
    async def test_role_check_needs_access_controller(self):
        with pytest.raises(ChainReadError):
            await gateway().has_role(Role.MANAGER, MANAGER)
