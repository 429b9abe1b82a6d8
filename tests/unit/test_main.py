"""
Tests for the command line entry point.
"""

import pytest

from vault_keeper import main as cli
from vault_keeper.core.exceptions import SimulationRevert
from tests.mocks import ACCESS, EXCHANGER, RECEIVER, ROUTER, STRATEGY_C, VAULT

CONFIG = f"""
environment: test
vault:
  address: "{VAULT}"
  access_controller: "{ACCESS}"
  exchanger: "{EXCHANGER}"
swap:
  min_out_mode: zero
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    return path


class TestParser:
    """Tests for argument parsing."""

    def test_global_options(self):
        args = cli.build_parser().parse_args(["--config", "c.yaml", "--env", "sepolia", "--debug", "watch"])

        assert args.config == "c.yaml"
        assert args.env == "sepolia"
        assert args.debug
        assert args.command == "watch"

    def test_withdraw(self):
        args = cli.build_parser().parse_args(["withdraw", "1000", RECEIVER])
        assert (args.shares, args.receiver) == (1000, RECEIVER)

    def test_set_strategy(self):
        args = cli.build_parser().parse_args(["set-strategy", STRATEGY_C, "2500"])
        assert (args.strategy, args.bps) == (STRATEGY_C, 2500)

    def test_allow_router(self):
        args = cli.build_parser().parse_args(["allow-router", ROUTER, "--disallow"])
        assert args.disallow

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestMain:
    """Tests for exit codes."""

    def test_missing_config_exits_2(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--config", str(tmp_path / "missing.yaml"), "invest"])

        assert exc_info.value.code == 2

    def test_operation_failure_exits_1(self, config_path, monkeypatch):
        async def failing(config, args):
            raise SimulationRevert("Not manager")

        monkeypatch.setattr(cli, "run_command", failing)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--config", str(config_path), "invest"])

        assert exc_info.value.code == 1

    def test_dispatches_command(self, config_path, monkeypatch):
        seen = []

        async def recording(config, args):
            seen.append((config.vault.address, args.command))

        monkeypatch.setattr(cli, "run_command", recording)

        cli.main(["--config", str(config_path), "harvest"])

        assert seen == [(VAULT, "harvest")]
