"""
Vault Keeper Entry Point.

Runs the deposit watcher or a single privileged operation against the
configured vault.

Usage:
    vault-keeper --config config/config.yaml watch
    vault-keeper --config config/config.yaml --env sepolia rebalance
    python -m vault_keeper.main --config config/config.yaml price 0xPool 0xToken
"""

import argparse
import asyncio
import json
import signal
import sys
from typing import Any, Optional

from vault_keeper.config import ConfigError, load_config
from vault_keeper.config.models import AppConfig
from vault_keeper.core import VaultKeeperError, get_logger, set_log_level
from vault_keeper.execution.models import OperationResult
from vault_keeper.keeper import VaultKeeper

logger = get_logger(__name__)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _result_dict(result: OperationResult) -> dict[str, Any]:
    return {
        "operation": result.kind.value,
        "status": result.status.value,
        "tx_hash": result.tx_hash,
        "block_number": result.block_number,
        "gas_limit": result.gas_limit,
        "gas_used": result.gas_used,
        "outputs": result.outputs,
    }


async def run_watch(keeper: VaultKeeper) -> None:
    """
    Run the debounced deposit watcher until SIGINT/SIGTERM.

    Args:
        keeper: Configured keeper
    """
    shutdown_event = asyncio.Event()

    def signal_handler(sig):
        logger.info(f"Received signal {sig}, initiating shutdown")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            signal.signal(sig, lambda s, f: signal_handler(s))

    watcher = keeper.create_watcher()
    logger.info("Vault keeper watching deposits. Press Ctrl+C to stop.")
    await watcher.run(shutdown_event)


async def run_command(config: AppConfig, args: argparse.Namespace) -> None:
    """Execute one CLI command against a freshly built keeper."""
    keeper = VaultKeeper.from_config(config)
    try:
        if args.command == "watch":
            await run_watch(keeper)
        elif args.command == "invest":
            _print_json(_result_dict(await keeper.attempt_invest()))
        elif args.command == "rebalance":
            _print_json(_result_dict(await keeper.rebalance()))
        elif args.command == "harvest":
            _print_json(_result_dict(await keeper.harvest()))
        elif args.command == "withdraw":
            _print_json(_result_dict(await keeper.withdraw(args.shares, args.receiver)))
        elif args.command == "set-strategy":
            _print_json(_result_dict(await keeper.set_strategy(args.strategy, args.bps)))
        elif args.command == "allow-router":
            _print_json(_result_dict(await keeper.allow_router(args.router, not args.disallow)))
        elif args.command == "plan":
            invest = await keeper.plan_invest()
            rebalance = await keeper.plan_rebalance()
            _print_json({"invest": invest.to_dict(), "rebalance": rebalance.to_dict()})
        elif args.command == "price":
            quote = await keeper.price(args.pool, args.token)
            _print_json({
                "token": quote.token,
                "quote_token": quote.quote_token,
                "price": str(quote.price),
                "price_float": quote.as_float,
                "is_placeholder": quote.is_placeholder,
            })
    finally:
        await keeper.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vault-keeper",
        description="Off-chain keeper for a multi-strategy yield vault",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to configuration file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Environment overlay name (loads config.{env}.yaml)",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("watch", help="Invest idle funds after deposits settle")
    sub.add_parser("invest", help="Invest idle funds now")
    sub.add_parser("rebalance", help="Rebalance strategies toward targets")
    sub.add_parser("harvest", help="Harvest all strategies")

    withdraw = sub.add_parser("withdraw", help="Redeem vault shares")
    withdraw.add_argument("shares", type=int, help="Shares in raw units")
    withdraw.add_argument("receiver", help="Address receiving the assets")

    set_strategy = sub.add_parser("set-strategy", help="Register a strategy or change its weight")
    set_strategy.add_argument("strategy", help="Strategy address")
    set_strategy.add_argument("bps", type=int, help="Target weight in basis points")

    allow_router = sub.add_parser("allow-router", help="Allow a router on the exchanger")
    allow_router.add_argument("router", help="Router address")
    allow_router.add_argument("--disallow", action="store_true", help="Remove the router instead")

    sub.add_parser("plan", help="Print invest and rebalance plans without submitting")

    price = sub.add_parser("price", help="Price a token from a pool")
    price.add_argument("pool", help="Pool address")
    price.add_argument("token", help="Token to price")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, env=args.env, env_file=args.env_file)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(2)

    set_log_level("DEBUG" if args.debug or config.debug else config.log_level)

    for warning in config.validate_for_operations():
        logger.warning(f"Config: {warning}")

    try:
        asyncio.run(run_command(config, args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except VaultKeeperError as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
