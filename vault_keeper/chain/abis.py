"""
Contract ABIs.

Minimal ABI fragments for every contract the keeper reads or writes.
Only the functions and events actually used are declared.
"""

from typing import Any


def _param(type_: str, name: str = "", indexed: bool | None = None, components=None) -> dict:
    param: dict[str, Any] = {"type": type_, "name": name}
    if indexed is not None:
        param["indexed"] = indexed
    if components is not None:
        param["components"] = components
        param["internalType"] = "struct"
    return param


def _fn(name: str, inputs: list, outputs: list, mutability: str = "view") -> dict:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs,
        "stateMutability": mutability,
    }


def _event(name: str, inputs: list) -> dict:
    return {"type": "event", "name": name, "inputs": inputs, "anonymous": False}


SWAP_DATA = "bytes[][]"

VAULT_ABI = [
    _fn("asset", [], [_param("address")]),
    _fn("totalAssets", [], [_param("uint256")]),
    _fn("strategiesLength", [], [_param("uint256")]),
    _fn("strategies", [_param("uint256")], [_param("address")]),
    _fn("targetBps", [_param("address")], [_param("uint16")]),
    _fn("balanceOf", [_param("address", "account")], [_param("uint256")]),
    _fn("convertToAssets", [_param("uint256", "shares")], [_param("uint256")]),
    _fn("investIdle", [_param(SWAP_DATA, "allSwapData")], [], "nonpayable"),
    _fn(
        "withdraw",
        [
            _param("uint256", "shares"),
            _param("address", "receiver"),
            _param(SWAP_DATA, "allSwapData"),
        ],
        [_param("uint256")],
        "nonpayable",
    ),
    _fn(
        "rebalance",
        [_param(SWAP_DATA, "withdrawSwapData"), _param(SWAP_DATA, "investSwapData")],
        [],
        "nonpayable",
    ),
    _fn(
        "setStrategy",
        [_param("address", "strategy"), _param("uint16", "bps")],
        [],
        "nonpayable",
    ),
    _fn("harvestAll", [_param(SWAP_DATA, "allSwapData")], [], "nonpayable"),
    _event(
        "Deposit",
        [
            _param("address", "from", True),
            _param("address", "to", True),
            _param("uint256", "assets", False),
            _param("uint256", "net", False),
            _param("uint256", "shares", False),
        ],
    ),
    _event(
        "Withdraw",
        [
            _param("address", "caller", True),
            _param("address", "to", True),
            _param("uint256", "assets", False),
            _param("uint256", "shares", False),
        ],
    ),
    _event(
        "Harvest",
        [
            _param("uint256", "realizedProfit", False),
            _param("uint256", "mgmtFee", False),
            _param("uint256", "perfFee", False),
            _param("uint256", "tvlAfter", False),
        ],
    ),
    _event(
        "StrategySet",
        [_param("address", "strategy", False), _param("uint16", "bps", False)],
    ),
]

ACCESS_CONTROLLER_ABI = [
    _fn("managers", [_param("address")], [_param("bool")]),
    _fn("keepers", [_param("address")], [_param("bool")]),
]

EXCHANGER_ABI = [
    _fn("routers", [_param("address")], [_param("bool")]),
    _fn(
        "setRouter",
        [_param("address", "router"), _param("bool", "allowed")],
        [],
        "nonpayable",
    ),
    _fn("swap", [_param("bytes", "data")], [_param("uint256")], "nonpayable"),
    _event(
        "Swap",
        [
            _param("address", "router", False),
            _param("address", "tokenIn", False),
            _param("address", "tokenOut", False),
            _param("uint256", "amountIn", False),
            _param("address", "to", False),
        ],
    ),
]

STRATEGY_ABI = [
    _fn("totalAssets", [], [_param("uint256")]),
    _fn("want", [], [_param("address")]),
    _fn("tokenId", [], [_param("uint256")]),
]

ERC20_ABI = [
    _fn("balanceOf", [_param("address", "account")], [_param("uint256")]),
    _fn("decimals", [], [_param("uint8")]),
]

POOL_ABI = [
    _fn(
        "slot0",
        [],
        [
            _param("uint160", "sqrtPriceX96"),
            _param("int24", "tick"),
            _param("uint16", "observationIndex"),
            _param("uint16", "observationCardinality"),
            _param("uint16", "observationCardinalityNext"),
            _param("uint8", "feeProtocol"),
            _param("bool", "unlocked"),
        ],
    ),
    _fn("token0", [], [_param("address")]),
    _fn("token1", [], [_param("address")]),
    _fn("fee", [], [_param("uint24")]),
]

POSITION_MANAGER_ABI = [
    _fn(
        "positions",
        [_param("uint256", "tokenId")],
        [
            _param("uint96", "nonce"),
            _param("address", "operator"),
            _param("address", "token0"),
            _param("address", "token1"),
            _param("uint24", "fee"),
            _param("int24", "tickLower"),
            _param("int24", "tickUpper"),
            _param("uint128", "liquidity"),
            _param("uint256", "feeGrowthInside0LastX128"),
            _param("uint256", "feeGrowthInside1LastX128"),
            _param("uint128", "tokensOwed0"),
            _param("uint128", "tokensOwed1"),
        ],
    ),
]

# Contract kinds addressable through ContractCall.contract
ABIS = {
    "vault": VAULT_ABI,
    "access": ACCESS_CONTROLLER_ABI,
    "exchanger": EXCHANGER_ABI,
    "strategy": STRATEGY_ABI,
    "erc20": ERC20_ABI,
    "pool": POOL_ABI,
    "position_manager": POSITION_MANAGER_ABI,
}

# Events decoded from receipts, keyed by contract kind
RECEIPT_EVENTS = {
    "vault": ("Deposit", "Withdraw", "Harvest", "StrategySet"),
    "exchanger": ("Swap",),
}
