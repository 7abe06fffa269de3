import logging
from typing import Any, Dict, List, Optional

from ..constants import CRO_DECIMALS
from ..errors import RpcError
from ..service import CronosService
from ..utils import format_block_timestamp, format_gas_price, hex_to_decimal, wei_to_human
from .params import as_bool

logger = logging.getLogger(__name__)

BLOCKS_PER_HOUR = 600
VALIDATOR_WINDOW = 100
VALIDATOR_STEP = 10

# Percentages of the node gas price offered as tiers.
GAS_TIERS = (("slow", 90), ("standard", 100), ("fast", 120), ("instant", 150))


def _optional_rpc(service: CronosService, method: str, params: Optional[List[Any]] = None) -> Any:
    try:
        return service.rpc(method, params or [])
    except RpcError as exc:
        logger.debug("%s not available: %s", method, exc)
        return None


def _gwei(value_wei: int) -> Dict[str, str]:
    return {"wei": str(value_wei), "gwei": wei_to_human(value_wei, 9)}


def get_network_status(service: CronosService) -> Dict[str, Any]:
    block_number, gas_price, chain_id, syncing = service.rpc_batch(
        [
            ("eth_blockNumber", []),
            ("eth_gasPrice", []),
            ("eth_chainId", []),
            ("eth_syncing", []),
        ]
    )
    peer_count = _optional_rpc(service, "net_peerCount") or "0x0"
    latest = service.rpc("eth_getBlockByNumber", ["latest", False]) or {}
    info = service.network_info()

    return {
        "network": info["network"],
        "chain_id": hex_to_decimal(chain_id),
        "chain_id_hex": chain_id,
        "block_number": hex_to_decimal(block_number),
        "gas_price": format_gas_price(gas_price),
        "gas_price_wei": hex_to_decimal(gas_price),
        "is_syncing": syncing is not False,
        "syncing_details": syncing if syncing is not False else None,
        "peer_count": hex_to_decimal(peer_count),
        "latest_block_timestamp": format_block_timestamp(latest.get("timestamp")),
        "rpc_endpoint": info["rpc_url"],
        "explorer_url": info["explorer_url"],
    }


def get_gas_price(service: CronosService, include_history: Any = False) -> Dict[str, Any]:
    """Node gas price with tiered suggestions; fee history on request."""
    gas_price = service.rpc("eth_gasPrice", [])
    price_wei = int(hex_to_decimal(gas_price))

    priority = _optional_rpc(service, "eth_maxPriorityFeePerGas")
    max_priority_fee = _gwei(int(hex_to_decimal(priority))) if priority else None

    fee_history = None
    if as_bool(include_history):
        history = _optional_rpc(service, "eth_feeHistory", ["0xa", "latest", [25, 50, 75]])
        if history:
            fee_history = {
                "oldest_block": hex_to_decimal(history.get("oldestBlock")),
                "base_fee_per_gas": [
                    _gwei(int(hex_to_decimal(fee))) for fee in history.get("baseFeePerGas") or []
                ],
                "gas_used_ratio": history.get("gasUsedRatio"),
                "reward": history.get("reward"),
            }

    return {
        "gas_price": format_gas_price(gas_price),
        "gas_price_wei": str(price_wei),
        "max_priority_fee": max_priority_fee,
        "suggestions": {name: _gwei(price_wei * percent // 100) for name, percent in GAS_TIERS},
        "fee_history": fee_history,
    }


def get_validators(service: CronosService) -> Dict[str, Any]:
    """Distinct block producers seen in a sample of recent blocks."""
    latest = service.rpc("eth_getBlockByNumber", ["latest", False]) or {}
    head = int(hex_to_decimal(latest.get("number")))

    numbers = [head - offset for offset in range(0, min(VALIDATOR_WINDOW, head), VALIDATOR_STEP)]
    blocks = service.rpc_batch([("eth_getBlockByNumber", [hex(number), False]) for number in numbers])

    producers: List[str] = []
    for block in blocks:
        miner = (block or {}).get("miner")
        if miner and miner.lower() not in producers:
            producers.append(miner.lower())

    return {
        "validator_count": len(producers),
        "consensus_type": "Proof of Authority (PoA)",
        "validators": [
            {"rank": rank, "address": address, "type": "Block Producer"}
            for rank, address in enumerate(producers, start=1)
        ],
        "sampled_blocks": len(numbers),
        "note": "Cronos uses PoA consensus with approved validators",
    }


def get_chain_stats(service: CronosService) -> Dict[str, Any]:
    block_number, gas_price, latest = service.rpc_batch(
        [
            ("eth_blockNumber", []),
            ("eth_gasPrice", []),
            ("eth_getBlockByNumber", ["latest", True]),
        ]
    )
    current = int(hex_to_decimal(block_number))
    earlier = service.rpc("eth_getBlockByNumber", [hex(max(0, current - BLOCKS_PER_HOUR)), False]) or {}

    latest = latest or {}
    tx_count = len(latest.get("transactions") or [])
    elapsed = int(hex_to_decimal(latest.get("timestamp"))) - int(hex_to_decimal(earlier.get("timestamp")))
    info = service.network_info()

    return {
        "network": info["network"],
        "chain_id": info["chain_id"],
        "current_block": current,
        "gas_price": format_gas_price(gas_price),
        "latest_block_tx_count": tx_count,
        "block_time": f"{elapsed / BLOCKS_PER_HOUR:.2f}s" if elapsed > 0 else "~6s",
        "blocks_last_hour": BLOCKS_PER_HOUR,
        "avg_tx_per_block": tx_count,
        "native_token": "CRO",
        "native_token_decimals": CRO_DECIMALS,
        "consensus_mechanism": "Proof of Authority (Tendermint)",
        "evm_compatible": True,
        "explorer": info["explorer_url"],
    }


OPERATIONS = {
    "getNetworkStatus": get_network_status,
    "getGasPrice": get_gas_price,
    "getValidators": get_validators,
    "getChainStats": get_chain_stats,
}
