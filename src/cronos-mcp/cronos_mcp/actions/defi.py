import logging
from typing import Any, Dict, List, Optional

from ..constants import FUNCTION_SIGNATURES, VVS_FACTORY, VVS_ROUTER, WCRO_ADDRESS
from ..errors import CronosError, InvalidEncodingError
from ..service import CronosService
from ..utils import (
    decode_address,
    decode_data,
    encode_function_call,
    format_block_timestamp,
    hex_to_decimal,
    require_address,
    wei_to_human,
)

logger = logging.getLogger(__name__)

# Uniswap-v2 style deployments known on Cronos.
PROTOCOLS: Dict[str, Dict[str, str]] = {
    "vvs": {"name": "VVS Finance", "factory": VVS_FACTORY, "router": VVS_ROUTER, "swap_fee": "0.3%"},
}

SAMPLE_PAIRS = 5


def _protocol(name: Optional[str]) -> Dict[str, str]:
    key = (name or "vvs").strip().lower()
    if key not in PROTOCOLS:
        allowed = ", ".join(sorted(PROTOCOLS))
        raise ValueError(f"Unsupported protocol '{name}'. Supported: {allowed}.")
    return dict(PROTOCOLS[key], key=key)


def _pairs_count(service: CronosService, factory: str) -> int:
    return int(hex_to_decimal(service.eth_call(factory, FUNCTION_SIGNATURES["allPairsLength"])))


def _reserves(service: CronosService, pair: str) -> List[str]:
    raw = service.eth_call(pair, FUNCTION_SIGNATURES["getReserves"])
    words = decode_data(raw, ["uint112", "uint112", "uint32"])
    if len(words) < 3:
        raise InvalidEncodingError(f"getReserves on {pair} returned {len(words)} words, expected 3.")
    return [item["decoded"] for item in words[:3]]


def get_protocol_tvl(service: CronosService, protocol: Optional[str] = None) -> Dict[str, Any]:
    """Pair count plus the factory's WCRO balance as a rough TVL proxy."""
    info = _protocol(protocol)
    pairs = _pairs_count(service, info["factory"])

    balance_call = encode_function_call(FUNCTION_SIGNATURES["balanceOf"], [("address", info["factory"])])
    raw = service.try_eth_call(WCRO_ADDRESS, balance_call)
    tvl = wei_to_human(hex_to_decimal(raw)) if raw else "0"

    return {
        "protocol": info["key"],
        "protocol_name": info["name"],
        "factory_address": info["factory"],
        "router_address": info["router"],
        "total_pairs": pairs,
        "tvl_estimate_cro": tvl,
        "note": "Full TVL calculation requires aggregating all pool balances",
    }


def _pool_token(service: CronosService, address: str, reserve: str) -> Dict[str, Any]:
    metadata = service.get_token_metadata(address)
    return {
        "address": address,
        "name": metadata["name"],
        "symbol": metadata["symbol"],
        "reserve": wei_to_human(reserve, metadata["decimals"]),
        "reserve_raw": reserve,
    }


def get_pool_info(service: CronosService, pool_address: str) -> Dict[str, Any]:
    require_address(pool_address, "pool address")
    token0 = decode_address(service.eth_call(pool_address, FUNCTION_SIGNATURES["token0"]))
    token1 = decode_address(service.eth_call(pool_address, FUNCTION_SIGNATURES["token1"]))
    reserve0, reserve1, last_update = _reserves(service, pool_address)
    supply = hex_to_decimal(service.eth_call(pool_address, FUNCTION_SIGNATURES["totalSupply"]))

    return {
        "pool_address": pool_address,
        "token0": _pool_token(service, token0, reserve0),
        "token1": _pool_token(service, token1, reserve1),
        "total_supply": wei_to_human(supply),
        "total_supply_raw": supply,
        "last_update": format_block_timestamp(hex(int(last_update))),
    }


def get_dex_stats(service: CronosService, dex: Optional[str] = None) -> Dict[str, Any]:
    info = _protocol(dex)
    factory = info["factory"]
    pairs = _pairs_count(service, factory)

    raw_fee_to = service.try_eth_call(factory, FUNCTION_SIGNATURES["feeTo"])
    fee_to = decode_address(raw_fee_to) if raw_fee_to and raw_fee_to != "0x" else ""

    samples: List[Dict[str, Any]] = []
    for index in range(min(SAMPLE_PAIRS, pairs)):
        try:
            pair_call = encode_function_call(FUNCTION_SIGNATURES["allPairs"], [("uint256", index)])
            pair = decode_address(service.eth_call(factory, pair_call))
            reserve0, reserve1, _ = _reserves(service, pair)
        except CronosError as exc:
            logger.warning("Skipping pair %d of %s: %s", index, info["name"], exc)
            continue
        samples.append({"pair_index": index, "pair_address": pair, "reserve0": reserve0, "reserve1": reserve1})

    return {
        "dex": info["key"],
        "dex_name": info["name"],
        "factory_address": factory,
        "router_address": info["router"],
        "total_pairs": pairs,
        "swap_fee": info["swap_fee"],
        "fee_to": fee_to,
        "sample_pairs": samples,
    }


OPERATIONS = {
    "getProtocolTVL": get_protocol_tvl,
    "getPoolInfo": get_pool_info,
    "getDEXStats": get_dex_stats,
}
