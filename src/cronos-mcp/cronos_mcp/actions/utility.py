import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from ..constants import CRO_DECIMALS, GWEI_DECIMALS
from ..service import CronosService
from ..utils import (
    decimal_to_hex,
    decode_data as decode_words,
    encode_function_call,
    hex_to_decimal,
    human_to_wei,
    wei_to_human,
)
from .params import as_bool, as_int, split_list

logger = logging.getLogger(__name__)

# Decimal places per named unit; "custom" takes the caller's decimals.
UNIT_DECIMALS = {"wei": 0, "gwei": GWEI_DECIMALS, "cro": CRO_DECIMALS, "ether": CRO_DECIMALS}


def _unit_decimals(unit: str, decimals: int) -> int:
    key = (unit or "").strip().lower()
    if key == "custom":
        return decimals
    if key not in UNIT_DECIMALS:
        allowed = ", ".join(sorted(list(UNIT_DECIMALS) + ["custom"]))
        raise ValueError(f"Unknown unit '{unit}'. Supported: {allowed}.")
    return UNIT_DECIMALS[key]


def convert_units(
    service: Optional[CronosService],
    value: Union[str, int, float],
    from_unit: str,
    to_unit: str,
    decimals: Any = CRO_DECIMALS,
) -> Dict[str, Any]:
    """Exact conversion between wei, gwei, cro/ether and a custom decimals unit."""
    places = as_int(decimals, "decimals", CRO_DECIMALS)
    from_places = _unit_decimals(from_unit, places)
    to_places = _unit_decimals(to_unit, places)

    # JSON numbers arrive as int/float; human_to_wei reads floats via their shortest repr.
    value_wei = human_to_wei(value, from_places)
    result = wei_to_human(value_wei, to_places)

    return {
        "input": {"value": str(value), "unit": from_unit},
        "output": {"value": result, "unit": to_unit},
        "all_conversions": {
            "wei": value_wei,
            "gwei": wei_to_human(value_wei, GWEI_DECIMALS),
            "cro": wei_to_human(value_wei, CRO_DECIMALS),
            "hex": decimal_to_hex(value_wei),
        },
        "decimals_used": places,
    }


def _parse_parameters(parameters: Optional[Union[str, List[Any]]]) -> List[Any]:
    if parameters is None or parameters == "":
        return []
    if isinstance(parameters, str):
        try:
            parameters = json.loads(parameters)
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid parameters JSON format.") from exc
    if not isinstance(parameters, list):
        raise ValueError("parameters must be a list of {type, value} entries.")
    return parameters


def encode_function(
    service: Optional[CronosService],
    function_selector: str,
    parameters: Optional[Union[str, List[Any]]] = None,
    strict: Any = True,
) -> Dict[str, Any]:
    params = _parse_parameters(parameters)
    encoded = encode_function_call(function_selector, params, strict=as_bool(strict, True))
    return {
        "function_selector": function_selector,
        "parameters": params,
        "encoded_data": encoded,
        "data_length": (len(encoded) - 2) // 2,
    }


def _parse_types(types: Optional[Union[str, List[str]]]) -> List[str]:
    if isinstance(types, str) and types.strip().startswith("["):
        try:
            parsed = json.loads(types)
        except json.JSONDecodeError as exc:
            raise ValueError("types must be a JSON array or a comma-separated list.") from exc
        return [str(item).strip() for item in parsed]
    return split_list(types)


def decode_data(
    service: Optional[CronosService],
    data: str,
    types: Optional[Union[str, List[str]]] = None,
    has_selector: Any = False,
    strict: Any = True,
) -> Dict[str, Any]:
    """Word-by-word decode; the first 4 bytes are split off only when `has_selector` is set."""
    with_selector = as_bool(has_selector)
    decoded = decode_words(data, _parse_types(types), has_selector=with_selector, strict=as_bool(strict, True))

    body = data[2:] if data.lower().startswith("0x") else data
    return {
        "original_data": data,
        "function_selector": "0x" + body[:8].lower() if with_selector else "",
        "parameter_count": len(decoded),
        "decoded_values": decoded,
    }


def get_api_health(service: CronosService) -> Dict[str, Any]:
    """Probe the RPC node and the explorer; each probe reports its own failure."""
    info = service.network_info()
    started = time.monotonic()

    rpc: Dict[str, Any] = {"endpoint": info["rpc_url"], "healthy": False, "latency_ms": 0}
    rpc_started = time.monotonic()
    try:
        chain_id, block_number = service.rpc_batch([("eth_chainId", []), ("eth_blockNumber", [])])
        rpc.update(
            healthy=True,
            chain_id=hex_to_decimal(chain_id),
            current_block=hex_to_decimal(block_number),
        )
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("RPC health probe failed: %s", exc)
        rpc["error"] = str(exc)
    rpc["latency_ms"] = int((time.monotonic() - rpc_started) * 1000)

    explorer: Dict[str, Any] = {
        "endpoint": info["explorer_api_url"],
        "healthy": False,
        "latency_ms": 0,
        "has_api_key": info["has_api_key"],
    }
    explorer_started = time.monotonic()
    try:
        service.explorer_client.ping()
        explorer["healthy"] = True
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Explorer health probe failed: %s", exc)
        explorer["error"] = str(exc)
    explorer["latency_ms"] = int((time.monotonic() - explorer_started) * 1000)

    return {
        "network": info["network"],
        "rpc": rpc,
        "explorer": explorer,
        "overall": {
            "healthy": rpc["healthy"] and explorer["healthy"],
            "total_latency_ms": int((time.monotonic() - started) * 1000),
        },
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


OPERATIONS = {
    "convertUnits": convert_units,
    "encodeFunction": encode_function,
    "decodeData": decode_data,
    "getAPIHealth": get_api_health,
}
