"""
MCP server exposing Cronos chain reads and ABI/unit utilities.
"""

import argparse
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Union

from mcp.server.fastmcp import FastMCP

from . import actions
from .config import config_for_network, configure_logging, load_config
from .service import CronosService

server = FastMCP(
    name="cronos-mcp",
    instructions=(
        "Read Cronos EVM chain data (accounts, transactions, blocks, contracts, tokens, NFTs, DeFi, events) "
        "via JSON-RPC and Cronoscan, and convert units or ABI-encode/decode call data."
    ),
)

_services: Dict[str, CronosService] = {}


def _get_service(network: Optional[str] = None) -> CronosService:
    cfg = config_for_network(load_config(), network)
    if cfg.network not in _services:
        _services[cfg.network] = CronosService(cfg)
    return _services[cfg.network]


def _normalize_object_param(value: Optional[Any], name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{name} must be an object of parameter names to values.")
    return dict(value)


def _normalize_array_param(value: Optional[Any], name: str) -> Optional[list]:
    """Coerce an array argument: lists pass, lone scalars are wrapped, strings and objects are refused."""
    if value is None:
        return None
    if isinstance(value, (str, bytes, bytearray)):
        raise ValueError(f"{name} must be an array (e.g. [{{'type': 'uint256', 'value': '1'}}]); got a string/bytes.")
    if isinstance(value, Mapping):
        raise ValueError(f"{name} must be an array, not an object/map.")
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@server.tool(
    name="list_operations",
    title="List Operations",
    description="List every resource/operation pair accepted by run_operation, with parameter names.",
)
def list_operations() -> dict:
    return {"resources": actions.describe_operations()}


@server.tool(
    name="run_operation",
    title="Run Operation",
    description=(
        "Run one operation (e.g. resource='token', operation='getTokenInfo', params={'token_address': '0x...'}). "
        "Pass items (a list of params objects) to run it several times; continue_on_fail records per-item errors."
    ),
)
def run_operation(
    resource: str,
    operation: str,
    params: Optional[Dict[str, Any]] = None,
    items: Optional[List[Dict[str, Any]]] = None,
    continue_on_fail: bool = False,
    network: Optional[str] = None,
) -> dict:
    svc = _get_service(network)
    batch = _normalize_array_param(items, "items")
    if batch is not None:
        param_sets = [_normalize_object_param(item, "items[]") for item in batch]
        results = actions.execute_many(svc, resource, operation, param_sets, continue_on_fail=continue_on_fail)
        return {"resource": resource, "operation": operation, "results": results}
    return actions.execute(svc, resource, operation, _normalize_object_param(params, "params"))


@server.tool(
    name="convert_units",
    title="Convert Units",
    description="Exact conversion between wei, gwei, cro/ether and custom-decimals units. Amounts may be strings or numbers; results are strings.",
)
def convert_units(value: Union[str, int, float], from_unit: str, to_unit: str, decimals: int = 18) -> dict:
    return actions.execute(
        None,
        "utility",
        "convertUnits",
        {"value": value, "from_unit": from_unit, "to_unit": to_unit, "decimals": decimals},
    )


@server.tool(
    name="encode_function",
    title="Encode Function Call",
    description=(
        "ABI-encode call data from a 4-byte selector and static parameters "
        "(address, uint<N>, int<N> (non-negative), bool, bytes32)."
    ),
)
def encode_function(
    function_selector: str,
    parameters: Optional[List[Any]] = None,
    strict: bool = True,
) -> dict:
    return actions.execute(
        None,
        "utility",
        "encodeFunction",
        {
            "function_selector": function_selector,
            "parameters": _normalize_array_param(parameters, "parameters") or [],
            "strict": strict,
        },
    )


@server.tool(
    name="decode_data",
    title="Decode ABI Data",
    description="Decode hex data word by word against a list of static types. Set has_selector for call data.",
)
def decode_data(
    data: str,
    types: Optional[Union[List[str], str]] = None,
    has_selector: bool = False,
    strict: bool = True,
) -> dict:
    return actions.execute(
        None,
        "utility",
        "decodeData",
        {"data": data, "types": types, "has_selector": has_selector, "strict": strict},
    )


@server.tool(
    name="get_balance",
    title="Get CRO Balance",
    description="Native CRO balance of an address in wei and CRO.",
)
def get_balance(address: str, block: Optional[str] = None, network: Optional[str] = None) -> dict:
    svc = _get_service(network)
    return actions.execute(svc, "account", "getBalance", {"address": address, "block": block or "latest"})


@server.tool(
    name="get_transaction",
    title="Get Transaction",
    description="Transaction details by hash, with value in CRO and gas price in gwei.",
)
def get_transaction(tx_hash: str, network: Optional[str] = None) -> dict:
    svc = _get_service(network)
    return actions.execute(svc, "transaction", "getTransaction", {"tx_hash": tx_hash})


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Cronos MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol for MCP.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--mount-path",
        default="/",
        help="Mount path for SSE transport (only when transport=sse).",
    )
    args = parser.parse_args()

    configure_logging(load_config().log_level)

    # FastMCP uses host/port only for SSE/HTTP transports; stdio ignores them.
    server.settings.host = args.host
    server.settings.port = args.port

    if args.transport == "sse":
        server.run(transport="sse", mount_path=args.mount_path)
    else:
        server.run(transport=args.transport)


if __name__ == "__main__":
    main()
