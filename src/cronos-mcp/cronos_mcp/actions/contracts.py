import json
from typing import Any, Dict, List, Optional, Union

from ..service import CronosService
from ..utils import (
    decode_address,
    decode_data,
    decode_uint256,
    encode_function_call,
    format_block_number,
    hex_to_decimal,
    require_address,
)
from .params import as_bool, split_list


def _load_params(params: Optional[Union[str, List[Any]]]) -> List[Any]:
    if params is None or params == "":
        return []
    if isinstance(params, str):
        try:
            params = json.loads(params)
        except json.JSONDecodeError as exc:
            raise ValueError(f"params must be a JSON array: {exc}.") from exc
    if not isinstance(params, list):
        raise ValueError("params must be a list of {type, value} entries.")
    return params


def get_contract_abi(service: CronosService, contract_address: str) -> Dict[str, Any]:
    require_address(contract_address, "contract address")
    result = service.explorer("contract", "getabi", address=contract_address)

    if isinstance(result, str):
        try:
            abi = json.loads(result)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Failed to parse ABI for contract: {contract_address}") from exc
    else:
        abi = result
    if not isinstance(abi, list):
        raise ValueError(f"Failed to parse ABI for contract: {contract_address}")

    functions = [
        {
            "name": item.get("name"),
            "inputs": item.get("inputs"),
            "outputs": item.get("outputs"),
            "state_mutability": item.get("stateMutability"),
        }
        for item in abi
        if isinstance(item, dict) and item.get("type") == "function"
    ]
    events = [
        {"name": item.get("name"), "inputs": item.get("inputs")}
        for item in abi
        if isinstance(item, dict) and item.get("type") == "event"
    ]
    return {
        "contract_address": contract_address,
        "abi": abi,
        "function_count": len(functions),
        "event_count": len(events),
        "functions": functions,
        "events": events,
    }


def read_contract(
    service: CronosService,
    contract_address: str,
    function_selector: str,
    params: Optional[Union[str, List[Any]]] = None,
    output_types: Optional[Union[str, List[str]]] = None,
    block: Union[int, str] = "latest",
    strict: Any = True,
) -> Dict[str, Any]:
    """eth_call a view function.

    `params` is a list (or JSON array) of {type, value} entries. The raw
    result is always returned; when `output_types` is given the words are
    decoded with those types, otherwise the first word is offered as both
    uint256 and address.
    """
    require_address(contract_address, "contract address")
    call_params = _load_params(params)
    call_data = encode_function_call(function_selector, call_params, strict=as_bool(strict, True))
    raw = service.eth_call(contract_address, call_data, block)

    has_data = bool(raw) and raw != "0x"
    result: Dict[str, Any] = {
        "contract_address": contract_address,
        "function_selector": function_selector,
        "parameters": call_params,
        "call_data": call_data,
        "raw_result": raw,
        "decoded_uint256": decode_uint256(raw) if has_data else None,
        "decoded_address": decode_address(raw) if has_data and len(raw) >= 66 else None,
    }
    types = split_list(output_types)
    if types:
        result["decoded"] = decode_data(raw, types, strict=as_bool(strict, True)) if has_data else []
    return result


def get_contract_source(service: CronosService, contract_address: str) -> Dict[str, Any]:
    require_address(contract_address, "contract address")
    result = service.explorer("contract", "getsourcecode", address=contract_address)

    if not isinstance(result, list) or not result:
        return {
            "contract_address": contract_address,
            "verified": False,
            "message": "Contract source code not verified",
        }

    info = result[0]
    return {
        "contract_address": contract_address,
        "verified": bool(info.get("SourceCode")),
        "contract_name": info.get("ContractName"),
        "compiler_version": info.get("CompilerVersion"),
        "optimization_used": info.get("OptimizationUsed") == "1",
        "runs": info.get("Runs"),
        "source_code": info.get("SourceCode"),
        "abi": info.get("ABI"),
        "constructor_arguments": info.get("ConstructorArguments"),
        "evm_version": info.get("EVMVersion"),
        "library": info.get("Library"),
        "license_type": info.get("LicenseType"),
        "proxy": info.get("Proxy"),
        "implementation": info.get("Implementation"),
    }


def format_log(log: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "address": log.get("address"),
        "block_number": hex_to_decimal(log.get("blockNumber")),
        "block_hash": log.get("blockHash"),
        "transaction_hash": log.get("transactionHash"),
        "transaction_index": hex_to_decimal(log.get("transactionIndex")),
        "log_index": hex_to_decimal(log.get("logIndex")),
        "topics": log.get("topics") or [],
        "data": log.get("data"),
        "removed": log.get("removed"),
    }


def get_contract_events(
    service: CronosService,
    contract_address: str,
    from_block: Union[int, str] = 0,
    to_block: Union[int, str] = "latest",
    topic0: Optional[str] = None,
) -> Dict[str, Any]:
    require_address(contract_address, "contract address")
    log_filter: Dict[str, Any] = {
        "address": contract_address,
        "fromBlock": format_block_number(from_block),
        "toBlock": format_block_number(to_block),
    }
    if topic0:
        log_filter["topics"] = [topic0]

    logs = service.rpc("eth_getLogs", [log_filter]) or []
    events = [format_log(log) for log in logs]
    return {
        "contract_address": contract_address,
        "from_block": from_block,
        "to_block": to_block,
        "event_count": len(events),
        "events": events,
    }


OPERATIONS = {
    "getContractABI": get_contract_abi,
    "readContract": read_contract,
    "getContractSource": get_contract_source,
    "getContractEvents": get_contract_events,
}
