import json
from typing import Any, Dict, List, Optional, Union

from ..constants import EVENT_SIGNATURES
from ..service import CronosService
from ..utils import decode_address, format_block_number, hex_to_decimal, is_valid_address, parse_log_data
from .contracts import format_log

# eventType values accepted by filterEvents.
EVENT_TYPES = {
    "transfer": "Transfer",
    "approval": "Approval",
    "transferSingle": "TransferSingle",
    "transferBatch": "TransferBatch",
}

EVENT_LABELS = {
    EVENT_SIGNATURES["Transfer"]: "Transfer",
    EVENT_SIGNATURES["Approval"]: "Approval",
    EVENT_SIGNATURES["TransferSingle"]: "TransferSingle (ERC1155)",
    EVENT_SIGNATURES["TransferBatch"]: "TransferBatch (ERC1155)",
}


def parse_topics(topics: Optional[Union[str, List[Any]]]) -> Optional[List[Any]]:
    """A list, a JSON array, or one bare topic hash."""
    if topics is None or topics == "" or topics == []:
        return None
    if isinstance(topics, list):
        return topics
    if isinstance(topics, str):
        try:
            parsed = json.loads(topics)
        except json.JSONDecodeError:
            return [topics.strip()]
        if isinstance(parsed, list):
            return parsed
        return [topics.strip()]
    raise ValueError("topics must be a list, a JSON array or a single topic.")


def decode_known_event(log: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Decode Transfer / Approval (indexed from/to, value in data); None otherwise."""
    topics = log.get("topics") or []
    if len(topics) < 3:
        return None
    values = parse_log_data(log.get("data"), ["uint256"])
    value = values[0] if values else None
    if topics[0] == EVENT_SIGNATURES["Transfer"]:
        return {"from": decode_address(topics[1]), "to": decode_address(topics[2]), "value": value}
    if topics[0] == EVENT_SIGNATURES["Approval"]:
        return {"owner": decode_address(topics[1]), "spender": decode_address(topics[2]), "value": value}
    return None


def _log_filter(
    from_block: Union[int, str], to_block: Union[int, str], address: Optional[str], topics: Optional[List[Any]]
) -> Dict[str, Any]:
    log_filter: Dict[str, Any] = {
        "fromBlock": format_block_number(from_block),
        "toBlock": format_block_number(to_block),
    }
    if is_valid_address(address):
        log_filter["address"] = address
    if topics:
        log_filter["topics"] = topics
    return log_filter


def get_logs(
    service: CronosService,
    from_block: Union[int, str] = "latest",
    to_block: Union[int, str] = "latest",
    address: Optional[str] = None,
    topics: Optional[Union[str, List[Any]]] = None,
) -> Dict[str, Any]:
    logs = service.rpc("eth_getLogs", [_log_filter(from_block, to_block, address, parse_topics(topics))]) or []

    formatted = []
    for log in logs:
        entry = format_log(log)
        first_topic = entry["topics"][0] if entry["topics"] else None
        entry["event_name"] = EVENT_LABELS.get(first_topic, "Unknown")
        entry["decoded_data"] = decode_known_event(log)
        formatted.append(entry)

    return {
        "from_block": from_block,
        "to_block": to_block,
        "address": address or "all",
        "log_count": len(formatted),
        "logs": formatted,
    }


def subscribe_to_logs(
    service: CronosService,
    address: Optional[str] = None,
    topics: Optional[Union[str, List[Any]]] = None,
) -> Dict[str, Any]:
    """Describe the eth_subscribe request for a log stream; no socket is opened."""
    log_filter: Dict[str, Any] = {}
    if is_valid_address(address):
        log_filter["address"] = address
    parsed = parse_topics(topics)
    if parsed:
        log_filter["topics"] = parsed

    return {
        "subscription_type": "logs",
        "filter_params": log_filter,
        "websocket_method": "eth_subscribe",
        "websocket_params": ["logs", log_filter],
        "websocket_endpoint": service.network_info()["ws_url"],
        "note": "Open a websocket to the endpoint and send the request for real-time logs",
    }


def filter_events(
    service: CronosService,
    event_type: str,
    from_block: Union[int, str] = 0,
    to_block: Union[int, str] = "latest",
    address: Optional[str] = None,
) -> Dict[str, Any]:
    """Logs for a named event type, or for any other value treated as a raw topic0."""
    if not event_type:
        raise ValueError("event_type is required.")
    if event_type in EVENT_TYPES:
        event_name = EVENT_TYPES[event_type]
        signature = EVENT_SIGNATURES[event_name]
    else:
        event_name = "Custom"
        signature = event_type

    logs = service.rpc("eth_getLogs", [_log_filter(from_block, to_block, address, [signature])]) or []
    events = [
        {
            "address": log.get("address"),
            "block_number": hex_to_decimal(log.get("blockNumber")),
            "transaction_hash": log.get("transactionHash"),
            "log_index": hex_to_decimal(log.get("logIndex")),
            "event_name": event_name,
            "decoded_data": decode_known_event(log) if event_name in ("Transfer", "Approval") else None,
            "raw_data": log.get("data"),
            "topics": log.get("topics") or [],
        }
        for log in logs
    ]
    return {
        "event_type": event_name,
        "event_signature": signature,
        "from_block": from_block,
        "to_block": to_block,
        "address": address or "all",
        "event_count": len(events),
        "events": events,
    }


OPERATIONS = {
    "getLogs": get_logs,
    "subscribeToLogs": subscribe_to_logs,
    "filterEvents": filter_events,
}
