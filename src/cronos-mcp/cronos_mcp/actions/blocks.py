from typing import Any, Dict, List, Optional, Union

from ..service import CronosService
from ..utils import (
    TX_HASH_PATTERN,
    decimal_to_hex,
    format_block_number,
    format_block_timestamp,
    hex_to_decimal,
    wei_to_human,
)
from .params import as_bool, as_int, hex_or_none


def format_block(block: Dict[str, Any]) -> Dict[str, Any]:
    transactions: List[Any] = block.get("transactions") or []

    return {
        "number": hex_to_decimal(block.get("number")),
        "hash": block.get("hash"),
        "parent_hash": block.get("parentHash"),
        "nonce": block.get("nonce"),
        "sha3_uncles": block.get("sha3Uncles"),
        "logs_bloom": block.get("logsBloom"),
        "transactions_root": block.get("transactionsRoot"),
        "state_root": block.get("stateRoot"),
        "receipts_root": block.get("receiptsRoot"),
        "miner": block.get("miner"),
        "difficulty": hex_to_decimal(block.get("difficulty")),
        "total_difficulty": hex_to_decimal(block.get("totalDifficulty")),
        "extra_data": block.get("extraData"),
        "size": hex_to_decimal(block.get("size")),
        "gas_limit": hex_to_decimal(block.get("gasLimit")),
        "gas_used": hex_to_decimal(block.get("gasUsed")),
        "timestamp": format_block_timestamp(block.get("timestamp")),
        "timestamp_unix": hex_to_decimal(block.get("timestamp")),
        "transaction_count": len(transactions),
        "transactions": list(transactions),
        "uncles": block.get("uncles"),
        "base_fee_per_gas": hex_or_none(block.get("baseFeePerGas")),
    }


def _fetch_block(service: CronosService, block_id: Union[int, str], full: bool) -> Dict[str, Any]:
    """Look a block up by hash (66-char 0x) or by number / tag."""
    if isinstance(block_id, str) and TX_HASH_PATTERN.fullmatch(block_id.strip()):
        block = service.rpc("eth_getBlockByHash", [block_id.strip(), full])
    else:
        block = service.rpc("eth_getBlockByNumber", [format_block_number(block_id), full])
    if not block:
        raise ValueError(f"Block not found: {block_id}")
    return block


def get_block(
    service: CronosService, block_id: Union[int, str] = "latest", include_transactions: Any = False
) -> Dict[str, Any]:
    return format_block(_fetch_block(service, block_id, as_bool(include_transactions)))


def get_latest_block(service: CronosService, include_transactions: Any = False) -> Dict[str, Any]:
    return get_block(service, "latest", include_transactions)


def get_block_transactions(service: CronosService, block_id: Union[int, str] = "latest") -> Dict[str, Any]:
    block = _fetch_block(service, block_id, True)
    transactions = [
        {
            "hash": tx.get("hash"),
            "from": tx.get("from"),
            "to": tx.get("to"),
            "value": wei_to_human(hex_to_decimal(tx.get("value"))),
            "value_wei": hex_to_decimal(tx.get("value")),
            "gas": hex_to_decimal(tx.get("gas")),
            "gas_price": hex_to_decimal(tx.get("gasPrice")),
            "nonce": hex_to_decimal(tx.get("nonce")),
            "transaction_index": hex_to_decimal(tx.get("transactionIndex")),
            "input": tx.get("input"),
        }
        for tx in block.get("transactions") or []
        if isinstance(tx, dict)
    ]
    return {
        "block_number": hex_to_decimal(block.get("number")),
        "block_hash": block.get("hash"),
        "timestamp": format_block_timestamp(block.get("timestamp")),
        "transaction_count": len(transactions),
        "transactions": transactions,
    }


def get_block_by_timestamp(
    service: CronosService, timestamp: Union[int, str], closest: Optional[str] = None
) -> Dict[str, Any]:
    unix_time = as_int(timestamp, "timestamp")
    direction = (closest or "before").lower()
    if direction not in {"before", "after"}:
        raise ValueError("closest must be 'before' or 'after'.")

    block_number = service.explorer("block", "getblocknobytime", timestamp=unix_time, closest=direction)
    block = service.rpc("eth_getBlockByNumber", [decimal_to_hex(str(block_number)), False])
    if not block:
        raise ValueError(f"Block not found for timestamp: {unix_time}")

    result: Dict[str, Any] = {"searched_timestamp": unix_time, "searched_closest": direction}
    result.update(format_block(block))
    return result


OPERATIONS = {
    "getBlock": get_block,
    "getLatestBlock": get_latest_block,
    "getBlockTransactions": get_block_transactions,
    "getBlockByTimestamp": get_block_by_timestamp,
}
