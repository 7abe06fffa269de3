from typing import Any, Dict, Optional, Union

from ..service import CronosService
from ..utils import (
    calculate_tx_fee,
    decimal_to_hex,
    format_gas_price,
    hex_to_decimal,
    human_to_wei,
    is_valid_address,
    require_address,
    require_tx_hash,
    wei_to_human,
)
from .params import hex_or_none


def get_transaction(service: CronosService, tx_hash: str) -> Dict[str, Any]:
    require_tx_hash(tx_hash)
    tx = service.rpc("eth_getTransactionByHash", [tx_hash])
    if not tx:
        raise ValueError(f"Transaction not found: {tx_hash}")

    value_wei = hex_to_decimal(tx.get("value"))
    return {
        "hash": tx.get("hash"),
        "block_hash": tx.get("blockHash"),
        "block_number": hex_or_none(tx.get("blockNumber")),
        "from": tx.get("from"),
        "to": tx.get("to"),
        "value": wei_to_human(value_wei),
        "value_wei": value_wei,
        "gas": hex_to_decimal(tx.get("gas")),
        "gas_price": format_gas_price(tx.get("gasPrice")),
        "gas_price_wei": hex_to_decimal(tx.get("gasPrice")),
        "nonce": hex_to_decimal(tx.get("nonce")),
        "transaction_index": hex_or_none(tx.get("transactionIndex")),
        "input": tx.get("input"),
        "type": hex_to_decimal(tx.get("type")),
        "chain_id": hex_or_none(tx.get("chainId")),
        "is_pending": tx.get("blockNumber") is None,
    }


def get_transaction_receipt(service: CronosService, tx_hash: str) -> Dict[str, Any]:
    require_tx_hash(tx_hash)
    receipt = service.rpc("eth_getTransactionReceipt", [tx_hash])
    if not receipt:
        raise ValueError(f"Transaction receipt not found: {tx_hash}")

    logs = receipt.get("logs") if isinstance(receipt.get("logs"), list) else []
    return {
        "transaction_hash": receipt.get("transactionHash"),
        "block_hash": receipt.get("blockHash"),
        "block_number": hex_to_decimal(receipt.get("blockNumber")),
        "from": receipt.get("from"),
        "to": receipt.get("to"),
        "contract_address": receipt.get("contractAddress"),
        "gas_used": hex_to_decimal(receipt.get("gasUsed")),
        "cumulative_gas_used": hex_to_decimal(receipt.get("cumulativeGasUsed")),
        "effective_gas_price": hex_to_decimal(receipt.get("effectiveGasPrice")),
        "effective_gas_price_gwei": format_gas_price(receipt.get("effectiveGasPrice")),
        "transaction_fee": calculate_tx_fee(receipt.get("gasUsed"), receipt.get("effectiveGasPrice")),
        "status": "success" if receipt.get("status") == "0x1" else "failed",
        "status_code": receipt.get("status"),
        "logs_count": len(logs),
        "logs": logs,
        "type": hex_to_decimal(receipt.get("type")),
    }


def estimate_gas(
    service: CronosService,
    to: str,
    from_address: Optional[str] = None,
    value: Union[str, int] = "0",
    data: str = "0x",
) -> Dict[str, Any]:
    """Gas estimate for a call, priced at the current node gas price. `value` is in CRO."""
    require_address(to, "recipient address")
    tx_object: Dict[str, Any] = {"to": to, "data": data or "0x"}
    if is_valid_address(from_address):
        tx_object["from"] = from_address
    if value not in (None, "", "0", 0):
        tx_object["value"] = decimal_to_hex(human_to_wei(value))

    estimated = service.rpc("eth_estimateGas", [tx_object])
    gas_price = service.rpc("eth_gasPrice", [])

    gas = hex_to_decimal(estimated)
    gas_price_wei = hex_to_decimal(gas_price)
    fee_wei = int(gas) * int(gas_price_wei)
    return {
        "estimated_gas": gas,
        "gas_price": format_gas_price(gas_price),
        "gas_price_wei": gas_price_wei,
        "estimated_fee": wei_to_human(fee_wei),
        "estimated_fee_wei": str(fee_wei),
    }


def get_transaction_status(service: CronosService, tx_hash: str) -> Dict[str, Any]:
    require_tx_hash(tx_hash)
    tx = service.rpc("eth_getTransactionByHash", [tx_hash])
    if not tx:
        return {
            "transaction_hash": tx_hash,
            "status": "not_found",
            "message": "Transaction not found in the network",
        }

    value = wei_to_human(hex_to_decimal(tx.get("value")))
    if not tx.get("blockNumber"):
        return {
            "transaction_hash": tx_hash,
            "status": "pending",
            "message": "Transaction is pending confirmation",
            "from": tx.get("from"),
            "to": tx.get("to"),
            "value": value,
        }

    receipt = service.rpc("eth_getTransactionReceipt", [tx_hash])
    latest = int(hex_to_decimal(service.rpc("eth_blockNumber", [])))
    tx_block = int(hex_to_decimal(tx.get("blockNumber")))
    succeeded = bool(receipt) and receipt.get("status") == "0x1"

    return {
        "transaction_hash": tx_hash,
        "status": "confirmed" if succeeded else "failed",
        "block_number": tx_block,
        "confirmations": latest - tx_block + 1,
        "from": tx.get("from"),
        "to": tx.get("to"),
        "value": value,
        "gas_used": hex_to_decimal(receipt.get("gasUsed")) if receipt else None,
        "transaction_fee": (
            calculate_tx_fee(receipt.get("gasUsed"), receipt.get("effectiveGasPrice")) if receipt else None
        ),
    }


OPERATIONS = {
    "getTransaction": get_transaction,
    "getTransactionReceipt": get_transaction_receipt,
    "estimateGas": estimate_gas,
    "getTransactionStatus": get_transaction_status,
}
