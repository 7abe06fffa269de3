import logging
from typing import Any, Dict, List, Optional, Union

from ..constants import CRO_DECIMALS, FUNCTION_SIGNATURES, MAX_BLOCK
from ..errors import CronosError
from ..service import CronosService
from ..utils import (
    decode_uint256,
    encode_function_call,
    format_block_number,
    hex_to_decimal,
    is_valid_address,
    require_address,
    wei_to_human,
)
from .params import split_list

logger = logging.getLogger(__name__)


def _token_decimals(raw: Any) -> int:
    try:
        return int(raw) or CRO_DECIMALS
    except (TypeError, ValueError):
        return CRO_DECIMALS


def get_balance(service: CronosService, address: str, block: Union[int, str] = "latest") -> Dict[str, Any]:
    require_address(address)
    balance = service.rpc("eth_getBalance", [address, format_block_number(block)])
    balance_wei = hex_to_decimal(balance)
    return {
        "address": address,
        "balance_wei": balance_wei,
        "balance_cro": wei_to_human(balance_wei),
        "block": block,
    }


def get_token_balances(
    service: CronosService, address: str, token_addresses: Optional[Union[str, List[str]]] = None
) -> Dict[str, Any]:
    """balanceOf for each token; invalid token addresses are skipped, failed reads reported inline."""
    require_address(address)
    balances: List[Dict[str, Any]] = []

    for token_address in split_list(token_addresses):
        if not is_valid_address(token_address):
            continue
        call_data = encode_function_call(FUNCTION_SIGNATURES["balanceOf"], [("address", address)])
        try:
            balance = decode_uint256(service.eth_call(token_address, call_data))
            metadata = service.get_token_metadata(token_address)
        except CronosError as exc:
            logger.warning("balanceOf on %s failed: %s", token_address, exc)
            balances.append({"token_address": token_address, "error": "Failed to fetch balance"})
            continue

        balances.append(
            {
                "token_address": token_address,
                "name": metadata["name"],
                "symbol": metadata["symbol"],
                "decimals": metadata["decimals"],
                "balance_raw": balance,
                "balance": wei_to_human(balance, metadata["decimals"]),
            }
        )

    return {"address": address, "token_balances": balances, "token_count": len(balances)}


def get_nfts(service: CronosService, address: str) -> Dict[str, Any]:
    """NFTs whose most recent transfer went to `address`."""
    require_address(address)
    result = service.explorer(
        "account", "tokennfttx", address=address, startblock=0, endblock=MAX_BLOCK, sort="desc"
    )

    owned: List[Dict[str, Any]] = []
    seen = set()
    for transfer in result if isinstance(result, list) else []:
        key = (str(transfer.get("contractAddress", "")).lower(), transfer.get("tokenID"))
        if key in seen:
            continue
        seen.add(key)
        if str(transfer.get("to", "")).lower() == address.lower():
            owned.append(
                {
                    "contract_address": transfer.get("contractAddress"),
                    "token_id": transfer.get("tokenID"),
                    "token_name": transfer.get("tokenName"),
                    "token_symbol": transfer.get("tokenSymbol"),
                    "last_transfer_hash": transfer.get("hash"),
                    "last_transfer_timestamp": transfer.get("timeStamp"),
                }
            )

    return {"address": address, "nfts": owned, "nft_count": len(owned)}


def get_transaction_history(
    service: CronosService,
    address: str,
    start_block: Optional[Union[int, str]] = None,
    end_block: Optional[Union[int, str]] = None,
    page: Optional[int] = None,
    offset: Optional[int] = None,
    sort: Optional[str] = None,
) -> Dict[str, Any]:
    require_address(address)
    start, end = service.block_range(start_block, end_block)
    page_no, page_size = service.page_params(page, offset)
    result = service.explorer(
        "account",
        "txlist",
        address=address,
        startblock=start,
        endblock=end,
        page=page_no,
        offset=page_size,
        sort=service.normalize_sort(sort),
    )

    transactions = [
        {
            "hash": tx.get("hash"),
            "block_number": tx.get("blockNumber"),
            "timestamp": tx.get("timeStamp"),
            "from": tx.get("from"),
            "to": tx.get("to"),
            "value": wei_to_human(tx.get("value") or "0"),
            "gas_used": tx.get("gasUsed"),
            "gas_price": tx.get("gasPrice"),
            "is_error": tx.get("isError") == "1",
            "method_id": tx.get("methodId"),
            "function_name": tx.get("functionName"),
        }
        for tx in (result if isinstance(result, list) else [])
    ]
    return {
        "address": address,
        "transactions": transactions,
        "transaction_count": len(transactions),
        "page": page_no,
    }


def format_token_transfer(transfer: Dict[str, Any]) -> Dict[str, Any]:
    decimals = _token_decimals(transfer.get("tokenDecimal"))
    return {
        "hash": transfer.get("hash"),
        "block_number": transfer.get("blockNumber"),
        "timestamp": transfer.get("timeStamp"),
        "from": transfer.get("from"),
        "to": transfer.get("to"),
        "value": wei_to_human(transfer.get("value") or "0", decimals),
        "token_name": transfer.get("tokenName"),
        "token_symbol": transfer.get("tokenSymbol"),
        "token_decimal": transfer.get("tokenDecimal"),
        "contract_address": transfer.get("contractAddress"),
    }


def get_token_transfers(
    service: CronosService,
    address: str,
    contract_address: Optional[str] = None,
    start_block: Optional[Union[int, str]] = None,
    end_block: Optional[Union[int, str]] = None,
    page: Optional[int] = None,
    offset: Optional[int] = None,
    sort: Optional[str] = None,
) -> Dict[str, Any]:
    require_address(address)
    start, end = service.block_range(start_block, end_block)
    page_no, page_size = service.page_params(page, offset)
    result = service.explorer(
        "account",
        "tokentx",
        address=address,
        contractaddress=contract_address if is_valid_address(contract_address) else None,
        startblock=start,
        endblock=end,
        page=page_no,
        offset=page_size,
        sort=service.normalize_sort(sort),
    )

    transfers = [format_token_transfer(item) for item in (result if isinstance(result, list) else [])]
    return {
        "address": address,
        "transfers": transfers,
        "transfer_count": len(transfers),
        "page": page_no,
    }


OPERATIONS = {
    "getBalance": get_balance,
    "getTokenBalances": get_token_balances,
    "getNFTs": get_nfts,
    "getTransactionHistory": get_transaction_history,
    "getTokenTransfers": get_token_transfers,
}
