from typing import Any, Dict, List, Optional, Union

from ..constants import FUNCTION_SIGNATURES, KNOWN_TOKENS
from ..service import CronosService
from ..utils import require_address, wei_to_human
from .accounts import format_token_transfer
from .params import as_int


def get_token_info(service: CronosService, token_address: str) -> Dict[str, Any]:
    require_address(token_address, "token address")
    metadata = service.get_token_metadata(token_address)
    supply_raw = service.read_uint(token_address, FUNCTION_SIGNATURES["totalSupply"])

    return {
        "address": token_address,
        "name": metadata["name"],
        "symbol": metadata["symbol"],
        "decimals": metadata["decimals"],
        "total_supply": wei_to_human(supply_raw, metadata["decimals"]) if supply_raw else "0",
        "total_supply_raw": supply_raw or "0",
        "is_known_token": metadata["is_known_token"],
    }


def get_token_holders(
    service: CronosService,
    token_address: str,
    page: Optional[int] = None,
    offset: Optional[int] = None,
) -> Dict[str, Any]:
    require_address(token_address, "token address")
    page_no, page_size = service.page_params(page, offset)
    result = service.explorer(
        "token", "tokenholderlist", contractaddress=token_address, page=page_no, offset=page_size
    )

    holders = [
        {"address": holder.get("TokenHolderAddress"), "balance": holder.get("TokenHolderQuantity")}
        for holder in (result if isinstance(result, list) else [])
    ]
    return {
        "token_address": token_address,
        "page": page_no,
        "holder_count": len(holders),
        "holders": holders,
    }


def get_token_transfers(
    service: CronosService,
    token_address: str,
    start_block: Optional[Union[int, str]] = None,
    end_block: Optional[Union[int, str]] = None,
    page: Optional[int] = None,
    offset: Optional[int] = None,
    sort: Optional[str] = None,
) -> Dict[str, Any]:
    require_address(token_address, "token address")
    start, end = service.block_range(start_block, end_block)
    page_no, page_size = service.page_params(page, offset)
    result = service.explorer(
        "account",
        "tokentx",
        contractaddress=token_address,
        startblock=start,
        endblock=end,
        page=page_no,
        offset=page_size,
        sort=service.normalize_sort(sort),
    )

    transfers = [format_token_transfer(item) for item in (result if isinstance(result, list) else [])]
    return {
        "token_address": token_address,
        "page": page_no,
        "transfer_count": len(transfers),
        "transfers": transfers,
    }


def get_top_tokens(service: CronosService, limit: Any = 10) -> Dict[str, Any]:
    """Well-known Cronos tokens from the built-in table; no market data."""
    count = as_int(limit, "limit", 10)
    if count < 0:
        raise ValueError("limit must be a non-negative integer.")
    tokens: List[Dict[str, Any]] = [
        {"address": address, "name": info["name"], "symbol": info["symbol"], "decimals": info["decimals"]}
        for address, info in list(KNOWN_TOKENS.items())[:count]
    ]
    return {
        "network": service.config.network,
        "count": len(tokens),
        "tokens": tokens,
        "note": "Ranking by market cap requires a market data API",
    }


OPERATIONS = {
    "getTokenInfo": get_token_info,
    "getTokenHolders": get_token_holders,
    "getTokenTransfers": get_token_transfers,
    "getTopTokens": get_top_tokens,
}
