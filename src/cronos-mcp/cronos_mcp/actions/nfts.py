import base64
import json
import logging
from typing import Any, Dict, List, Optional, Union

import requests

from ..constants import FUNCTION_SIGNATURES, INTERFACE_IDS, IPFS_GATEWAY, MAX_BLOCK, ZERO_ADDRESS
from ..service import CronosService
from ..utils import decode_address, decode_bool, encode_function_call, require_address
from .params import as_int

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:application/json;base64,"


def _token_call(name: str, token_id: int) -> str:
    return encode_function_call(FUNCTION_SIGNATURES[name], [("uint256", token_id)])


def _owner_of(service: CronosService, contract_address: str, token_id: int) -> str:
    raw = service.try_eth_call(contract_address, _token_call("ownerOf", token_id))
    if not raw or raw == "0x":
        return ""
    return decode_address(raw)


def _token_uri(service: CronosService, contract_address: str, token_id: int) -> str:
    uri = service.read_string(contract_address, _token_call("tokenURI", token_id))
    if uri:
        return uri
    # ERC-1155 exposes uri(id) with an optional {id} placeholder.
    uri = service.read_string(contract_address, _token_call("uri", token_id))
    if uri and "{id}" in uri:
        uri = uri.replace("{id}", format(token_id, "064x"))
    return uri or ""


def resolve_uri(uri: str) -> str:
    if uri.startswith("ipfs://"):
        return IPFS_GATEWAY + uri[len("ipfs://"):]
    return uri


def load_metadata(service: CronosService, uri: str) -> Optional[Any]:
    """Decode inline base64 JSON or fetch the document; None when it cannot be read."""
    if not uri:
        return None
    if uri.startswith(DATA_URI_PREFIX):
        try:
            return json.loads(base64.b64decode(uri[len(DATA_URI_PREFIX):]).decode("utf-8"))
        except ValueError as exc:
            logger.warning("Could not decode inline metadata: %s", exc)
            return None
    try:
        return service.fetch_json(resolve_uri(uri))
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Could not fetch metadata from %s: %s", uri, exc)
        return None


def get_nft_metadata(service: CronosService, contract_address: str, token_id: Union[int, str]) -> Dict[str, Any]:
    require_address(contract_address, "contract address")
    token = as_int(token_id, "token_id")
    token_uri = _token_uri(service, contract_address, token)

    return {
        "contract_address": contract_address,
        "token_id": str(token),
        "collection_name": service.read_string(contract_address, FUNCTION_SIGNATURES["name"]) or "",
        "collection_symbol": service.read_string(contract_address, FUNCTION_SIGNATURES["symbol"]) or "",
        "owner": _owner_of(service, contract_address, token),
        "token_uri": token_uri,
        "metadata": load_metadata(service, token_uri),
    }


def get_nft_transfers(
    service: CronosService,
    contract_address: str,
    token_id: Optional[Union[int, str]] = None,
    start_block: Optional[Union[int, str]] = None,
    end_block: Optional[Union[int, str]] = None,
    page: Optional[int] = None,
    offset: Optional[int] = None,
    sort: Optional[str] = None,
) -> Dict[str, Any]:
    require_address(contract_address, "contract address")
    start, end = service.block_range(start_block, end_block)
    page_no, page_size = service.page_params(page, offset)
    result = service.explorer(
        "account",
        "tokennfttx",
        contractaddress=contract_address,
        startblock=start,
        endblock=end,
        page=page_no,
        offset=page_size,
        sort=service.normalize_sort(sort),
    )

    transfers = result if isinstance(result, list) else []
    wanted = None if token_id in (None, "") else str(as_int(token_id, "token_id"))
    if wanted is not None:
        transfers = [item for item in transfers if str(item.get("tokenID")) == wanted]

    formatted = [
        {
            "hash": item.get("hash"),
            "block_number": item.get("blockNumber"),
            "timestamp": item.get("timeStamp"),
            "from": item.get("from"),
            "to": item.get("to"),
            "token_id": item.get("tokenID"),
            "token_name": item.get("tokenName"),
            "token_symbol": item.get("tokenSymbol"),
        }
        for item in transfers
    ]
    return {
        "contract_address": contract_address,
        "token_id": wanted or "all",
        "page": page_no,
        "transfer_count": len(formatted),
        "transfers": formatted,
    }


def _supports_interface(service: CronosService, contract_address: str, interface_id: str) -> bool:
    data = FUNCTION_SIGNATURES["supportsInterface"] + interface_id[2:].ljust(64, "0")
    raw = service.try_eth_call(contract_address, data)
    if not raw or raw == "0x":
        return False
    return decode_bool(raw) == "true"


def get_collection_info(service: CronosService, contract_address: str) -> Dict[str, Any]:
    require_address(contract_address, "contract address")
    erc721 = _supports_interface(service, contract_address, INTERFACE_IDS["erc721"])
    erc1155 = _supports_interface(service, contract_address, INTERFACE_IDS["erc1155"])

    if erc1155:
        kind = "ERC1155"
    elif erc721:
        kind = "ERC721"
    else:
        kind = "Unknown"

    return {
        "contract_address": contract_address,
        "name": service.read_string(contract_address, FUNCTION_SIGNATURES["name"]) or "",
        "symbol": service.read_string(contract_address, FUNCTION_SIGNATURES["symbol"]) or "",
        "total_supply": service.read_uint(contract_address, FUNCTION_SIGNATURES["totalSupply"]) or "",
        "type": kind,
        "supports_erc721": erc721,
        "supports_erc1155": erc1155,
    }


def _replay_balances(transfers: List[Dict[str, Any]]) -> Dict[str, int]:
    """Net ERC-1155 balances from a transfer history given oldest first."""
    balances: Dict[str, int] = {}
    for transfer in transfers:
        sender = str(transfer.get("from", "")).lower()
        receiver = str(transfer.get("to", "")).lower()
        amount = as_int(transfer.get("tokenValue") or "1", "tokenValue")
        if sender != ZERO_ADDRESS:
            balances[sender] = balances.get(sender, 0) - amount
        balances[receiver] = balances.get(receiver, 0) + amount
    return balances


def get_nft_owners(service: CronosService, contract_address: str, token_id: Union[int, str]) -> Dict[str, Any]:
    """ownerOf for ERC-721; otherwise holders rebuilt from ERC-1155 transfer history."""
    require_address(contract_address, "contract address")
    token = as_int(token_id, "token_id")

    owner = _owner_of(service, contract_address, token)
    if owner and owner != ZERO_ADDRESS:
        return {
            "contract_address": contract_address,
            "token_id": str(token),
            "type": "ERC721",
            "owner": owner,
            "owners": [{"address": owner, "balance": "1"}],
        }

    result = service.explorer(
        "account",
        "token1155tx",
        contractaddress=contract_address,
        startblock=0,
        endblock=MAX_BLOCK,
        sort="asc",
    )
    history = [
        item for item in (result if isinstance(result, list) else []) if str(item.get("tokenID")) == str(token)
    ]
    owners = [
        {"address": address, "balance": str(balance)}
        for address, balance in _replay_balances(history).items()
        if balance > 0
    ]
    return {
        "contract_address": contract_address,
        "token_id": str(token),
        "type": "ERC1155",
        "owner_count": len(owners),
        "owners": owners,
    }


OPERATIONS = {
    "getNFTMetadata": get_nft_metadata,
    "getNFTTransfers": get_nft_transfers,
    "getCollectionInfo": get_collection_info,
    "getNFTOwners": get_nft_owners,
}
