import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import requests

from .cache import TokenCache
from .config import Config
from .constants import (
    CRO_DECIMALS,
    DEFAULT_OFFSET,
    DEFAULT_PAGE,
    FUNCTION_SIGNATURES,
    KNOWN_TOKENS,
    MAX_BLOCK,
)
from .errors import InvalidEncodingError, RpcError
from .explorer_client import ExplorerClient
from .rpc_client import RpcClient
from .utils import (
    DIGITS_PATTERN,
    decode_ascii_string,
    decode_single_dynamic_string,
    format_block_number,
    hex_to_decimal,
    require_address,
)

logger = logging.getLogger(__name__)


class CronosService:
    """Combine configuration, clients and token cache; shared by every operation."""

    def __init__(
        self,
        config: Config,
        rpc_client: Optional[RpcClient] = None,
        explorer_client: Optional[ExplorerClient] = None,
    ) -> None:
        self.config = config
        self.token_cache = TokenCache(enabled=config.token_cache_enabled)
        self.rpc_client = rpc_client or RpcClient(
            config.rpc_url,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            backoff_seconds=config.backoff_seconds,
        )
        self.explorer_client = explorer_client or ExplorerClient(
            config.explorer_base_url,
            api_key=config.explorer_api_key,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            backoff_seconds=config.backoff_seconds,
        )
        self.http = requests.Session()

    def network_info(self) -> Dict[str, Any]:
        return {
            "network": self.config.network,
            "chain_id": self.config.chain_id,
            "rpc_url": self.config.rpc_url,
            "explorer_api_url": self.config.explorer_base_url,
            "explorer_url": self.config.explorer_url,
            "ws_url": self.config.ws_url,
            "has_api_key": bool(self.config.explorer_api_key),
        }

    def rpc(self, method: str, params: Optional[List[Any]] = None) -> Any:
        return self.rpc_client.call(method, params or [])

    def rpc_batch(self, calls: Sequence[Tuple[str, List[Any]]]) -> List[Any]:
        return self.rpc_client.batch_call(calls)

    def explorer(self, module: str, action: str, **params: Any) -> Any:
        return self.explorer_client.request(module, action, **params)

    def eth_call(self, to: str, data: str, block: Union[int, str] = "latest") -> str:
        result = self.rpc("eth_call", [{"to": to, "data": data}, format_block_number(block)])
        if not isinstance(result, str):
            raise ValueError("eth_call returned a non-hex result.")
        return result

    def try_eth_call(self, to: str, data: str, block: Union[int, str] = "latest") -> Optional[str]:
        """eth_call that returns None when the node reverts or rejects the call."""
        try:
            return self.eth_call(to, data, block)
        except RpcError as exc:
            logger.debug("eth_call %s on %s failed: %s", data[:10], to, exc)
            return None

    def read_string(self, to: str, data: str) -> Optional[str]:
        raw = self.try_eth_call(to, data)
        if not raw or raw == "0x":
            return None
        try:
            return decode_single_dynamic_string(raw)
        except InvalidEncodingError:
            # Older tokens return bytes32 instead of string.
            return decode_ascii_string(raw) or None

    def read_uint(self, to: str, data: str) -> Optional[str]:
        raw = self.try_eth_call(to, data)
        if not raw or raw == "0x":
            return None
        return hex_to_decimal(raw)

    def get_token_metadata(self, address: str) -> Dict[str, Any]:
        """name/symbol/decimals for an ERC-20 contract, known-token table first, then chain."""
        require_address(address, "token address")
        cached = self.token_cache.get(address, self.config.network)
        if cached:
            return cached

        known = KNOWN_TOKENS.get(address.lower())
        name = self.read_string(address, FUNCTION_SIGNATURES["name"])
        symbol = self.read_string(address, FUNCTION_SIGNATURES["symbol"])
        decimals_raw = self.read_uint(address, FUNCTION_SIGNATURES["decimals"])

        default_decimals = int(known["decimals"]) if known else CRO_DECIMALS
        decimals = int(decimals_raw) if decimals_raw and decimals_raw != "0" else default_decimals

        metadata = {
            "name": name or (known["name"] if known else "Unknown Token"),
            "symbol": symbol or (known["symbol"] if known else "UNKNOWN"),
            "decimals": decimals,
            "is_known_token": known is not None,
        }
        self.token_cache.set(address, self.config.network, metadata)
        return metadata

    def fetch_json(self, url: str) -> Any:
        response = self.http.get(url, timeout=self.config.request_timeout)
        response.raise_for_status()
        return response.json()

    # Parameter normalisation shared by the explorer-backed operations.

    def page_params(self, page: Optional[int], offset: Optional[int]) -> Tuple[int, int]:
        return (
            self._normalize_positive_int(page, DEFAULT_PAGE, "page"),
            self._normalize_positive_int(offset, DEFAULT_OFFSET, "offset"),
        )

    def block_range(
        self, start: Optional[Union[int, str]], end: Optional[Union[int, str]]
    ) -> Tuple[int, int]:
        start_block = self._parse_block_number(start, 0, "start_block")
        end_block = self._parse_block_number(end, MAX_BLOCK, "end_block")
        if start_block > end_block:
            raise ValueError("start_block cannot be greater than end_block.")
        return start_block, end_block

    def normalize_sort(self, sort: Optional[str], default: str = "desc") -> str:
        if sort is None:
            return default
        normalized = sort.lower()
        if normalized not in {"asc", "desc"}:
            raise ValueError("sort must be 'asc' or 'desc'.")
        return normalized

    def _parse_block_number(
        self, value: Optional[Union[int, str]], default: int, field: str
    ) -> int:
        if value is None:
            return default
        message = f"{field} must be a non-negative block number in decimal or 0x-prefixed hexadecimal."
        if isinstance(value, bool):
            raise ValueError(message)
        if isinstance(value, int):
            ivalue = value
        elif isinstance(value, str):
            candidate = value.strip().lower()
            if candidate.startswith("0x"):
                try:
                    ivalue = int(candidate, 16)
                except ValueError as exc:
                    raise ValueError(message) from exc
            elif DIGITS_PATTERN.fullmatch(candidate):
                ivalue = int(candidate)
            else:
                raise ValueError(message)
        else:
            raise ValueError(message)

        if ivalue < 0:
            raise ValueError(message)
        return ivalue

    def _normalize_positive_int(self, value: Optional[Union[int, str]], default: int, field: str) -> int:
        if value is None:
            return default
        if isinstance(value, bool):
            raise ValueError(f"{field} must be a non-negative integer.")
        if isinstance(value, int):
            ivalue = value
        elif isinstance(value, str) and DIGITS_PATTERN.fullmatch(value.strip()):
            ivalue = int(value.strip())
        else:
            raise ValueError(f"{field} must be a non-negative integer.")
        if ivalue < 0:
            raise ValueError(f"{field} must be a non-negative integer.")
        return ivalue
