import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from .errors import RpcError

logger = logging.getLogger(__name__)

RpcCall = Tuple[str, List[Any]]


def _rpc_error(error_obj: Dict[str, Any]) -> RpcError:
    code = error_obj.get("code")
    details = [f"code {code}"] if code is not None else []
    details += [str(error_obj[key]) for key in ("message", "data") if error_obj.get(key)]
    summary = ": ".join(details) or "unknown error"
    return RpcError(f"RPC error: {summary}.", code=code, data=error_obj.get("data"))


def _unwrap(entry: Any, label: str) -> Any:
    """Return `result` from one response object, raising RpcError for an error member."""
    if not isinstance(entry, dict):
        raise ValueError(f"Unexpected JSON-RPC response for {label} (non-object).")
    if isinstance(entry.get("error"), dict):
        raise _rpc_error(entry["error"])
    if "result" not in entry:
        raise ValueError(f"Unexpected JSON-RPC response for {label} (missing result).")
    return entry["result"]


class RpcClient:
    """JSON-RPC 2.0 over HTTP POST for an EVM node, single and batched."""

    def __init__(
        self,
        rpc_url: str,
        timeout: int = 10,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.rpc_url = (rpc_url or "").strip()
        if not self.rpc_url:
            raise ValueError("rpc_url must be a non-empty string.")
        self.timeout = timeout
        self.max_retries = max(1, int(max_retries))
        self.backoff_seconds = float(backoff_seconds)

        self.session = requests.Session()
        self.session.headers["Content-Type"] = "application/json"
        self.session.headers.update(headers or {})
        # Ids are per client so concurrent clients never share a sequence.
        self._next_id = 1

    def _envelope(self, method: str, params: List[Any]) -> Dict[str, Any]:
        envelope = {"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params}
        self._next_id += 1
        return envelope

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        if not isinstance(method, str) or not method.strip():
            raise ValueError("method must be a non-empty string.")
        if params is not None and not isinstance(params, list):
            raise ValueError("params must be a list.")

        response = self._post(self._envelope(method, params or []), label=method)
        return _unwrap(response, method)

    def batch_call(self, calls: Sequence[RpcCall]) -> List[Any]:
        """Send `calls` as one JSON array; results are returned in call order."""
        if not calls:
            return []
        envelopes = [self._envelope(method, list(params or [])) for method, params in calls]

        response = self._post(envelopes, label=f"batch of {len(envelopes)}")
        if not isinstance(response, list):
            raise ValueError("Unexpected JSON-RPC batch response (non-array).")

        # Nodes may answer a batch in any order.
        by_id = {entry.get("id"): entry for entry in response if isinstance(entry, dict)}
        results = []
        for envelope in envelopes:
            if envelope["id"] not in by_id:
                raise ValueError(f"JSON-RPC batch response missing id {envelope['id']}.")
            results.append(_unwrap(by_id[envelope["id"]], envelope["method"]))
        return results

    def _should_retry(self, attempt: int) -> bool:
        if attempt >= self.max_retries:
            return False
        time.sleep(self.backoff_seconds * attempt)
        return True

    def _post(self, body: Any, label: str) -> Any:
        attempt = 0
        while True:
            attempt += 1
            logger.debug("rpc %s attempt %d/%d", label, attempt, self.max_retries)
            try:
                response = self.session.post(self.rpc_url, json=body, timeout=self.timeout)
            except requests.RequestException as exc:
                logger.warning("rpc %s transport error: %s", label, exc)
                if self._should_retry(attempt):
                    continue
                raise

            if response.status_code == 429 or response.status_code >= 500:
                logger.warning("rpc %s answered HTTP %s", label, response.status_code)
                if self._should_retry(attempt):
                    continue
            response.raise_for_status()

            try:
                return response.json()
            except ValueError as exc:
                if self._should_retry(attempt):
                    continue
                raise ValueError(f"Failed to parse JSON-RPC response for {label}.") from exc

    def _quantity(self, method: str) -> int:
        result = self.call(method, [])
        if not isinstance(result, str) or not result.startswith("0x"):
            raise ValueError(f"RPC error: {method} returned unexpected result.")
        return int(result, 16)

    def get_block_number(self) -> int:
        return self._quantity("eth_blockNumber")

    def get_chain_id(self) -> int:
        return self._quantity("eth_chainId")
