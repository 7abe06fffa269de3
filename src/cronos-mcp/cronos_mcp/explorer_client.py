import logging
import time
from typing import Any, Dict

import requests

from .errors import ExplorerError

logger = logging.getLogger(__name__)

# status "0" with this message is an empty page, not a failure.
EMPTY_RESULT_MESSAGE = "No transactions found"

RATE_LIMIT_MARKERS = ("rate limit", "max calls per sec", "too many requests")


def is_rate_limited(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    text = " ".join(
        str(payload.get(key)) for key in ("message", "result") if isinstance(payload.get(key), str)
    ).lower()
    return any(marker in text for marker in RATE_LIMIT_MARKERS)


class ExplorerClient:
    """Cronoscan (Etherscan-compatible) REST API: GET module/action, unwrap `result`."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: int = 10,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max(1, int(max_retries))
        self.backoff_seconds = float(backoff_seconds)
        self.session = requests.Session()

    def request(self, module: str, action: str, **params: Any) -> Any:
        """Call module/action and return `result`, raising ExplorerError on status "0"."""
        query: Dict[str, Any] = {"module": module, "action": action}
        query.update((key, value) for key, value in params.items() if value is not None)
        return self._unwrap(self._get(query), f"{module}/{action}")

    def ping(self) -> Dict[str, Any]:
        """Raw stats call used by the health check; status is not interpreted."""
        return self._get({"module": "stats", "action": "ethsupply"})

    def _unwrap(self, payload: Any, label: str) -> Any:
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected response from block explorer for {label}.")

        message = payload.get("message") or ""
        result = payload.get("result")
        if str(payload.get("status", "")).strip() == "0" and message != EMPTY_RESULT_MESSAGE:
            logger.debug("explorer %s returned status 0: %s", label, message)
            detail = f" ({result})" if isinstance(result, str) and result else ""
            raise ExplorerError(f"Explorer error: {message or 'unknown error'}{detail}.", result=result)
        return result

    def _should_retry(self, attempt: int) -> bool:
        if attempt >= self.max_retries:
            return False
        time.sleep(self.backoff_seconds * attempt)
        return True

    def _get(self, query: Dict[str, Any]) -> Dict[str, Any]:
        label = f"{query.get('module')}/{query.get('action')}"
        params = dict(query, apikey=self.api_key) if self.api_key else dict(query)

        attempt = 0
        while True:
            attempt += 1
            logger.debug("explorer %s attempt %d/%d", label, attempt, self.max_retries)
            try:
                response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            except requests.RequestException as exc:
                logger.warning("explorer %s transport error: %s", label, exc)
                if self._should_retry(attempt):
                    continue
                raise

            if response.status_code >= 500:
                logger.warning("explorer %s answered HTTP %s", label, response.status_code)
                if self._should_retry(attempt):
                    continue
            response.raise_for_status()

            try:
                payload = response.json()
            except ValueError as exc:
                if self._should_retry(attempt):
                    continue
                raise ValueError(f"Failed to parse response from block explorer for {label}.") from exc

            if is_rate_limited(payload):
                logger.warning("explorer %s rate limited", label)
                if self._should_retry(attempt):
                    continue
            return payload
