from typing import Any, Dict, Optional


class TokenCache:
    """Simple in-memory cache of token metadata keyed by network+address."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._memory: Dict[str, Dict[str, Any]] = {}

    def _key(self, address: str, network: str) -> str:
        return f"{network}:{address.lower()}"

    def get(self, address: str, network: str) -> Optional[Dict[str, Any]]:
        if not self.enabled:
            return None
        return self._memory.get(self._key(address, network))

    def set(self, address: str, network: str, data: Dict[str, Any]) -> None:
        if not self.enabled:
            return
        self._memory[self._key(address, network)] = dict(data)
