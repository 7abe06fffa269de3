import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

from .constants import NETWORKS

# Aliases accepted for CRONOS_NETWORK / per-call network overrides.
NETWORK_ALIASES = {
    "mainnet": "mainnet",
    "main": "mainnet",
    "cronos": "mainnet",
    "25": "mainnet",
    "testnet": "testnet",
    "test": "testnet",
    "t3": "testnet",
    "338": "testnet",
}


@dataclass
class Config:
    network: str = "mainnet"
    rpc_url: str = str(NETWORKS["mainnet"]["rpc_url"])
    explorer_base_url: str = str(NETWORKS["mainnet"]["explorer_api_url"])
    explorer_api_key: str = ""
    chain_id: int = 25
    request_timeout: int = 10
    max_retries: int = 3
    backoff_seconds: float = 0.5
    token_cache_enabled: bool = True
    log_level: str = "WARNING"

    @property
    def explorer_url(self) -> str:
        return str(NETWORKS[self.network]["explorer_url"])

    @property
    def ws_url(self) -> str:
        return str(NETWORKS[self.network]["ws_url"])


def resolve_network(network: Optional[str]) -> str:
    """Map a user-supplied network name or chain id to 'mainnet' or 'testnet'."""
    normalized = (network or "").strip().lower()
    if normalized in NETWORK_ALIASES:
        return NETWORK_ALIASES[normalized]

    allowed = ", ".join(sorted(NETWORK_ALIASES.keys()))
    raise ValueError(f"Unknown network '{network}'. Supported: {allowed}.")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> Config:
    """Load configuration from environment variables."""
    network = resolve_network(os.getenv("CRONOS_NETWORK", "mainnet"))
    defaults = NETWORKS[network]

    rpc_url = (os.getenv("CRONOS_RPC_URL") or str(defaults["rpc_url"])).strip()
    explorer_base_url = (os.getenv("CRONOSCAN_BASE_URL") or str(defaults["explorer_api_url"])).rstrip("/")
    api_key = os.getenv("CRONOSCAN_API_KEY", "").strip()
    timeout = int(os.getenv("REQUEST_TIMEOUT", "10"))
    max_retries = int(os.getenv("REQUEST_RETRIES", "3"))
    backoff = float(os.getenv("REQUEST_BACKOFF_SECONDS", "0.5"))
    log_level = os.getenv("LOG_LEVEL", "WARNING").strip().upper()

    return Config(
        network=network,
        rpc_url=rpc_url,
        explorer_base_url=explorer_base_url,
        explorer_api_key=api_key,
        chain_id=int(defaults["chain_id"]),
        request_timeout=timeout,
        max_retries=max_retries,
        backoff_seconds=backoff,
        token_cache_enabled=_env_bool("TOKEN_CACHE_ENABLED", True),
        log_level=log_level,
    )


def configure_logging(level: Optional[str] = None) -> None:
    # stderr only; stdout belongs to JSON output and the stdio MCP transport.
    logging.basicConfig(
        level=(level or "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def config_for_network(config: Config, network: Optional[str]) -> Config:
    """Copy of `config` pointed at another network's default endpoints."""
    if not network:
        return config
    target = resolve_network(network)
    if target == config.network:
        return config
    defaults = NETWORKS[target]
    return replace(
        config,
        network=target,
        rpc_url=str(defaults["rpc_url"]),
        explorer_base_url=str(defaults["explorer_api_url"]),
        chain_id=int(defaults["chain_id"]),
    )
