"""Pytest configuration and fixtures."""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from cronos_mcp.config import Config
from cronos_mcp.errors import RpcError
from cronos_mcp.service import CronosService


class FakeNode:
    """Stands in for RpcClient: canned results per method, per (to, data) for eth_call."""

    def __init__(self) -> None:
        self.results: Dict[str, Any] = {}
        self.errors: Dict[str, Exception] = {}
        self.contract_results: Dict[Tuple[str, str], str] = {}
        self.requests: List[Tuple[str, List[Any]]] = []

    def on_call(self, to: str, data: str, result: str) -> None:
        self.contract_results[(to.lower(), data.lower())] = result

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        params = params or []
        self.requests.append((method, params))
        if method in self.errors:
            raise self.errors[method]
        if method == "eth_call":
            request = params[0]
            key = (request["to"].lower(), request["data"].lower())
            if key not in self.contract_results:
                raise RpcError("RPC error: code 3: execution reverted.", code=3)
            return self.contract_results[key]
        result = self.results.get(method)
        if callable(result):
            return result(params)
        return result

    def batch_call(self, calls):
        return [self.call(method, list(params)) for method, params in calls]

    def methods(self) -> List[str]:
        return [method for method, _ in self.requests]


class FakeExplorer:
    """Stands in for ExplorerClient: canned `result` per (module, action)."""

    def __init__(self) -> None:
        self.results: Dict[Tuple[str, str], Any] = {}
        self.requests: List[Tuple[str, str, Dict[str, Any]]] = []
        self.ping_error: Optional[Exception] = None

    def request(self, module: str, action: str, **params: Any) -> Any:
        self.requests.append((module, action, params))
        result = self.results.get((module, action))
        if isinstance(result, Exception):
            raise result
        return result

    def ping(self) -> Dict[str, Any]:
        if self.ping_error is not None:
            raise self.ping_error
        return {"status": "1", "message": "OK", "result": "1"}


@pytest.fixture
def config():
    """Mainnet configuration without an explorer API key."""
    return Config()


@pytest.fixture
def node():
    return FakeNode()


@pytest.fixture
def explorer():
    return FakeExplorer()


@pytest.fixture
def service(config, node, explorer):
    """CronosService wired to the fake node and explorer."""
    return CronosService(config, rpc_client=node, explorer_client=explorer)
