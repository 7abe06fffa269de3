"""Operation registry: resource name -> operation name -> handler(service, **params)."""

import inspect
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..errors import UnknownOperationError
from ..service import CronosService
from . import accounts, blocks, contracts, defi, events, network, nfts, tokens, transactions, utility

logger = logging.getLogger(__name__)

Handler = Callable[..., Dict[str, Any]]

OPERATIONS: Dict[str, Dict[str, Handler]] = {
    "account": accounts.OPERATIONS,
    "transaction": transactions.OPERATIONS,
    "block": blocks.OPERATIONS,
    "contract": contracts.OPERATIONS,
    "token": tokens.OPERATIONS,
    "nft": nfts.OPERATIONS,
    "defi": defi.OPERATIONS,
    "network": network.OPERATIONS,
    "event": events.OPERATIONS,
    "utility": utility.OPERATIONS,
}


def get_handler(resource: str, operation: str) -> Handler:
    operations = OPERATIONS.get(resource)
    if operations is None:
        allowed = ", ".join(sorted(OPERATIONS))
        raise UnknownOperationError(f"Unknown resource '{resource}'. Supported: {allowed}.")
    handler = operations.get(operation)
    if handler is None:
        allowed = ", ".join(sorted(operations))
        raise UnknownOperationError(
            f"Unknown operation '{operation}' for resource '{resource}'. Supported: {allowed}."
        )
    return handler


def describe_operations() -> Dict[str, List[Dict[str, Any]]]:
    """Operation names with their parameters, for listing in the CLI and MCP server."""
    listing: Dict[str, List[Dict[str, Any]]] = {}
    for resource, operations in OPERATIONS.items():
        entries = []
        for name, handler in operations.items():
            params = list(inspect.signature(handler).parameters.values())[1:]
            entries.append(
                {
                    "operation": name,
                    "params": [
                        {"name": param.name, "required": param.default is inspect.Parameter.empty}
                        for param in params
                    ],
                    "description": (inspect.getdoc(handler) or "").split("\n", 1)[0],
                }
            )
        listing[resource] = entries
    return listing


def _check_params(resource: str, operation: str, handler: Handler, params: Mapping[str, Any]) -> None:
    accepted = list(inspect.signature(handler).parameters.values())[1:]
    names = {param.name for param in accepted}
    unknown = sorted(set(params) - names)
    if unknown:
        raise ValueError(
            f"Unknown parameter(s) for {resource}.{operation}: {', '.join(unknown)}. "
            f"Accepted: {', '.join(sorted(names)) or 'none'}."
        )
    missing = [
        param.name
        for param in accepted
        if param.default is inspect.Parameter.empty and params.get(param.name) is None
    ]
    if missing:
        raise ValueError(f"Missing required parameter(s) for {resource}.{operation}: {', '.join(missing)}.")


def execute(
    service: Optional[CronosService],
    resource: str,
    operation: str,
    params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    handler = get_handler(resource, operation)
    arguments = dict(params or {})
    _check_params(resource, operation, handler, arguments)
    logger.debug("executing %s.%s", resource, operation)
    return handler(service, **arguments)


def execute_many(
    service: Optional[CronosService],
    resource: str,
    operation: str,
    items: Sequence[Mapping[str, Any]],
    continue_on_fail: bool = False,
) -> List[Dict[str, Any]]:
    """Run one operation per parameter set; with continue_on_fail a failure becomes {"error": ...}."""
    results: List[Dict[str, Any]] = []
    for index, params in enumerate(items):
        try:
            results.append(execute(service, resource, operation, params))
        except Exception as exc:  # pylint: disable=broad-except
            if not continue_on_fail:
                raise
            logger.warning("%s.%s item %d failed: %s", resource, operation, index, exc)
            results.append({"error": str(exc)})
    return results
