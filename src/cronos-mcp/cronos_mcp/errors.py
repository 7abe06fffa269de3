from typing import Any, Optional


class CronosError(ValueError):
    """Base error for the package. Subclasses ValueError so callers can treat it as bad input."""


class InvalidEncodingError(CronosError):
    """Hex/decimal text that cannot be parsed, or a value that does not fit its ABI word."""


class InvalidAddressError(CronosError):
    pass


class InvalidHashError(CronosError):
    pass


class UnsupportedAbiTypeError(CronosError):
    def __init__(self, abi_type: str, detail: str = "") -> None:
        self.abi_type = abi_type
        message = f"Unsupported ABI type '{abi_type}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message + ".")


class UnknownOperationError(CronosError):
    pass


class RpcError(CronosError):
    """JSON-RPC error object returned by the node."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None) -> None:
        self.code = code
        self.data = data
        super().__init__(message)


class ExplorerError(CronosError):
    """Block-explorer response with status "0" that is not an empty result set."""

    def __init__(self, message: str, result: Any = None) -> None:
        self.result = result
        super().__init__(message)
