"""Small parameter coercions shared by the operation modules."""

from typing import Any, List, Optional, Union

from ..utils import DIGITS_PATTERN, HEX_BODY_PATTERN, hex_to_decimal


def split_list(value: Optional[Union[str, List[Any]]]) -> List[str]:
    """Accept a list or a comma-separated string; drop blanks."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        raise ValueError("Expected a list or a comma-separated string.")
    return [item.strip() for item in items if item and item.strip()]


def as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    raise ValueError(f"Expected a boolean, got {value!r}.")


def as_int(value: Any, field: str, default: Optional[int] = None) -> int:
    if value is None or value == "":
        if default is None:
            raise ValueError(f"{field} is required.")
        return default
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        candidate = value.strip()
        if candidate.lower().startswith("0x") and HEX_BODY_PATTERN.fullmatch(candidate[2:]) and candidate[2:]:
            return int(candidate, 16)
        if DIGITS_PATTERN.fullmatch(candidate[1:] if candidate.startswith("-") else candidate):
            return int(candidate)
        raise ValueError(f"{field} must be an integer.")
    raise ValueError(f"{field} must be an integer.")


def hex_or_none(value: Optional[str]) -> Optional[str]:
    """hex_to_decimal for optional node fields: None stays None."""
    if value is None:
        return None
    return hex_to_decimal(value)
