"""
Pure helpers for hex quantities, unit conversion and word-aligned ABI data.

All amounts go through Python ints; nothing here touches floats except when a
caller hands one in, and then it is converted via Decimal text first.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .constants import ZERO_ADDRESS
from .errors import (
    InvalidAddressError,
    InvalidEncodingError,
    InvalidHashError,
    UnsupportedAbiTypeError,
)

ADDRESS_PATTERN = re.compile(r"0x[a-fA-F0-9]{40}")
TX_HASH_PATTERN = re.compile(r"0x[a-fA-F0-9]{64}")
HEX_BODY_PATTERN = re.compile(r"[0-9a-fA-F]*")
SELECTOR_PATTERN = re.compile(r"(0x)?[0-9a-fA-F]{8}")
DIGITS_PATTERN = re.compile(r"[0-9]+")

WORD_SIZE = 64
UINT256_MAX = 2**256 - 1
BLOCK_TAGS = {"latest", "earliest", "pending", "safe", "finalized"}
DYNAMIC_TYPES = {"bytes", "string"}

AbiParam = Union[Tuple[str, Any], Mapping[str, Any]]


def _strip_hex(value: Any, field: str = "value") -> str:
    if not isinstance(value, str):
        raise InvalidEncodingError(f"{field} must be a hex string.")
    body = value.strip()
    if body[:2] in ("0x", "0X"):
        body = body[2:]
    if not HEX_BODY_PATTERN.fullmatch(body):
        raise InvalidEncodingError(f"{field} must be a hex string, got '{value}'.")
    return body


def _parse_uint(value: Any, field: str = "value") -> int:
    """Accept a non-negative int, a decimal string or a 0x-prefixed hex string."""
    if isinstance(value, bool):
        raise InvalidEncodingError(f"{field} must be an unsigned integer.")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        candidate = value.strip()
        if candidate[:2] in ("0x", "0X"):
            body = _strip_hex(candidate, field)
            parsed = int(body, 16) if body else 0
        elif DIGITS_PATTERN.fullmatch(candidate):
            parsed = int(candidate, 10)
        else:
            raise InvalidEncodingError(f"{field} must be an unsigned integer, got '{value}'.")
    else:
        raise InvalidEncodingError(f"{field} must be an unsigned integer.")
    if parsed < 0:
        raise InvalidEncodingError(f"{field} must not be negative.")
    return parsed


def _parse_decimals(decimals: Any) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise InvalidEncodingError("decimals must be a non-negative integer.")
    return decimals


def hex_to_decimal(value: Optional[str]) -> str:
    if not value or value in ("0x", "0X"):
        return "0"
    body = _strip_hex(value)
    if not body:
        return "0"
    return str(int(body, 16))


def decimal_to_hex(value: Union[int, str]) -> str:
    if isinstance(value, str) and value.strip()[:2] in ("0x", "0X"):
        raise InvalidEncodingError(f"Expected a decimal value, got hex '{value}'.")
    return hex(_parse_uint(value))


def wei_to_human(wei: Union[int, str], decimals: int = 18) -> str:
    """Render an integer wei amount at `decimals` places, trimming trailing zeros."""
    amount = _parse_uint(wei, "wei")
    places = _parse_decimals(decimals)
    whole, fraction = divmod(amount, 10**places)
    if fraction == 0:
        return str(whole)
    fraction_text = str(fraction).rjust(places, "0").rstrip("0")
    return f"{whole}.{fraction_text}"


def human_to_wei(value: Union[str, int, float, Decimal], decimals: int = 18) -> str:
    """Scale a decimal amount to integer wei. Extra fractional digits are truncated."""
    places = _parse_decimals(decimals)
    if isinstance(value, bool):
        raise InvalidEncodingError("amount must be a decimal number.")
    if isinstance(value, float):
        text = format(Decimal(repr(value)), "f")
    elif isinstance(value, (int, Decimal)):
        text = format(Decimal(value), "f")
    elif isinstance(value, str):
        text = value.strip()
    else:
        raise InvalidEncodingError("amount must be a decimal number.")

    if text.startswith("+"):
        text = text[1:]
    if text.startswith("-"):
        raise InvalidEncodingError("amount must not be negative.")
    if text.count(".") > 1:
        raise InvalidEncodingError(f"amount must be a decimal number, got '{value}'.")

    whole, _, fraction = text.partition(".")
    if not whole and not fraction:
        raise InvalidEncodingError(f"amount must be a decimal number, got '{value}'.")
    if any(part and not DIGITS_PATTERN.fullmatch(part) for part in (whole, fraction)):
        raise InvalidEncodingError(f"amount must be a decimal number, got '{value}'.")

    fraction = fraction.ljust(places, "0")[:places]
    return str(int((whole or "0") + fraction, 10))


def is_valid_address(value: Any) -> bool:
    return isinstance(value, str) and ADDRESS_PATTERN.fullmatch(value) is not None


def is_valid_tx_hash(value: Any) -> bool:
    return isinstance(value, str) and TX_HASH_PATTERN.fullmatch(value) is not None


def require_address(value: Any, field: str = "address") -> str:
    if not is_valid_address(value):
        raise InvalidAddressError(f"Invalid {field} format: {value}")
    return value


def require_tx_hash(value: Any, field: str = "tx_hash") -> str:
    if not is_valid_tx_hash(value):
        raise InvalidHashError(f"Invalid {field} format: {value}")
    return value


def pad_address(address: str) -> str:
    candidate = address.strip() if isinstance(address, str) else address
    if isinstance(candidate, str) and not candidate.startswith("0x"):
        candidate = f"0x{candidate}"
    require_address(candidate)
    return "0x" + candidate[2:].lower().rjust(WORD_SIZE, "0")


def pad_number(value: Union[int, str]) -> str:
    number = _parse_uint(value)
    if number > UINT256_MAX:
        raise InvalidEncodingError("value does not fit in 32 bytes.")
    return "0x" + format(number, "064x")


def split_words(data: str) -> List[str]:
    """Split hex data into 64-char words; a short final word is right-padded with zeros."""
    body = _strip_hex(data, "data").lower() if data else ""
    return [body[i : i + WORD_SIZE].ljust(WORD_SIZE, "0") for i in range(0, len(body), WORD_SIZE)]


def _integer_bits(abi_type: str) -> Optional[int]:
    if abi_type.startswith("uint"):
        suffix = abi_type[4:]
    elif abi_type.startswith("int"):
        suffix = abi_type[3:]
    else:
        return None
    if not suffix:
        return 256
    if not DIGITS_PATTERN.fullmatch(suffix):
        return None
    bits = int(suffix)
    if bits <= 0 or bits > 256 or bits % 8 != 0:
        return None
    return bits


def _to_bool_flag(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return 1 if value == 1 else 0
    if isinstance(value, str):
        return 1 if value.strip() in ("true", "1") else 0
    return 0


def _param_pair(param: AbiParam) -> Tuple[str, Any]:
    if isinstance(param, Mapping):
        if "type" not in param:
            raise InvalidEncodingError("parameter is missing 'type'.")
        return str(param["type"]).strip(), param.get("value")
    if isinstance(param, (tuple, list)) and len(param) == 2:
        return str(param[0]).strip(), param[1]
    raise InvalidEncodingError("parameter must be a (type, value) pair or a {type, value} mapping.")


def encode_word(abi_type: str, value: Any) -> str:
    """Encode one static value as a 64-char word (no 0x)."""
    if abi_type == "address":
        return pad_address(str(value))[2:]

    bits = _integer_bits(abi_type)
    if bits is not None:
        if isinstance(value, int) and not isinstance(value, bool) and value < 0:
            raise InvalidEncodingError(f"Negative {abi_type} values are not supported.")
        if isinstance(value, str) and value.strip().startswith("-"):
            raise InvalidEncodingError(f"Negative {abi_type} values are not supported.")
        number = _parse_uint(value, abi_type)
        if number >= 2**bits:
            raise InvalidEncodingError(f"{abi_type} value out of range.")
        return format(number, "064x")

    if abi_type == "bool":
        return format(_to_bool_flag(value), "064x")

    if abi_type == "bytes32":
        body = _strip_hex(str(value), "bytes32").lower()
        if len(body) > WORD_SIZE:
            raise InvalidEncodingError("bytes32 value is longer than 32 bytes.")
        return body.ljust(WORD_SIZE, "0")

    if abi_type in DYNAMIC_TYPES:
        raise UnsupportedAbiTypeError(abi_type, "dynamic types need offset encoding")
    raise UnsupportedAbiTypeError(abi_type)


def encode_function_call(selector: str, params: Sequence[AbiParam], strict: bool = True) -> str:
    """
    Build call data from a 4-byte selector (or "") and static parameters, one word each.

    With strict=False, unsupported types are dropped from the output instead of raising.
    That mode reproduces older call sites and yields call data with missing words.
    """
    prefix = ""
    if selector and selector not in ("0x", "0X"):
        if not isinstance(selector, str) or not SELECTOR_PATTERN.fullmatch(selector.strip()):
            raise InvalidEncodingError(f"selector must be 4 bytes of hex, got '{selector}'.")
        prefix = _strip_hex(selector.strip(), "selector").lower()

    words: List[str] = []
    for param in params:
        abi_type, value = _param_pair(param)
        try:
            words.append(encode_word(abi_type, value))
        except UnsupportedAbiTypeError:
            if strict:
                raise
    return "0x" + prefix + "".join(words)


def decode_word(word: str, abi_type: Optional[str], strict: bool = True) -> str:
    if abi_type is None:
        return str(int(word, 16))
    if abi_type == "address":
        return "0x" + word[-40:].lower()
    if _integer_bits(abi_type) is not None:
        return str(int(word, 16))
    if abi_type == "bool":
        return "true" if int(word, 16) == 1 else "false"
    if abi_type == "bytes32":
        return "0x" + word.lower()
    if strict:
        if abi_type in DYNAMIC_TYPES:
            raise UnsupportedAbiTypeError(abi_type, "use decode_single_dynamic_string for a lone string")
        raise UnsupportedAbiTypeError(abi_type)
    return str(int(word, 16))


def decode_data(
    data: str,
    types: Sequence[str],
    has_selector: bool = False,
    strict: bool = True,
) -> List[Dict[str, str]]:
    """
    Decode hex data word by word against `types` (word i uses types[i]).

    Words without a declared type decode as unsigned integers and are reported
    with type "unknown". Dynamic offsets are never followed.
    """
    body = _strip_hex(data, "data") if data else ""
    if has_selector:
        if len(body) < 8:
            raise InvalidEncodingError("data is shorter than a 4-byte selector.")
        body = body[8:]

    decoded: List[Dict[str, str]] = []
    for idx, word in enumerate(split_words(body)):
        abi_type = types[idx].strip() if idx < len(types) else None
        decoded.append(
            {
                "type": abi_type or "unknown",
                "raw": "0x" + word,
                "decoded": decode_word(word, abi_type, strict=strict),
            }
        )
    return decoded


def decode_uint256(value: Optional[str]) -> str:
    return hex_to_decimal(value)


def decode_address(value: Optional[str]) -> str:
    if not value or value in ("0x", "0X"):
        return ZERO_ADDRESS
    body = _strip_hex(value)
    return "0x" + body[-40:].lower().rjust(40, "0")


def decode_bool(value: Optional[str]) -> str:
    return "true" if hex_to_decimal(value) == "1" else "false"


def decode_single_dynamic_string(data: Optional[str]) -> str:
    """
    Decode return data holding exactly one dynamic `string` (name(), symbol(), tokenURI()).

    Layout: word 0 is a byte offset, the word at that offset is the byte length,
    and the UTF-8 payload follows. This is not a general ABI decoder.
    """
    if not data or data in ("0x", "0X"):
        return ""
    body = _strip_hex(data, "data")
    if len(body) < 2 * WORD_SIZE:
        raise InvalidEncodingError("data too short for a dynamic string.")

    offset = int(body[:WORD_SIZE], 16) * 2
    if offset + WORD_SIZE > len(body):
        raise InvalidEncodingError("string offset points past the end of data.")
    length = int(body[offset : offset + WORD_SIZE], 16)
    start = offset + WORD_SIZE
    payload = body[start : start + length * 2]
    if len(payload) < length * 2:
        raise InvalidEncodingError("string length exceeds available data.")
    text = bytes.fromhex(payload).decode("utf-8", errors="replace")
    return text.replace("\x00", "").strip()


def decode_ascii_string(data: Optional[str]) -> str:
    """Lenient decode keeping printable ASCII bytes only (bytes32 names/symbols)."""
    if not data or data in ("0x", "0X"):
        return ""
    body = _strip_hex(data, "data")
    if len(body) % 2:
        body = body + "0"
    chars = [chr(b) for b in bytes.fromhex(body) if 0 < b < 128]
    return "".join(chars).strip()


def format_block_number(value: Union[int, str]) -> str:
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in BLOCK_TAGS:
            return candidate
        if candidate.startswith("0x"):
            _strip_hex(candidate, "block")
            return candidate
        if DIGITS_PATTERN.fullmatch(candidate):
            return decimal_to_hex(candidate)
        raise InvalidEncodingError(f"block must be a tag, decimal number or 0x-hex, got '{value}'.")
    return decimal_to_hex(value)


def parse_transaction_value(value: Optional[str], decimals: int = 18) -> str:
    if not value or value in ("0x", "0x0"):
        return "0"
    return wei_to_human(hex_to_decimal(value), decimals)


def format_gas_price(gas_price: Optional[str]) -> str:
    return wei_to_human(hex_to_decimal(gas_price), 9)


def calculate_tx_fee(gas_used: Optional[str], gas_price: Optional[str]) -> str:
    fee_wei = int(hex_to_decimal(gas_used)) * int(hex_to_decimal(gas_price))
    return wei_to_human(fee_wei)


def parse_log_data(data: Optional[str], types: Sequence[str]) -> List[str]:
    """Decode up to len(types) words of event data; untyped kinds come back as raw words."""
    if not data or data in ("0x", "0X"):
        return []
    words = split_words(data)
    values: List[str] = []
    for abi_type, word in zip(types, words):
        if abi_type == "address":
            values.append(decode_address("0x" + word))
        elif _integer_bits(abi_type) is not None:
            values.append(decode_uint256("0x" + word))
        else:
            values.append("0x" + word)
    return values


def format_block_timestamp(timestamp: Optional[str]) -> str:
    seconds = int(hex_to_decimal(timestamp))
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def truncate_address(address: Optional[str]) -> str:
    if not address:
        return ""
    return f"{address[:6]}...{address[-4:]}"
