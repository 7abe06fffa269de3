import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from . import actions
from .config import config_for_network, configure_logging, load_config
from .service import CronosService


def _parse_key_values(pairs: Optional[List[str]], flag: str) -> Dict[str, Any]:
    """Turn ["key=value", ...] into a dict; values that parse as JSON are decoded."""
    parsed: Dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"{flag} expects key=value, got '{pair}'.")
        try:
            value: Any = json.loads(raw)
        except json.JSONDecodeError:
            value = raw
        # Large integers and hex stay strings so they are not mangled.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = raw
        parsed[key.strip()] = value
    return parsed


def _load_json(raw: Optional[str], flag: str) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{flag} must be valid JSON: {exc}.") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Query the Cronos EVM chain and convert/encode/decode values.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "--log-level",
        required=False,
        help="Log level for stderr output. Defaults to LOG_LEVEL env or WARNING.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("operations", help="List resources, operations and their parameters")

    run_parser = subparsers.add_parser("run", help="Run one operation")
    run_parser.add_argument("resource", help="Resource name, e.g. account, token, nft.")
    run_parser.add_argument("operation", help="Operation name, e.g. getBalance.")
    run_parser.add_argument(
        "--param",
        action="append",
        metavar="KEY=VALUE",
        help="Operation parameter (repeatable). JSON values such as lists and booleans are decoded.",
    )
    run_parser.add_argument(
        "--params-json",
        required=False,
        help="Operation parameters as a JSON object; merged under --param values.",
    )
    run_parser.add_argument(
        "--items-json",
        required=False,
        help="JSON array of parameter objects; runs the operation once per item.",
    )
    run_parser.add_argument(
        "--continue-on-fail",
        action="store_true",
        help="With --items-json, record failures per item instead of stopping.",
    )
    run_parser.add_argument(
        "--network",
        required=False,
        help="Optional network override (mainnet/testnet). Defaults to CRONOS_NETWORK env or mainnet.",
    )

    convert_parser = subparsers.add_parser("convert", help="Convert between wei, gwei, cro and custom units")
    convert_parser.add_argument("value", help="Amount to convert, as a decimal string.")
    convert_parser.add_argument("--from", dest="from_unit", required=True, help="wei, gwei, cro, ether or custom.")
    convert_parser.add_argument("--to", dest="to_unit", required=True, help="wei, gwei, cro, ether or custom.")
    convert_parser.add_argument(
        "--decimals",
        type=int,
        default=18,
        help="Decimal places for the custom unit. Defaults to 18.",
    )

    encode_parser = subparsers.add_parser("encode", help="ABI-encode a function call")
    encode_parser.add_argument("selector", help="4-byte function selector, e.g. 0x70a08231.")
    encode_parser.add_argument(
        "--arg",
        action="append",
        metavar="TYPE=VALUE",
        help="Static parameter in order (repeatable), e.g. address=0x... or uint256=1000.",
    )
    encode_parser.add_argument(
        "--params-json",
        required=False,
        help='Parameters as JSON, e.g. [{"type": "uint256", "value": "1"}]. Overrides --arg.',
    )
    encode_parser.add_argument(
        "--legacy",
        action="store_true",
        help="Drop unsupported types instead of failing (produces incomplete call data).",
    )

    decode_parser = subparsers.add_parser("decode", help="Decode ABI words")
    decode_parser.add_argument("data", help="0x-prefixed hex data.")
    decode_parser.add_argument("--types", required=False, help="Comma-separated types, e.g. address,uint256.")
    decode_parser.add_argument(
        "--has-selector",
        action="store_true",
        help="Treat the first 4 bytes as a function selector.",
    )
    decode_parser.add_argument(
        "--legacy",
        action="store_true",
        help="Decode unsupported types as uint256 instead of failing.",
    )

    return parser


def _encode_params(args: argparse.Namespace) -> List[Dict[str, Any]]:
    if args.params_json is not None:
        params = _load_json(args.params_json, "--params-json")
        if not isinstance(params, list):
            raise ValueError("--params-json must be a JSON array.")
        return params
    encoded = []
    for pair in args.arg or []:
        abi_type, sep, value = pair.partition("=")
        if not sep or not abi_type.strip():
            raise ValueError(f"--arg expects type=value, got '{pair}'.")
        encoded.append({"type": abi_type.strip(), "value": value})
    return encoded


def _run(args: argparse.Namespace) -> Any:
    params = _load_json(args.params_json, "--params-json") or {}
    if not isinstance(params, dict):
        raise ValueError("--params-json must be a JSON object.")
    params.update(_parse_key_values(args.param, "--param"))

    config = config_for_network(load_config(), args.network)
    service = CronosService(config)

    items = _load_json(args.items_json, "--items-json")
    if items is not None:
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise ValueError("--items-json must be a JSON array of objects.")
        merged = [dict(params, **item) for item in items]
        return actions.execute_many(
            service, args.resource, args.operation, merged, continue_on_fail=args.continue_on_fail
        )
    return actions.execute(service, args.resource, args.operation, params)


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level or load_config().log_level)

        if args.command == "operations":
            result: Any = actions.describe_operations()
        elif args.command == "run":
            result = _run(args)
        elif args.command == "convert":
            result = actions.execute(
                None,
                "utility",
                "convertUnits",
                {
                    "value": args.value,
                    "from_unit": args.from_unit,
                    "to_unit": args.to_unit,
                    "decimals": args.decimals,
                },
            )
        elif args.command == "encode":
            result = actions.execute(
                None,
                "utility",
                "encodeFunction",
                {"function_selector": args.selector, "parameters": _encode_params(args), "strict": not args.legacy},
            )
        else:
            result = actions.execute(
                None,
                "utility",
                "decodeData",
                {
                    "data": args.data,
                    "types": args.types,
                    "has_selector": args.has_selector,
                    "strict": not args.legacy,
                },
            )
        print(json.dumps(result, indent=2))
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
