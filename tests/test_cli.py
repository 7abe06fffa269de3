"""Test cases for the command-line interface and MCP tool functions."""

import json
from unittest.mock import patch

import pytest

from cronos_mcp import cli, mcp_server

HOLDER = "0x" + "ab" * 20


def run_cli(capsys, *argv):
    cli.main(list(argv))
    return json.loads(capsys.readouterr().out)


class TestCli:
    """Test offline CLI commands and error reporting."""

    def test_convert(self, capsys):
        result = run_cli(capsys, "convert", "1", "--from", "cro", "--to", "gwei")
        assert result["output"]["value"] == "1000000000"

    def test_encode_with_args(self, capsys):
        result = run_cli(capsys, "encode", "0xa9059cbb", "--arg", f"address={HOLDER}", "--arg", "uint256=1000")

        assert result["encoded_data"] == "0xa9059cbb" + "0" * 24 + HOLDER[2:] + format(1000, "064x")

    def test_decode(self, capsys):
        data = "0x" + format(255, "064x")
        result = run_cli(capsys, "decode", data, "--types", "uint8")

        assert result["decoded_values"][0]["decoded"] == "255"

    def test_operations_listing(self, capsys):
        result = run_cli(capsys, "operations")
        assert "getBalance" in [entry["operation"] for entry in result["account"]]

    def test_error_exits_nonzero(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["encode", "0x12345678", "--arg", "string=hi"])

        assert excinfo.value.code == 1
        assert "Unsupported ABI type 'string'" in capsys.readouterr().err

    def test_run_builds_params(self, capsys):
        """Test that --param values keep numbers as strings and decode JSON lists."""
        with patch("cronos_mcp.cli.actions.execute", return_value={"ok": True}) as execute:
            result = run_cli(
                capsys,
                "run",
                "account",
                "getTokenBalances",
                "--param",
                f"address={HOLDER}",
                "--param",
                'token_addresses=["0x1"]',
                "--network",
                "testnet",
            )

        assert result == {"ok": True}
        service, resource, operation, params = execute.call_args.args
        assert service.config.network == "testnet"
        assert (resource, operation) == ("account", "getTokenBalances")
        assert params == {"address": HOLDER, "token_addresses": ["0x1"]}

    def test_parse_key_values(self):
        parsed = cli._parse_key_values(["block=16", "flag=true", "name=plain"], "--param")

        assert parsed == {"block": "16", "flag": True, "name": "plain"}
        with pytest.raises(ValueError):
            cli._parse_key_values(["novalue"], "--param")


class TestMcpTools:
    """Test MCP tool functions without a transport."""

    def test_convert_units_tool(self):
        assert mcp_server.convert_units("1", "wei", "gwei")["output"]["value"] == "0.000000001"

    def test_convert_units_tool_accepts_numbers(self):
        assert mcp_server.convert_units(0.5, "cro", "wei")["output"]["value"] == "500000000000000000"
        assert mcp_server.convert_units(3, "wei", "wei")["output"]["value"] == "3"

    def test_server_exposes_transport_settings(self):
        """Test that the FastMCP settings used by main() are present on the installed mcp."""
        settings = mcp_server.server.settings
        assert hasattr(settings, "host")
        assert hasattr(settings, "port")

    def test_encode_function_rejects_string_parameters(self):
        with pytest.raises(ValueError, match="must be an array"):
            mcp_server.encode_function("0x70a08231", parameters="address")

    def test_run_operation_batches_items(self, service, node):
        node.results["eth_getBalance"] = "0x1"

        with patch.object(mcp_server, "_get_service", return_value=service):
            result = mcp_server.run_operation(
                "account",
                "getBalance",
                items=[{"address": HOLDER}, {"address": "bad"}],
                continue_on_fail=True,
            )

        assert result["results"][0]["balance_wei"] == "1"
        assert "error" in result["results"][1]

    def test_services_are_cached_per_network(self):
        mcp_server._services.clear()

        first = mcp_server._get_service("testnet")
        second = mcp_server._get_service("t3")

        assert first is second
        assert first.config.chain_id == 338
