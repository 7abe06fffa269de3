"""Test cases for account and transaction operations."""

import pytest

from cronos_mcp.actions import accounts, transactions
from cronos_mcp.constants import FUNCTION_SIGNATURES, MAX_BLOCK
from cronos_mcp.errors import InvalidAddressError, InvalidHashError

HOLDER = "0x" + "ab" * 20
OTHER = "0x" + "cd" * 20
TOKEN = "0x" + "11" * 20
BROKEN_TOKEN = "0x" + "22" * 20
TX_HASH = "0x" + "ef" * 32
ONE_CRO_HEX = "0xde0b6b3a7640000"


def word(value: int) -> str:
    return "0x" + format(value, "064x")


def string_result(text: str) -> str:
    payload = text.encode("utf-8").hex()
    return "0x" + format(32, "064x") + format(len(text), "064x") + payload.ljust(64, "0")


class TestGetBalance:
    """Test native balance reads."""

    def test_balance_in_wei_and_cro(self, service, node):
        node.results["eth_getBalance"] = ONE_CRO_HEX

        result = accounts.get_balance(service, HOLDER)

        assert result["balance_wei"] == "1000000000000000000"
        assert result["balance_cro"] == "1"
        assert node.requests == [("eth_getBalance", [HOLDER, "latest"])]

    def test_block_number_is_hex_encoded(self, service, node):
        node.results["eth_getBalance"] = "0x0"

        accounts.get_balance(service, HOLDER, block="16")

        assert node.requests[0][1] == [HOLDER, "0x10"]

    def test_invalid_address_makes_no_request(self, service, node):
        with pytest.raises(InvalidAddressError):
            accounts.get_balance(service, "0x123")
        assert node.requests == []


class TestGetTokenBalances:
    """Test ERC-20 balanceOf fan-out."""

    def test_balances_with_skips_and_failures(self, service, node):
        """Test that invalid tokens are skipped and failed reads reported inline."""
        balance_call = FUNCTION_SIGNATURES["balanceOf"] + "0" * 24 + HOLDER[2:]
        node.on_call(TOKEN, balance_call, word(2_500_000))
        node.on_call(TOKEN, FUNCTION_SIGNATURES["name"], string_result("Test Token"))
        node.on_call(TOKEN, FUNCTION_SIGNATURES["symbol"], string_result("TST"))
        node.on_call(TOKEN, FUNCTION_SIGNATURES["decimals"], word(6))

        result = accounts.get_token_balances(service, HOLDER, f"{TOKEN}, not-an-address, {BROKEN_TOKEN}")

        assert result["token_count"] == 2
        first, second = result["token_balances"]
        assert first["symbol"] == "TST"
        assert first["balance_raw"] == "2500000"
        assert first["balance"] == "2.5"
        assert second == {"token_address": BROKEN_TOKEN, "error": "Failed to fetch balance"}

    def test_no_tokens(self, service):
        assert accounts.get_token_balances(service, HOLDER)["token_count"] == 0


class TestGetNfts:
    """Test NFT ownership from transfer history."""

    def test_latest_transfer_decides_ownership(self, service, explorer):
        explorer.results[("account", "tokennfttx")] = [
            {"contractAddress": TOKEN, "tokenID": "1", "to": HOLDER.upper().replace("0X", "0x"), "hash": "0x1"},
            {"contractAddress": TOKEN, "tokenID": "1", "to": OTHER, "hash": "0x0"},
            {"contractAddress": TOKEN, "tokenID": "2", "to": OTHER, "hash": "0x2"},
            {"contractAddress": TOKEN, "tokenID": "2", "to": HOLDER, "hash": "0x3"},
        ]

        result = accounts.get_nfts(service, HOLDER)

        assert result["nft_count"] == 1
        assert result["nfts"][0]["token_id"] == "1"
        assert result["nfts"][0]["last_transfer_hash"] == "0x1"


class TestTransactionHistory:
    """Test explorer-backed history and transfers."""

    def test_defaults_and_formatting(self, service, explorer):
        explorer.results[("account", "txlist")] = [
            {"hash": "0x1", "value": "1500000000000000000", "isError": "0", "blockNumber": "10"},
            {"hash": "0x2", "value": "0", "isError": "1", "blockNumber": "9"},
        ]

        result = accounts.get_transaction_history(service, HOLDER)

        assert result["transaction_count"] == 2
        assert result["transactions"][0]["value"] == "1.5"
        assert result["transactions"][1]["is_error"] is True
        _, _, params = explorer.requests[0]
        assert params["startblock"] == 0
        assert params["endblock"] == MAX_BLOCK
        assert (params["page"], params["offset"], params["sort"]) == (1, 100, "desc")

    def test_inverted_range_rejected(self, service):
        with pytest.raises(ValueError):
            accounts.get_transaction_history(service, HOLDER, start_block=10, end_block="0x1")

    def test_non_ascii_block_and_page_rejected(self, service):
        """Test that block numbers and paging take ASCII digits only."""
        with pytest.raises(ValueError):
            accounts.get_transaction_history(service, HOLDER, start_block="١")
        with pytest.raises(ValueError):
            accounts.get_transaction_history(service, HOLDER, page="²")

    def test_bad_sort_rejected(self, service):
        with pytest.raises(ValueError):
            accounts.get_transaction_history(service, HOLDER, sort="random")

    def test_token_transfers_use_token_decimals(self, service, explorer):
        explorer.results[("account", "tokentx")] = [
            {"hash": "0x1", "value": "1234567", "tokenDecimal": "6", "tokenSymbol": "USDC"},
        ]

        result = accounts.get_token_transfers(service, HOLDER, contract_address=TOKEN, sort="asc")

        assert result["transfers"][0]["value"] == "1.234567"
        _, _, params = explorer.requests[0]
        assert params["contractaddress"] == TOKEN
        assert params["sort"] == "asc"


class TestTransactions:
    """Test transaction lookups."""

    TX = {
        "hash": TX_HASH,
        "blockHash": "0x" + "01" * 32,
        "blockNumber": "0x10",
        "from": HOLDER,
        "to": OTHER,
        "value": ONE_CRO_HEX,
        "gas": "0x5208",
        "gasPrice": "0x3b9aca00",
        "nonce": "0x2",
        "transactionIndex": "0x0",
        "input": "0x",
        "type": "0x0",
        "chainId": "0x19",
    }

    RECEIPT = {
        "transactionHash": TX_HASH,
        "blockNumber": "0x10",
        "gasUsed": "0x5208",
        "cumulativeGasUsed": "0x5208",
        "effectiveGasPrice": "0x3b9aca00",
        "status": "0x1",
        "logs": [],
        "type": "0x0",
    }

    def test_get_transaction(self, service, node):
        node.results["eth_getTransactionByHash"] = dict(self.TX)

        result = transactions.get_transaction(service, TX_HASH)

        assert result["value"] == "1"
        assert result["gas_price"] == "1"
        assert result["block_number"] == "16"
        assert result["chain_id"] == "25"
        assert result["is_pending"] is False

    def test_missing_transaction(self, service, node):
        node.results["eth_getTransactionByHash"] = None
        with pytest.raises(ValueError, match="Transaction not found"):
            transactions.get_transaction(service, TX_HASH)

    def test_invalid_hash(self, service):
        with pytest.raises(InvalidHashError):
            transactions.get_transaction(service, "0x1234")

    def test_receipt_fee_and_status(self, service, node):
        node.results["eth_getTransactionReceipt"] = dict(self.RECEIPT, status="0x0")

        result = transactions.get_transaction_receipt(service, TX_HASH)

        assert result["transaction_fee"] == "0.000021"
        assert result["status"] == "failed"
        assert result["logs_count"] == 0

    def test_estimate_gas(self, service, node):
        node.results["eth_estimateGas"] = "0x5208"
        node.results["eth_gasPrice"] = "0x3b9aca00"

        result = transactions.estimate_gas(service, OTHER, from_address=HOLDER, value="1")

        assert result["estimated_fee"] == "0.000021"
        assert result["estimated_fee_wei"] == "21000000000000"
        tx_object = node.requests[0][1][0]
        assert tx_object == {"to": OTHER, "data": "0x", "from": HOLDER, "value": ONE_CRO_HEX}

    def test_status_not_found(self, service, node):
        node.results["eth_getTransactionByHash"] = None
        assert transactions.get_transaction_status(service, TX_HASH)["status"] == "not_found"

    def test_status_pending(self, service, node):
        node.results["eth_getTransactionByHash"] = dict(self.TX, blockNumber=None)

        result = transactions.get_transaction_status(service, TX_HASH)

        assert result["status"] == "pending"
        assert "eth_getTransactionReceipt" not in node.methods()

    def test_status_confirmed_with_confirmations(self, service, node):
        node.results["eth_getTransactionByHash"] = dict(self.TX)
        node.results["eth_getTransactionReceipt"] = dict(self.RECEIPT)
        node.results["eth_blockNumber"] = "0x14"

        result = transactions.get_transaction_status(service, TX_HASH)

        assert result["status"] == "confirmed"
        assert result["confirmations"] == 5
        assert result["transaction_fee"] == "0.000021"
