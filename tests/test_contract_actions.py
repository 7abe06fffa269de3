"""Test cases for contract, token, NFT and DeFi operations."""

import base64
import json
from unittest.mock import MagicMock

import pytest
import requests

from cronos_mcp.actions import contracts, defi, nfts, tokens
from cronos_mcp.constants import (
    FUNCTION_SIGNATURES,
    INTERFACE_IDS,
    IPFS_GATEWAY,
    VVS_FACTORY,
    WCRO_ADDRESS,
    ZERO_ADDRESS,
)

HOLDER = "0x" + "ab" * 20
OTHER = "0x" + "cd" * 20
CONTRACT = "0x" + "11" * 20
TOKEN_A = "0x" + "aa" * 20
TOKEN_B = "0x" + "bb" * 20
PAIR = "0x" + "33" * 20


def word(value: int) -> str:
    return "0x" + format(value, "064x")


def address_word(address: str) -> str:
    return "0x" + "0" * 24 + address[2:].lower()


def string_result(text: str) -> str:
    payload = text.encode("utf-8").hex()
    padded = payload.ljust(((len(payload) + 63) // 64) * 64 or 64, "0")
    return "0x" + format(32, "064x") + format(len(text.encode("utf-8")), "064x") + padded


def token_call(name: str, token_id: int) -> str:
    return FUNCTION_SIGNATURES[name] + format(token_id, "064x")


class TestContracts:
    """Test ABI, source and eth_call reads."""

    def test_contract_abi_is_split(self, service, explorer):
        abi = [
            {"type": "function", "name": "balanceOf", "inputs": [], "outputs": [], "stateMutability": "view"},
            {"type": "event", "name": "Transfer", "inputs": []},
            {"type": "constructor", "inputs": []},
        ]
        explorer.results[("contract", "getabi")] = json.dumps(abi)

        result = contracts.get_contract_abi(service, CONTRACT)

        assert result["function_count"] == 1
        assert result["event_count"] == 1
        assert result["functions"][0]["state_mutability"] == "view"

    def test_contract_abi_unparseable(self, service, explorer):
        explorer.results[("contract", "getabi")] = "Contract source code not verified"
        with pytest.raises(ValueError, match="Failed to parse ABI"):
            contracts.get_contract_abi(service, CONTRACT)

    def test_read_contract_with_output_types(self, service, node):
        call_data = FUNCTION_SIGNATURES["balanceOf"] + "0" * 24 + HOLDER[2:]
        node.on_call(CONTRACT, call_data, word(5) + format(1, "064x"))

        result = contracts.read_contract(
            service,
            CONTRACT,
            FUNCTION_SIGNATURES["balanceOf"],
            params=json.dumps([{"type": "address", "value": HOLDER}]),
            output_types="uint256,bool",
        )

        assert result["call_data"] == call_data
        assert [item["decoded"] for item in result["decoded"]] == ["5", "true"]
        assert result["decoded_uint256"] == str(int(format(5, "064x") + format(1, "064x"), 16))
        assert result["decoded_address"] == "0x" + "0" * 39 + "1"

    def test_read_contract_empty_result(self, service, node):
        node.on_call(CONTRACT, FUNCTION_SIGNATURES["totalSupply"], "0x")

        result = contracts.read_contract(service, CONTRACT, FUNCTION_SIGNATURES["totalSupply"])

        assert result["decoded_uint256"] is None
        assert "decoded" not in result

    def test_unverified_source(self, service, explorer):
        explorer.results[("contract", "getsourcecode")] = []
        assert contracts.get_contract_source(service, CONTRACT)["verified"] is False

    def test_verified_source(self, service, explorer):
        explorer.results[("contract", "getsourcecode")] = [
            {"SourceCode": "contract A {}", "ContractName": "A", "OptimizationUsed": "1", "Runs": "200"}
        ]

        result = contracts.get_contract_source(service, CONTRACT)

        assert result["verified"] is True
        assert result["optimization_used"] is True

    def test_contract_events_filter(self, service, node):
        node.results["eth_getLogs"] = [{"blockNumber": "0x10", "logIndex": "0x0", "transactionIndex": "0x0"}]

        result = contracts.get_contract_events(service, CONTRACT, from_block=10, topic0="0x" + "01" * 32)

        assert node.requests[0][1][0] == {
            "address": CONTRACT,
            "fromBlock": "0xa",
            "toBlock": "latest",
            "topics": ["0x" + "01" * 32],
        }
        assert result["events"][0]["block_number"] == "16"


class TestTokens:
    """Test ERC-20 token reads."""

    def test_known_token_defaults_when_calls_revert(self, service, node):
        node.on_call(WCRO_ADDRESS, FUNCTION_SIGNATURES["totalSupply"], word(3 * 10**18))

        result = tokens.get_token_info(service, WCRO_ADDRESS)

        assert result["symbol"] == "WCRO"
        assert result["decimals"] == 18
        assert result["total_supply"] == "3"
        assert result["is_known_token"] is True

    def test_unknown_token_fallbacks(self, service):
        result = tokens.get_token_info(service, CONTRACT)

        assert result["name"] == "Unknown Token"
        assert result["symbol"] == "UNKNOWN"
        assert result["total_supply"] == "0"

    def test_bytes32_symbol_fallback(self, service, node):
        node.on_call(CONTRACT, FUNCTION_SIGNATURES["symbol"], "0x" + "4d4b52".ljust(64, "0"))

        assert service.get_token_metadata(CONTRACT)["symbol"] == "MKR"

    def test_metadata_is_cached(self, service, node):
        node.on_call(CONTRACT, FUNCTION_SIGNATURES["name"], string_result("Cached"))

        service.get_token_metadata(CONTRACT)
        calls_before = len(node.requests)
        again = service.get_token_metadata(CONTRACT.upper().replace("0X", "0x"))

        assert again["name"] == "Cached"
        assert len(node.requests) == calls_before

    def test_holders(self, service, explorer):
        explorer.results[("token", "tokenholderlist")] = [
            {"TokenHolderAddress": HOLDER, "TokenHolderQuantity": "100"}
        ]

        result = tokens.get_token_holders(service, CONTRACT, page=2, offset="10")

        assert result["holders"] == [{"address": HOLDER, "balance": "100"}]
        assert explorer.requests[0][2] == {"contractaddress": CONTRACT, "page": 2, "offset": 10}

    def test_top_tokens_limit(self, service):
        result = tokens.get_top_tokens(service, limit="2")

        assert result["count"] == 2
        assert result["tokens"][0]["symbol"] == "WCRO"
        with pytest.raises(ValueError):
            tokens.get_top_tokens(service, limit=-1)


class TestNfts:
    """Test NFT metadata and ownership."""

    def test_metadata_from_data_uri(self, service, node):
        document = {"name": "Loaf #7"}
        uri = nfts.DATA_URI_PREFIX + base64.b64encode(json.dumps(document).encode()).decode()
        node.on_call(CONTRACT, token_call("tokenURI", 7), string_result(uri))
        node.on_call(CONTRACT, token_call("ownerOf", 7), address_word(HOLDER))
        node.on_call(CONTRACT, FUNCTION_SIGNATURES["name"], string_result("Loaves"))

        result = nfts.get_nft_metadata(service, CONTRACT, "7")

        assert result["metadata"] == document
        assert result["owner"] == HOLDER
        assert result["collection_name"] == "Loaves"
        assert result["collection_symbol"] == ""

    def test_erc1155_uri_placeholder_and_ipfs(self, service, node):
        node.on_call(CONTRACT, token_call("uri", 1), string_result("ipfs://bafy/{id}.json"))
        service.fetch_json = MagicMock(return_value={"name": "one"})

        result = nfts.get_nft_metadata(service, CONTRACT, 1)

        expected = "ipfs://bafy/" + format(1, "064x") + ".json"
        assert result["token_uri"] == expected
        service.fetch_json.assert_called_once_with(IPFS_GATEWAY + "bafy/" + format(1, "064x") + ".json")
        assert result["metadata"] == {"name": "one"}

    def test_unreachable_metadata_is_none(self, service):
        service.fetch_json = MagicMock(side_effect=requests.ConnectionError("offline"))
        assert nfts.load_metadata(service, "https://example.invalid/1.json") is None

    def test_collection_type(self, service, node):
        node.on_call(
            CONTRACT,
            FUNCTION_SIGNATURES["supportsInterface"] + INTERFACE_IDS["erc721"][2:].ljust(64, "0"),
            word(1),
        )

        result = nfts.get_collection_info(service, CONTRACT)

        assert result["type"] == "ERC721"
        assert result["supports_erc1155"] is False

    def test_erc721_owner(self, service, node):
        node.on_call(CONTRACT, token_call("ownerOf", 3), address_word(HOLDER))

        result = nfts.get_nft_owners(service, CONTRACT, 3)

        assert result["type"] == "ERC721"
        assert result["owners"] == [{"address": HOLDER, "balance": "1"}]

    def test_erc1155_owners_replayed_from_history(self, service, explorer):
        explorer.results[("account", "token1155tx")] = [
            {"from": ZERO_ADDRESS, "to": HOLDER, "tokenID": "3", "tokenValue": "5"},
            {"from": ZERO_ADDRESS, "to": HOLDER, "tokenID": "4", "tokenValue": "9"},
            {"from": HOLDER, "to": OTHER, "tokenID": "3", "tokenValue": "5"},
            {"from": ZERO_ADDRESS, "to": HOLDER, "tokenID": "3", "tokenValue": "2"},
        ]

        result = nfts.get_nft_owners(service, CONTRACT, "3")

        assert result["type"] == "ERC1155"
        assert sorted(result["owners"], key=lambda o: o["address"]) == [
            {"address": HOLDER, "balance": "2"},
            {"address": OTHER, "balance": "5"},
        ]
        assert explorer.requests[0][2]["sort"] == "asc"

    def test_transfers_filtered_by_token(self, service, explorer):
        explorer.results[("account", "tokennfttx")] = [
            {"hash": "0x1", "tokenID": "1"},
            {"hash": "0x2", "tokenID": "2"},
        ]

        result = nfts.get_nft_transfers(service, CONTRACT, token_id="0x2")

        assert result["token_id"] == "2"
        assert [item["hash"] for item in result["transfers"]] == ["0x2"]
        assert nfts.get_nft_transfers(service, CONTRACT)["token_id"] == "all"


class TestDefi:
    """Test DEX pair reads."""

    def reserves(self, reserve0: int, reserve1: int, timestamp: int) -> str:
        return word(reserve0) + format(reserve1, "064x") + format(timestamp, "064x")

    def test_pool_info(self, service, node):
        node.on_call(PAIR, FUNCTION_SIGNATURES["token0"], address_word(TOKEN_A))
        node.on_call(PAIR, FUNCTION_SIGNATURES["token1"], address_word(TOKEN_B))
        node.on_call(PAIR, FUNCTION_SIGNATURES["getReserves"], self.reserves(2 * 10**18, 3_000_000, 0))
        node.on_call(PAIR, FUNCTION_SIGNATURES["totalSupply"], word(10**18))
        node.on_call(TOKEN_B, FUNCTION_SIGNATURES["decimals"], word(6))

        result = defi.get_pool_info(service, PAIR)

        assert result["token0"]["reserve"] == "2"
        assert result["token1"]["reserve"] == "3"
        assert result["token1"]["symbol"] == "UNKNOWN"
        assert result["total_supply"] == "1"
        assert result["last_update"] == "1970-01-01T00:00:00.000Z"

    def test_dex_stats_skips_broken_pairs(self, service, node):
        node.on_call(VVS_FACTORY, FUNCTION_SIGNATURES["allPairsLength"], word(2))
        node.on_call(VVS_FACTORY, token_call("allPairs", 0), address_word(PAIR))
        node.on_call(VVS_FACTORY, token_call("allPairs", 1), address_word(TOKEN_A))
        node.on_call(PAIR, FUNCTION_SIGNATURES["getReserves"], self.reserves(7, 8, 9))

        result = defi.get_dex_stats(service)

        assert result["total_pairs"] == 2
        assert result["fee_to"] == ""
        assert result["sample_pairs"] == [
            {"pair_index": 0, "pair_address": PAIR, "reserve0": "7", "reserve1": "8"}
        ]

    def test_protocol_tvl(self, service, node):
        node.on_call(VVS_FACTORY, FUNCTION_SIGNATURES["allPairsLength"], word(12))
        balance_call = FUNCTION_SIGNATURES["balanceOf"] + "0" * 24 + VVS_FACTORY[2:].lower()
        node.on_call(WCRO_ADDRESS, balance_call, word(5 * 10**17))

        result = defi.get_protocol_tvl(service, "VVS")

        assert result["total_pairs"] == 12
        assert result["tvl_estimate_cro"] == "0.5"

    def test_unknown_protocol(self, service):
        with pytest.raises(ValueError, match="Unsupported protocol"):
            defi.get_protocol_tvl(service, "sushi")
