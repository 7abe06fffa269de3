from typing import Dict

CRO_DECIMALS = 18
GWEI_DECIMALS = 9
MAX_BLOCK = 99999999
DEFAULT_PAGE = 1
DEFAULT_OFFSET = 100
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

NETWORKS: Dict[str, Dict[str, object]] = {
    "mainnet": {
        "chain_id": 25,
        "rpc_url": "https://evm.cronos.org",
        "explorer_api_url": "https://api.cronoscan.com/api",
        "explorer_url": "https://cronoscan.com",
        "ws_url": "wss://evm.cronos.org",
    },
    "testnet": {
        "chain_id": 338,
        "rpc_url": "https://evm-t3.cronos.org",
        "explorer_api_url": "https://api-testnet.cronoscan.com/api",
        "explorer_url": "https://testnet.cronoscan.com",
        "ws_url": "wss://evm-t3.cronos.org",
    },
}

KNOWN_TOKENS: Dict[str, Dict[str, object]] = {
    "0x5c7f8a570d578ed84e63fdfa7b1ee72deae1ae23": {"name": "Wrapped CRO", "symbol": "WCRO", "decimals": 18},
    "0xc21223249ca28397b4b6541dffaecc539bff0c59": {"name": "USD Coin", "symbol": "USDC", "decimals": 6},
    "0x66e428c3f67a68878562e79a0234c1f83c208770": {"name": "Tether USD", "symbol": "USDT", "decimals": 6},
    "0xf2001b145b43032aaf5ee2884e456ccd805f677d": {"name": "Dai Stablecoin", "symbol": "DAI", "decimals": 18},
    "0xe44fd7fcb2b1581822d0c862b68222998a0c299a": {"name": "Wrapped ETH", "symbol": "WETH", "decimals": 18},
    "0x062e66477faf219f25d27dced647bf57c3107d52": {"name": "Wrapped BTC", "symbol": "WBTC", "decimals": 8},
    "0x2d03bece6747adc00e1a131bba1469c15fd11e03": {"name": "VVS Finance", "symbol": "VVS", "decimals": 18},
}

WCRO_ADDRESS = "0x5C7F8A570d578ED84E63fdFA7b1eE72dEae1AE23"
VVS_ROUTER = "0x145863Eb42Cf62847A6Ca784e6416C1682b1b2Ae"
VVS_FACTORY = "0x3B44B2a187a7b3824131F8db5a74194D0a42Fc15"

# 4-byte selectors, precomputed (no keccak at runtime).
FUNCTION_SIGNATURES: Dict[str, str] = {
    "balanceOf": "0x70a08231",
    "totalSupply": "0x18160ddd",
    "name": "0x06fdde03",
    "symbol": "0x95d89b41",
    "decimals": "0x313ce567",
    "tokenURI": "0xc87b56dd",
    "uri": "0x0e89341c",
    "ownerOf": "0x6352211e",
    "supportsInterface": "0x01ffc9a7",
    "token0": "0x0dfe1681",
    "token1": "0xd21220a7",
    "getReserves": "0x0902f1ac",
    "allPairsLength": "0x574f2ba3",
    "allPairs": "0x1e3dd18b",
    "feeTo": "0x017e7e58",
}

INTERFACE_IDS: Dict[str, str] = {
    "erc721": "0x80ac58cd",
    "erc1155": "0xd9b67a26",
}

EVENT_SIGNATURES: Dict[str, str] = {
    "Transfer": "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef",
    "Approval": "0x8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925",
    "TransferSingle": "0xc3d58168c5ae7397731d063d5bbf3d657854427343f4c083240f7aacaa2d0f62",
    "TransferBatch": "0x4a39dc06d4c0dbc64b70af90fd698a233a518aa5d07e595d983b8c0526c8f7fb",
}

IPFS_GATEWAY = "https://ipfs.io/ipfs/"
