from decimal import Decimal
import os
from dotenv import load_dotenv
load_dotenv()


def _env_list(name: str) -> list:
    raw = os.environ.get(name, "")
    return [p.strip().lower() for p in raw.split(",") if p.strip()]


# ---- Chain ----
CHAIN_ID = 369                  # PulseChain mainnet
NATIVE_SYMBOL = "PLS"
NATIVE_NAME = "PulseChain"
NATIVE_DECIMALS = 18

# Pseudo-address used for native-asset legs. Lowercase.
NATIVE_TOKEN_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
WRAPPED_NATIVE_ADDRESS = "0xa1077a294dde1b09bb078844df40758a5d0f9a27"   # WPLS

# ---- Classification tables ----

# DEX routers. Lowercase.
KNOWN_ROUTER_ADDRESSES = {
    "0x165c68077ac06c83800d19200e6e2b08d02de75c",  # PulseX
    "0x98bf93ebf5c380c0e6daeda0b0e9894a57779dfb",  # PulseX v2
    "0x98bf93ebf5c380c0e6ae8e192a7e2ae08edacc02",  # PulseX v1 router
    "0x165c3410fc91ef562c50559f7d2289febed552d9",  # PulseX v2 router
    "0xda9aba4eacf54e0273f56dffee6b8f1e20b23bba",  # Velocity
    "0xb4959bebfc2919da68119ac8efa1b57382e69089",  # PLDEX
    "0xc145990e84155416144c532e31642d04dbd5a14a",  # ThorSwap
}
KNOWN_ROUTER_ADDRESSES.update(_env_list("EXTRA_ROUTER_ADDRESSES"))

# Case-insensitive substrings of a decoded method label that mark a swap.
SWAP_METHOD_KEYWORDS = (
    "swap",
    "trade",
    "multicall",
    "exactinput",
    "exactoutput",
    "addliquidity",
    "removeliquidity",
)

APPROVAL_METHOD_KEYWORD = "approve"

# Contract labels shown next to a transaction.
PROTOCOL_LABELS = {
    "0x165c68077ac06c83800d19200e6e2b08d02de75c": "PulseX",
    "0x98bf93ebf5c380c0e6daeda0b0e9894a57779dfb": "PulseX",
    "0x98bf93ebf5c380c0e6ae8e192a7e2ae08edacc02": "PulseX",
    "0x165c3410fc91ef562c50559f7d2289febed552d9": "PulseX v2",
    "0xda9aba4eacf54e0273f56dffee6b8f1e20b23bba": "Velocity",
    "0xb4959bebfc2919da68119ac8efa1b57382e69089": "PLDEX",
    "0xc145990e84155416144c532e31642d04dbd5a14a": "ThorSwap",
    "0x2b591e99afe9f32eaa6214f7b7629768c40eeb39": "HEX",
    "0x075dbb8b2ea6929ee58d552b5b2e5510b08ef028": "PulseX IFO/MAXIMUS",
}

# Bridged stablecoins (priced at 1 USD). Lowercase.
STABLECOIN_ADDRESSES = {
    "0xefd766ccb38eaf1dfd701853bfce31359239f305",  # DAI from Ethereum
    "0x0cb6f5a34ad42ec934882a05265a7d5f59b51a2f",  # USDT from Ethereum
    "0x15d38573d2feeb82e7ad5187ab8c1d52810b1f07",  # USDC from Ethereum
}

# ---- Scanner (Blockscout v2) ----
SCANNER_BASE_URL = os.environ.get("SCANNER_BASE_URL", "https://api.scan.pulsechain.com/api/v2")
SCANNER_REQUESTS_PER_SEC = float(os.environ.get("SCANNER_REQUESTS_PER_SEC", "4.0"))
SCANNER_TIMEOUT_SEC = int(os.environ.get("SCANNER_TIMEOUT_SEC", "15"))
SCANNER_MAX_RETRIES = int(os.environ.get("SCANNER_MAX_RETRIES", "5"))

# ---- DexScreener ----
DEXSCREENER_BASE_URL = os.environ.get("DEXSCREENER_BASE_URL", "https://api.dexscreener.com/latest/dex")
DEXSCREENER_REQUESTS_PER_SEC = float(os.environ.get("DEXSCREENER_REQUESTS_PER_SEC", "4.0"))
DEXSCREENER_TIMEOUT_SEC = int(os.environ.get("DEXSCREENER_TIMEOUT_SEC", "15"))
DEXSCREENER_MAX_RETRIES = int(os.environ.get("DEXSCREENER_MAX_RETRIES", "3"))
DEXSCREENER_CHAIN_ID = os.environ.get("DEXSCREENER_CHAIN_ID", "pulsechain")

# ----- Pricing ------
MIN_PAIR_LIQUIDITY_USD = Decimal(os.environ.get("MIN_PAIR_LIQUIDITY_USD", "1000"))
PRICE_CACHE_TTL_SEC = int(os.environ.get("PRICE_CACHE_TTL_SEC", "300"))
PRICE_BATCH_SIZE = int(os.environ.get("PRICE_BATCH_SIZE", "10"))
PRICE_LOOKUP_TIMEOUT_SEC = int(os.environ.get("PRICE_LOOKUP_TIMEOUT_SEC", "30"))

# ----- Logging -----
LOG_LEVEL = os.environ.get("WALLETFLOW_LOG_LEVEL", "INFO").upper()
DEBUG = os.environ.get("WALLETFLOW_DEBUG", "").lower() in ("1", "true", "yes")
