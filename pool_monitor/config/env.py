"""
Environment variable loading for the pool monitor.

- SOLANA_RPC_URL: HTTP RPC endpoint
- SOLANA_WS_URL: WebSocket endpoint (derived from SOLANA_RPC_URL when unset)
- HELIUS_API_KEY: Helius API key (used when no explicit URL is set)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is pool_monitor/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"


def load_monitor_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides set variables."""
    load_dotenv(_ENV_PATH)


def http_to_ws(url: str) -> str:
    """Convert https:// or http:// to wss:// or ws:// for the pubsub endpoint."""
    s = url.strip()
    if s.startswith("https://"):
        return "wss://" + s[8:]
    if s.startswith("http://"):
        return "ws://" + s[7:]
    return s


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > HELIUS_API_KEY > public mainnet.
    """
    load_monitor_env()
    url = (os.getenv("SOLANA_RPC_URL") or "").strip()
    if url:
        return url
    key = (os.getenv("HELIUS_API_KEY") or "").strip()
    if key:
        return HELIUS_MAINNET_URL_TEMPLATE.format(key=key)
    return MAINNET_RPC_URL


def get_solana_ws_url() -> str:
    """Resolve WebSocket URL: SOLANA_WS_URL, else the RPC URL with a ws scheme."""
    load_monitor_env()
    url = (os.getenv("SOLANA_WS_URL") or "").strip()
    if url:
        return url
    return http_to_ws(get_solana_rpc_url())


def mask_api_key(url: str) -> str:
    """Hide the api-key query value so endpoints can be logged."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
