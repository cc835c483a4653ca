"""Configuration management utilities."""

from dataclasses import dataclass
import argparse
import os
from typing import Optional, List

from ..api import DEFAULT_BASE_URL

DEFAULT_RPC_HTTP = "https://api.mainnet-beta.solana.com"


def default_rpc_http() -> str:
    """RPC endpoint from ``RPC_HTTP``, else Helius when a key is set."""
    rpc = os.getenv("RPC_HTTP")
    if rpc:
        return rpc
    helius_key = os.getenv("HELIUS_API_KEY")
    if helius_key:
        return f"https://mainnet.helius-rpc.com/?api-key={helius_key}"
    return DEFAULT_RPC_HTTP


def add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--api-key",
        default=os.getenv("BAGS_API_KEY", ""),
        help="Bags API key",
    )
    parser.add_argument(
        "--api-url",
        default=os.getenv("BAGS_API_URL", DEFAULT_BASE_URL),
        help="Bags API base URL",
    )
    parser.add_argument(
        "--rpc-http",
        default=default_rpc_http(),
        help="Solana HTTP endpoint",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    parser.add_argument(
        "--keypair",
        default=os.getenv("KEYPAIR_PATH", ""),
        help="Path to the (optionally Fernet encrypted) signing keypair",
    )
    parser.add_argument(
        "--keypair-key",
        default=os.getenv("KEYPAIR_KEY", ""),
        help="Base64 Fernet key for the keypair file",
    )
    parser.add_argument(
        "--confirm-timeout",
        type=float,
        default=float(os.getenv("CONFIRM_TIMEOUT", "60")),
        help="Seconds to wait for transaction confirmation",
    )


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments or provided list."""
    parser = argparse.ArgumentParser(description="bags-launcher server configuration")
    add_common_args(parser)
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "127.0.0.1"),
        help="Interface the HTTP server binds to",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "3003")),
        help="Port the HTTP server listens on",
    )
    return parser.parse_args(args)


@dataclass
class LauncherConfig:
    api_key: str
    api_url: str
    rpc_http: str
    log_level: str = "INFO"
    keypair_path: str = ""
    keypair_key: str = ""
    confirm_timeout: float = 60.0
    host: str = "127.0.0.1"
    port: int = 3003

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "LauncherConfig":
        return cls(
            api_key=args.api_key,
            api_url=args.api_url,
            rpc_http=args.rpc_http,
            log_level=args.log_level,
            keypair_path=args.keypair,
            keypair_key=args.keypair_key,
            confirm_timeout=args.confirm_timeout,
            host=getattr(args, "host", "127.0.0.1"),
            port=getattr(args, "port", 3003),
        )
