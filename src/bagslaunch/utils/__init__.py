"""Generic utility functions."""

from .config import LauncherConfig, add_common_args, default_rpc_http, parse_args

__all__ = [
    "LauncherConfig",
    "add_common_args",
    "default_rpc_http",
    "parse_args",
]
