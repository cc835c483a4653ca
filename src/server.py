"""Run the bags-launcher HTTP API server.

Loads the signing keypair when one is configured; without it the server
still answers ``/health``, ``/config`` and ``/username/validate`` but every
launch fails with ``wallet_unavailable``.
"""

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent))

import logging

import uvicorn

from bagslaunch.api import LaunchApiClient
from bagslaunch.server import create_app
from bagslaunch.utils import parse_args, LauncherConfig
from bagslaunch.wallet import KeypairSigner, load_keypair


def main() -> None:
    args = parse_args()
    cfg = LauncherConfig.from_args(args)
    logging.basicConfig(level=getattr(logging, cfg.log_level.upper(), logging.INFO))
    log = logging.getLogger("bagslaunch")
    log.info("API key loaded: %s", "yes" if cfg.api_key else "no")

    signer = None
    if cfg.keypair_path:
        keypair = load_keypair(cfg.keypair_path, cfg.keypair_key or None)
        signer = KeypairSigner(keypair, cfg.rpc_http, confirm_timeout=cfg.confirm_timeout)
        log.info("signing as %s", signer.address)
    else:
        log.warning("no keypair configured; launches will fail until one is set")

    api = LaunchApiClient(cfg.api_key, cfg.api_url)
    app = create_app(cfg, api, signer)
    uvicorn.run(app, host=cfg.host, port=cfg.port)


if __name__ == "__main__":
    main()
