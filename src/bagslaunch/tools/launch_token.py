"""CLI for launching a token.

Creates the token metadata, optional fee sharing and launch transactions
through the Bags API and signs them with a local keypair.  Use environment
variables or command line options to specify the API key, RPC endpoint and
keypair.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Optional, List

from bagslaunch.api import LaunchApiClient
from bagslaunch.costs import CostEstimate, WalletBalance, estimate_cost, sol_price
from bagslaunch.engine import LaunchOrchestrator
from bagslaunch.errors import LaunchError
from bagslaunch.oracle import CoingeckoOracle
from bagslaunch.types import ImageFile, LaunchOutcome, LaunchRequest, TOTAL_BPS, sol_to_lamports
from bagslaunch.utils import add_common_args
from bagslaunch.wallet import KeypairSigner, load_keypair

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line options."""
    parser = argparse.ArgumentParser(description="Launch a token on Bags")
    parser.add_argument("name", help="Token name")
    parser.add_argument("symbol", help="Token symbol")
    parser.add_argument("--description", default="", help="Token description")
    parser.add_argument("--image", default="", help="Path to a PNG, JPG, GIF or WebP image")
    parser.add_argument(
        "--username",
        default="",
        help="Twitter handle or profile URL to share fees with",
    )
    parser.add_argument(
        "--creator-percent",
        type=int,
        default=10,
        help="Share of fees kept by the creator when fee sharing (0-100)",
    )
    parser.add_argument(
        "--initial-buy",
        type=float,
        default=0.0,
        help="SOL to spend buying the token at launch",
    )
    parser.add_argument("--website", default="", help="Website link")
    parser.add_argument("--twitter", default="", help="Twitter link")
    parser.add_argument("--telegram", default="", help="Telegram link")
    add_common_args(parser)
    return parser.parse_args(argv)


def read_image(path: str) -> ImageFile:
    content_type, _ = mimetypes.guess_type(path)
    p = Path(path)
    return ImageFile(filename=p.name, content_type=content_type or "", data=p.read_bytes())


def build_request(args: argparse.Namespace, launch_wallet: str) -> LaunchRequest:
    creator_bps = args.creator_percent * 100
    return LaunchRequest(
        name=args.name,
        symbol=args.symbol,
        description=args.description,
        image=read_image(args.image) if args.image else None,
        username=args.username,
        creator_bps=creator_bps,
        claimer_bps=TOTAL_BPS - creator_bps,
        launch_wallet=launch_wallet,
        initial_buy_lamports=sol_to_lamports(args.initial_buy),
        website=args.website,
        twitter=args.twitter,
        telegram=args.telegram,
    )


def _usd_text(value: Optional[float]) -> str:
    return f"${value:.2f}" if value is not None else "$--"


def format_cost(estimate: CostEstimate) -> str:
    return (
        f"Estimated cost: {estimate.total_sol:.3f} SOL "
        f"({estimate.initial_buy_sol:.3f} initial buy + {estimate.fees_sol:.3f} fees), "
        f"{_usd_text(estimate.total_usd)}"
    )


def format_balance(balance: WalletBalance) -> str:
    return f"Wallet {balance.address}: {balance.sol:.9f} SOL, {_usd_text(balance.usd)}"


async def preview(args: argparse.Namespace, signer: Optional[KeypairSigner]) -> None:
    """Print the expected cost and the wallet balance before anything is signed."""
    estimate = estimate_cost(args.initial_buy)
    async with CoingeckoOracle() as oracle:
        price = await sol_price(oracle)
    print(format_cost(estimate.priced(price)))
    if signer is None:
        return
    try:
        lamports = await signer.balance()
    except LaunchError as exc:
        logger.warning("could not read wallet balance: %s", exc)
        return
    print(format_balance(WalletBalance(signer.address, lamports, price)))


async def run(args: argparse.Namespace) -> LaunchOutcome:
    keypair = load_keypair(args.keypair, args.keypair_key or None) if args.keypair else None
    signer = None
    if keypair is not None:
        signer = KeypairSigner(keypair, args.rpc_http, confirm_timeout=args.confirm_timeout)
    try:
        await preview(args, signer)
        async with LaunchApiClient(args.api_key, args.api_url) as api:
            request = build_request(args, signer.address if signer else "")
            return await LaunchOrchestrator(api, signer).launch(request)
    finally:
        if signer is not None:
            await signer.aclose()


def report(outcome: LaunchOutcome) -> None:
    if outcome.ok:
        print(f"Token launched: {outcome.token_mint}")
        print(f"Transaction: {outcome.signature}")
        print(f"View on Bags: https://bags.fm/{outcome.token_mint}")
        if outcome.fee_sharing is not None:
            fs = outcome.fee_sharing
            print(
                f"Fee sharing: @{fs.username} on {fs.platform} "
                f"({fs.creator_percent:g}% / {fs.claimer_percent:g}%)"
            )
        return
    print(f"Launch failed [{outcome.error}]: {outcome.message}")
    if outcome.partial:
        print(
            f"Config transaction {outcome.config_signature} already confirmed; "
            "it does not need to be signed again."
        )


def main(argv: Optional[List[str]] = None) -> int:
    """Run the launcher and return the process exit code."""
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        outcome = asyncio.run(run(args))
    except (LaunchError, OSError, ValueError) as exc:
        print(f"Launch failed: {exc}")
        return 1
    report(outcome)
    return 0 if outcome.ok else 1


if __name__ == "__main__":  # pragma: no cover - manual usage
    raise SystemExit(main())
