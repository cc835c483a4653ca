"""FastAPI application exposing the token launcher.

Endpoints:
* ``GET /health`` – service liveness
* ``GET /config`` – which credentials and wallet the server runs with
* ``GET /ping`` – reachability of the launch API
* ``GET /wallet`` – SOL balance of the server wallet and its USD value
* ``GET /cost`` – estimated SOL and USD cost of a launch
* ``GET /username/validate`` – clean and check a social handle
* ``POST /launch`` – launch a token signed by the server wallet
* ``GET /metrics`` – Prometheus metrics

The API key never leaves the server; ``/config`` only reports whether one is
configured.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from ..api import LaunchApiClient
from ..costs import WalletBalance, estimate_cost, sol_price
from ..engine import LaunchOrchestrator
from ..errors import LaunchError, WalletUnavailableError
from ..oracle import CoingeckoOracle, PriceOracle
from ..types import ImageFile, LaunchOutcome, LaunchRequest, TOTAL_BPS, sol_to_lamports
from ..utils import LauncherConfig
from ..validation import clean_username, username_error
from ..wallet import KeypairSigner

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = {
    "validation": 422,
    "invalid_media": 422,
    "configuration": 503,
    "wallet_unavailable": 503,
    "wallet_not_found": 404,
    "user_rejected": 403,
    "internal": 500,
}


def _status(kind: Optional[str]) -> int:
    return _STATUS_BY_ERROR.get(kind or "", 502)


def _error(exc: LaunchError) -> JSONResponse:
    return JSONResponse(
        status_code=_status(exc.kind), content={"error": exc.kind, "message": exc.message}
    )


def create_app(
    cfg: LauncherConfig,
    api: LaunchApiClient,
    signer: Optional[KeypairSigner] = None,
    oracle: Optional[PriceOracle] = None,
) -> FastAPI:
    app = FastAPI(title="bags-launcher API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    prices = oracle if oracle is not None else CoingeckoOracle()
    orchestrator = LaunchOrchestrator(api, signer)
    app.state.orchestrator = orchestrator

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/config")
    def config() -> dict:
        return {
            "api_url": cfg.api_url,
            "api_key_configured": bool(cfg.api_key),
            "rpc": "helius" if "helius" in cfg.rpc_http else "default",
            "wallet": signer.address if signer is not None else None,
        }

    @app.get("/ping")
    async def ping() -> dict:
        return {"reachable": await api.ping()}

    @app.get("/wallet")
    async def wallet() -> JSONResponse:
        if signer is None:
            return _error(WalletUnavailableError("No Solana wallet configured"))
        try:
            lamports = await signer.balance()
        except LaunchError as exc:
            return _error(exc)
        balance = WalletBalance(signer.address, lamports, await sol_price(prices))
        return JSONResponse(balance.to_dict())

    @app.get("/cost")
    async def cost(initial_buy_sol: float = 0.0) -> JSONResponse:
        try:
            estimate = estimate_cost(initial_buy_sol)
        except LaunchError as exc:
            return _error(exc)
        return JSONResponse(estimate.priced(await sol_price(prices)).to_dict())

    @app.get("/username/validate")
    def validate_username(username: str = "") -> dict:
        cleaned = clean_username(username)
        error = username_error(cleaned)
        return {"username": cleaned, "valid": error is None, "error": error}

    @app.post("/launch")
    async def launch(
        name: str = Form(...),
        symbol: str = Form(...),
        description: str = Form(""),
        username: str = Form(""),
        creator_percent: int = Form(10, ge=0, le=100),
        initial_buy_sol: float = Form(0.0, ge=0),
        website: str = Form(""),
        twitter: str = Form(""),
        telegram: str = Form(""),
        image: Optional[UploadFile] = File(None),
    ) -> JSONResponse:
        upload = None
        if image is not None and image.filename:
            upload = ImageFile(
                filename=image.filename,
                content_type=image.content_type or "",
                data=await image.read(),
            )
        try:
            initial_buy_lamports = sol_to_lamports(initial_buy_sol)
        except LaunchError as exc:
            outcome = LaunchOutcome.rejected(exc)
            return JSONResponse(status_code=_status(outcome.error), content=outcome.to_dict())
        creator_bps = creator_percent * 100
        request = LaunchRequest(
            name=name,
            symbol=symbol,
            description=description,
            image=upload,
            username=username,
            creator_bps=creator_bps,
            claimer_bps=TOTAL_BPS - creator_bps,
            launch_wallet=signer.address if signer is not None else "",
            initial_buy_lamports=initial_buy_lamports,
            website=website,
            twitter=twitter,
            telegram=telegram,
        )
        outcome = await orchestrator.launch(request)
        status = 200 if outcome.ok else _status(outcome.error)
        return JSONResponse(status_code=status, content=outcome.to_dict())

    @app.on_event("shutdown")
    async def shutdown() -> None:
        await api.aclose()
        await prices.aclose()
        if signer is not None:
            await signer.aclose()

    return app
