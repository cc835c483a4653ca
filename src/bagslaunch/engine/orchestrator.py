"""Two-phase token launch orchestration.

A launch walks through these states::

    COLLECTING_METADATA -> (CONFIGURING_FEE_SHARE)? -> REQUESTING_LAUNCH_TX
        -> (SIGNING_CONFIG -> REQUESTING_LAUNCH_TX_AFTER_CONFIG)?
        -> SIGNING_LAUNCH -> CONFIRMING -> DONE | FAILED

Fee-share setup only happens when a social handle was given.  The config
round trip only happens when the API hands back a pending config
transaction, which must be confirmed on chain before the launch
transaction referencing it can be requested.

Nothing is retried or rolled back.  A config transaction that landed before
the launch failed stays on chain; the failure outcome is flagged ``partial``
and carries the config signature so the caller does not ask the user to pay
for it again.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

from prometheus_client import Counter, Histogram

from ..api import LaunchApiClient
from ..errors import LaunchError, UpstreamError, WalletUnavailableError
from ..types import (
    ConfigResult,
    FeeShareConfig,
    FeeSharingSummary,
    LaunchOutcome,
    LaunchPlan,
    LaunchRequest,
    LaunchState,
    TokenArtifact,
)
from ..validation import validate_request
from ..wallet import Signer

logger = logging.getLogger(__name__)

LAUNCH_OUTCOMES = Counter(
    "launch_outcomes", "Finished launch attempts", ["outcome", "error"]
)
LAUNCH_TRANSACTIONS = Counter(
    "launch_transactions", "Transactions confirmed on chain", ["phase"]
)
CONFIRM_SECONDS = Histogram(
    "launch_confirm_seconds", "Seconds from broadcast to confirmation", ["phase"]
)


def reset_metrics() -> None:
    """Reset Prometheus metrics for tests."""

    LAUNCH_OUTCOMES.clear()
    LAUNCH_TRANSACTIONS.clear()
    CONFIRM_SECONDS.clear()


class _Run:
    """Per-call state; discarded when :meth:`LaunchOrchestrator.launch` returns."""

    def __init__(self) -> None:
        self.state = LaunchState.COLLECTING_METADATA
        self.states: List[LaunchState] = [self.state]
        self.artifact: Optional[TokenArtifact] = None
        self.config_signature: Optional[str] = None

    def enter(self, state: LaunchState) -> None:
        logger.info("launch state %s -> %s", self.state.value, state.value)
        self.state = state
        self.states.append(state)

    def failure(self, kind: str, message: str, status: Optional[int] = None) -> LaunchOutcome:
        failed_in = self.state
        self.enter(LaunchState.FAILED)
        partial = self.config_signature is not None
        if partial:
            logger.warning(
                "launch failed in %s after config transaction %s confirmed",
                failed_in.value,
                self.config_signature,
            )
        return LaunchOutcome(
            ok=False,
            state=LaunchState.FAILED,
            states=list(self.states),
            token_mint=self.artifact.token_mint if self.artifact else None,
            metadata_uri=self.artifact.metadata_uri if self.artifact else None,
            error=kind,
            message=message,
            status=status,
            config_signature=self.config_signature,
            partial=partial,
        )


class LaunchOrchestrator:
    """Run token launches against the API with an injected signer.

    Parameters
    ----------
    api:
        Launch API client.
    signer:
        Wallet capability.  ``None`` means no wallet is available and every
        launch fails with ``wallet_unavailable`` before any network call.
    """

    def __init__(self, api: LaunchApiClient, signer: Optional[Signer]) -> None:
        self.api = api
        self.signer = signer

    async def launch(self, request: LaunchRequest) -> LaunchOutcome:
        """Launch ``request`` and report the result; never raises ``LaunchError``."""
        run = _Run()
        try:
            outcome = await self._launch(request, run)
        except LaunchError as exc:
            logger.warning("launch failed (%s): %s", exc.kind, exc)
            outcome = run.failure(exc.kind, exc.message, getattr(exc, "status", None))
        except Exception as exc:
            logger.exception("unexpected launch failure")
            outcome = run.failure("internal", str(exc))
        LAUNCH_OUTCOMES.labels(
            "success" if outcome.ok else "failure", outcome.error or "none"
        ).inc()
        return outcome

    async def _launch(self, request: LaunchRequest, run: _Run) -> LaunchOutcome:
        signer = self.signer
        if signer is None:
            raise WalletUnavailableError("No Solana wallet available to sign the launch")
        request = validate_request(request)
        self.api.require_key()

        artifact = await self.api.create_token_info(request)
        run.artifact = artifact

        fee_share: Optional[FeeShareConfig] = None
        config: Optional[ConfigResult] = None
        if request.username:
            run.enter(LaunchState.CONFIGURING_FEE_SHARE)
            fee_share, config = await self._configure_fee_share(request, artifact)

        run.enter(LaunchState.REQUESTING_LAUNCH_TX)
        if config is None:
            config = await self.api.create_standalone_launch_config(request.launch_wallet)
        plan = await self._request_plan(request, artifact, config)

        if plan.config_transaction is not None:
            run.enter(LaunchState.SIGNING_CONFIG)
            run.config_signature = await self._sign_and_send(
                signer, plan.config_transaction, "config"
            )
            run.enter(LaunchState.REQUESTING_LAUNCH_TX_AFTER_CONFIG)
            transaction = await self.api.create_launch_transaction_after_config(
                plan.artifact, plan.config_key, plan.launch_wallet, plan.initial_buy_lamports
            )
        elif plan.transaction is not None:
            transaction = plan.transaction
        else:
            raise UpstreamError("Launch API returned neither a launch nor a config transaction")

        run.enter(LaunchState.SIGNING_LAUNCH)
        signed = await signer.sign(transaction)
        signature = await signer.broadcast(signed)
        run.enter(LaunchState.CONFIRMING)
        await self._confirm(signer, signature, "launch")
        run.enter(LaunchState.DONE)

        summary = None
        if fee_share is not None:
            summary = FeeSharingSummary.from_config(fee_share, request.username, request.platform)
        logger.info("token %s launched in %s", artifact.token_mint, signature)
        return LaunchOutcome(
            ok=True,
            state=LaunchState.DONE,
            states=list(run.states),
            token_mint=artifact.token_mint,
            signature=signature,
            metadata_uri=artifact.metadata_uri,
            fee_sharing=summary,
            config_signature=run.config_signature,
        )

    async def _configure_fee_share(
        self, request: LaunchRequest, artifact: TokenArtifact
    ) -> Tuple[FeeShareConfig, ConfigResult]:
        claimer = await self.api.lookup_platform_wallet(request.username, request.platform)
        config = FeeShareConfig.build(
            creator_wallet=request.launch_wallet,
            claimer_wallet=claimer,
            creator_bps=request.creator_bps,
            claimer_bps=request.claimer_bps,
            base_mint=artifact.token_mint,
        )
        logger.info(
            "fee share: creator %s (%d bps), claimer %s (%d bps)",
            config.creator_wallet,
            config.creator_bps,
            config.claimer_wallet,
            config.claimer_bps,
        )
        result = await self.api.create_fee_share_config(config)
        return config.with_result(result), result

    async def _request_plan(
        self,
        request: LaunchRequest,
        artifact: TokenArtifact,
        config: ConfigResult,
    ) -> LaunchPlan:
        if config.transaction:
            logger.info("config %s needs to be signed first", config.config_key)
            return LaunchPlan(
                artifact=artifact,
                config_key=config.config_key,
                launch_wallet=request.launch_wallet,
                initial_buy_lamports=request.initial_buy_lamports,
                config_transaction=config.transaction,
            )
        transaction = await self.api.create_launch_transaction(
            artifact, config.config_key, request.launch_wallet, request.initial_buy_lamports
        )
        return LaunchPlan(
            artifact=artifact,
            config_key=config.config_key,
            launch_wallet=request.launch_wallet,
            initial_buy_lamports=request.initial_buy_lamports,
            transaction=transaction,
        )

    async def _sign_and_send(self, signer: Signer, serialized: str, phase: str) -> str:
        signed = await signer.sign(serialized)
        signature = await signer.broadcast(signed)
        await self._confirm(signer, signature, phase)
        return signature

    async def _confirm(self, signer: Signer, signature: str, phase: str) -> None:
        start = time.perf_counter()
        await signer.confirm(signature)
        CONFIRM_SECONDS.labels(phase).observe(time.perf_counter() - start)
        LAUNCH_TRANSACTIONS.labels(phase).inc()
