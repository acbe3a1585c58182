"""TradeOrchestrator — drives one trade attempt through the ledger.

IDLE -> CHECKING_ALLOWANCE -> [APPROVING] -> (SIMULATING -> SUBMITTING ->
CONFIRMING) per chunk -> REFRESHING -> DONE, or FAILED / CANCELLED.

Chunks run strictly in order: chunk i+1 is simulated against pool state read
from the ledger after chunk i confirmed. Any chunk failure aborts the rest;
chunks already confirmed are final and reported in the FAILED state.
Ledger clients may raise anything (transport errors included); every such
failure ends the stream in FAILED rather than escaping it.
"""
import asyncio
import logging
import uuid
from collections import defaultdict
from collections.abc import AsyncIterator, Callable
from typing import Any

from config.settings import settings
from src.pm_common.datetime_utils import unix_deadline
from src.pm_common.enums import ExecutionPhase, MarketStatus
from src.pm_common.errors import (
    AppError,
    ApprovalFailedError,
    ChunkExecutionError,
    ConfirmationTimeoutError,
    MarketNotActiveError,
    NoActiveTradeError,
    NoOutputError,
    NotCancellableError,
    PlanNotConfirmedError,
    TransactionRevertedError,
)
from src.pm_common.fixed_point import UINT256_MAX
from src.pm_execution.domain.call_shape import TradeCallShape, call_shape_from_settings
from src.pm_execution.domain.ledger import LedgerProtocol
from src.pm_execution.domain.models import (
    Balances,
    ExecutionReport,
    ExecutionState,
    SettledChunk,
    Signer,
    TxReceipt,
)
from src.pm_lmsr.domain.models import ChunkPlan, PoolState, TradeRequest, TradeSimulation
from src.pm_lmsr.domain.solver import simulate

logger = logging.getLogger(__name__)


def new_attempt_id() -> str:
    return f"trade_{uuid.uuid4().hex[:12]}"


class TradeAttempt:
    """Handle for one execution attempt, issued by ``TradeOrchestrator.execute``.

    Iterate it for the state stream, or await ``report()`` to drain it.
    ``phase`` is None while the attempt is queued behind another attempt of
    the same signer.
    """

    def __init__(
        self,
        session: str,
        start: Callable[["TradeAttempt"], AsyncIterator[ExecutionState]],
    ) -> None:
        self.attempt_id = new_attempt_id()
        self.session = session
        self.phase: ExecutionPhase | None = None
        self.cancel_requested = False
        self.cancellable = True
        self._states = start(self)

    def __aiter__(self) -> AsyncIterator[ExecutionState]:
        return self._states

    async def report(self) -> ExecutionReport:
        transitions = [state async for state in self._states]
        return ExecutionReport(final=transitions[-1], transitions=transitions)


class TradeOrchestrator:
    def __init__(
        self,
        ledger: LedgerProtocol,
        call_shape: TradeCallShape | None = None,
        *,
        confirmation_timeout: float | None = None,
        deadline_seconds: int | None = None,
        chunk_pause: float | None = None,
    ) -> None:
        self._ledger = ledger
        self._call_shape = call_shape or call_shape_from_settings()
        self._confirmation_timeout = (
            settings.CONFIRMATION_TIMEOUT_SECONDS
            if confirmation_timeout is None
            else confirmation_timeout
        )
        self._deadline_seconds = (
            settings.TRADE_DEADLINE_SECONDS if deadline_seconds is None else deadline_seconds
        )
        self._chunk_pause = settings.CHUNK_PAUSE_SECONDS if chunk_pause is None else chunk_pause
        self._session_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._attempts: dict[str, TradeAttempt] = {}

    def _get_or_create_lock(self, session: str) -> asyncio.Lock:
        return self._session_locks[session]

    def is_busy(self, session: str) -> bool:
        return self._get_or_create_lock(session).locked()

    def cancel(self, attempt_id: str) -> None:
        """Cancel a pending attempt.

        Honoured only while the attempt is queued behind another attempt of
        the same signer or sitting in IDLE. Once it has moved on to the
        allowance check it raises NotCancellableError. An unconfirmed split
        plan is cancelled by never confirming it.
        """
        attempt = self._attempts.get(attempt_id)
        if attempt is None:
            raise NoActiveTradeError(attempt_id)
        if not attempt.cancellable:
            phase = attempt.phase.value if attempt.phase else "-"
            raise NotCancellableError(f"attempt {attempt_id} is already in {phase}")
        attempt.cancel_requested = True

    async def run(self, plan: ChunkPlan, signer: Signer) -> ExecutionReport:
        """Drain one attempt and return every transition plus the terminal state."""
        return await self.execute(plan, signer).report()

    def execute(self, plan: ChunkPlan, signer: Signer) -> TradeAttempt:
        """Register an attempt and return its handle; iterating it runs the trade.

        At most one attempt per signer runs at a time; later ones queue.
        Callers must drain the stream (or ``aclose`` it) to release the session.
        """
        if plan.requires_confirmation and not plan.confirmed:
            raise PlanNotConfirmedError(plan.chunk_count)
        attempt = TradeAttempt(signer.address, lambda a: self._execute(plan, signer, a))
        self._attempts[attempt.attempt_id] = attempt
        return attempt

    async def _execute(
        self, plan: ChunkPlan, signer: Signer, attempt: TradeAttempt
    ) -> AsyncIterator[ExecutionState]:
        try:
            async with self._get_or_create_lock(signer.address):
                async for state in self._run_attempt(plan, signer, attempt):
                    attempt.phase = state.phase
                    logger.info(
                        "Trade %s (%s) market=%s: %s chunk=%s/%d settled=%d",
                        attempt.attempt_id,
                        signer.address,
                        plan.pool_state.market_id,
                        state.phase.value,
                        "-" if state.chunk_index is None else state.chunk_index + 1,
                        state.chunk_count,
                        state.completed_chunks,
                    )
                    yield state
        finally:
            self._attempts.pop(attempt.attempt_id, None)

    async def _run_attempt(
        self, plan: ChunkPlan, signer: Signer, attempt: TradeAttempt
    ) -> AsyncIterator[ExecutionState]:
        count = plan.chunk_count
        market_id = plan.pool_state.market_id
        settled: list[SettledChunk] = []

        def state(phase: ExecutionPhase, **kwargs: Any) -> ExecutionState:
            return ExecutionState(phase, count, settled=tuple(settled), **kwargs)

        yield state(ExecutionPhase.IDLE, pool_state=plan.pool_state)
        if attempt.cancel_requested:
            logger.warning("Trade %s cancelled before any ledger call", attempt.attempt_id)
            yield state(ExecutionPhase.CANCELLED)
            return
        attempt.cancellable = False

        if plan.request.is_buy:
            yield state(ExecutionPhase.CHECKING_ALLOWANCE)
            try:
                allowance = await self._ledger.read_allowance(signer.address, self._ledger.spender)
            except Exception as exc:
                yield state(ExecutionPhase.FAILED, error=_approval_error(exc))
                return
            if allowance < plan.total_amount:
                yield state(ExecutionPhase.APPROVING)
                try:
                    tx_hash = await self._ledger.send_transaction(
                        signer, "approve", (self._ledger.spender, UINT256_MAX)
                    )
                    await self._confirm(tx_hash)
                except Exception as exc:
                    yield state(ExecutionPhase.FAILED, error=_approval_error(exc))
                    return

        for index, amount in enumerate(plan.chunks):
            yield state(ExecutionPhase.SIMULATING, chunk_index=index)
            try:
                pool = await self._ledger.read_pool_state(market_id)
                sim = _simulate_chunk(pool, plan.request.with_amount(amount), index)
            except Exception as exc:
                yield self._failed(state, index, len(settled), exc)
                return

            yield state(ExecutionPhase.SUBMITTING, chunk_index=index, pool_state=pool)
            try:
                tx_hash = await self._submit(signer, market_id, plan.request, amount, sim)
            except Exception as exc:
                yield self._failed(state, index, len(settled), exc)
                return

            yield state(ExecutionPhase.CONFIRMING, chunk_index=index, tx_hash=tx_hash)
            try:
                await self._confirm(tx_hash)
            except Exception as exc:
                yield self._failed(state, index, len(settled), exc, tx_hash=tx_hash)
                return

            settled.append(
                SettledChunk(
                    index=index,
                    amount=amount,
                    tx_hash=tx_hash,
                    expected_output=sim.output_amount,
                    min_output=sim.min_guaranteed_output,
                )
            )
            if index < count - 1 and self._chunk_pause > 0:
                await asyncio.sleep(self._chunk_pause)

        yield state(ExecutionPhase.REFRESHING)
        pool_after: PoolState | None = None
        balances: Balances | None = None
        try:
            pool_after = await self._ledger.read_pool_state(market_id)
            balances = await self._ledger.read_balances(signer.address, market_id)
        except Exception as exc:
            # Every chunk is settled; a stale view does not undo the trade.
            logger.warning("Post-trade refresh for %s failed: %s", signer.address, _describe(exc))
        yield state(ExecutionPhase.DONE, pool_state=pool_after, balances=balances)

    async def _submit(
        self,
        signer: Signer,
        market_id: int,
        request: TradeRequest,
        amount: int,
        sim: TradeSimulation,
    ) -> str:
        args = self._call_shape.trade_args(
            market_id,
            request.is_yes,
            amount,
            sim.min_guaranteed_output,
            unix_deadline(self._deadline_seconds),
        )
        function_name = "buy" if request.is_buy else "sell"
        return await self._ledger.send_transaction(signer, function_name, args)

    async def _confirm(self, tx_hash: str) -> TxReceipt:
        try:
            receipt = await asyncio.wait_for(
                self._ledger.wait_for_receipt(tx_hash), timeout=self._confirmation_timeout
            )
        except asyncio.TimeoutError:
            raise ConfirmationTimeoutError(tx_hash, self._confirmation_timeout) from None
        if not receipt.success:
            raise TransactionRevertedError(tx_hash, receipt.revert_reason or "unknown reason")
        return receipt

    @staticmethod
    def _failed(
        state: Callable[..., ExecutionState],
        index: int,
        completed: int,
        exc: Exception,
        tx_hash: str | None = None,
    ) -> ExecutionState:
        error = ChunkExecutionError(index, completed, _describe(exc))
        error.__cause__ = exc
        if isinstance(exc, AppError):
            logger.error(
                "Chunk %d failed after %d settled chunk(s): %s", index + 1, completed, exc.message
            )
        else:
            logger.exception("Chunk %d failed after %d settled chunk(s)", index + 1, completed)
        return state(ExecutionPhase.FAILED, chunk_index=index, tx_hash=tx_hash, error=error)


def _describe(exc: Exception) -> str:
    if isinstance(exc, AppError):
        return exc.message
    return f"{type(exc).__name__}: {exc}"


def _simulate_chunk(pool: PoolState, request: TradeRequest, index: int) -> TradeSimulation:
    if not pool.is_active:
        raise MarketNotActiveError(pool.market_id, MarketStatus(pool.status).value)
    sim = simulate(pool, request)
    if sim.is_empty:
        raise NoOutputError(f"chunk {index + 1} ({request.amount}) against current pool state")
    return sim


def _approval_error(exc: Exception) -> ApprovalFailedError:
    logger.error("Approval failed: %s", _describe(exc))
    error = ApprovalFailedError(_describe(exc))
    error.__cause__ = exc
    return error
