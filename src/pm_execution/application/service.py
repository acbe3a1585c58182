"""TradeService — entry point for callers driving a live trade.

preview/prepare read the latest pool from the ledger and stay pure after
that; execute hands a (confirmed) plan to the orchestrator.

Typical flow:
    plan = await service.prepare(market_id, request)
    if plan.requires_confirmation:
        plan = plan.confirm()          # only after the user accepts the split
    attempt = service.execute(plan, signer)
    async for state in attempt:        # service.cancel(attempt.attempt_id) while IDLE
        ...
"""
from src.pm_execution.domain.ledger import LedgerProtocol
from src.pm_execution.domain.models import ExecutionReport, Signer
from src.pm_execution.engine.orchestrator import TradeAttempt, TradeOrchestrator
from src.pm_lmsr.domain.impact import plan_chunks
from src.pm_lmsr.domain.models import ChunkPlan, TradeRequest, TradeSimulation
from src.pm_lmsr.domain.solver import simulate


class TradeService:
    def __init__(
        self, ledger: LedgerProtocol, orchestrator: TradeOrchestrator | None = None
    ) -> None:
        self._ledger = ledger
        self._orchestrator = orchestrator or TradeOrchestrator(ledger)

    async def preview(self, market_id: int, request: TradeRequest) -> TradeSimulation:
        pool = await self._ledger.read_pool_state(market_id)
        return simulate(pool, request)

    async def prepare(self, market_id: int, request: TradeRequest) -> ChunkPlan:
        pool = await self._ledger.read_pool_state(market_id)
        return plan_chunks(pool, request)

    def execute(self, plan: ChunkPlan, signer: Signer) -> TradeAttempt:
        return self._orchestrator.execute(plan, signer)

    async def run(self, plan: ChunkPlan, signer: Signer) -> ExecutionReport:
        return await self._orchestrator.run(plan, signer)

    def cancel(self, attempt_id: str) -> None:
        self._orchestrator.cancel(attempt_id)
