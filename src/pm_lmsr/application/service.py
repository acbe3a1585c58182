"""LmsrPreviewService — thin composition layer over the pure LMSR domain.

Stateless: every call works on the pool snapshot supplied by the caller.
"""
from src.pm_lmsr.application.schemas import (
    DepthRequest,
    DepthResponse,
    PlanRequest,
    PlanResponse,
    SimulateRequest,
    SimulationResponse,
)
from src.pm_lmsr.domain.cost import price_depth
from src.pm_lmsr.domain.impact import plan_chunks
from src.pm_lmsr.domain.solver import simulate


class LmsrPreviewService:
    def simulate(self, body: SimulateRequest) -> SimulationResponse:
        sim = simulate(body.pool.to_domain(), body.trade.to_domain())
        return SimulationResponse.from_domain(sim)

    def plan(self, body: PlanRequest) -> PlanResponse:
        plan = plan_chunks(body.pool.to_domain(), body.trade.to_domain(), body.margin_bps)
        return PlanResponse.from_domain(plan)

    def depth(self, body: DepthRequest) -> DepthResponse:
        pool = body.pool.to_domain()
        return DepthResponse.from_domain(pool.market_id, price_depth(pool, body.steps, body.span))
