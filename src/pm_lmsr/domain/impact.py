"""Impact guard — splits buys larger than the ledger's per-transaction cap.

The ledger rejects any buy whose input exceeds ``max_impact_amount``. Orders
above the cap are split into chunks of ``max_impact_amount * margin_bps / 10000``
(the margin keeps each chunk clear of the cap once the price has moved), with
the final chunk carrying the remainder. Sells are never split: the cap is
denominated in USDC and sell inputs are shares.
"""
import logging

from config.settings import settings
from src.pm_common.enums import MarketStatus
from src.pm_common.errors import InvalidPlanError, MarketNotActiveError, NoOutputError
from src.pm_common.units import apply_bps
from src.pm_lmsr.domain.models import ChunkPlan, PoolState, TradeRequest, TradeSimulation
from src.pm_lmsr.domain.solver import simulate

logger = logging.getLogger(__name__)


def exceeds_impact_cap(pool: PoolState, request: TradeRequest) -> bool:
    return request.is_buy and pool.max_impact_amount > 0 and request.amount > pool.max_impact_amount


def chunk_amounts(total: int, chunk_size: int) -> tuple[int, ...]:
    """ceil(total / chunk_size) chunks; all full-size except the last."""
    if chunk_size <= 0:
        raise InvalidPlanError(f"chunk size must be positive, got {chunk_size}")
    full, remainder = divmod(total, chunk_size)
    return (chunk_size,) * full + ((remainder,) if remainder else ())


def plan_chunks(
    pool: PoolState, request: TradeRequest, margin_bps: int | None = None
) -> ChunkPlan:
    """Build the execution plan for ``request``.

    Each chunk is simulated against the pool left by the previous chunk's
    simulation, so later chunks' minimum outputs include earlier impact.
    """
    if not pool.is_active:
        raise MarketNotActiveError(pool.market_id, MarketStatus(pool.status).value)
    margin = settings.CHUNK_MARGIN_BPS if margin_bps is None else margin_bps

    if exceeds_impact_cap(pool, request):
        chunk_size = apply_bps(pool.max_impact_amount, margin)
        if chunk_size <= 0:
            raise InvalidPlanError(
                f"margin {margin} bps leaves no room under cap {pool.max_impact_amount}"
            )
        chunks = chunk_amounts(request.amount, chunk_size)
    else:
        chunk_size = request.amount
        chunks = (request.amount,)

    simulations: list[TradeSimulation] = []
    state = pool
    for index, amount in enumerate(chunks):
        sim = simulate(state, request.with_amount(amount))
        if sim.is_empty and len(chunks) > 1:
            raise NoOutputError(f"chunk {index} of {len(chunks)} ({amount}) is too small")
        simulations.append(sim)
        state = sim.resulting_pool

    if len(chunks) > 1:
        logger.info(
            "Split order for market %s: %d chunks of %d (total %d, cap %d)",
            pool.market_id,
            len(chunks),
            chunk_size,
            request.amount,
            pool.max_impact_amount,
        )
    return ChunkPlan(
        pool_state=pool,
        request=request,
        chunks=chunks,
        chunk_size=chunk_size,
        simulations=tuple(simulations),
    )
