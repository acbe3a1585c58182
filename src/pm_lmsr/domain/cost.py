"""LMSR cost function and spot prices.

    C(q_yes, q_no) = b * ln(exp(q_yes / b) + exp(q_no / b))
    p_yes          = exp(q_yes / b) / (exp(q_yes / b) + exp(q_no / b))

Both are evaluated with the larger quantity m factored out, so every exp
argument is <= 0 and every ln argument lies in [1, 2]:

    C = m + b * ln(exp((q_yes - m) / b) + exp((q_no - m) / b))
"""
from dataclasses import dataclass

from src.pm_common.enums import OutcomeSide
from src.pm_common.errors import DomainError
from src.pm_common.fixed_point import SCALE, div, exp, ln, mul
from src.pm_lmsr.domain.models import PoolState

DEFAULT_DEPTH_STEPS = 40


def _normalised_exps(q_yes: int, q_no: int, b: int) -> tuple[int, int, int]:
    if b <= 0:
        raise DomainError(f"liquidity parameter must be positive, got {b}")
    m = max(q_yes, q_no)
    return m, exp(div(q_yes - m, b)), exp(div(q_no - m, b))


def cost(q_yes: int, q_no: int, b: int) -> int:
    """Total collateral the market maker holds against (q_yes, q_no), 18-dec."""
    m, e_yes, e_no = _normalised_exps(q_yes, q_no, b)
    return m + mul(b, ln(e_yes + e_no))


def spot_price_yes(q_yes: int, q_no: int, b: int) -> int:
    """Marginal YES price, clamped to [1, SCALE - 1] so it stays inside (0, 1)."""
    _, e_yes, e_no = _normalised_exps(q_yes, q_no, b)
    price = e_yes * SCALE // (e_yes + e_no)
    return min(max(price, 1), SCALE - 1)


def spot_price_no(q_yes: int, q_no: int, b: int) -> int:
    """Complement of the YES price; the two always sum to exactly SCALE."""
    return SCALE - spot_price_yes(q_yes, q_no, b)


def pool_cost(pool: PoolState) -> int:
    return cost(pool.q_yes, pool.q_no, pool.b)


def side_price(pool: PoolState, side: OutcomeSide) -> int:
    if side == OutcomeSide.YES:
        return spot_price_yes(pool.q_yes, pool.q_no, pool.b)
    return spot_price_no(pool.q_yes, pool.q_no, pool.b)


@dataclass(frozen=True)
class DepthPoint:
    delta_shares: int  # negative = NO bought, positive = YES bought (18-dec)
    price_yes: int


def price_depth(
    pool: PoolState, steps: int = DEFAULT_DEPTH_STEPS, span: int | None = None
) -> list[DepthPoint]:
    """YES price as either side is bought up to ``span`` shares (default b / 2).

    Returns 2 * steps + 1 points ordered from the deepest NO buy, through the
    current price, to the deepest YES buy.
    """
    if steps <= 0:
        raise DomainError(f"steps must be positive, got {steps}")
    span = pool.b // 2 if span is None else span
    step = span // steps

    points: list[DepthPoint] = []
    for i in range(steps, 0, -1):
        delta = step * i
        points.append(DepthPoint(-delta, spot_price_yes(pool.q_yes, pool.q_no + delta, pool.b)))
    points.append(DepthPoint(0, spot_price_yes(pool.q_yes, pool.q_no, pool.b)))
    for i in range(1, steps + 1):
        delta = step * i
        points.append(DepthPoint(delta, spot_price_yes(pool.q_yes + delta, pool.q_no, pool.b)))
    return points
