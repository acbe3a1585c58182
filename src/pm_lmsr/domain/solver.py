"""Trade solver — sizes a buy by inverting the cost function, prices a sell directly.

Buy: find the largest x >= 0 with C(q_side + x, q_other) - C(q) <= net_input.
Solved by bounded bisection instead of the closed form
x = b * ln(exp(net / b) * (e_side + e_other) - e_other) - q_side, whose
exp(net / b) leaves the kernel's domain for large orders on shallow pools.
Every step of the bisection stays inside cost(), which only ever evaluates
exp of non-positive arguments.

Sell: closed form, payout = C(q) - C(q_side - x). No fee on sells.
"""
from config.settings import settings
from src.pm_common.enums import OutcomeSide, TradeDirection
from src.pm_common.errors import InsufficientPoolLiquidityError, SolverDidNotConvergeError
from src.pm_common.fixed_point import LN2, SCALE, mul, mul_div
from src.pm_common.units import apply_bps, e18_to_usdc, usdc_to_e18
from src.pm_lmsr.domain.cost import cost, pool_cost, side_price, spot_price_yes
from src.pm_lmsr.domain.fee import NO_FEES, net_of_fees
from src.pm_lmsr.domain.models import FeeBreakdown, PoolState, TradeRequest, TradeSimulation

# Stop once the bracket is within 1e-12 of the answer (relative) or 1 wei.
RELATIVE_TOLERANCE_DENOM = 10**12


def _other(side: OutcomeSide) -> OutcomeSide:
    return OutcomeSide.NO if side == OutcomeSide.YES else OutcomeSide.YES


def shares_upper_bound(q_side: int, q_other: int, net_e18: int, b: int) -> int:
    """Smallest of two provable upper bounds on the shares a net input can buy.

    1. Price of the bought side only rises, so x <= net / p_side.
    2. C(q) <= m + b*ln2 and C(q_side + x, q_other) >= q_side + x,
       so x <= net + (m - q_side) + b*ln2.
    """
    p_side = spot_price_yes(q_side, q_other, b)  # C is symmetric: "yes" slot = bought side
    by_price = mul_div(net_e18, SCALE, p_side)
    by_cost = net_e18 + (max(q_side, q_other) - q_side) + mul(b, LN2)
    return min(by_price, by_cost) + 1


def find_shares_out(
    q_side: int,
    q_other: int,
    net_e18: int,
    b: int,
    max_iterations: int | None = None,
) -> int:
    """Largest share amount whose cost does not exceed ``net_e18`` (18-dec).

    Rounds down: the engine never promises more shares than the input buys.
    Raises SolverDidNotConvergeError if the bracket is still wide after
    ``max_iterations`` halvings.
    """
    if net_e18 <= 0:
        return 0
    budget = settings.SOLVER_MAX_ITERATIONS if max_iterations is None else max_iterations
    base = cost(q_side, q_other, b)

    lo = 0
    hi = shares_upper_bound(q_side, q_other, net_e18, b)
    if cost(q_side + hi, q_other, b) - base <= net_e18:
        return hi

    iterations = 0
    while hi - lo > 1 and (hi - lo) * RELATIVE_TOLERANCE_DENOM > lo:
        if iterations >= budget:
            raise SolverDidNotConvergeError(budget)
        mid = (lo + hi) // 2
        if cost(q_side + mid, q_other, b) - base <= net_e18:
            lo = mid
        else:
            hi = mid
        iterations += 1
    return lo


def min_output(output: int, slippage_bps: int) -> int:
    """Slippage-adjusted floor; never 0 for a non-empty trade (ledger rejects 0)."""
    if output <= 0:
        return 0
    return max(output - apply_bps(output, slippage_bps), 1)


def _empty(
    pool: PoolState, request: TradeRequest, net_input: int, fees: FeeBreakdown
) -> TradeSimulation:
    price = side_price(pool, request.side)
    return TradeSimulation(
        request=request,
        output_amount=0,
        net_input=max(net_input, 0),
        fee_breakdown=fees,
        current_price=price,
        projected_price=price,
        min_guaranteed_output=0,
        resulting_pool=pool,
    )


def simulate_buy(
    pool: PoolState, request: TradeRequest, max_iterations: int | None = None
) -> TradeSimulation:
    net, fees = net_of_fees(request.amount, pool)
    if net <= 0:
        return _empty(pool, request, net, fees)

    side = request.side
    shares = find_shares_out(
        pool.quantity(side), pool.quantity(_other(side)), usdc_to_e18(net), pool.b, max_iterations
    )
    if shares <= 0:
        return _empty(pool, request, net, fees)

    resulting = pool.with_side_delta(side, shares, vault_delta=net + fees.vault)
    return TradeSimulation(
        request=request,
        output_amount=shares,
        net_input=net,
        fee_breakdown=fees,
        current_price=side_price(pool, side),
        projected_price=side_price(resulting, side),
        min_guaranteed_output=min_output(shares, request.slippage_bps),
        resulting_pool=resulting,
    )


def simulate_sell(pool: PoolState, request: TradeRequest) -> TradeSimulation:
    side = request.side
    outstanding = pool.quantity(side)
    if request.amount > outstanding:
        raise InsufficientPoolLiquidityError(request.amount, outstanding)
    if request.amount == 0:
        return _empty(pool, request, 0, NO_FEES)

    after = pool.with_side_delta(side, -request.amount)
    payout_e18 = pool_cost(pool) - pool_cost(after)
    usdc_out = e18_to_usdc(payout_e18) if payout_e18 > 0 else 0
    if usdc_out == 0:
        return _empty(pool, request, request.amount, NO_FEES)

    resulting = pool.with_side_delta(side, -request.amount, vault_delta=-usdc_out)
    return TradeSimulation(
        request=request,
        output_amount=usdc_out,
        net_input=request.amount,
        fee_breakdown=NO_FEES,
        current_price=side_price(pool, side),
        projected_price=side_price(resulting, side),
        min_guaranteed_output=min_output(usdc_out, request.slippage_bps),
        resulting_pool=resulting,
    )


def simulate(
    pool: PoolState, request: TradeRequest, max_iterations: int | None = None
) -> TradeSimulation:
    """Preview ``request`` against ``pool``. Pure; numeric/solver errors propagate."""
    if request.direction == TradeDirection.BUY:
        return simulate_buy(pool, request, max_iterations)
    return simulate_sell(pool, request)
