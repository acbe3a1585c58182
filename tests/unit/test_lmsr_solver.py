"""Tests for pm_lmsr.domain.solver — buy sizing, sell payout, slippage floor."""

import math

import pytest

from src.pm_common.enums import OutcomeSide, TradeDirection
from src.pm_common.errors import InsufficientPoolLiquidityError, SolverDidNotConvergeError
from src.pm_common.fixed_point import SCALE
from src.pm_lmsr.domain.cost import cost
from src.pm_lmsr.domain.models import PoolState, TradeRequest
from src.pm_lmsr.domain.solver import (
    find_shares_out,
    min_output,
    shares_upper_bound,
    simulate,
    simulate_buy,
    simulate_sell,
)

B = 1000 * SCALE


def _pool(**overrides) -> PoolState:
    fields = {"market_id": 1, "q_yes": 0, "q_no": 0, "b": B, "vault_balance": 0}
    fields.update(overrides)
    return PoolState(**fields)


def _buy(amount: int, side: OutcomeSide = OutcomeSide.YES, slippage_bps: int = 50) -> TradeRequest:
    return TradeRequest(side, TradeDirection.BUY, amount, slippage_bps)


def _sell(amount: int, side: OutcomeSide = OutcomeSide.YES, slippage_bps: int = 50) -> TradeRequest:
    return TradeRequest(side, TradeDirection.SELL, amount, slippage_bps)


class TestFindSharesOut:
    def test_matches_closed_form_on_fresh_pool(self) -> None:
        # x = b * ln(2 * e^(net/b) - 1) for q_yes = q_no = 0
        shares = find_shares_out(0, 0, 100 * SCALE, B)
        expected = 1000 * math.log(2 * math.exp(0.1) - 1)
        assert abs(shares / SCALE - expected) < 1e-6

    def test_cost_never_exceeds_net(self) -> None:
        net = 100 * SCALE
        shares = find_shares_out(0, 0, net, B)
        paid = cost(shares, 0, B) - cost(0, 0, B)
        assert paid <= net
        assert (net - paid) * 10**11 <= net

    def test_zero_net(self) -> None:
        assert find_shares_out(0, 0, 0, B) == 0

    def test_within_upper_bound(self) -> None:
        net = 100 * SCALE
        assert find_shares_out(30 * SCALE, 5 * SCALE, net, B) < shares_upper_bound(
            30 * SCALE, 5 * SCALE, net, B
        )

    def test_large_order_on_shallow_pool(self) -> None:
        # exp(net / b) would be exp(1e6); bisection stays in range.
        net = 1_000_000 * SCALE
        shares = find_shares_out(0, 0, net, SCALE)
        assert net < shares <= net + SCALE

    def test_budget_exhausted(self) -> None:
        with pytest.raises(SolverDidNotConvergeError):
            find_shares_out(0, 0, 100 * SCALE, B, max_iterations=3)


class TestMinOutput:
    def test_slippage(self) -> None:
        assert min_output(1_000_000, 50) == 995_000

    def test_zero_output(self) -> None:
        assert min_output(0, 50) == 0

    def test_floored_at_one(self) -> None:
        assert min_output(1, 10_000) == 1


class TestSimulateBuy:
    def test_fresh_pool_100_usdc(self) -> None:
        sim = simulate_buy(_pool(), _buy(100_000_000))
        assert 190 * SCALE < sim.output_amount < 192 * SCALE
        assert sim.current_price == SCALE // 2
        assert abs(sim.projected_price / SCALE - 0.5476) < 0.001
        assert sim.net_input == 100_000_000
        assert sim.fee_breakdown.total == 0

    def test_min_output_below_output(self) -> None:
        sim = simulate_buy(_pool(), _buy(100_000_000, slippage_bps=50))
        assert sim.min_guaranteed_output == sim.output_amount - sim.output_amount * 50 // 10_000
        assert sim.min_guaranteed_output <= sim.output_amount

    def test_resulting_pool(self) -> None:
        sim = simulate_buy(_pool(vault_balance=5_000_000), _buy(100_000_000))
        assert sim.resulting_pool.q_yes == sim.output_amount
        assert sim.resulting_pool.q_no == 0
        assert sim.resulting_pool.vault_balance == 105_000_000

    def test_fees_reduce_net(self) -> None:
        pool = _pool(fee_bps_treasury=100, fee_bps_vault=50, fee_bps_lp=50)
        sim = simulate_buy(pool, _buy(100_000_000))
        assert sim.fee_breakdown.total == 2_000_000
        assert sim.net_input == 98_000_000
        assert sim.output_amount < simulate_buy(_pool(), _buy(100_000_000)).output_amount

    def test_vault_fee_lands_in_resulting_pool(self) -> None:
        pool = _pool(
            vault_balance=5_000_000, fee_bps_treasury=100, fee_bps_vault=50, fee_bps_lp=50
        )
        sim = simulate_buy(pool, _buy(100_000_000))
        assert sim.fee_breakdown.vault == 500_000
        # treasury and lp fees leave the pool
        assert sim.resulting_pool.vault_balance == 5_000_000 + 98_000_000 + 500_000

    def test_sides_are_symmetric(self) -> None:
        yes = simulate_buy(_pool(), _buy(25_000_000, OutcomeSide.YES))
        no = simulate_buy(_pool(), _buy(25_000_000, OutcomeSide.NO))
        assert yes.output_amount == no.output_amount
        assert no.resulting_pool.q_no == no.output_amount

    def test_zero_amount_is_empty(self) -> None:
        sim = simulate_buy(_pool(), _buy(0))
        assert sim.is_empty
        assert sim.min_guaranteed_output == 0
        assert sim.projected_price == sim.current_price
        assert sim.resulting_pool == _pool()

    def test_all_fee_is_empty(self) -> None:
        sim = simulate_buy(_pool(fee_bps_treasury=10_000), _buy(1_000_000))
        assert sim.is_empty
        assert sim.fee_breakdown.treasury == 1_000_000

    def test_derived_figures(self) -> None:
        sim = simulate_buy(_pool(), _buy(100_000_000))
        # ~100 USDC for ~190.9 shares
        assert abs(sim.average_price / SCALE - 100 / 190.9028) < 1e-4
        assert sim.max_payout == sim.output_amount // 10**12
        assert sim.max_profit == sim.max_payout - 100_000_000


class TestSimulateSell:
    def test_more_than_outstanding(self) -> None:
        pool = _pool(q_yes=10 * SCALE, vault_balance=10_000_000)
        with pytest.raises(InsufficientPoolLiquidityError):
            simulate_sell(pool, _sell(11 * SCALE))

    def test_sells_carry_no_fee(self) -> None:
        pool = _pool(
            q_yes=100 * SCALE,
            vault_balance=100_000_000,
            fee_bps_treasury=100,
            fee_bps_vault=100,
            fee_bps_lp=100,
        )
        sim = simulate_sell(pool, _sell(10 * SCALE))
        assert sim.fee_breakdown.total == 0
        assert sim.output_amount > 0
        assert sim.net_input == 10 * SCALE

    def test_resulting_pool(self) -> None:
        pool = _pool(q_yes=100 * SCALE, vault_balance=100_000_000)
        sim = simulate_sell(pool, _sell(40 * SCALE))
        assert sim.resulting_pool.q_yes == 60 * SCALE
        assert sim.resulting_pool.vault_balance == 100_000_000 - sim.output_amount
        assert sim.projected_price < sim.current_price
        assert sim.max_profit == 0

    def test_zero_amount_is_empty(self) -> None:
        sim = simulate_sell(_pool(q_yes=SCALE), _sell(0))
        assert sim.is_empty

    def test_round_trip_restores_quantities(self) -> None:
        pool = _pool()
        bought = simulate_buy(pool, _buy(100_000_000))
        sold = simulate_sell(bought.resulting_pool, _sell(bought.output_amount))
        assert (sold.resulting_pool.q_yes, sold.resulting_pool.q_no) == (0, 0)
        assert 99_999_999 <= sold.output_amount <= 100_000_000


class TestSimulateDispatch:
    def test_buy(self) -> None:
        assert simulate(_pool(), _buy(1_000_000)) == simulate_buy(_pool(), _buy(1_000_000))

    def test_sell(self) -> None:
        pool = _pool(q_no=5 * SCALE, vault_balance=5_000_000)
        request = _sell(SCALE, OutcomeSide.NO)
        assert simulate(pool, request) == simulate_sell(pool, request)
