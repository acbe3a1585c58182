"""Tests for pm_lmsr.application.schemas."""

import pytest
from pydantic import ValidationError

from src.pm_common.enums import MarketStatus, OutcomeSide, TradeDirection
from src.pm_common.errors import InvalidTradeRequestError
from src.pm_common.fixed_point import SCALE
from src.pm_common.units import usdc_to_display
from src.pm_lmsr.application.schemas import (
    DepthResponse,
    PlanResponse,
    PoolStateIn,
    SimulationResponse,
    TradeRequestIn,
)
from src.pm_lmsr.domain.cost import price_depth
from src.pm_lmsr.domain.impact import plan_chunks
from src.pm_lmsr.domain.solver import simulate


def _pool_in(**overrides) -> PoolStateIn:
    fields = {"market_id": 3, "q_yes": "0", "q_no": "0", "b": str(1000 * SCALE)}
    fields.update(overrides)
    return PoolStateIn(**fields)


class TestRequests:
    def test_pool_accepts_digit_strings(self) -> None:
        pool = _pool_in(status="RESOLVED").to_domain()
        assert pool.b == 1000 * SCALE
        assert pool.status == MarketStatus.RESOLVED

    def test_pool_rejects_zero_b(self) -> None:
        with pytest.raises(ValidationError):
            _pool_in(b=0)

    def test_trade_default_slippage(self) -> None:
        request = TradeRequestIn(side="NO", direction="BUY", amount=5).to_domain()
        assert request.side == OutcomeSide.NO
        assert request.direction == TradeDirection.BUY
        assert request.slippage_bps == 50

    def test_trade_explicit_slippage(self) -> None:
        request = TradeRequestIn(side="YES", direction="SELL", amount=5, slippage_bps=0).to_domain()
        assert request.slippage_bps == 0

    def test_trade_rejects_unknown_side(self) -> None:
        with pytest.raises(ValidationError):
            TradeRequestIn(side="MAYBE", direction="BUY", amount=5)

    def test_buy_amount_in_usdc_units(self) -> None:
        request = TradeRequestIn(side="YES", direction="BUY", amount_units="130.5").to_domain()
        assert request.amount == 130_500_000

    def test_sell_amount_in_share_units(self) -> None:
        request = TradeRequestIn(side="YES", direction="SELL", amount_units="2.25").to_domain()
        assert request.amount == 2_250_000_000_000_000_000

    def test_amount_units_too_precise(self) -> None:
        with pytest.raises(ValidationError):
            TradeRequestIn(side="YES", direction="BUY", amount_units="1.0000001")

    def test_amount_units_negative(self) -> None:
        with pytest.raises(ValidationError):
            TradeRequestIn(side="YES", direction="BUY", amount_units="-1")

    def test_amount_required(self) -> None:
        with pytest.raises(InvalidTradeRequestError):
            TradeRequestIn(side="YES", direction="BUY").to_domain()

    def test_amount_and_units_conflict(self) -> None:
        trade = TradeRequestIn(side="YES", direction="BUY", amount=1, amount_units="1")
        with pytest.raises(InvalidTradeRequestError):
            trade.to_domain()


class TestResponses:
    def test_simulation_amounts_are_strings(self) -> None:
        pool = _pool_in().to_domain()
        request = TradeRequestIn(side="YES", direction="BUY", amount=100_000_000).to_domain()
        resp = SimulationResponse.from_domain(simulate(pool, request))
        assert resp.current_price == str(SCALE // 2)
        assert int(resp.output_amount) > 190 * SCALE
        assert resp.fees.total == "0"
        assert resp.resulting_pool.q_yes == resp.output_amount
        assert not resp.is_empty
        assert resp.max_payout_display == usdc_to_display(int(resp.max_payout))
        assert resp.max_payout_display.startswith("$190.")

    def test_plan_summary_for_split(self) -> None:
        pool = _pool_in(max_impact_amount=50_000_000).to_domain()
        request = TradeRequestIn(side="YES", direction="BUY", amount=130_000_000).to_domain()
        resp = PlanResponse.from_domain(plan_chunks(pool, request))
        assert resp.chunks == ["49000000", "49000000", "32000000"]
        assert resp.summary == "Split 130 USDC into 3 transactions of up to 49 USDC"
        assert len(resp.simulations) == 3

    def test_plan_summary_single(self) -> None:
        pool = _pool_in().to_domain()
        request = TradeRequestIn(side="YES", direction="BUY", amount=1_000_000).to_domain()
        resp = PlanResponse.from_domain(plan_chunks(pool, request))
        assert resp.summary == "Single transaction"
        assert not resp.requires_confirmation

    def test_depth(self) -> None:
        pool = _pool_in().to_domain()
        resp = DepthResponse.from_domain(pool.market_id, price_depth(pool, steps=2))
        assert resp.market_id == 3
        assert [p.delta_shares for p in resp.points][2] == "0"
        assert len(resp.points) == 5
