"""Tests for pm_lmsr.domain.models — validation and derived fields."""

import pytest

from src.pm_common.enums import MarketStatus, OutcomeSide, TradeDirection
from src.pm_common.errors import InvalidPoolStateError, InvalidTradeRequestError
from src.pm_common.fixed_point import SCALE
from src.pm_lmsr.domain.models import FeeBreakdown, PoolState, TradeRequest

B = 1000 * SCALE


class TestPoolState:
    def test_defaults(self) -> None:
        pool = PoolState(market_id=1, q_yes=0, q_no=0, b=B)
        assert pool.is_active
        assert pool.total_fee_bps == 0
        assert pool.max_impact_amount == 0

    def test_negative_quantity(self) -> None:
        with pytest.raises(InvalidPoolStateError):
            PoolState(market_id=1, q_yes=-1, q_no=0, b=B)

    @pytest.mark.parametrize("b", [0, -SCALE])
    def test_non_positive_b(self, b: int) -> None:
        with pytest.raises(InvalidPoolStateError):
            PoolState(market_id=1, q_yes=0, q_no=0, b=b)

    def test_fees_above_total(self) -> None:
        with pytest.raises(InvalidPoolStateError):
            PoolState(
                market_id=1, q_yes=0, q_no=0, b=B, fee_bps_treasury=6_000, fee_bps_lp=5_000
            )

    def test_negative_fee(self) -> None:
        with pytest.raises(InvalidPoolStateError):
            PoolState(market_id=1, q_yes=0, q_no=0, b=B, fee_bps_vault=-1)

    def test_negative_cap(self) -> None:
        with pytest.raises(InvalidPoolStateError):
            PoolState(market_id=1, q_yes=0, q_no=0, b=B, max_impact_amount=-1)

    def test_inactive(self) -> None:
        pool = PoolState(market_id=1, q_yes=0, q_no=0, b=B, status=MarketStatus.CANCELLED)
        assert not pool.is_active

    def test_side_delta(self) -> None:
        pool = PoolState(market_id=1, q_yes=5, q_no=7, b=B, vault_balance=100)
        assert pool.quantity(OutcomeSide.NO) == 7
        moved = pool.with_side_delta(OutcomeSide.NO, 3, vault_delta=-40)
        assert (moved.q_yes, moved.q_no, moved.vault_balance) == (5, 10, 60)
        assert pool.q_no == 7

    def test_side_delta_cannot_go_negative(self) -> None:
        pool = PoolState(market_id=1, q_yes=5, q_no=0, b=B)
        with pytest.raises(InvalidPoolStateError):
            pool.with_side_delta(OutcomeSide.YES, -6)


class TestTradeRequest:
    def test_default_slippage_from_settings(self) -> None:
        request = TradeRequest(OutcomeSide.YES, TradeDirection.BUY, 1_000_000)
        assert request.slippage_bps == 50
        assert request.is_buy and request.is_yes

    def test_negative_amount(self) -> None:
        with pytest.raises(InvalidTradeRequestError):
            TradeRequest(OutcomeSide.YES, TradeDirection.BUY, -1)

    @pytest.mark.parametrize("slippage", [-1, 10_001])
    def test_slippage_out_of_range(self, slippage: int) -> None:
        with pytest.raises(InvalidTradeRequestError):
            TradeRequest(OutcomeSide.NO, TradeDirection.SELL, 1, slippage)

    def test_with_amount(self) -> None:
        request = TradeRequest(OutcomeSide.NO, TradeDirection.SELL, 10, 75)
        smaller = request.with_amount(4)
        assert smaller.amount == 4
        assert smaller.slippage_bps == 75
        assert not smaller.is_buy and not smaller.is_yes


class TestFeeBreakdown:
    def test_total(self) -> None:
        assert FeeBreakdown(treasury=1, vault=2, lp=3).total == 6
