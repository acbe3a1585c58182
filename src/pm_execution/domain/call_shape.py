"""Per-deployment buy/sell argument shapes.

One deployment takes an expiry deadline as the last argument of buy/sell,
another omits it. The orchestrator asks the configured shape for the argument
tuple and never inspects which one it holds.
"""
from typing import Any, Protocol

from config.settings import settings
from src.pm_common.enums import CallShape


class TradeCallShape(Protocol):
    name: CallShape

    def trade_args(
        self, market_id: int, is_yes: bool, amount: int, min_output: int, deadline: int
    ) -> tuple[Any, ...]: ...


class DeadlineCallShape:
    """buy/sell(marketId, isYes, amount, minOut, deadline)."""

    name = CallShape.DEADLINE

    def trade_args(
        self, market_id: int, is_yes: bool, amount: int, min_output: int, deadline: int
    ) -> tuple[Any, ...]:
        return (market_id, is_yes, amount, min_output, deadline)


class LegacyCallShape:
    """buy/sell(marketId, isYes, amount, minOut)."""

    name = CallShape.LEGACY

    def trade_args(
        self, market_id: int, is_yes: bool, amount: int, min_output: int, deadline: int
    ) -> tuple[Any, ...]:
        return (market_id, is_yes, amount, min_output)


_SHAPES: dict[CallShape, type[DeadlineCallShape] | type[LegacyCallShape]] = {
    CallShape.DEADLINE: DeadlineCallShape,
    CallShape.LEGACY: LegacyCallShape,
}


def get_call_shape(name: str | CallShape) -> TradeCallShape:
    return _SHAPES[CallShape(name)]()


def call_shape_from_settings() -> TradeCallShape:
    return get_call_shape(settings.TRADE_CALL_SHAPE)
