"""Pydantic schemas for the LMSR preview API.

Scaled integers exceed JSON's safe integer range (2**53), so every 6- or
18-decimal amount is returned as a decimal string of the raw scaled int.
Requests accept either ints or digit strings; a trade amount may instead be
given as a human decimal in ``amount_units``.
"""
from typing import Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from src.pm_common.enums import MarketStatus, OutcomeSide, TradeDirection
from src.pm_common.errors import InvalidTradeRequestError
from src.pm_common.units import (
    SHARE_DECIMALS,
    USDC_DECIMALS,
    format_units,
    parse_units,
    usdc_to_display,
)
from src.pm_lmsr.domain.cost import DEFAULT_DEPTH_STEPS, DepthPoint
from src.pm_lmsr.domain.models import ChunkPlan, PoolState, TradeRequest, TradeSimulation

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class PoolStateIn(BaseModel):
    market_id: int
    q_yes: int = Field(ge=0)
    q_no: int = Field(ge=0)
    b: int = Field(gt=0)
    vault_balance: int = 0
    fee_bps_treasury: int = Field(0, ge=0, le=10_000)
    fee_bps_vault: int = Field(0, ge=0, le=10_000)
    fee_bps_lp: int = Field(0, ge=0, le=10_000)
    status: Literal["ACTIVE", "RESOLVED", "CANCELLED"] = "ACTIVE"
    max_impact_amount: int = Field(0, ge=0)

    def to_domain(self) -> PoolState:
        return PoolState(
            market_id=self.market_id,
            q_yes=self.q_yes,
            q_no=self.q_no,
            b=self.b,
            vault_balance=self.vault_balance,
            fee_bps_treasury=self.fee_bps_treasury,
            fee_bps_vault=self.fee_bps_vault,
            fee_bps_lp=self.fee_bps_lp,
            status=MarketStatus(self.status),
            max_impact_amount=self.max_impact_amount,
        )


class TradeRequestIn(BaseModel):
    side: Literal["YES", "NO"]
    direction: Literal["BUY", "SELL"]
    amount: int | None = Field(None, ge=0)  # raw scaled int
    amount_units: str | None = None  # "130.5" USDC for buys, "10" shares for sells
    slippage_bps: int | None = Field(None, ge=0, le=10_000)

    @field_validator("amount_units")
    @classmethod
    def decimal_amount(cls, v: str | None, info: ValidationInfo) -> str | None:
        if v is None:
            return v
        decimals = SHARE_DECIMALS if info.data.get("direction") == "SELL" else USDC_DECIMALS
        if parse_units(v, decimals) < 0:
            raise ValueError("amount_units must be non-negative")
        return v

    def scaled_amount(self) -> int:
        if (self.amount is None) == (self.amount_units is None):
            raise InvalidTradeRequestError("exactly one of amount or amount_units is required")
        if self.amount_units is None:
            return self.amount
        decimals = USDC_DECIMALS if self.direction == "BUY" else SHARE_DECIMALS
        return parse_units(self.amount_units, decimals)

    def to_domain(self) -> TradeRequest:
        side = OutcomeSide(self.side)
        direction = TradeDirection(self.direction)
        amount = self.scaled_amount()
        if self.slippage_bps is None:
            return TradeRequest(side, direction, amount)
        return TradeRequest(side, direction, amount, self.slippage_bps)


class SimulateRequest(BaseModel):
    pool: PoolStateIn
    trade: TradeRequestIn


class PlanRequest(BaseModel):
    pool: PoolStateIn
    trade: TradeRequestIn
    margin_bps: int | None = Field(None, gt=0, le=10_000)


class DepthRequest(BaseModel):
    pool: PoolStateIn
    steps: int = Field(DEFAULT_DEPTH_STEPS, ge=1, le=500)
    span: int | None = Field(None, gt=0)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class FeeBreakdownOut(BaseModel):
    treasury: str
    vault: str
    lp: str
    total: str


class PoolQuantitiesOut(BaseModel):
    q_yes: str
    q_no: str
    vault_balance: str


class SimulationResponse(BaseModel):
    side: str
    direction: str
    input_amount: str
    output_amount: str
    net_input: str
    fees: FeeBreakdownOut
    current_price: str
    projected_price: str
    min_guaranteed_output: str
    average_price: str
    max_payout: str
    max_payout_display: str  # "$191.00"
    max_profit: str
    is_empty: bool
    resulting_pool: PoolQuantitiesOut

    @classmethod
    def from_domain(cls, sim: TradeSimulation) -> "SimulationResponse":
        fees = sim.fee_breakdown
        pool = sim.resulting_pool
        return cls(
            side=sim.request.side.value,
            direction=sim.request.direction.value,
            input_amount=str(sim.request.amount),
            output_amount=str(sim.output_amount),
            net_input=str(sim.net_input),
            fees=FeeBreakdownOut(
                treasury=str(fees.treasury),
                vault=str(fees.vault),
                lp=str(fees.lp),
                total=str(fees.total),
            ),
            current_price=str(sim.current_price),
            projected_price=str(sim.projected_price),
            min_guaranteed_output=str(sim.min_guaranteed_output),
            average_price=str(sim.average_price),
            max_payout=str(sim.max_payout),
            max_payout_display=usdc_to_display(sim.max_payout),
            max_profit=str(sim.max_profit),
            is_empty=sim.is_empty,
            resulting_pool=PoolQuantitiesOut(
                q_yes=str(pool.q_yes),
                q_no=str(pool.q_no),
                vault_balance=str(pool.vault_balance),
            ),
        )


class PlanResponse(BaseModel):
    chunk_count: int
    chunk_size: str
    total_amount: str
    chunks: list[str]
    requires_confirmation: bool
    estimated_output: str
    summary: str  # consent prompt text for split orders
    simulations: list[SimulationResponse]

    @classmethod
    def from_domain(cls, plan: ChunkPlan) -> "PlanResponse":
        if plan.requires_confirmation:
            summary = (
                f"Split {format_units(plan.total_amount, USDC_DECIMALS)} USDC into "
                f"{plan.chunk_count} transactions of up to "
                f"{format_units(plan.chunk_size, USDC_DECIMALS)} USDC"
            )
        else:
            summary = "Single transaction"
        return cls(
            chunk_count=plan.chunk_count,
            chunk_size=str(plan.chunk_size),
            total_amount=str(plan.total_amount),
            chunks=[str(c) for c in plan.chunks],
            requires_confirmation=plan.requires_confirmation,
            estimated_output=str(plan.estimated_output),
            summary=summary,
            simulations=[SimulationResponse.from_domain(s) for s in plan.simulations],
        )


class DepthPointOut(BaseModel):
    delta_shares: str
    price_yes: str


class DepthResponse(BaseModel):
    market_id: int
    points: list[DepthPointOut]

    @classmethod
    def from_domain(cls, market_id: int, points: list[DepthPoint]) -> "DepthResponse":
        return cls(
            market_id=market_id,
            points=[
                DepthPointOut(delta_shares=str(p.delta_shares), price_yes=str(p.price_yes))
                for p in points
            ],
        )
