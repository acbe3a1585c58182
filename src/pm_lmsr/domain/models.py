"""LMSR domain models — frozen dataclasses, no I/O.

Scales: q_yes / q_no / b / prices are 18-decimal ints; USDC amounts
(vault_balance, buy input, sell output, fees, max_impact_amount) are 6-decimal.
"""
from dataclasses import dataclass, field, replace

from config.settings import settings
from src.pm_common.enums import MarketStatus, OutcomeSide, TradeDirection
from src.pm_common.errors import InvalidPoolStateError, InvalidTradeRequestError
from src.pm_common.fixed_point import div
from src.pm_common.units import BPS_DENOMINATOR, e18_to_usdc, usdc_to_e18


@dataclass(frozen=True)
class PoolState:
    """Snapshot of one market's pool as last read from the ledger."""

    market_id: int
    q_yes: int
    q_no: int
    b: int  # liquidity parameter
    vault_balance: int = 0
    fee_bps_treasury: int = 0
    fee_bps_vault: int = 0
    fee_bps_lp: int = 0
    status: MarketStatus = MarketStatus.ACTIVE
    max_impact_amount: int = 0  # 0 = no per-transaction cap

    def __post_init__(self) -> None:
        if self.q_yes < 0 or self.q_no < 0:
            raise InvalidPoolStateError(
                "outstanding quantities must be non-negative "
                f"(q_yes={self.q_yes}, q_no={self.q_no})"
            )
        if self.b <= 0:
            raise InvalidPoolStateError(f"liquidity parameter must be positive, got {self.b}")
        fees = (self.fee_bps_treasury, self.fee_bps_vault, self.fee_bps_lp)
        if any(f < 0 for f in fees) or sum(fees) > BPS_DENOMINATOR:
            raise InvalidPoolStateError(f"fee bps {fees} must be non-negative and sum to <= 10000")
        if self.max_impact_amount < 0:
            raise InvalidPoolStateError("max_impact_amount must be non-negative")

    @property
    def total_fee_bps(self) -> int:
        return self.fee_bps_treasury + self.fee_bps_vault + self.fee_bps_lp

    @property
    def is_active(self) -> bool:
        return self.status == MarketStatus.ACTIVE

    def quantity(self, side: OutcomeSide) -> int:
        return self.q_yes if side == OutcomeSide.YES else self.q_no

    def with_quantities(
        self, q_yes: int, q_no: int, vault_balance: int | None = None
    ) -> "PoolState":
        """Rolled-forward copy after a simulated trade."""
        return replace(
            self,
            q_yes=q_yes,
            q_no=q_no,
            vault_balance=self.vault_balance if vault_balance is None else vault_balance,
        )

    def with_side_delta(self, side: OutcomeSide, delta: int, vault_delta: int = 0) -> "PoolState":
        vault = self.vault_balance + vault_delta
        if side == OutcomeSide.YES:
            return self.with_quantities(self.q_yes + delta, self.q_no, vault)
        return self.with_quantities(self.q_yes, self.q_no + delta, vault)


@dataclass(frozen=True)
class TradeRequest:
    side: OutcomeSide
    direction: TradeDirection
    amount: int  # 6-dec USDC for BUY, 18-dec shares for SELL
    slippage_bps: int = field(default_factory=lambda: settings.DEFAULT_SLIPPAGE_BPS)

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise InvalidTradeRequestError(f"amount must be non-negative, got {self.amount}")
        if not (0 <= self.slippage_bps <= BPS_DENOMINATOR):
            raise InvalidTradeRequestError(
                f"slippage_bps must be in [0, {BPS_DENOMINATOR}], got {self.slippage_bps}"
            )

    @property
    def is_buy(self) -> bool:
        return self.direction == TradeDirection.BUY

    @property
    def is_yes(self) -> bool:
        return self.side == OutcomeSide.YES

    def with_amount(self, amount: int) -> "TradeRequest":
        return replace(self, amount=amount)


@dataclass(frozen=True)
class FeeBreakdown:
    """Per-bucket fees in 6-dec USDC, applied in this order."""

    treasury: int = 0
    vault: int = 0
    lp: int = 0

    @property
    def total(self) -> int:
        return self.treasury + self.vault + self.lp


@dataclass(frozen=True)
class TradeSimulation:
    """Derived preview of one trade against one PoolState. Never persisted."""

    request: TradeRequest
    output_amount: int  # 18-dec shares for BUY, 6-dec USDC for SELL
    net_input: int  # 6-dec USDC after fees for BUY, 18-dec shares for SELL
    fee_breakdown: FeeBreakdown
    current_price: int  # traded side, 18-dec
    projected_price: int  # traded side after the trade, 18-dec
    min_guaranteed_output: int
    resulting_pool: PoolState

    @property
    def is_empty(self) -> bool:
        """NoOutput: the trade is too small to register. Not an error."""
        return self.output_amount == 0

    @property
    def average_price(self) -> int:
        """Gross USDC paid (or received) per share, 18-dec."""
        if self.is_empty:
            return 0
        if self.request.is_buy:
            return div(usdc_to_e18(self.request.amount), self.output_amount)
        return div(usdc_to_e18(self.output_amount), self.request.amount)

    @property
    def max_payout(self) -> int:
        """USDC (6-dec) received if the traded side wins; sells pay out now."""
        if self.request.is_buy:
            return e18_to_usdc(self.output_amount)
        return self.output_amount

    @property
    def max_profit(self) -> int:
        if not self.request.is_buy:
            return 0
        return max(self.max_payout - self.request.amount, 0)


@dataclass(frozen=True)
class ChunkPlan:
    """Ordered sub-trades whose amounts sum to the original request amount.

    simulations[i] is simulated against the pool rolled forward by
    simulations[i - 1]; the executor re-simulates against live state anyway.
    """

    pool_state: PoolState
    request: TradeRequest
    chunks: tuple[int, ...]
    chunk_size: int
    simulations: tuple[TradeSimulation, ...]
    confirmed: bool = False

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    @property
    def total_amount(self) -> int:
        return sum(self.chunks)

    @property
    def requires_confirmation(self) -> bool:
        return self.chunk_count > 1

    @property
    def estimated_output(self) -> int:
        return sum(s.output_amount for s in self.simulations)

    @property
    def projected_pool(self) -> PoolState:
        return self.simulations[-1].resulting_pool if self.simulations else self.pool_state

    def chunk_requests(self) -> list[TradeRequest]:
        return [self.request.with_amount(amount) for amount in self.chunks]

    def confirm(self) -> "ChunkPlan":
        """Record the caller's consent to execute a split order."""
        return replace(self, confirmed=True)
