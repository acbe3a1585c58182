"""Execution domain models — pure dataclasses, no ledger dependency."""
from dataclasses import dataclass, field

from src.pm_common.enums import ExecutionPhase
from src.pm_common.errors import AppError
from src.pm_lmsr.domain.models import PoolState


@dataclass(frozen=True)
class Signer:
    """Account that authorises ledger transactions. Key handling is the ledger client's job."""

    address: str


@dataclass(frozen=True)
class TxReceipt:
    tx_hash: str
    success: bool
    block_number: int | None = None
    revert_reason: str | None = None


@dataclass(frozen=True)
class Balances:
    usdc: int  # 6-dec
    yes_shares: int  # 18-dec
    no_shares: int  # 18-dec


@dataclass(frozen=True)
class SettledChunk:
    """A chunk confirmed on the ledger. Final: cannot be rolled back."""

    index: int
    amount: int
    tx_hash: str
    expected_output: int
    min_output: int


@dataclass(frozen=True)
class ExecutionState:
    """One transition of the execution state machine."""

    phase: ExecutionPhase
    chunk_count: int
    chunk_index: int | None = None
    settled: tuple[SettledChunk, ...] = ()
    tx_hash: str | None = None
    error: AppError | None = None
    pool_state: PoolState | None = None
    balances: Balances | None = None

    @property
    def completed_chunks(self) -> int:
        return len(self.settled)

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal


@dataclass
class ExecutionReport:
    """Outcome of a drained execution: final state plus every transition seen."""

    final: ExecutionState
    transitions: list[ExecutionState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.final.phase == ExecutionPhase.DONE

    @property
    def settled(self) -> tuple[SettledChunk, ...]:
        return self.final.settled

    @property
    def balances(self) -> Balances | None:
        return self.final.balances

    @property
    def is_partial_fill(self) -> bool:
        return self.final.phase == ExecutionPhase.FAILED and bool(self.final.settled)
