"""Global enums — values match the ledger's market status and the API payloads."""

from enum import Enum


class MarketStatus(str, Enum):
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"


class OutcomeSide(str, Enum):
    YES = "YES"
    NO = "NO"


class TradeDirection(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class ExecutionPhase(str, Enum):
    """Execution state machine: one attempt moves strictly left to right.

    SIMULATING -> SUBMITTING -> CONFIRMING repeats once per chunk.
    """
    IDLE = "IDLE"
    CHECKING_ALLOWANCE = "CHECKING_ALLOWANCE"
    APPROVING = "APPROVING"
    SIMULATING = "SIMULATING"
    SUBMITTING = "SUBMITTING"
    CONFIRMING = "CONFIRMING"
    REFRESHING = "REFRESHING"
    DONE = "DONE"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionPhase.DONE, ExecutionPhase.FAILED, ExecutionPhase.CANCELLED)


class CallShape(str, Enum):
    DEADLINE = "deadline"
    LEGACY = "legacy"
