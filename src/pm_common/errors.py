"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Numeric kernel
  2xxx: Solver
  3xxx: Market / pool state
  4xxx: Trade request / chunk plan
  5xxx: Execution (approval, submission, confirmation)
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Numeric ---

class NumericOverflowError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1001, f"Numeric overflow: {detail}", 422)


class DomainError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1002, f"Domain error: {detail}", 422)


# --- 2xxx: Solver ---

class SolverDidNotConvergeError(AppError):
    def __init__(self, iterations: int) -> None:
        super().__init__(2001, f"Solver did not converge after {iterations} iterations", 422)


class InsufficientPoolLiquidityError(AppError):
    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            2002,
            f"Insufficient pool liquidity: requested {requested}, outstanding {available}",
            422,
        )


class NoOutputError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2003, f"Trade produces no output: {detail}", 422)


# --- 3xxx: Market ---

class InvalidPoolStateError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3001, f"Invalid pool state: {detail}", 422)


class MarketNotActiveError(AppError):
    def __init__(self, market_id: int, status: str) -> None:
        super().__init__(3002, f"Market {market_id} is not active (status {status})", 422)


class MarketNotFoundError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3003, f"Market not found: {market_id}", 404)


# --- 4xxx: Request / plan ---

class InvalidTradeRequestError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid trade request: {detail}", 400)


class InvalidPlanError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Invalid chunk plan: {detail}", 422)


class PlanNotConfirmedError(AppError):
    def __init__(self, chunk_count: int) -> None:
        super().__init__(
            4003, f"Split order of {chunk_count} chunks must be confirmed before execution", 409
        )


# --- 5xxx: Execution ---

class ApprovalFailedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5001, f"Allowance approval failed: {detail}", 502)


class ChunkExecutionError(AppError):
    """A chunk was rejected, reverted or timed out.

    ``completed_chunks`` chunks before it are settled on the ledger and final.
    """

    def __init__(self, chunk_index: int, completed_chunks: int, detail: str) -> None:
        self.chunk_index = chunk_index
        self.completed_chunks = completed_chunks
        super().__init__(
            5002,
            f"Chunk {chunk_index} failed after {completed_chunks} settled chunk(s): {detail}",
            502,
        )


class ConfirmationTimeoutError(AppError):
    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(5003, f"Transaction {tx_hash} not confirmed within {timeout:g}s", 504)


class TransactionRevertedError(AppError):
    def __init__(self, tx_hash: str, reason: str) -> None:
        super().__init__(5004, f"Transaction {tx_hash} reverted: {reason}", 502)


class NotCancellableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5005, f"Trade cannot be cancelled: {detail}", 409)


class NoActiveTradeError(AppError):
    def __init__(self, attempt_id: str) -> None:
        super().__init__(5006, f"No pending trade attempt {attempt_id}", 409)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
