"""InMemoryLedger — deterministic reference ledger for tests and dry runs.

Mirrors the on-chain trading contract closely enough to exercise the
orchestrator: transactions are mined on send, and a contract-level failure
produces a mined-but-reverted receipt rather than an exception, as on chain.
Buy/sell settle with the same LMSR kernel the engine simulates with.
"""
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from typing import Any

from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import CallShape, OutcomeSide, TradeDirection
from src.pm_common.errors import AppError, MarketNotFoundError, TransactionRevertedError
from src.pm_common.fixed_point import UINT256_MAX
from src.pm_execution.domain.models import Balances, Signer, TxReceipt
from src.pm_lmsr.domain.models import PoolState, TradeRequest
from src.pm_lmsr.domain.solver import simulate_buy, simulate_sell

logger = logging.getLogger(__name__)

DEFAULT_SPENDER = "0x00000000000000000000000000000000000c0de"


class _Revert(Exception):
    """Contract-level revert inside a handler; becomes a failed receipt."""


class InMemoryLedger:
    def __init__(
        self,
        pools: Iterable[PoolState] = (),
        *,
        call_shape: CallShape | str = CallShape.DEADLINE,
        spender: str = DEFAULT_SPENDER,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._pools: dict[int, PoolState] = {p.market_id: p for p in pools}
        self._call_shape = CallShape(call_shape)
        self._spender = spender
        self._clock = clock or (lambda: int(utc_now().timestamp()))
        self._usdc: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)
        self._shares: dict[tuple[str, int, OutcomeSide], int] = defaultdict(int)
        self._receipts: dict[str, TxReceipt] = {}
        self._block_number = 0
        self.treasury_fees = 0
        self.lp_fees = 0
        self.sent: list[tuple[str, str, tuple[Any, ...]]] = []

    # --- test/setup helpers ---

    @property
    def spender(self) -> str:
        return self._spender

    def set_pool(self, pool: PoolState) -> None:
        self._pools[pool.market_id] = pool

    def pool(self, market_id: int) -> PoolState:
        if market_id not in self._pools:
            raise MarketNotFoundError(market_id)
        return self._pools[market_id]

    def mint_usdc(self, owner: str, amount: int) -> None:
        self._usdc[owner] += amount

    def mint_shares(self, owner: str, market_id: int, side: OutcomeSide, amount: int) -> None:
        self._shares[(owner, market_id, side)] += amount

    # --- reads ---

    async def read_pool_state(self, market_id: int) -> PoolState:
        return self.pool(market_id)

    async def read_allowance(self, owner: str, spender: str) -> int:
        return self._allowances[(owner, spender)]

    async def read_balances(self, owner: str, market_id: int) -> Balances:
        return Balances(
            usdc=self._usdc[owner],
            yes_shares=self._shares[(owner, market_id, OutcomeSide.YES)],
            no_shares=self._shares[(owner, market_id, OutcomeSide.NO)],
        )

    # --- writes ---

    async def send_transaction(
        self, signer: Signer, function_name: str, args: tuple[Any, ...]
    ) -> str:
        handlers: dict[str, Callable[[str, tuple[Any, ...]], None]] = {
            "approve": self._approve,
            "buy": self._buy,
            "sell": self._sell,
        }
        handler = handlers.get(function_name)
        if handler is None:
            raise TransactionRevertedError("-", f"unknown function {function_name}")

        self._block_number += 1
        tx_hash = f"0x{self._block_number:064x}"
        self.sent.append((signer.address, function_name, args))
        try:
            handler(signer.address, args)
        except _Revert as exc:
            logger.info("Tx %s %s reverted: %s", tx_hash, function_name, exc)
            self._receipts[tx_hash] = TxReceipt(tx_hash, False, self._block_number, str(exc))
        else:
            self._receipts[tx_hash] = TxReceipt(tx_hash, True, self._block_number)
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        receipt = self._receipts.get(tx_hash)
        if receipt is None:
            raise TransactionRevertedError(tx_hash, "unknown transaction")
        return receipt

    # --- contract handlers ---

    def _approve(self, owner: str, args: tuple[Any, ...]) -> None:
        spender, amount = args
        self._allowances[(owner, spender)] = amount

    def _unpack_trade(self, args: tuple[Any, ...]) -> tuple[PoolState, OutcomeSide, int, int]:
        expected = 5 if self._call_shape == CallShape.DEADLINE else 4
        if len(args) != expected:
            raise _Revert(f"expected {expected} arguments, got {len(args)}")
        market_id, is_yes, amount, min_out = args[:4]
        if expected == 5 and args[4] < self._clock():
            raise _Revert("deadline expired")
        pool = self._pools.get(market_id)
        if pool is None:
            raise _Revert(f"unknown market {market_id}")
        if not pool.is_active:
            raise _Revert("market not active")
        return pool, OutcomeSide.YES if is_yes else OutcomeSide.NO, amount, min_out

    def _buy(self, owner: str, args: tuple[Any, ...]) -> None:
        pool, side, amount, min_out = self._unpack_trade(args)
        if pool.max_impact_amount and amount > pool.max_impact_amount:
            raise _Revert("max impact exceeded")
        allowance = self._allowances[(owner, self._spender)]
        if allowance < amount:
            raise _Revert("insufficient allowance")
        if self._usdc[owner] < amount:
            raise _Revert("insufficient balance")
        try:
            request = TradeRequest(side, TradeDirection.BUY, amount, slippage_bps=0)
            sim = simulate_buy(pool, request)
        except AppError as exc:
            raise _Revert(exc.message) from exc
        if sim.is_empty or sim.output_amount < min_out:
            raise _Revert("slippage: output below minimum")

        self._usdc[owner] -= amount
        if allowance != UINT256_MAX:
            self._allowances[(owner, self._spender)] = allowance - amount
        self._shares[(owner, pool.market_id, side)] += sim.output_amount
        self.treasury_fees += sim.fee_breakdown.treasury
        self.lp_fees += sim.fee_breakdown.lp
        self._pools[pool.market_id] = sim.resulting_pool

    def _sell(self, owner: str, args: tuple[Any, ...]) -> None:
        pool, side, amount, min_out = self._unpack_trade(args)
        if self._shares[(owner, pool.market_id, side)] < amount:
            raise _Revert("insufficient shares")
        try:
            request = TradeRequest(side, TradeDirection.SELL, amount, slippage_bps=0)
            sim = simulate_sell(pool, request)
        except AppError as exc:
            raise _Revert(exc.message) from exc
        if sim.is_empty or sim.output_amount < min_out:
            raise _Revert("slippage: output below minimum")
        if pool.vault_balance < sim.output_amount:
            raise _Revert("vault balance too low")

        self._shares[(owner, pool.market_id, side)] -= amount
        self._usdc[owner] += sim.output_amount
        self._pools[pool.market_id] = sim.resulting_pool
