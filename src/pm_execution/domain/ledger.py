"""LedgerProtocol — interface contract for the external ledger/contract boundary.

All amounts cross as scaled ints: USDC at 6 decimals, shares at 18.
"""
from typing import Any, Protocol

from src.pm_execution.domain.models import Balances, Signer, TxReceipt
from src.pm_lmsr.domain.models import PoolState


class LedgerProtocol(Protocol):
    @property
    def spender(self) -> str:
        """Address the trading contract pulls USDC from the trader with."""
        ...

    async def read_pool_state(self, market_id: int) -> PoolState: ...

    async def read_allowance(self, owner: str, spender: str) -> int: ...

    async def read_balances(self, owner: str, market_id: int) -> Balances: ...

    async def send_transaction(
        self, signer: Signer, function_name: str, args: tuple[Any, ...]
    ) -> str: ...

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt: ...
