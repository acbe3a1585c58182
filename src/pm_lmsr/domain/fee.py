"""Buy-side fee split. Sells carry no fee."""
from src.pm_common.units import apply_bps
from src.pm_lmsr.domain.models import FeeBreakdown, PoolState

NO_FEES = FeeBreakdown()


def split_fees(gross: int, pool: PoolState) -> FeeBreakdown:
    """Fees on a gross 6-dec USDC input: treasury, vault, lp in that order.

    Each bucket is gross * bps // 10000, truncated on its own before summing,
    so the total can be up to 2 units below gross * total_bps // 10000.
    """
    if gross <= 0:
        return NO_FEES
    return FeeBreakdown(
        treasury=apply_bps(gross, pool.fee_bps_treasury),
        vault=apply_bps(gross, pool.fee_bps_vault),
        lp=apply_bps(gross, pool.fee_bps_lp),
    )


def net_of_fees(gross: int, pool: PoolState) -> tuple[int, FeeBreakdown]:
    """Return (net input, fee breakdown) for a gross buy amount."""
    fees = split_fees(gross, pool)
    return gross - fees.total, fees
