"""Scale conversion between settlement currency and share/price values.

Settlement currency (USDC) crosses the ledger boundary at 6 decimals; shares,
prices and the cost function live at 18 decimals. Every crossing between the
two goes through this module. No float, no Decimal.
"""

USDC_DECIMALS = 6
SHARE_DECIMALS = 18
USDC_TO_E18 = 10 ** (SHARE_DECIMALS - USDC_DECIMALS)

BPS_DENOMINATOR = 10_000


def usdc_to_e18(amount_e6: int) -> int:
    """Lift a 6-decimal USDC amount to the 18-decimal internal scale (exact)."""
    return amount_e6 * USDC_TO_E18


def e18_to_usdc(amount_e18: int) -> int:
    """Drop an 18-decimal value to 6 decimals, flooring (ledger pays out floor)."""
    return amount_e18 // USDC_TO_E18


def parse_units(text: str, decimals: int) -> int:
    """Parse a decimal string into a scaled int: '1.5', 6 -> 1500000.

    Extra fractional digits beyond ``decimals`` are rejected rather than rounded.
    """
    raw = text.strip()
    negative = raw.startswith("-")
    if negative:
        raw = raw[1:]
    whole, _, frac = raw.partition(".")
    if not whole and not frac:
        raise ValueError(f"Not a decimal amount: {text!r}")
    if not (whole or "0").isdigit() or (frac and not frac.isdigit()):
        raise ValueError(f"Not a decimal amount: {text!r}")
    if len(frac) > decimals:
        raise ValueError(f"Amount {text!r} has more than {decimals} decimal places")
    value = int(whole or "0") * 10**decimals + int(frac.ljust(decimals, "0") or "0")
    return -value if negative else value


def format_units(value: int, decimals: int) -> str:
    """Render a scaled int as a plain decimal string: 1500000, 6 -> '1.5'."""
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    frac_str = f"{frac:0{decimals}d}".rstrip("0")
    return f"{sign}{whole}.{frac_str}" if frac_str else f"{sign}{whole}"


def usdc_to_display(amount_e6: int) -> str:
    """Convert 6-decimal USDC to display string: 65000000 -> '$65.00'."""
    cents = abs(amount_e6) // 10_000
    sign = "-" if amount_e6 < 0 else ""
    return f"{sign}${cents // 100:,}.{cents % 100:02d}"


def apply_bps(amount: int, bps: int) -> int:
    """amount * bps / 10000, truncated toward zero for non-negative inputs."""
    return amount * bps // BPS_DENOMINATOR
