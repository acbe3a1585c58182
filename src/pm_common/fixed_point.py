"""18-decimal fixed-point kernel shared by the cost model and the solver.

All values are int scaled by SCALE (1.0 == 10**18). No float, no Decimal.
Rounding follows the ledger's signed fixed-point library: every operation
truncates toward zero at the 18th decimal. exp/ln are evaluated with 18
guard digits and agree with the exact value to within 1 unit in the last
place.

Input domain mirrors the ledger:
  exp(x) for x > EXP_MAX_INPUT overflows the unsigned 60.18 result type
  exp(x) for x < EXP_MIN_INPUT underflows to 0
  ln(x) for x <= 0 is undefined
"""

from src.pm_common.errors import DomainError, NumericOverflowError

SCALE = 10**18

INT256_MAX = 2**255 - 1
INT256_MIN = -(2**255)
UINT256_MAX = 2**256 - 1

EXP_MAX_INPUT = 133_084_258_667_509_499_440
EXP_MIN_INPUT = -41_446_531_673_892_822_322

LN2 = 693_147_180_559_945_309

# Guard precision: 36 decimals
_GUARD = 10**18
_PRECISE = SCALE * _GUARD
_LN2_PRECISE = 693_147_180_559_945_309_417_232_121_458_176_568


def _trunc_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero (Python's // floors)."""
    q = abs(numerator) // abs(denominator)
    return -q if (numerator < 0) != (denominator < 0) else q


def _checked(value: int, op: str) -> int:
    if value > INT256_MAX or value < INT256_MIN:
        raise NumericOverflowError(f"{op} result {value} outside int256 range")
    return value


def mul(a: int, b: int) -> int:
    """a * b / SCALE, truncated toward zero."""
    return _checked(_trunc_div(a * b, SCALE), "mul")


def div(a: int, b: int) -> int:
    """a * SCALE / b, truncated toward zero."""
    if b == 0:
        raise DomainError("division by zero")
    return _checked(_trunc_div(a * SCALE, b), "div")


def mul_div(a: int, b: int, denominator: int) -> int:
    """a * b / denominator with a full-width intermediate, truncated toward zero."""
    if denominator == 0:
        raise DomainError("division by zero")
    return _checked(_trunc_div(a * b, denominator), "mul_div")


def exp(x: int) -> int:
    """e**x for a scaled x.

    Range-reduces x = k*ln2 + r with |r| <= ln2/2, sums the Taylor series
    of e**r at guard precision, then shifts by 2**k.
    """
    if x > EXP_MAX_INPUT:
        raise NumericOverflowError(f"exp input {x} exceeds {EXP_MAX_INPUT}")
    if x < EXP_MIN_INPUT:
        return 0
    if x == 0:
        return SCALE

    xp = x * _GUARD
    k = (2 * xp + _LN2_PRECISE) // (2 * _LN2_PRECISE)
    r = xp - k * _LN2_PRECISE

    total = _PRECISE
    term = _PRECISE
    n = 1
    while term != 0:
        term = _trunc_div(term * r, _PRECISE * n)
        total += term
        n += 1

    total = total << k if k >= 0 else total >> -k
    return total // _GUARD


def ln(x: int) -> int:
    """Natural log of a scaled x > 0.

    Normalises x = y * 2**k with y in [1, 2), then
    ln(y) = 2 * atanh((y - 1) / (y + 1)).
    """
    if x <= 0:
        raise DomainError(f"ln of non-positive value {x}")
    if x == SCALE:
        return 0

    y = x * _GUARD
    k = y.bit_length() - _PRECISE.bit_length()
    y = y >> k if k >= 0 else y << -k
    while y >= 2 * _PRECISE:
        y >>= 1
        k += 1
    while y < _PRECISE:
        y <<= 1
        k -= 1

    s = (y - _PRECISE) * _PRECISE // (y + _PRECISE)
    s_squared = s * s // _PRECISE
    total = 0
    term = s
    n = 1
    while term != 0:
        total += term // n
        term = term * s_squared // _PRECISE
        n += 2

    return _trunc_div(k * _LN2_PRECISE + 2 * total, _GUARD)
