"""Ether/wei conversions on exact decimals."""

from decimal import Decimal, localcontext

WEI_PER_ETHER = Decimal(10**18)


def ether_to_wei(amount: str | Decimal) -> int:
    """
    Convert decimal ether amount to integer wei.

    Raises:
        ValueError: If the amount has more than 18 fractional digits
    """
    with localcontext() as ctx:
        ctx.prec = 80
        wei = Decimal(amount) * WEI_PER_ETHER
    if wei != wei.to_integral_value():
        raise ValueError(f"Amount {amount} is more precise than 1 wei")
    return int(wei)


def format_ether(wei: int) -> str:
    """
    Format wei as a decimal ether string.

    Always keeps at least one fractional digit: 0 -> "0.0",
    10**18 -> "1.0", 1 -> "0.000000000000000001".
    """
    sign = "-" if wei < 0 else ""
    whole, frac = divmod(abs(wei), 10**18)
    frac_str = f"{frac:018d}".rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"
