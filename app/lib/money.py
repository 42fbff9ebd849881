from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext

MAX_DECIMALS = 77


class AmountError(ValueError):
    pass


def format_units(raw_amount: int, decimals: int) -> str:
    """
    Converts a smallest-unit integer into a human decimal string.
    format_units(1500000, 6) -> '1.5'
    """
    raw_amount = int(raw_amount)
    decimals = int(decimals)
    if decimals <= 0:
        return str(raw_amount)

    sign = '-' if raw_amount < 0 else ''
    whole, frac = divmod(abs(raw_amount), 10 ** decimals)
    frac_str = str(frac).rjust(decimals, '0').rstrip('0')
    return f'{sign}{whole}.{frac_str}' if frac_str else f'{sign}{whole}.0'


def parse_units(amount, decimals: int) -> int:
    """
    Converts a human amount ("1.5", 2, Decimal) into smallest units.
    Extra precision beyond `decimals` is truncated.
    """
    if isinstance(amount, float):
        amount = repr(amount)
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise AmountError(f'Invalid amount: {amount!r}')

    if not value.is_finite() or value < 0:
        raise AmountError(f'Amount must be a finite non-negative number: {amount!r}')

    if not 0 <= int(decimals) <= MAX_DECIMALS:
        raise AmountError(f'Unsupported decimals: {decimals}')

    with localcontext() as ctx:
        ctx.prec = 2 * MAX_DECIMALS
        scaled = (value * (Decimal(10) ** int(decimals))).quantize(Decimal(1), rounding=ROUND_DOWN)
    return int(scaled)


def short_address(address: str, head=6, tail=4):
    if not address or len(address) <= head + tail:
        return address
    return f'{address[:head]}...{address[-tail:]}'
