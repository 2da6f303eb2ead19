"""
Hexadecimal rendering of floats as used by the animation key.

The integer part is emitted without leading zeros (an integer part of zero
is emitted as nothing), followed by ``.`` and the fractional digits obtained
by repeatedly multiplying the remainder by 16.
"""

from math import floor

MAX_FRACTION_DIGITS = 32


def float_to_hex(x: float) -> str:
    sign_str = "-" if x < 0 else ""
    x = abs(x)
    int_part = int(floor(x))
    fraction = x - int_part

    result = format(int_part, "x") if int_part else ""
    if fraction == 0:
        return sign_str + result

    digits = []
    while fraction > 0 and len(digits) < MAX_FRACTION_DIGITS:
        fraction *= 16
        digit = int(fraction)
        fraction -= digit
        digits.append(format(digit, "x"))
    return sign_str + result + "." + "".join(digits)


def hex_to_float(hex_str: str) -> float:
    """Inverse of float_to_hex."""
    if not hex_str:
        return 0.0
    negative = hex_str.startswith("-")
    if negative:
        hex_str = hex_str[1:]

    int_str, _, frac_str = hex_str.partition(".")
    value = float(int(int_str, 16)) if int_str else 0.0
    scale = 1.0
    for char in frac_str:
        scale /= 16
        value += int(char, 16) * scale
    return -value if negative else value
