"""Number formatting shared by the variable context and the frontmatter writer."""

import math
from decimal import Decimal
from typing import Union

# Largest integer a JavaScript number holds exactly.
_MAX_SAFE_INTEGER = 2**53
# Positional notation is used for decimal exponents in (-7, 21].
_MIN_POSITIONAL_EXPONENT = -6
_MAX_POSITIONAL_EXPONENT = 21


def format_number(value: Union[int, float]) -> str:
    """Return *value* the way JavaScript's ``String(number)`` prints it.

    Integral floats lose their trailing ``.0`` (``3.0`` -> ``"3"``), small
    values stay positional (``0.000001``) and values from ``1e21`` up switch to
    ``1e+21`` notation, so numbers coming out of JSON documents print the same
    as in a browser.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        if abs(value) < _MAX_SAFE_INTEGER:
            return str(value)
        try:
            value = float(value)
        except OverflowError:
            return "Infinity" if value > 0 else "-Infinity"
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    return sign + _js_digits(abs(value))


def _js_digits(value: float) -> str:
    # repr() gives the shortest digit string that round-trips
    _, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    digits = digits.lstrip("0")

    # value == 0.digits * 10**point
    point = exponent + len(digits)

    if len(digits) <= point <= _MAX_POSITIONAL_EXPONENT:
        return digits + "0" * (point - len(digits))
    if 0 < point <= _MAX_POSITIONAL_EXPONENT:
        return f"{digits[:point]}.{digits[point:]}"
    if _MIN_POSITIONAL_EXPONENT < point <= 0:
        return "0." + "0" * -point + digits

    power = point - 1
    mantissa = digits if len(digits) == 1 else f"{digits[0]}.{digits[1:]}"
    return f"{mantissa}e{'+' if power >= 0 else '-'}{abs(power)}"
