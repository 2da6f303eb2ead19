from math import floor
from typing import List, Sequence


def js_round(num: float) -> int:
    """Round half toward positive infinity, like ECMAScript Math.round."""
    result = floor(num)
    if num - result >= 0.5:
        result += 1
    return result


def solve(value: float, min_val: float, max_val: float, rounding: bool) -> float:
    """Remap a 0-255 value into [min_val, max_val]."""
    result = value * (max_val - min_val) / 255 + min_val
    if rounding:
        return floor(result)
    return js_round(result * 100) / 100


def interpolate(from_list: Sequence[float], to_list: Sequence[float], f: float) -> List[float]:
    if len(from_list) != len(to_list):
        raise ValueError(
            f"Mismatched interpolation arguments {list(from_list)}: {list(to_list)}"
        )
    return [interpolate_num(a, b, f) for a, b in zip(from_list, to_list)]


def interpolate_num(from_val: float, to_val: float, f: float) -> float:
    return from_val + (to_val - from_val) * f
