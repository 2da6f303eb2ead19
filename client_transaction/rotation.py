from math import cos, sin, pi
from typing import List


def convert_rotation_to_matrix(rotation: float) -> List[float]:
    """2D rotation matrix coefficients [a, b, c, d] for an angle in degrees."""
    rad = rotation * pi / 180
    return [cos(rad), sin(rad), -sin(rad), cos(rad)]
