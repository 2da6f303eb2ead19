"""
Animation key derivation.

Replays the loading animation at a key-dependent point in time and renders
the resulting colour and rotation matrix as a hexadecimal string.
"""

import logging
import re
from typing import List, Sequence

from client_transaction.cubic import Cubic
from client_transaction.errors import InvalidFrameData
from client_transaction.extractor import IndexSet, key_byte
from client_transaction.hexfloat import float_to_hex
from client_transaction.interpolate import interpolate, js_round, solve
from client_transaction.rotation import convert_rotation_to_matrix

logger = logging.getLogger(__name__)

TOTAL_TIME = 4096
ROW_COUNT = 16
MIN_FRAME_LENGTH = 8
EVEN_CURVE_MIN = 0
ODD_CURVE_MIN = 1


def curve_bound(position: int) -> int:
    return ODD_CURVE_MIN if position % 2 else EVEN_CURVE_MIN


def animate(frames: Sequence[int], target_time: float) -> str:
    if len(frames) < MIN_FRAME_LENGTH:
        raise InvalidFrameData(
            f"Frame row needs at least {MIN_FRAME_LENGTH} values, got {len(frames)}"
        )

    from_color = [float(value) for value in frames[0:3]] + [1.0]
    to_color = [float(value) for value in frames[3:6]] + [1.0]
    from_rotation = [0.0]
    to_rotation = [solve(frames[6], 60.0, 360.0, True)]

    curves = [solve(item, curve_bound(counter), 1.0, False) for counter, item in enumerate(frames[7:])]
    val = Cubic(curves).get_value(target_time)

    color = [value if value > 0 else 0 for value in interpolate(from_color, to_color, val)]
    rotation = interpolate(from_rotation, to_rotation, val)
    matrix = convert_rotation_to_matrix(rotation[0])

    str_arr: List[str] = [format(js_round(value), "x") for value in color[:-1]]
    for value in matrix:
        rounded = abs(js_round(value * 100) / 100)
        hex_value = float_to_hex(rounded)
        if hex_value.startswith("."):
            str_arr.append(f"0{hex_value}")
        else:
            str_arr.append(hex_value or "0")

    str_arr.extend(["0", "0"])
    return re.sub(r"[.-]", "", "".join(str_arr))


def get_frame_time(key_bytes: bytes, indices: IndexSet) -> int:
    frame_time = 1
    for index in indices.key_byte_indices:
        frame_time *= key_byte(key_bytes, index) % 16
    return js_round(frame_time / 10) * 10


def get_animation_key(key_bytes: bytes, frame_table: Sequence[Sequence[int]], indices: IndexSet) -> str:
    """
    Derive the animation key for a verification key.

    Args:
        key_bytes: Decoded verification key
        frame_table: Rows parsed from the selected animation frame
        indices: Offsets resolved from the ondemand script

    Returns:
        Lowercase hexadecimal animation key

    Raises:
        InvalidFrameData: If the selected row is missing or too short
        InvalidKeyBytes: If the key does not cover every offset
    """
    row_index = key_byte(key_bytes, indices.row_index) % ROW_COUNT
    frame_time = get_frame_time(key_bytes, indices)

    if row_index >= len(frame_table):
        raise InvalidFrameData(f"Invalid frame data: row {row_index} of {len(frame_table)}")

    target_time = frame_time / TOTAL_TIME
    logger.debug(f"Animating row {row_index} at frame_time={frame_time}")
    return animate(frame_table[row_index], target_time)
