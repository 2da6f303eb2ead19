from typing import Sequence

LINEAR_CURVE = (0.0, 0.0, 1.0, 1.0)
EPSILON = 0.00001
MAX_ITERATIONS = 100


class Cubic:
    """
    Cubic-bezier easing through (0, 0), (x1, y1), (x2, y2), (1, 1).

    ``curves`` holds the control coordinates as ``[x1, y1, x2, y2]``.
    Missing trailing coordinates are taken from the linear curve and any
    values past the fourth are ignored.
    """

    def __init__(self, curves: Sequence[float]):
        curves = [float(value) for value in curves[:4]]
        self.curves = curves + list(LINEAR_CURVE[len(curves):])

    def get_value(self, time: float) -> float:
        x1, y1, x2, y2 = self.curves
        start_gradient = 0.0
        end_gradient = 0.0

        if time <= 0.0:
            if x1 > 0.0:
                start_gradient = y1 / x1
            elif y1 == 0.0 and x2 > 0.0:
                start_gradient = y2 / x2
            return start_gradient * time

        if time >= 1.0:
            if x2 < 1.0:
                end_gradient = (y2 - 1.0) / (x2 - 1.0)
            elif x2 == 1.0 and x1 < 1.0:
                end_gradient = (y1 - 1.0) / (x1 - 1.0)
            return 1.0 + end_gradient * (time - 1.0)

        start = 0.0
        end = 1.0
        mid = 0.0
        for _ in range(MAX_ITERATIONS):
            if start >= end:
                break
            mid = (start + end) / 2
            x_est = self.calculate(x1, x2, mid)
            if abs(time - x_est) < EPSILON:
                return self.calculate(y1, y2, mid)
            if x_est < time:
                start = mid
            else:
                end = mid
        return self.calculate(y1, y2, mid)

    @staticmethod
    def calculate(a: float, b: float, m: float) -> float:
        return 3.0 * a * (1 - m) * (1 - m) * m + 3.0 * b * (1 - m) * m * m + m * m * m
