"""
Training Rate Algorithms

One-dimensional line searches that choose how far to move along a training
direction. The minimum is first bracketed by expanding the training rate and
then reduced by golden section or Brent's parabolic method.
"""

import numpy as np
from enum import Enum
from typing import Callable, Tuple, Union

from ..exceptions import ConfigurationError

GOLDEN_RATIO = 1.618033988749895
GOLDEN_SECTION = 0.381966011250105


class TrainingRateMethod(Enum):
    """Line search methods."""
    FIXED = "Fixed"
    GOLDEN_SECTION = "GoldenSection"
    BRENT_METHOD = "BrentMethod"

    @classmethod
    def from_string(cls, name: str) -> 'TrainingRateMethod':
        for method in cls:
            if method.value == name or method.name == name:
                return method
        raise ConfigurationError('TrainingRateAlgorithm', f"Unknown training rate method: {name}", name)


class TrainingRateAlgorithm:
    """Line search along a training direction.

    Args:
        method: ``"BrentMethod"``, ``"GoldenSection"`` or ``"Fixed"``.
        training_rate_tolerance: Width of the final bracket.
        first_training_rate: Step tried when no previous rate is available.
        maximum_training_rate: Upper limit while bracketing.
        maximum_iterations_number: Safety limit on reduction iterations.
    """

    def __init__(self, method: Union[TrainingRateMethod, str] = TrainingRateMethod.BRENT_METHOD,
                 training_rate_tolerance: float = 1.0e-3,
                 first_training_rate: float = 0.01,
                 maximum_training_rate: float = 1.0e6,
                 maximum_iterations_number: int = 100):
        if isinstance(method, str):
            method = TrainingRateMethod.from_string(method)
        self.method = method
        self.training_rate_tolerance = training_rate_tolerance
        self.first_training_rate = first_training_rate
        self.maximum_training_rate = maximum_training_rate
        self.maximum_iterations_number = maximum_iterations_number
        self.validate()

    def validate(self):
        if self.training_rate_tolerance <= 0:
            raise ConfigurationError('TrainingRateAlgorithm', "Training rate tolerance must be positive",
                                     self.training_rate_tolerance)
        if self.first_training_rate <= 0:
            raise ConfigurationError('TrainingRateAlgorithm', "First training rate must be positive",
                                     self.first_training_rate)
        if self.maximum_training_rate < self.first_training_rate:
            raise ConfigurationError('TrainingRateAlgorithm',
                                     "Maximum training rate must not be less than first training rate",
                                     self.maximum_training_rate)

    def to_dict(self):
        return {
            'method': self.method.value,
            'training_rate_tolerance': self.training_rate_tolerance,
            'first_training_rate': self.first_training_rate,
            'maximum_training_rate': self.maximum_training_rate,
        }

    def calculate_directional_point(self, functional, parameters: np.ndarray, direction: np.ndarray,
                                    performance: float, initial_rate: float = 0.0) -> Tuple[float, float]:
        """Return ``(training_rate, performance)`` along ``direction``.

        ``(0.0, performance)`` means no decrease was found.
        """
        parameters = np.asarray(parameters, dtype=float)
        direction = np.asarray(direction, dtype=float)

        def line(rate: float) -> float:
            value = functional.evaluate(parameters + rate * direction)
            return value if np.isfinite(value) else np.inf

        if initial_rate <= 0.0:
            initial_rate = self.first_training_rate
        initial_rate = min(initial_rate, self.maximum_training_rate)

        if self.method is TrainingRateMethod.FIXED:
            rate = self.first_training_rate
            value = line(rate)
            if value < performance:
                return rate, value
            return 0.0, performance

        bracket = self._bracket_minimum(line, performance, initial_rate)
        if bracket is None:
            return 0.0, performance

        if self.method is TrainingRateMethod.GOLDEN_SECTION:
            rate, value = self._golden_section(line, *bracket)
        else:
            rate, value = self._brent_method(line, *bracket)

        if value < performance:
            return rate, value
        return 0.0, performance

    def _bracket_minimum(self, line: Callable[[float], float], performance: float, initial_rate: float):
        """Find ``a < b < c`` with ``f(b) < f(a)`` and ``f(b) <= f(c)``."""
        a, fa = 0.0, performance
        b = initial_rate
        fb = line(b)

        # Shrink until the first step decreases the performance
        while fb >= fa:
            b *= 0.5
            if b < self.training_rate_tolerance * 1.0e-3:
                return None
            fb = line(b)

        c = b * GOLDEN_RATIO
        fc = line(c)
        while fc < fb:
            if c >= self.maximum_training_rate:
                # No upper bracket below the limit: accept the limit itself
                return c, fc, c, fc, c, fc
            a, fa = b, fb
            b, fb = c, fc
            c = min(b * GOLDEN_RATIO, self.maximum_training_rate)
            fc = line(c)

        return a, fa, b, fb, c, fc

    def _golden_section(self, line, a, fa, b, fb, c, fc) -> Tuple[float, float]:
        best_rate, best_value = b, fb
        if c - a <= self.training_rate_tolerance:
            return best_rate, best_value

        x1 = a + GOLDEN_SECTION * (c - a)
        x2 = a + (1.0 - GOLDEN_SECTION) * (c - a)
        f1, f2 = line(x1), line(x2)

        for _ in range(self.maximum_iterations_number):
            if c - a <= self.training_rate_tolerance:
                break
            if f1 < f2:
                c = x2
                x2, f2 = x1, f1
                x1 = a + GOLDEN_SECTION * (c - a)
                f1 = line(x1)
            else:
                a = x1
                x1, f1 = x2, f2
                x2 = a + (1.0 - GOLDEN_SECTION) * (c - a)
                f2 = line(x2)

        for rate, value in ((x1, f1), (x2, f2)):
            if value < best_value:
                best_rate, best_value = rate, value
        return best_rate, best_value

    def _brent_method(self, line, a, fa, b, fb, c, fc) -> Tuple[float, float]:
        """Brent's minimization inside the bracket ``[a, c]`` starting from ``b``."""
        x = w = v = b
        fx = fw = fv = fb
        d = e = 0.0
        tol1 = 0.5 * self.training_rate_tolerance
        tol2 = 2.0 * tol1

        for _ in range(self.maximum_iterations_number):
            xm = 0.5 * (a + c)
            if abs(x - xm) <= tol2 - 0.5 * (c - a):
                break

            use_golden = True
            if abs(e) > tol1:
                # Parabolic step through x, w, v
                r = (x - w) * (fx - fv)
                q = (x - v) * (fx - fw)
                p = (x - v) * q - (x - w) * r
                q = 2.0 * (q - r)
                if q > 0.0:
                    p = -p
                q = abs(q)
                previous_e = e
                e = d
                if abs(p) < abs(0.5 * q * previous_e) and q * (a - x) < p < q * (c - x):
                    d = p / q
                    u = x + d
                    if u - a < tol2 or c - u < tol2:
                        d = tol1 if xm >= x else -tol1
                    use_golden = False

            if use_golden:
                e = (a - x) if x >= xm else (c - x)
                d = GOLDEN_SECTION * e

            u = x + d if abs(d) >= tol1 else x + (tol1 if d >= 0 else -tol1)
            fu = line(u)

            if fu <= fx:
                if u >= x:
                    a = x
                else:
                    c = x
                v, fv = w, fw
                w, fw = x, fx
                x, fx = u, fu
            else:
                if u < x:
                    a = u
                else:
                    c = u
                if fu <= fw or w == x:
                    v, fv = w, fw
                    w, fw = u, fu
                elif fu <= fv or v == x or v == w:
                    v, fv = u, fu

        return x, fx
