"""
Numerical Integration

Definite integrals of tabulated data by the composite trapezoid rule or by a
composite Simpson rule that supports irregular sample spacing.
"""

import numpy as np
from enum import Enum
from typing import Callable, Tuple, Union

from ..exceptions import ConfigurationError


class NumericalIntegrationMethod(Enum):
    """Quadrature rules."""
    TRAPEZOID = "TrapezoidMethod"
    SIMPSON = "SimpsonMethod"

    @classmethod
    def from_string(cls, name: str) -> 'NumericalIntegrationMethod':
        for method in cls:
            if method.value == name or method.name == name:
                return method
        raise ConfigurationError('NumericalIntegration',
                                 f"Unknown numerical integration method: {name}", name)


class NumericalIntegration:
    """Integrates sampled functions over ``[x[0], x[n-1]]``."""

    def __init__(self, method: Union[NumericalIntegrationMethod, str] = NumericalIntegrationMethod.SIMPSON,
                 display: bool = True):
        self.set_method(method)
        self.display = display

    def set_method(self, method: Union[NumericalIntegrationMethod, str]):
        if isinstance(method, str):
            method = NumericalIntegrationMethod.from_string(method)
        if not isinstance(method, NumericalIntegrationMethod):
            raise ConfigurationError('NumericalIntegration',
                                     f"Unknown numerical integration method: {method}", method)
        self.method = method

    @staticmethod
    def _validate(x, y, minimum_points: int) -> Tuple[np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)

        if x.ndim != 1 or y.ndim != 1:
            raise ConfigurationError('NumericalIntegration', "Sample points must be one-dimensional")
        if x.size != y.size:
            raise ConfigurationError('NumericalIntegration',
                                     f"Size of x ({x.size}) is not equal to size of y ({y.size})")
        if x.size < minimum_points:
            raise ConfigurationError('NumericalIntegration',
                                     f"at least {minimum_points} points required", x.size)
        if np.any(np.diff(x) <= 0.0):
            raise ConfigurationError('NumericalIntegration', "Abscissas must be strictly increasing")

        return x, y

    def calculate_trapezoid_integral(self, x, y) -> float:
        """Composite trapezoid rule."""
        x, y = self._validate(x, y, 2)
        return float(np.sum(0.5 * (x[1:] - x[:-1]) * (y[1:] + y[:-1])))

    def calculate_simpson_integral(self, x, y) -> float:
        """Composite Simpson rule over successive, possibly non-uniform, triples.

        With an even number of points the last interval is closed with a
        trapezoid step.
        """
        x, y = self._validate(x, y, 3)
        n = x.size

        triples_number = (n - 1) // 2 if n % 2 != 0 else (n - 2) // 2
        total = 0.0

        for i in range(triples_number):
            a, b, c = x[2 * i], x[2 * i + 1], x[2 * i + 2]
            fa, fb, fc = y[2 * i], y[2 * i + 1], y[2 * i + 2]

            common = (a * a + c * c + a * c) / 3.0
            wa = (c - a) / ((a - b) * (a - c)) * (common - 0.5 * (a + c) * (b + c) + b * c)
            wb = (c - a) / ((b - a) * (b - c)) * (common - 0.5 * (a + c) * (a + c) + a * c)
            wc = (c - a) / ((c - a) * (c - b)) * (common - 0.5 * (a + c) * (a + b) + a * b)

            total += wa * fa + wb * fb + wc * fc

        if n % 2 == 0:
            total += 0.5 * (x[n - 1] - x[n - 2]) * (y[n - 1] + y[n - 2])

        return float(total)

    def calculate_integral(self, x, y) -> float:
        """Integrate tabulated data with the configured method."""
        if self.method is NumericalIntegrationMethod.TRAPEZOID:
            return self.calculate_trapezoid_integral(x, y)
        return self.calculate_simpson_integral(x, y)

    def integrate_function(self, f: Callable[[float], float], a: float, b: float,
                           points_number: int = 101) -> float:
        """Integrate ``f`` over ``[a, b]`` from uniformly spaced samples."""
        if not b > a:
            raise ConfigurationError('NumericalIntegration',
                                     "Upper limit must be greater than lower limit", (a, b))
        x = np.linspace(a, b, points_number)
        y = np.array([f(value) for value in x], dtype=float)
        return self.calculate_integral(x, y)

    def to_dict(self):
        return {'method': self.method.value, 'display': self.display}
