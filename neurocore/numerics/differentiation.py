"""
Numerical Differentiation

Finite-difference derivatives, gradients, Hessians and Jacobians of
arbitrary functions. Used by performance terms that have no closed-form
gradient.
"""

import numpy as np
from enum import Enum
from typing import Callable, Union

from ..exceptions import ConfigurationError

Number = Union[float, np.ndarray]


class NumericalDifferentiationMethod(Enum):
    """Finite-difference schemes."""
    FORWARD_DIFFERENCES = "ForwardDifferences"
    CENTRAL_DIFFERENCES = "CentralDifferences"

    @classmethod
    def from_string(cls, name: str) -> 'NumericalDifferentiationMethod':
        for method in cls:
            if method.value == name or method.name == name:
                return method
        raise ConfigurationError('NumericalDifferentiation',
                                 f"Unknown numerical differentiation method: {name}", name)


class NumericalDifferentiation:
    """Computes derivatives by forward or central differences.

    The step size scales with the magnitude of each coordinate,
    ``h = sqrt(eta) * (1 + |x|)`` with ``eta = 10**-precision_digits``.
    """

    def __init__(self,
                 method: Union[NumericalDifferentiationMethod, str] = NumericalDifferentiationMethod.CENTRAL_DIFFERENCES,
                 precision_digits: int = 6,
                 display: bool = True):
        self.set_method(method)
        self.set_precision_digits(precision_digits)
        self.display = display

    def set_method(self, method: Union[NumericalDifferentiationMethod, str]):
        if isinstance(method, str):
            method = NumericalDifferentiationMethod.from_string(method)
        if not isinstance(method, NumericalDifferentiationMethod):
            raise ConfigurationError('NumericalDifferentiation',
                                     f"Unknown numerical differentiation method: {method}", method)
        self.method = method

    def set_precision_digits(self, precision_digits: int):
        if isinstance(precision_digits, bool) or not isinstance(precision_digits, (int, np.integer)) \
                or precision_digits < 1:
            raise ConfigurationError('NumericalDifferentiation',
                                     "Precision digits must be a positive integer", precision_digits)
        self.precision_digits = int(precision_digits)

    def step_size(self, x: Number) -> Number:
        """Return a step size for a scalar point or an element-wise array of steps."""
        eta = 10.0 ** (-self.precision_digits)
        if np.ndim(x) == 0:
            return float(np.sqrt(eta) * (1.0 + abs(float(x))))
        return np.sqrt(eta) * (1.0 + np.abs(np.asarray(x, dtype=float)))

    # Derivatives of functions of one variable

    def calculate_derivative(self, f: Callable, x: float) -> Number:
        """First derivative of ``f`` at the scalar ``x``.

        ``f`` may return a scalar or a vector; in the latter case the
        element-wise derivative is returned.
        """
        h = self.step_size(x)
        if self.method is NumericalDifferentiationMethod.FORWARD_DIFFERENCES:
            return (np.asarray(f(x + h)) - np.asarray(f(x))) / h
        return (np.asarray(f(x + h)) - np.asarray(f(x - h))) / (2.0 * h)

    def calculate_second_derivative(self, f: Callable, x: float) -> Number:
        """Second derivative of ``f`` at the scalar ``x``."""
        h = self.step_size(x)
        if self.method is NumericalDifferentiationMethod.FORWARD_DIFFERENCES:
            y = np.asarray(f(x))
            y_forward = np.asarray(f(x + h))
            y_forward_2 = np.asarray(f(x + 2.0 * h))
            return (y_forward_2 - 2.0 * y_forward + y) / (h * h)

        y = np.asarray(f(x))
        y_forward = np.asarray(f(x + h))
        y_forward_2 = np.asarray(f(x + 2.0 * h))
        y_backward = np.asarray(f(x - h))
        y_backward_2 = np.asarray(f(x - 2.0 * h))
        return (-y_forward_2 + 16.0 * y_forward - 30.0 * y + 16.0 * y_backward - y_backward_2) / (12.0 * h * h)

    # Derivatives of functions of several variables

    def calculate_gradient(self, f: Callable[[np.ndarray], float], x: np.ndarray) -> np.ndarray:
        """Gradient of a scalar function of a vector."""
        x = np.asarray(x, dtype=float)
        h = self.step_size(x)
        n = x.size
        gradient = np.zeros(n)

        if self.method is NumericalDifferentiationMethod.FORWARD_DIFFERENCES:
            y = f(x)
            for i in range(n):
                x_forward = x.copy()
                x_forward[i] += h[i]
                gradient[i] = (f(x_forward) - y) / h[i]
            return gradient

        for i in range(n):
            x_forward = x.copy()
            x_forward[i] += h[i]
            x_backward = x.copy()
            x_backward[i] -= h[i]
            gradient[i] = (f(x_forward) - f(x_backward)) / (2.0 * h[i])
        return gradient

    def calculate_hessian(self, f: Callable[[np.ndarray], float], x: np.ndarray) -> np.ndarray:
        """Hessian matrix of a scalar function of a vector."""
        x = np.asarray(x, dtype=float)
        h = self.step_size(x)
        n = x.size
        hessian = np.zeros((n, n))

        def shifted(*steps):
            point = x.copy()
            for index, step in steps:
                point[index] += step
            return f(point)

        if self.method is NumericalDifferentiationMethod.FORWARD_DIFFERENCES:
            y = f(x)
            y_forward = [shifted((i, h[i])) for i in range(n)]
            for i in range(n):
                for j in range(i, n):
                    y_forward_ij = shifted((i, h[i]), (j, h[j]))
                    hessian[i, j] = (y_forward_ij - y_forward[i] - y_forward[j] + y) / (h[i] * h[j])
                    hessian[j, i] = hessian[i, j]
            return hessian

        y = f(x)
        for i in range(n):
            y_forward_2 = shifted((i, 2.0 * h[i]))
            y_forward = shifted((i, h[i]))
            y_backward = shifted((i, -h[i]))
            y_backward_2 = shifted((i, -2.0 * h[i]))
            hessian[i, i] = (-y_forward_2 + 16.0 * y_forward - 30.0 * y
                             + 16.0 * y_backward - y_backward_2) / (12.0 * h[i] * h[i])

            for j in range(i + 1, n):
                y_pp = shifted((i, h[i]), (j, h[j]))
                y_pm = shifted((i, h[i]), (j, -h[j]))
                y_mp = shifted((i, -h[i]), (j, h[j]))
                y_mm = shifted((i, -h[i]), (j, -h[j]))
                hessian[i, j] = (y_pp - y_pm - y_mp + y_mm) / (4.0 * h[i] * h[j])
                hessian[j, i] = hessian[i, j]

        return hessian

    def calculate_jacobian(self, f: Callable[[np.ndarray], np.ndarray], x: np.ndarray) -> np.ndarray:
        """Jacobian of a vector function of a vector (rows are outputs)."""
        x = np.asarray(x, dtype=float)
        h = self.step_size(x)
        n = x.size
        y = np.atleast_1d(np.asarray(f(x), dtype=float))
        jacobian = np.zeros((y.size, n))

        for j in range(n):
            x_forward = x.copy()
            x_forward[j] += h[j]
            if self.method is NumericalDifferentiationMethod.FORWARD_DIFFERENCES:
                jacobian[:, j] = (np.atleast_1d(f(x_forward)) - y) / h[j]
            else:
                x_backward = x.copy()
                x_backward[j] -= h[j]
                jacobian[:, j] = (np.atleast_1d(f(x_forward)) - np.atleast_1d(f(x_backward))) / (2.0 * h[j])

        return jacobian

    def to_dict(self):
        return {
            'method': self.method.value,
            'precision_digits': self.precision_digits,
            'display': self.display,
        }

    def __repr__(self):
        return (f"NumericalDifferentiation(method={self.method.value!r}, "
                f"precision_digits={self.precision_digits})")
