"""
Optimizers

Strategies that turn a gradient into a parameters increment. The training
algorithm owns the loop; an optimizer only keeps the state it needs between
iterations (previous rate, inverse Hessian approximation).
"""

import logging
import numpy as np
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional, Type, Union

from .training_rate import TrainingRateAlgorithm
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _gradient_descent_direction(gradient: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(gradient)
    if norm == 0.0:
        return np.zeros_like(gradient)
    return -gradient / norm


class Optimizer(ABC):
    """Base class for all optimizers."""

    def __init__(self, training_rate_algorithm: Optional[TrainingRateAlgorithm] = None):
        self.training_rate_algorithm = training_rate_algorithm or TrainingRateAlgorithm()
        self.reset()

    def reset(self):
        """Forget any state carried between iterations."""
        self.training_rate = 0.0
        self.iteration = 0

    @abstractmethod
    def calculate_parameters_increment(self, functional, parameters: np.ndarray,
                                       performance: float, gradient: np.ndarray) -> np.ndarray:
        """Return the increment to add to ``parameters``."""
        pass

    def _line_search(self, functional, parameters, direction, performance, initial_rate) -> float:
        rate, _ = self.training_rate_algorithm.calculate_directional_point(
            functional, parameters, direction, performance, initial_rate)
        return rate

    def to_dict(self) -> Dict:
        return {
            'name': type(self).__name__,
            'training_rate_algorithm': self.training_rate_algorithm.to_dict(),
        }


class GradientDescent(Optimizer):
    """Steepest descent with a line-searched step length."""

    def calculate_parameters_increment(self, functional, parameters, performance, gradient):
        direction = _gradient_descent_direction(gradient)
        if not np.any(direction):
            self.iteration += 1
            return np.zeros_like(parameters)

        rate = self._line_search(functional, parameters, direction, performance, self.training_rate)
        self.training_rate = rate
        self.iteration += 1
        return rate * direction


class InverseHessianApproximation(Enum):
    """Inverse Hessian update formulas."""
    BFGS = "BFGS"
    DFP = "DFP"

    @classmethod
    def from_string(cls, name: str) -> 'InverseHessianApproximation':
        for method in cls:
            if method.value == name or method.name == name:
                return method
        raise ConfigurationError('QuasiNewtonMethod', f"Unknown inverse Hessian approximation: {name}", name)


class QuasiNewtonMethod(Optimizer):
    """Quasi-Newton method with a BFGS or DFP inverse Hessian approximation."""

    def __init__(self, inverse_hessian_approximation: Union[InverseHessianApproximation, str] = "BFGS",
                 training_rate_algorithm: Optional[TrainingRateAlgorithm] = None):
        if isinstance(inverse_hessian_approximation, str):
            inverse_hessian_approximation = InverseHessianApproximation.from_string(inverse_hessian_approximation)
        self.inverse_hessian_approximation = inverse_hessian_approximation
        super().__init__(training_rate_algorithm)

    def reset(self):
        super().reset()
        self.old_parameters = None
        self.old_gradient = None
        self.inverse_hessian = None

    def calculate_bfgs_inverse_hessian(self, parameters_difference: np.ndarray,
                                       gradient_difference: np.ndarray,
                                       old_inverse_hessian: np.ndarray) -> Optional[np.ndarray]:
        s, y, h = parameters_difference, gradient_difference, old_inverse_hessian
        sy = float(s @ y)
        if sy <= 1.0e-12:
            return None

        hy = h @ y
        return (h + (1.0 + float(y @ hy) / sy) * np.outer(s, s) / sy
                - (np.outer(hy, s) + np.outer(s, hy)) / sy)

    def calculate_dfp_inverse_hessian(self, parameters_difference: np.ndarray,
                                      gradient_difference: np.ndarray,
                                      old_inverse_hessian: np.ndarray) -> Optional[np.ndarray]:
        s, y, h = parameters_difference, gradient_difference, old_inverse_hessian
        sy = float(s @ y)
        hy = h @ y
        yhy = float(y @ hy)
        if sy <= 1.0e-12 or yhy <= 1.0e-12:
            return None

        return h + np.outer(s, s) / sy - np.outer(hy, hy) / yhy

    def _update_inverse_hessian(self, parameters: np.ndarray, gradient: np.ndarray) -> np.ndarray:
        n = parameters.size
        identity = np.eye(n)

        if (self.old_parameters is None or self.old_parameters.size != n
                or self.inverse_hessian is None):
            return identity

        parameters_difference = parameters - self.old_parameters
        gradient_difference = gradient - self.old_gradient
        if not np.any(parameters_difference) or not np.any(gradient_difference):
            return identity

        if self.inverse_hessian_approximation is InverseHessianApproximation.DFP:
            updated = self.calculate_dfp_inverse_hessian(parameters_difference, gradient_difference,
                                                         self.inverse_hessian)
        else:
            updated = self.calculate_bfgs_inverse_hessian(parameters_difference, gradient_difference,
                                                          self.inverse_hessian)

        if updated is None or not np.all(np.isfinite(updated)):
            logger.debug("Degenerate inverse Hessian update, resetting to identity")
            return identity
        return updated

    def calculate_training_direction(self, gradient: np.ndarray) -> np.ndarray:
        direction = -(self.inverse_hessian @ gradient)
        norm = np.linalg.norm(direction)
        if norm == 0.0:
            return direction
        return direction / norm

    def calculate_parameters_increment(self, functional, parameters, performance, gradient):
        parameters = np.asarray(parameters, dtype=float)
        gradient = np.asarray(gradient, dtype=float)

        self.inverse_hessian = self._update_inverse_hessian(parameters, gradient)
        first_iteration = self.iteration == 0

        if not np.any(gradient):
            direction = np.zeros_like(parameters)
            rate = 0.0
        else:
            direction = self.calculate_training_direction(gradient)
            gradient_descent = _gradient_descent_direction(gradient)

            # Not a descent direction
            if gradient @ direction >= 0.0:
                direction = gradient_descent

            initial_rate = self.training_rate_algorithm.first_training_rate if first_iteration \
                else self.training_rate
            rate = self._line_search(functional, parameters, direction, performance, initial_rate)

            if rate == 0.0 and not first_iteration and not np.array_equal(direction, gradient_descent):
                direction = gradient_descent
                rate = self._line_search(functional, parameters, direction, performance,
                                         self.training_rate_algorithm.first_training_rate)

        self.old_parameters = parameters.copy()
        self.old_gradient = gradient.copy()
        self.training_rate = rate
        self.iteration += 1
        return rate * direction

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data['inverse_hessian_approximation'] = self.inverse_hessian_approximation.value
        return data


OPTIMIZERS: Dict[str, Type[Optimizer]] = {
    'gradient_descent': GradientDescent,
    'quasi_newton': QuasiNewtonMethod,
}


def get_optimizer(name: str, **kwargs) -> Optimizer:
    """Get an optimizer by name.

    Args:
        name: ``'gradient_descent'`` or ``'quasi_newton'``.
        **kwargs: Arguments for the optimizer constructor.
    """
    name = name.lower()
    if name not in OPTIMIZERS:
        raise ConfigurationError('TrainingAlgorithm', f"Unknown optimizer: {name}", name)
    return OPTIMIZERS[name](**kwargs)
