"""
Solutions Error

Performance term comparing the trajectory simulated by a mathematical model
against a target trajectory, dependent variable by dependent variable.
"""

import numpy as np
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from .functional import PerformanceTerm
from .mathematical_model import MathematicalModel
from ..exceptions import ConfigurationError
from ..neural.networks import NeuralNetwork
from ..numerics.differentiation import NumericalDifferentiation
from ..numerics.integration import NumericalIntegration


class SolutionsErrorMethod(Enum):
    """How the per-variable errors are combined."""
    SOLUTIONS_ERROR_SUM = "SolutionsErrorSum"
    SOLUTIONS_ERROR_INTEGRAL = "SolutionsErrorIntegral"

    @classmethod
    def from_string(cls, name: str) -> 'SolutionsErrorMethod':
        for method in cls:
            if method.value == name or method.name == name:
                return method
        raise ConfigurationError('SolutionsError', f"Unknown solutions error method: {name}", name)


class SolutionsError(PerformanceTerm):
    """Weighted distance between simulated and target solutions.

    ``target_function`` receives the independent-variables matrix of the
    simulation (one column per independent variable) and returns the target
    dependent-variables matrix of the same number of rows.
    """

    def __init__(self, neural_network: Optional[NeuralNetwork] = None,
                 mathematical_model: Optional[MathematicalModel] = None,
                 target_function: Optional[Callable[[np.ndarray], np.ndarray]] = None,
                 solutions_errors_weights: Optional[Sequence[float]] = None,
                 method: Union[SolutionsErrorMethod, str] = SolutionsErrorMethod.SOLUTIONS_ERROR_SUM,
                 numerical_differentiation: Optional[NumericalDifferentiation] = None,
                 display: bool = True):
        super().__init__(neural_network,
                         numerical_differentiation or NumericalDifferentiation(),
                         display)
        self.mathematical_model = mathematical_model
        self.target_function = target_function
        self.numerical_integration = NumericalIntegration(display=display)
        self.set_method(method)

        if solutions_errors_weights is None and mathematical_model is not None:
            solutions_errors_weights = np.ones(mathematical_model.dependent_variables_number)
        self.solutions_errors_weights = (None if solutions_errors_weights is None
                                         else np.asarray(solutions_errors_weights, dtype=float).ravel())

    def set_method(self, method: Union[SolutionsErrorMethod, str]):
        if isinstance(method, str):
            method = SolutionsErrorMethod.from_string(method)
        self.method = method

    def set_mathematical_model(self, mathematical_model: MathematicalModel):
        self.mathematical_model = mathematical_model

    def set_target_function(self, target_function: Callable[[np.ndarray], np.ndarray]):
        self.target_function = target_function

    def set_solutions_errors_weights(self, weights: Sequence[float]):
        self.solutions_errors_weights = np.asarray(weights, dtype=float).ravel()

    def set_solution_error_weight(self, index: int, weight: float):
        if self.solutions_errors_weights is None or not 0 <= index < self.solutions_errors_weights.size:
            raise ConfigurationError(self.component, f"Solution error weight index {index} is out of range", index)
        self.solutions_errors_weights[index] = weight

    def check(self):
        super().check()

        if self.mathematical_model is None:
            raise ConfigurationError(self.component, "Pointer to mathematical model is NULL")
        if self.target_function is None:
            raise ConfigurationError(self.component, "Target function is not set")
        if self.solutions_errors_weights is None:
            raise ConfigurationError(self.component, "Solutions errors weights are not set")

        dependent_variables_number = self.mathematical_model.dependent_variables_number
        if self.solutions_errors_weights.size != dependent_variables_number:
            raise ConfigurationError(self.component,
                                     f"Size of solutions errors weights ({self.solutions_errors_weights.size}) "
                                     f"is not equal to number of dependent variables "
                                     f"({dependent_variables_number})",
                                     self.solutions_errors_weights.size)

    def calculate_target_dependent_variables(self, independent_variables: np.ndarray) -> np.ndarray:
        target = np.asarray(self.target_function(independent_variables), dtype=float)
        if target.ndim == 1:
            target = target.reshape(-1, 1)
        return target

    def calculate_solutions_error_sum(self, solutions: np.ndarray) -> float:
        independent_number = self.mathematical_model.independent_variables_number
        dependent_number = self.mathematical_model.dependent_variables_number
        rows = solutions.shape[0]

        independent_variables = solutions[:, :independent_number]
        target = self.calculate_target_dependent_variables(independent_variables)

        performance = 0.0
        for i in range(dependent_number):
            weight = self.solutions_errors_weights[i]
            if weight == 0.0:
                continue
            difference = solutions[:, independent_number + i] - target[:, i]
            performance += weight * np.linalg.norm(difference) / rows

        return float(performance)

    def calculate_solutions_error_integral(self, solutions: np.ndarray) -> float:
        """Integral of the squared error over the independent variable.

        Not implemented; always 0.0. ``self.numerical_integration`` is the
        quadrature collaborator reserved for this method.
        """
        return 0.0

    def calculate_performance(self, neural_network: NeuralNetwork) -> float:
        solutions = self.mathematical_model.calculate_solutions(neural_network)

        if self.method is SolutionsErrorMethod.SOLUTIONS_ERROR_INTEGRAL:
            return self.calculate_solutions_error_integral(solutions)
        return self.calculate_solutions_error_sum(solutions)

    def write_information(self) -> str:
        return f"Solutions error method: {self.method.value}"
