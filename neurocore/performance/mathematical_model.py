"""
Mathematical Models

Models that simulate a system driven by a neural network, producing a
trajectory matrix whose columns are the independent variables followed by
the dependent variables.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from ..exceptions import ConfigurationError
from ..neural.networks import NeuralNetwork


class MathematicalModel(ABC):
    """Base class for mathematical models."""

    def __init__(self, independent_variables_number: int = 1,
                 dependent_variables_number: int = 0,
                 display: bool = True):
        self.independent_variables_number = independent_variables_number
        self.dependent_variables_number = dependent_variables_number
        self.display = display

    def count_variables_number(self) -> int:
        return self.independent_variables_number + self.dependent_variables_number

    # Aliases used by the performance terms
    def independent_variable_count(self) -> int:
        return self.independent_variables_number

    def dependent_variable_count(self) -> int:
        return self.dependent_variables_number

    @abstractmethod
    def calculate_solutions(self, neural_network: NeuralNetwork) -> np.ndarray:
        """Return the solution matrix for the given network."""
        pass

    def simulate(self, neural_network: NeuralNetwork) -> np.ndarray:
        return self.calculate_solutions(neural_network)

    def calculate_final_solutions(self, neural_network: NeuralNetwork) -> np.ndarray:
        return self.calculate_solutions(neural_network)[-1]


class OrdinaryDifferentialEquations(MathematicalModel):
    """System of ordinary differential equations integrated by Runge-Kutta.

    The right-hand side receives the network and the variables vector
    ``[t, y_1, ..., y_n]`` and returns the derivatives ``[y_1', ..., y_n']``.
    Either pass ``dots_function`` or override
    :meth:`calculate_dependent_variables_dots`.
    """

    def __init__(self, initial_independent_variable: float = 0.0,
                 final_independent_variable: float = 1.0,
                 initial_dependent_variables: Sequence[float] = (),
                 points_number: int = 101,
                 dots_function: Optional[Callable[[NeuralNetwork, np.ndarray], np.ndarray]] = None,
                 display: bool = True):
        initial_dependent_variables = np.asarray(initial_dependent_variables, dtype=float).ravel()
        super().__init__(independent_variables_number=1,
                         dependent_variables_number=initial_dependent_variables.size,
                         display=display)

        if final_independent_variable <= initial_independent_variable:
            raise ConfigurationError('OrdinaryDifferentialEquations',
                                     "Final independent variable must be greater than the initial one",
                                     (initial_independent_variable, final_independent_variable))
        if points_number < 2:
            raise ConfigurationError('OrdinaryDifferentialEquations',
                                     "Number of points must be at least 2", points_number)

        self.initial_independent_variable = float(initial_independent_variable)
        self.final_independent_variable = float(final_independent_variable)
        self.initial_dependent_variables = initial_dependent_variables
        self.points_number = int(points_number)
        self.dots_function = dots_function

    def calculate_dependent_variables_dots(self, neural_network: NeuralNetwork,
                                           variables: np.ndarray) -> np.ndarray:
        if self.dots_function is None:
            raise ConfigurationError('OrdinaryDifferentialEquations',
                                     "Dependent variables dots function is not set")
        return np.asarray(self.dots_function(neural_network, variables), dtype=float)

    def calculate_solutions(self, neural_network: NeuralNetwork) -> np.ndarray:
        """Fixed-step fourth order Runge-Kutta solution."""
        n = self.dependent_variables_number
        h = (self.final_independent_variable - self.initial_independent_variable) / (self.points_number - 1.0)

        solution = np.zeros((self.points_number, 1 + n))
        solution[0, 0] = self.initial_independent_variable
        solution[0, 1:] = self.initial_dependent_variables

        for i in range(self.points_number - 1):
            t = solution[i, 0]
            y = solution[i, 1:]

            c0 = self.calculate_dependent_variables_dots(neural_network, np.concatenate([[t], y]))
            c1 = self.calculate_dependent_variables_dots(neural_network, np.concatenate([[t + h / 2.0], y + h * c0 / 2.0]))
            c2 = self.calculate_dependent_variables_dots(neural_network, np.concatenate([[t + h / 2.0], y + h * c1 / 2.0]))
            c3 = self.calculate_dependent_variables_dots(neural_network, np.concatenate([[t + h], y + h * c2]))

            solution[i + 1, 0] = t + h
            solution[i + 1, 1:] = y + h * (c0 + 2.0 * c1 + 2.0 * c2 + c3) / 6.0

        solution[-1, 0] = self.final_independent_variable
        return solution
