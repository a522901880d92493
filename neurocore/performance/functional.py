"""
Performance Functional

The objective ("performance") contract minimized by training algorithms.
A performance term evaluates a scalar cost for a parameter vector on a copy
of its network, so the caller's network is only changed by explicit
``set_parameters`` calls. Gradients come from a closed form when the term
provides one, otherwise from numerical differentiation.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Optional

from ..exceptions import ConfigurationError
from ..neural.networks import NeuralNetwork
from ..numerics.differentiation import NumericalDifferentiation


class PerformanceTerm(ABC):
    """Base class for all performance terms."""

    def __init__(self, neural_network: Optional[NeuralNetwork] = None,
                 numerical_differentiation: Optional[NumericalDifferentiation] = None,
                 display: bool = True):
        """Initialize the term.

        Args:
            neural_network: Network whose parameters are being evaluated
                (borrowed, never owned).
            numerical_differentiation: Used for the gradient when the term has
                no closed form.
            display: Whether to emit informational log messages.
        """
        self.neural_network = neural_network
        self.numerical_differentiation = numerical_differentiation
        self.display = display

    @property
    def component(self) -> str:
        return type(self).__name__

    def set_neural_network(self, neural_network: NeuralNetwork):
        self.neural_network = neural_network

    def set_numerical_differentiation(self, numerical_differentiation: Optional[NumericalDifferentiation]):
        self.numerical_differentiation = numerical_differentiation

    def has_numerical_differentiation(self) -> bool:
        return self.numerical_differentiation is not None

    @property
    def parameters_number(self) -> int:
        self._check_neural_network()
        return self.neural_network.get_parameter_count()

    def _check_neural_network(self):
        if self.neural_network is None:
            raise ConfigurationError(self.component, "Pointer to neural network is NULL")

    def check(self):
        """Validate the configuration, raising ConfigurationError on any problem."""
        self._check_neural_network()

        inputs_number = getattr(self.neural_network, 'inputs_number', None)
        outputs_number = getattr(self.neural_network, 'outputs_number', None)
        if inputs_number == 0:
            raise ConfigurationError(self.component, "Number of inputs in neural network is zero")
        if outputs_number == 0:
            raise ConfigurationError(self.component, "Number of outputs in neural network is zero")

    def _resolve_parameters(self, parameters: Optional[np.ndarray]) -> np.ndarray:
        if parameters is None:
            return self.neural_network.get_parameters()

        parameters = np.asarray(parameters, dtype=float).ravel()
        expected = self.neural_network.get_parameter_count()
        if parameters.size != expected:
            raise ConfigurationError(self.component,
                                     f"Size of parameters ({parameters.size}) is not equal to "
                                     f"number of parameters ({expected})", parameters.size)
        return parameters

    def _network_with(self, parameters: np.ndarray) -> NeuralNetwork:
        network = self.neural_network.copy()
        network.set_parameters(parameters)
        return network

    # Evaluation

    def evaluate(self, parameters: Optional[np.ndarray] = None) -> float:
        """Return the performance for ``parameters`` (current ones if None)."""
        self._check_neural_network()
        parameters = self._resolve_parameters(parameters)
        return float(self.calculate_performance(self._network_with(parameters)))

    @abstractmethod
    def calculate_performance(self, neural_network: NeuralNetwork) -> float:
        """Performance of the given (already parameterized) network."""
        pass

    def evaluate_selection(self, parameters: Optional[np.ndarray] = None) -> float:
        """Return the performance on held-out selection data."""
        if not self.has_selection_data():
            return 0.0
        self._check_neural_network()
        parameters = self._resolve_parameters(parameters)
        return float(self.calculate_selection_performance(self._network_with(parameters)))

    def has_selection_data(self) -> bool:
        return False

    def calculate_selection_performance(self, neural_network: NeuralNetwork) -> float:
        return 0.0

    # Gradient

    def has_closed_form_gradient(self) -> bool:
        return type(self).calculate_closed_form_gradient is not PerformanceTerm.calculate_closed_form_gradient

    def calculate_closed_form_gradient(self, neural_network: NeuralNetwork) -> np.ndarray:
        raise NotImplementedError

    def gradient(self, parameters: Optional[np.ndarray] = None) -> np.ndarray:
        """Return the gradient of the performance with respect to the parameters."""
        self._check_neural_network()
        parameters = self._resolve_parameters(parameters)

        if self.has_closed_form_gradient():
            return np.asarray(self.calculate_closed_form_gradient(self._network_with(parameters)), dtype=float)

        if self.numerical_differentiation is None:
            raise ConfigurationError(self.component, "Numerical differentiation pointer is NULL")

        return self.numerical_differentiation.calculate_gradient(self.evaluate, parameters)

    def write_information(self) -> str:
        return ""


class PerformanceFunctional:
    """Objective term plus an optional weighted regularization term.

    Exposes the same evaluation contract as a single term, so training
    algorithms accept either.
    """

    def __init__(self, objective_term: Optional[PerformanceTerm] = None,
                 regularization_term: Optional[PerformanceTerm] = None,
                 regularization_weight: float = 1.0e-3):
        self.objective_term = objective_term
        self.regularization_term = regularization_term
        self.set_regularization_weight(regularization_weight)

    @property
    def neural_network(self) -> Optional[NeuralNetwork]:
        if self.objective_term is None:
            return None
        return self.objective_term.neural_network

    @property
    def parameters_number(self) -> int:
        return self.objective_term.parameters_number

    def set_regularization_weight(self, weight: float):
        if weight < 0:
            raise ConfigurationError('PerformanceFunctional',
                                     "Regularization weight must be non-negative", weight)
        self.regularization_weight = float(weight)

    def check(self):
        if self.objective_term is None:
            raise ConfigurationError('PerformanceFunctional', "Objective term is NULL")
        self.objective_term.check()

        if self.regularization_term is not None:
            self.regularization_term.check()
            if self.regularization_term.neural_network is not self.objective_term.neural_network:
                raise ConfigurationError('PerformanceFunctional',
                                         "Objective and regularization terms use different networks")

    def evaluate(self, parameters: Optional[np.ndarray] = None) -> float:
        performance = self.objective_term.evaluate(parameters)
        if self.regularization_term is not None and self.regularization_weight > 0.0:
            performance += self.regularization_weight * self.regularization_term.evaluate(parameters)
        return performance

    def gradient(self, parameters: Optional[np.ndarray] = None) -> np.ndarray:
        gradient = self.objective_term.gradient(parameters)
        if self.regularization_term is not None and self.regularization_weight > 0.0:
            gradient = gradient + self.regularization_weight * self.regularization_term.gradient(parameters)
        return gradient

    def evaluate_selection(self, parameters: Optional[np.ndarray] = None) -> float:
        return self.objective_term.evaluate_selection(parameters)

    def has_selection_data(self) -> bool:
        return self.objective_term is not None and self.objective_term.has_selection_data()

    def write_information(self) -> str:
        return self.objective_term.write_information() if self.objective_term else ""
