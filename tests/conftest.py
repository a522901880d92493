"""
Pytest Configuration and Fixtures for neurocore
================================================

Shared fixtures and helper performance terms for the test suite.
"""

import numpy as np
import pytest

from neurocore.exceptions import TrainingError
from neurocore.neural import MultilayerPerceptron
from neurocore.numerics import NumericalDifferentiation
from neurocore.performance import MeanSquaredError, PerformanceTerm
from neurocore.training import TrainingAlgorithm, TrainingAlgorithmResults, TrainingConfig


# ============================================================================
# Helper performance terms
# ============================================================================


class QuadraticTerm(PerformanceTerm):
    """Weighted squared distance of the parameters to a target vector."""

    def __init__(self, neural_network, target, scales=None, numerical_differentiation=None):
        super().__init__(neural_network, numerical_differentiation)
        self.target = np.asarray(target, dtype=float)
        self.scales = np.ones_like(self.target) if scales is None else np.asarray(scales, dtype=float)

    def calculate_performance(self, neural_network):
        return float(np.sum(self.scales * (neural_network.get_parameters() - self.target) ** 2))


class ConstantTerm(PerformanceTerm):
    """Performance that does not depend on the parameters."""

    def calculate_performance(self, neural_network):
        return 3.0

    def calculate_closed_form_gradient(self, neural_network):
        return np.zeros(neural_network.get_parameter_count())


class ExplodingTerm(PerformanceTerm):
    """Raises once evaluated away from the initial parameters."""

    def calculate_performance(self, neural_network):
        raise RuntimeError("simulation diverged")


class NaNTerm(PerformanceTerm):
    """Returns a non-finite performance."""

    def calculate_performance(self, neural_network):
        return float('nan')


class ScriptedTrainingAlgorithm:
    """Stands in for a training algorithm with a known selection curve.

    ``selection_by_order`` maps an order to its selection performance, or to
    a list of values consumed one per trial. Orders in ``failing_orders``
    raise TrainingError.
    """

    class _Functional:
        def __init__(self, neural_network):
            self.neural_network = neural_network

        def has_selection_data(self):
            return True

    def __init__(self, neural_network, selection_by_order, failing_orders=()):
        self.performance_functional = self._Functional(neural_network)
        self.selection_by_order = {order: (list(value) if isinstance(value, (list, tuple)) else value)
                                   for order, value in selection_by_order.items()}
        self.failing_orders = set(failing_orders)
        self.trained_orders = []

    def check(self):
        pass

    def perform_training(self):
        network = self.performance_functional.neural_network
        order = network.get_order()
        self.trained_orders.append(order)
        if order in self.failing_orders:
            raise TrainingError("scripted failure", 0)

        value = self.selection_by_order[order]
        selection_performance = value.pop(0) if isinstance(value, list) else value

        parameters = np.full(network.get_parameter_count(), float(selection_performance))
        network.set_parameters(parameters)
        return TrainingAlgorithmResults(final_parameters=parameters,
                                        final_performance=selection_performance / 2.0,
                                        final_selection_performance=selection_performance)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(0)


@pytest.fixture
def mlp():
    """Small 1-3-1 perceptron."""
    return MultilayerPerceptron([1, 3, 1], rng=np.random.default_rng(0))


@pytest.fixture
def sine_data():
    """Training and selection samples of a sine curve."""
    x = np.linspace(-2.0, 2.0, 40).reshape(-1, 1)
    x_selection = np.linspace(-1.9, 1.9, 15).reshape(-1, 1)
    return x, np.sin(x), x_selection, np.sin(x_selection)


@pytest.fixture
def mse_term(mlp, sine_data):
    x, y, x_selection, y_selection = sine_data
    return MeanSquaredError(mlp, x, y, selection_inputs=x_selection, selection_targets=y_selection)


@pytest.fixture
def quiet_config():
    """Short, silent training configuration."""
    return TrainingConfig(maximum_iterations_number=20, display=False)


@pytest.fixture
def quadratic_term():
    network = MultilayerPerceptron([1, 1, 1], rng=np.random.default_rng(1))
    return QuadraticTerm(network, target=[0.5, -1.0, 2.0, 0.25], scales=[1.0, 4.0, 9.0, 16.0],
                         numerical_differentiation=NumericalDifferentiation())


@pytest.fixture
def make_training_algorithm(sine_data):
    """Build a fresh network, MSE term and training algorithm from a seed."""

    def factory(seed=0, architecture=(1, 2, 1), **config):
        x, y, x_selection, y_selection = sine_data
        network = MultilayerPerceptron(list(architecture), rng=np.random.default_rng(seed))
        term = MeanSquaredError(network, x, y, selection_inputs=x_selection, selection_targets=y_selection)
        settings = {'maximum_iterations_number': 15, 'display': False}
        settings.update(config)
        return TrainingAlgorithm(term, 'quasi_newton', TrainingConfig(**settings))

    return factory
