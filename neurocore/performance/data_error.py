"""
Data Error Terms

Squared-error performance terms measured against input/target instances,
with an optional selection subset used for model selection.
"""

import logging
import numpy as np
from typing import Optional
from sklearn.model_selection import train_test_split

from .functional import PerformanceTerm
from ..exceptions import ConfigurationError
from ..neural.networks import NeuralNetwork
from ..numerics.differentiation import NumericalDifferentiation

logger = logging.getLogger(__name__)


def _as_matrix(values) -> Optional[np.ndarray]:
    if values is None:
        return None
    values = np.asarray(values, dtype=float)
    if values.ndim == 1:
        values = values.reshape(-1, 1)
    return values


class SumSquaredError(PerformanceTerm):
    """Sum over instances of the squared output error."""

    def __init__(self, neural_network: Optional[NeuralNetwork] = None,
                 inputs=None, targets=None,
                 selection_inputs=None, selection_targets=None,
                 selection_fraction: float = 0.0,
                 random_state: Optional[int] = None,
                 numerical_differentiation: Optional[NumericalDifferentiation] = None,
                 display: bool = True):
        super().__init__(neural_network, numerical_differentiation, display)

        if not 0.0 <= selection_fraction < 1.0:
            raise ConfigurationError(self.component,
                                     "Selection fraction must be in [0, 1)", selection_fraction)

        inputs = _as_matrix(inputs)
        targets = _as_matrix(targets)
        selection_inputs = _as_matrix(selection_inputs)
        selection_targets = _as_matrix(selection_targets)

        if selection_inputs is None and selection_fraction > 0.0 and inputs is not None:
            inputs, selection_inputs, targets, selection_targets = train_test_split(
                inputs, targets, test_size=selection_fraction, random_state=random_state)
            if display:
                logger.info(f"Split data into {len(inputs)} training and "
                            f"{len(selection_inputs)} selection instances")

        self.inputs = inputs
        self.targets = targets
        self.selection_inputs = selection_inputs
        self.selection_targets = selection_targets

    @property
    def training_instances_number(self) -> int:
        return 0 if self.inputs is None else self.inputs.shape[0]

    @property
    def selection_instances_number(self) -> int:
        return 0 if self.selection_inputs is None else self.selection_inputs.shape[0]

    def has_selection_data(self) -> bool:
        return self.selection_instances_number > 0

    def _check_data(self, inputs, targets, name: str):
        if inputs.shape[0] != targets.shape[0]:
            raise ConfigurationError(self.component,
                                     f"Number of {name} inputs ({inputs.shape[0]}) is not equal to "
                                     f"number of {name} targets ({targets.shape[0]})")
        if inputs.shape[1] != self.neural_network.inputs_number:
            raise ConfigurationError(self.component,
                                     f"Number of {name} input columns ({inputs.shape[1]}) is not equal "
                                     f"to number of inputs ({self.neural_network.inputs_number})")
        if targets.shape[1] != self.neural_network.outputs_number:
            raise ConfigurationError(self.component,
                                     f"Number of {name} target columns ({targets.shape[1]}) is not equal "
                                     f"to number of outputs ({self.neural_network.outputs_number})")

    def check(self):
        super().check()

        if self.inputs is None or self.targets is None or self.training_instances_number == 0:
            raise ConfigurationError(self.component, "Number of training instances is zero")
        self._check_data(self.inputs, self.targets, "training")

        if (self.selection_inputs is None) != (self.selection_targets is None):
            raise ConfigurationError(self.component, "Selection inputs and targets must be given together")
        if self.has_selection_data():
            self._check_data(self.selection_inputs, self.selection_targets, "selection")

    def _normalization(self, instances_number: int) -> float:
        return 1.0

    def _error(self, neural_network: NeuralNetwork, inputs: np.ndarray, targets: np.ndarray) -> float:
        outputs = neural_network.calculate_outputs(inputs)
        return float(np.sum((outputs - targets) ** 2) / self._normalization(inputs.shape[0]))

    def calculate_performance(self, neural_network: NeuralNetwork) -> float:
        return self._error(neural_network, self.inputs, self.targets)

    def calculate_selection_performance(self, neural_network: NeuralNetwork) -> float:
        return self._error(neural_network, self.selection_inputs, self.selection_targets)

    def calculate_closed_form_gradient(self, neural_network: NeuralNetwork) -> np.ndarray:
        scale = 2.0 / self._normalization(self.inputs.shape[0])
        return neural_network.calculate_parameters_gradient(
            self.inputs, lambda outputs: scale * (outputs - self.targets))

    def write_information(self) -> str:
        return (f"Training instances: {self.training_instances_number}, "
                f"selection instances: {self.selection_instances_number}")


class MeanSquaredError(SumSquaredError):
    """Sum squared error divided by the number of instances."""

    def _normalization(self, instances_number: int) -> float:
        return float(instances_number)
