"""
Regularization Terms
"""

import numpy as np
from typing import Optional

from .functional import PerformanceTerm
from ..neural.networks import NeuralNetwork


class NeuralParametersNorm(PerformanceTerm):
    """Euclidean norm of the network parameters."""

    def __init__(self, neural_network: Optional[NeuralNetwork] = None, display: bool = True):
        super().__init__(neural_network, None, display)

    def calculate_performance(self, neural_network: NeuralNetwork) -> float:
        return float(np.linalg.norm(neural_network.get_parameters()))

    def calculate_closed_form_gradient(self, neural_network: NeuralNetwork) -> np.ndarray:
        parameters = neural_network.get_parameters()
        norm = np.linalg.norm(parameters)
        if norm == 0.0:
            return np.zeros_like(parameters)
        return parameters / norm
