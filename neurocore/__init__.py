"""
neurocore

Neural network training framework: performance functionals, training
algorithms with pluggable optimizers, and order selection over the number of
hidden units, built on numerical differentiation and integration primitives.
"""

__version__ = "0.1.0"
__all__ = ['exceptions', 'neural', 'numerics', 'performance', 'training', 'selection']

from .exceptions import ConfigurationError, NeurocoreError, NoValidOrderError, TrainingError
from .neural import MultilayerPerceptron, NeuralNetwork
from .numerics import NumericalDifferentiation, NumericalIntegration
from .performance import MeanSquaredError, PerformanceFunctional, SolutionsError
from .training import TrainingAlgorithm, TrainingConfig
from .selection import OrderSelectionConfig, get_order_selection_algorithm
