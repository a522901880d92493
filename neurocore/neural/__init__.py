"""
Neural Network Module

This module contains the network components consumed by the training core:
layers, the multilayer perceptron and weight utilities.
"""

from .layers import *
from .networks import *
from .utils import *

__all__ = [
    # Networks
    'NeuralNetwork',
    'MultilayerPerceptron',

    # Layers
    'Layer',
    'PerceptronLayer',

    # Utils
    'get_initializer',
    'get_activation',
    'save_weights',
    'load_weights',
    'set_seed',
]
