"""
Neural Network Architectures

This module contains the network base class, which exposes every trainable
weight as a single flat parameter vector, and the multilayer perceptron whose
last hidden layer size is the model order searched by order selection.
"""

import copy
from typing import List, Optional
import numpy as np
from abc import ABC, abstractmethod

from .layers import PerceptronLayer
from .utils import save_weights, load_weights
from ..exceptions import ConfigurationError


class NeuralNetwork(ABC):
    """Base class for all neural network architectures."""

    def __init__(self):
        self.layers = []

    @abstractmethod
    def forward(self, x: np.ndarray) -> np.ndarray:
        """Forward pass through the network."""
        pass

    @abstractmethod
    def backward(self, grad: np.ndarray) -> np.ndarray:
        """Backward pass through the network."""
        pass

    @abstractmethod
    def reconfigure(self, order: int):
        """Change the structural order (capacity) of the network."""
        pass

    @abstractmethod
    def get_order(self) -> int:
        """Return the current structural order."""
        pass

    def add(self, layer):
        """Add a layer to the network."""
        self.layers.append(layer)
        return self

    def get_parameter_count(self) -> int:
        """Return the number of trainable parameters."""
        return int(sum(layer.parameters_number for layer in self.layers))

    def get_parameters(self) -> np.ndarray:
        """Return all weights as a new flat vector (layer by layer, W then b)."""
        if not self.layers:
            return np.zeros(0)
        return np.concatenate([
            np.concatenate([layer.params['W'].ravel(), layer.params['b'].ravel()])
            for layer in self.layers
        ])

    def set_parameters(self, parameters: np.ndarray):
        """Distribute a flat parameter vector over the layers."""
        parameters = np.asarray(parameters, dtype=float).ravel()
        expected = self.get_parameter_count()
        if parameters.size != expected:
            raise ConfigurationError(type(self).__name__,
                                     f"Size of parameters ({parameters.size}) is not equal "
                                     f"to number of parameters ({expected})", parameters.size)
        offset = 0
        for layer in self.layers:
            weights = {}
            for name in ('W', 'b'):
                shape = layer.params[name].shape
                size = layer.params[name].size
                weights[name] = parameters[offset:offset + size].reshape(shape)
                offset += size
            layer.set_weights(weights)

    def randomize_parameters_normal(self, mean: float = 0.0, std: float = 1.0,
                                    rng: Optional[np.random.Generator] = None):
        """Draw every parameter from a normal distribution."""
        rng = rng if rng is not None else np.random.default_rng()
        self.set_parameters(rng.normal(mean, std, self.get_parameter_count()))

    def perturbate_parameters(self, amount: float,
                              rng: Optional[np.random.Generator] = None):
        """Add uniform noise in [-amount, amount] to every parameter."""
        rng = rng if rng is not None else np.random.default_rng()
        parameters = self.get_parameters()
        self.set_parameters(parameters + rng.uniform(-amount, amount, parameters.size))

    def copy(self) -> 'NeuralNetwork':
        """Return a deep, independent copy of the network."""
        return copy.deepcopy(self)

    def save_weights(self, filepath: str):
        """Save the model weights to a file."""
        weights = {}
        for i, layer in enumerate(self.layers):
            for name, value in layer.get_weights().items():
                weights[f'layer_{i}_{name}'] = value
        save_weights(weights, filepath)

    def load_weights(self, filepath: str):
        """Load model weights from a file."""
        data = load_weights(filepath)
        for i, layer in enumerate(self.layers):
            layer_weights = {}
            for name in ('W', 'b'):
                key = f'layer_{i}_{name}'
                if key in data:
                    layer_weights[name] = data[key]
            if layer_weights:
                layer.set_weights(layer_weights)


class MultilayerPerceptron(NeuralNetwork):
    """Feedforward network of perceptron layers.

    The architecture lists the number of inputs followed by the size of every
    layer, e.g. ``[1, 5, 1]`` is one input, five hidden units and one output.
    """

    def __init__(self, architecture: List[int],
                 hidden_activation: str = 'tanh',
                 output_activation: str = 'linear',
                 rng: Optional[np.random.Generator] = None):
        super().__init__()
        if len(architecture) < 2:
            raise ConfigurationError('MultilayerPerceptron',
                                     "Architecture must contain at least inputs and outputs numbers",
                                     architecture)
        self.hidden_activation = hidden_activation
        self.output_activation = output_activation
        self.rng = rng if rng is not None else np.random.default_rng()

        for i in range(1, len(architecture)):
            activation = output_activation if i == len(architecture) - 1 else hidden_activation
            self.add(PerceptronLayer(architecture[i - 1], architecture[i],
                                     activation=activation, rng=self.rng))

    @property
    def inputs_number(self) -> int:
        return self.layers[0].inputs_number

    @property
    def outputs_number(self) -> int:
        return self.layers[-1].perceptrons_number

    @property
    def architecture(self) -> List[int]:
        return [self.inputs_number] + [layer.perceptrons_number for layer in self.layers]

    def forward(self, x: np.ndarray) -> np.ndarray:
        for layer in self.layers:
            x = layer.forward(x)
        return x

    def backward(self, grad: np.ndarray) -> np.ndarray:
        for layer in reversed(self.layers):
            grad = layer.backward(grad)
        return grad

    def calculate_outputs(self, inputs: np.ndarray) -> np.ndarray:
        """Return the outputs for a batch of inputs (rows are instances)."""
        inputs = np.atleast_2d(np.asarray(inputs, dtype=float))
        if inputs.shape[1] != self.inputs_number:
            raise ConfigurationError('MultilayerPerceptron',
                                     f"Number of input columns ({inputs.shape[1]}) is not equal "
                                     f"to number of inputs ({self.inputs_number})", inputs.shape)
        return self.forward(inputs)

    def calculate_parameters_gradient(self, inputs: np.ndarray,
                                      outputs_gradient_function) -> np.ndarray:
        """Backpropagate an output error through the network.

        Args:
            inputs: Batch of inputs.
            outputs_gradient_function: Maps the batch outputs to the gradient of
                the objective with respect to those outputs.

        Returns:
            Gradient with respect to the flat parameter vector.
        """
        outputs = self.calculate_outputs(inputs)
        self.backward(outputs_gradient_function(outputs))
        return np.concatenate([
            np.concatenate([layer.grads['W'].ravel(), layer.grads['b'].ravel()])
            for layer in self.layers
        ])

    def get_order(self) -> int:
        if len(self.layers) < 2:
            raise ConfigurationError('MultilayerPerceptron', "Network has no hidden layer")
        return self.layers[-2].perceptrons_number

    def reconfigure(self, order: int):
        """Grow or prune the last hidden layer to ``order`` perceptrons.

        Surviving perceptrons keep their weights; pruning removes the most
        recently added units first.
        """
        if len(self.layers) < 2:
            raise ConfigurationError('MultilayerPerceptron', "Network has no hidden layer")
        if order < 1:
            raise ConfigurationError('MultilayerPerceptron', "Order must be at least 1", order)

        hidden_layer = self.layers[-2]
        next_layer = self.layers[-1]
        current = hidden_layer.perceptrons_number

        if order > current:
            hidden_layer.grow_perceptrons(order - current)
            next_layer.grow_inputs(order - current)
        else:
            for _ in range(current - order):
                hidden_layer.prune_perceptron(hidden_layer.perceptrons_number - 1)
                next_layer.prune_input(next_layer.inputs_number - 1)
