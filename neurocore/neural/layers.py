"""
Neural Network Layers

This module contains the layer implementations used to build multilayer
perceptrons: a base class and a fully connected perceptron layer that can
grow and prune its units.
"""

import numpy as np
from typing import Optional, Dict

from .utils import get_activation, get_initializer
from ..exceptions import ConfigurationError


class Layer:
    """Base class for all neural network layers."""

    def __init__(self):
        """Initialize the base layer with empty parameters and gradients."""
        self.params = {}
        self.grads = {}

    def forward(self, x: np.ndarray) -> np.ndarray:
        """Forward pass."""
        raise NotImplementedError

    def backward(self, grad: np.ndarray) -> np.ndarray:
        """Backward pass."""
        raise NotImplementedError

    @property
    def parameters_number(self) -> int:
        return int(sum(p.size for p in self.params.values()))

    def get_weights(self) -> Dict[str, np.ndarray]:
        """Get the layer's weights."""
        return {}

    def set_weights(self, weights: Dict[str, np.ndarray]):
        """Set the layer's weights."""
        pass


class PerceptronLayer(Layer):
    """Fully connected layer of perceptrons."""

    def __init__(self, inputs_number: int, perceptrons_number: int,
                 activation: str = 'tanh',
                 rng: Optional[np.random.Generator] = None):
        """Initialize a perceptron layer.

        Args:
            inputs_number: Number of inputs to every perceptron
            perceptrons_number: Number of perceptrons (units) in the layer
            activation: Activation function ('tanh', 'sigmoid', 'relu', 'linear')
            rng: Random generator used for weight initialization
        """
        super().__init__()
        if inputs_number < 1 or perceptrons_number < 1:
            raise ConfigurationError(
                'PerceptronLayer', "Numbers of inputs and perceptrons must be at least 1",
                (inputs_number, perceptrons_number))

        self.activation = activation
        self._activation, self._activation_derivative = get_activation(activation)
        self.rng = rng if rng is not None else np.random.default_rng()

        initializer = get_initializer('xavier', rng=self.rng)
        self.params['W'] = initializer((inputs_number, perceptrons_number))
        self.params['b'] = np.zeros((1, perceptrons_number))

        self.grads = {
            'W': np.zeros_like(self.params['W']),
            'b': np.zeros_like(self.params['b'])
        }

        # Cache for backward pass
        self.cache = {}

    @property
    def inputs_number(self) -> int:
        return self.params['W'].shape[0]

    @property
    def perceptrons_number(self) -> int:
        return self.params['W'].shape[1]

    def forward(self, x: np.ndarray) -> np.ndarray:
        """Forward pass for the perceptron layer."""
        z = np.dot(x, self.params['W']) + self.params['b']
        self.cache['x'] = x
        self.cache['z'] = z
        return self._activation(z)

    def backward(self, grad: np.ndarray) -> np.ndarray:
        """Backward pass.

        Accumulates the summed (not averaged) gradients of the weights and
        returns the gradient with respect to the layer inputs.
        """
        x = self.cache['x']
        delta = grad * self._activation_derivative(self.cache['z'])

        self.grads['W'] = np.dot(x.T, delta)
        self.grads['b'] = np.sum(delta, axis=0, keepdims=True)

        return np.dot(delta, self.params['W'].T)

    def grow_perceptrons(self, count: int):
        """Append new randomly initialized perceptrons."""
        initializer = get_initializer('xavier', rng=self.rng)
        new_weights = initializer((self.inputs_number, count))
        self.params['W'] = np.hstack([self.params['W'], new_weights])
        self.params['b'] = np.hstack([self.params['b'], np.zeros((1, count))])
        self._reset_gradients()

    def prune_perceptron(self, index: int):
        """Remove the perceptron at the given index."""
        if self.perceptrons_number <= 1:
            raise ConfigurationError('PerceptronLayer', "Cannot prune the last perceptron", index)
        self.params['W'] = np.delete(self.params['W'], index, axis=1)
        self.params['b'] = np.delete(self.params['b'], index, axis=1)
        self._reset_gradients()

    def grow_inputs(self, count: int):
        """Append inputs, with small random synaptic weights."""
        new_rows = self.rng.normal(0.0, 0.01, (count, self.perceptrons_number))
        self.params['W'] = np.vstack([self.params['W'], new_rows])
        self._reset_gradients()

    def prune_input(self, index: int):
        """Remove the input at the given index."""
        if self.inputs_number <= 1:
            raise ConfigurationError('PerceptronLayer', "Cannot prune the last input", index)
        self.params['W'] = np.delete(self.params['W'], index, axis=0)
        self._reset_gradients()

    def _reset_gradients(self):
        self.grads = {name: np.zeros_like(value) for name, value in self.params.items()}
        self.cache = {}

    def get_weights(self) -> Dict[str, np.ndarray]:
        return {'W': self.params['W'], 'b': self.params['b']}

    def set_weights(self, weights: Dict[str, np.ndarray]):
        if weights['W'].shape != self.params['W'].shape or weights['b'].shape != self.params['b'].shape:
            raise ConfigurationError('PerceptronLayer', "Weights shape does not match layer shape",
                                     (weights['W'].shape, weights['b'].shape))
        self.params['W'] = np.array(weights['W'], dtype=float)
        self.params['b'] = np.array(weights['b'], dtype=float)
