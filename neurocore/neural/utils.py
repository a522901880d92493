"""
Neural Network Utilities

Weight initializers, activation functions with their derivatives, weight
persistence and seeding.
"""

import os
import random
import numpy as np
from typing import Dict, Tuple, Optional, Callable

from ..exceptions import ConfigurationError

# Type aliases
WeightInitializer = Callable[[Tuple[int, ...]], np.ndarray]
Activation = Tuple[Callable[[np.ndarray], np.ndarray], Callable[[np.ndarray], np.ndarray]]


def _logistic(combinations):
    return 1.0 / (1.0 + np.exp(-combinations))


def _logistic_derivative(combinations):
    activations = _logistic(combinations)
    return activations * (1.0 - activations)


def _tanh_derivative(combinations):
    return 1.0 - np.tanh(combinations) ** 2


def _relu(combinations):
    return np.maximum(0.0, combinations)


def _relu_derivative(combinations):
    return (combinations > 0).astype(float)


def _identity(combinations):
    return combinations


# Derivatives take the combinations, not the activations
ACTIVATIONS: Dict[str, Activation] = {
    'sigmoid': (_logistic, _logistic_derivative),
    'tanh': (np.tanh, _tanh_derivative),
    'relu': (_relu, _relu_derivative),
    'linear': (_identity, np.ones_like),
}


def get_activation(name: str) -> Activation:
    """Return ``(activation, derivative)`` for ``'sigmoid'``, ``'tanh'``, ``'relu'`` or ``'linear'``."""
    if name not in ACTIVATIONS:
        raise ConfigurationError('get_activation', f"Unknown activation function: {name}", name)
    return ACTIVATIONS[name]


def get_initializer(name: str = 'xavier',
                    rng: Optional[np.random.Generator] = None,
                    **kwargs) -> WeightInitializer:
    """Get a weight initializer.

    Args:
        name: ``'xavier'`` (uniform Glorot, keyword ``scale``).
        rng: Generator to draw from. A fresh default generator is used if None.

    Returns:
        A function mapping a ``(fan_in, fan_out)`` shape to an array.
    """
    rng = rng if rng is not None else np.random.default_rng()

    if name == 'xavier':
        scale = kwargs.get('scale', 1.0)

        def xavier(shape):
            if len(shape) != 2:
                raise ConfigurationError('get_initializer', "Xavier initializer requires a 2D shape", shape)
            limit = np.sqrt(6.0 * scale / (shape[0] + shape[1]))
            return rng.uniform(-limit, limit, shape)
        return xavier

    raise ConfigurationError('get_initializer', f"Unknown initializer: {name}", name)


def _is_hdf5(filepath: str) -> bool:
    return filepath.endswith(('.h5', '.hdf5'))


def save_weights(weights: Dict[str, np.ndarray], filepath):
    """Write named weight arrays to ``.npz`` (compressed) or ``.h5``."""
    filepath = os.fspath(filepath)
    if filepath.endswith('.npz'):
        np.savez_compressed(filepath, **weights)
    elif _is_hdf5(filepath):
        import h5py
        with h5py.File(filepath, 'w') as f:
            for name, value in weights.items():
                f.create_dataset(name, data=value)
    else:
        raise ValueError(f"Unsupported weights format: {filepath}. Use .npz or .h5")


def load_weights(filepath) -> Dict[str, np.ndarray]:
    """Read the arrays written by :func:`save_weights`."""
    filepath = os.fspath(filepath)
    if filepath.endswith('.npz'):
        with np.load(filepath, allow_pickle=False) as data:
            return {name: data[name] for name in data.files}
    if _is_hdf5(filepath):
        import h5py
        with h5py.File(filepath, 'r') as f:
            return {name: f[name][()] for name in f.keys()}
    raise ValueError(f"Unsupported weights format: {filepath}. Use .npz or .h5")


def set_seed(seed: int = 42) -> np.random.Generator:
    """Seed the global generators and return a numpy Generator with the same seed."""
    random.seed(seed)
    np.random.seed(seed)
    os.environ['PYTHONHASHSEED'] = str(seed)
    return np.random.default_rng(seed)
