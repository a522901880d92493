"""
Order Selection Example

This module demonstrates how to use the neurocore components to fit a
multilayer perceptron to noisy data and choose its number of hidden units
by order selection.
"""

import logging
import numpy as np
import matplotlib.pyplot as plt
from typing import Tuple

from .neural import MultilayerPerceptron, set_seed
from .performance import MeanSquaredError, NeuralParametersNorm, PerformanceFunctional
from .selection import OrderSelectionConfig, OrderSelectionResults, get_order_selection_algorithm
from .training import QuasiNewtonMethod, TrainingAlgorithm, TrainingConfig, TrainingRateAlgorithm


def generate_synthetic_data(n_samples: int = 200,
                            noise: float = 0.1,
                            random_state: int = 42) -> Tuple[np.ndarray, np.ndarray]:
    """Generate a noisy sine curve.

    Returns:
        Tuple of (inputs, targets), both column matrices.
    """
    rng = np.random.default_rng(random_state)
    x = np.sort(rng.uniform(-np.pi, np.pi, n_samples)).reshape(-1, 1)
    y = np.sin(x) + rng.normal(0.0, noise, x.shape)
    return x, y


def plot_order_selection(results: OrderSelectionResults):
    """Plot training and selection performance against the order."""
    order = np.argsort(results.order_data)
    orders = np.asarray(results.order_data)[order]

    fig, ax = plt.subplots(figsize=(6, 4))
    if results.performance_data:
        ax.plot(orders, np.asarray(results.performance_data)[order], 'o-', label='Training performance')
    if results.selection_performance_data:
        ax.plot(orders, np.asarray(results.selection_performance_data)[order], 's-',
                label='Selection performance')
    ax.axvline(results.optimal_order, color='grey', linestyle='--', label='Optimal order')

    ax.set_xlabel('Hidden units')
    ax.set_ylabel('Mean squared error')
    ax.set_title('Order selection')
    ax.legend()
    ax.grid(True)

    plt.tight_layout()
    plt.show()


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    rng = set_seed(42)

    print("Generating synthetic data...")
    inputs, targets = generate_synthetic_data()

    network = MultilayerPerceptron([1, 3, 1], hidden_activation='tanh', rng=rng)

    objective = MeanSquaredError(network, inputs, targets, selection_fraction=0.25, random_state=42)
    functional = PerformanceFunctional(objective, NeuralParametersNorm(network), regularization_weight=1.0e-3)

    training_algorithm = TrainingAlgorithm(
        functional,
        optimizer=QuasiNewtonMethod('BFGS', TrainingRateAlgorithm('BrentMethod')),
        config=TrainingConfig(maximum_iterations_number=200, display=False),
    )

    config = OrderSelectionConfig(
        minimum_order=1,
        maximum_order=8,
        trials_number=2,
        performance_calculation_method='Minimum',
        maximum_selection_failures=4,
        random_seed=42,
    )

    print("\nPerforming order selection...")
    selection = get_order_selection_algorithm('incremental', training_algorithm, config)
    results = selection.perform_order_selection()

    print()
    print(results.to_string())

    print("\nPlotting order selection...")
    plot_order_selection(results)

    outputs = network.calculate_outputs(inputs)
    print(f"\nFinal training error: {np.mean((outputs - targets) ** 2):.4f}")


if __name__ == "__main__":
    main()
