"""End-to-end runs: real networks trained by quasi-Newton inside an order search."""

import numpy as np
import pytest

from neurocore.neural import MultilayerPerceptron
from neurocore.performance import OrdinaryDifferentialEquations, SolutionsError
from neurocore.selection import OrderSelectionConfig, get_order_selection_algorithm
from neurocore.training import StoppingCondition, TrainingAlgorithm, TrainingConfig


def search_config(**overrides):
    settings = {'minimum_order': 1, 'maximum_order': 4, 'display': False, 'random_seed': 7}
    settings.update(overrides)
    return OrderSelectionConfig(**settings)


class TestOrderSelectionPipeline:

    @pytest.mark.parametrize("name", ['incremental', 'golden_section', 'simulated_annealing'])
    def test_network_left_at_reported_optimum(self, name, make_training_algorithm):
        training = make_training_algorithm()
        network = training.performance_functional.neural_network

        results = get_order_selection_algorithm(name, training, search_config()).perform_order_selection()

        assert 1 <= results.optimal_order <= 4
        assert results.final_selection_performance == min(results.selection_performance_data)
        assert network.get_order() == results.optimal_order
        np.testing.assert_array_equal(network.get_parameters(), results.minimal_parameters)
        assert training.performance_functional.evaluate_selection() == \
            pytest.approx(results.final_selection_performance)
        assert len(results.order_data) == len(set(results.order_data))

    def test_single_trial_reductions_agree(self, make_training_algorithm):
        selections = []
        for method in ('Minimum', 'Maximum', 'Mean'):
            training = make_training_algorithm(seed=3)
            selection = get_order_selection_algorithm(
                'incremental', training, search_config(performance_calculation_method=method))
            selections.append(selection.perform_order_selection().selection_performance_data)

        assert selections[0] == selections[1] == selections[2]

    def test_more_trials_do_not_worsen_minimum(self, make_training_algorithm):
        single = get_order_selection_algorithm(
            'incremental', make_training_algorithm(seed=5), search_config(maximum_order=2)).perform_order_selection()
        several = get_order_selection_algorithm(
            'incremental', make_training_algorithm(seed=5),
            search_config(maximum_order=2, trials_number=3)).perform_order_selection()

        # The first trial at the first order starts from the same network
        assert several.selection_performance_data[0] <= single.selection_performance_data[0]
        assert several.trials_number == 6

    def test_training_improves_fit(self, make_training_algorithm):
        training = make_training_algorithm(architecture=(1, 4, 1), maximum_iterations_number=50)
        before = training.performance_functional.evaluate()

        results = training.perform_training()

        assert results.final_performance < before
        assert results.stopping_condition in list(StoppingCondition)


class TestSolutionsErrorTraining:

    def test_quasi_newton_reduces_trajectory_error(self):
        network = MultilayerPerceptron([1, 2, 1], rng=np.random.default_rng(4))

        def dots(net, variables):
            return net.calculate_outputs([[variables[0]]])[0]

        model = OrdinaryDifferentialEquations(0.0, 1.0, [0.0], points_number=21, dots_function=dots)
        term = SolutionsError(network, model, lambda t: 1.0 - np.cos(t), display=False)
        training = TrainingAlgorithm(term, 'quasi_newton',
                                     TrainingConfig(maximum_iterations_number=10, display=False))

        results = training.perform_training()

        assert results.iterations_number >= 1
        assert results.performance_history[-1] < results.performance_history[0]
        np.testing.assert_array_equal(network.get_parameters(), results.final_parameters)


class TestExample:

    def test_synthetic_data(self):
        pytest.importorskip("matplotlib")
        from neurocore.example import generate_synthetic_data

        x, y = generate_synthetic_data(n_samples=50, random_state=1)

        assert x.shape == (50, 1)
        assert y.shape == (50, 1)
        assert np.all(np.diff(x[:, 0]) >= 0)
