"""Tests for performance terms, functionals and mathematical models."""

import numpy as np
import pytest

from conftest import QuadraticTerm
from neurocore.exceptions import ConfigurationError
from neurocore.neural import MultilayerPerceptron
from neurocore.numerics import NumericalDifferentiation
from neurocore.performance import (MeanSquaredError, NeuralParametersNorm, OrdinaryDifferentialEquations,
                                   PerformanceFunctional, SolutionsError, SolutionsErrorMethod,
                                   SumSquaredError)


def constant_model(initial=1.0, points_number=101):
    """y' = 0 on [0, 1]."""
    return OrdinaryDifferentialEquations(0.0, 1.0, [initial], points_number=points_number,
                                         dots_function=lambda network, variables: np.zeros(1))


class TestPerformanceTerm:

    def test_evaluate_is_idempotent_and_pure(self, mse_term, mlp):
        before = mlp.get_parameters()

        first = mse_term.evaluate()
        second = mse_term.evaluate()

        assert first == second
        np.testing.assert_array_equal(mlp.get_parameters(), before)

    def test_evaluate_at_other_parameters_leaves_network(self, mse_term, mlp):
        before = mlp.get_parameters()

        value = mse_term.evaluate(np.zeros(mlp.get_parameter_count()))

        # Zero weights give zero outputs
        assert value == pytest.approx(np.mean(mse_term.targets ** 2))
        np.testing.assert_array_equal(mlp.get_parameters(), before)

    def test_parameters_size_mismatch(self, mse_term):
        with pytest.raises(ConfigurationError):
            mse_term.evaluate(np.zeros(3))

    def test_unbound_network(self):
        term = MeanSquaredError(None, np.zeros((3, 1)), np.zeros((3, 1)))

        with pytest.raises(ConfigurationError, match="neural network"):
            term.check()

    def test_numerical_gradient_requires_differentiation(self, mlp):
        term = QuadraticTerm(mlp, np.zeros(mlp.get_parameter_count()))

        assert not term.has_closed_form_gradient()
        with pytest.raises(ConfigurationError):
            term.gradient()

    def test_numerical_gradient(self, mlp):
        target = np.linspace(-1.0, 1.0, mlp.get_parameter_count())
        term = QuadraticTerm(mlp, target, numerical_differentiation=NumericalDifferentiation())
        parameters = mlp.get_parameters()

        np.testing.assert_allclose(term.gradient(), 2.0 * (parameters - target), atol=1e-6)


class TestDataError:

    def test_closed_form_gradient_matches_numerical(self, mse_term):
        assert mse_term.has_closed_form_gradient()

        numerical = NumericalDifferentiation().calculate_gradient(mse_term.evaluate,
                                                                  mse_term.neural_network.get_parameters())

        np.testing.assert_allclose(mse_term.gradient(), numerical, rtol=1e-4, atol=1e-6)

    def test_sum_squared_error_is_unnormalised(self, mlp, sine_data):
        x, y, _, _ = sine_data
        mse = MeanSquaredError(mlp, x, y)
        sse = SumSquaredError(mlp, x, y)

        assert sse.evaluate() == pytest.approx(len(x) * mse.evaluate())
        np.testing.assert_allclose(sse.gradient(), len(x) * mse.gradient())

    def test_selection_performance(self, mse_term):
        assert mse_term.has_selection_data()

        outputs = mse_term.neural_network.calculate_outputs(mse_term.selection_inputs)
        expected = np.mean((outputs - mse_term.selection_targets) ** 2)

        assert mse_term.evaluate_selection() == pytest.approx(expected)

    def test_no_selection_data(self, mlp, sine_data):
        x, y, _, _ = sine_data
        term = MeanSquaredError(mlp, x, y)

        assert not term.has_selection_data()
        assert term.evaluate_selection() == 0.0

    def test_selection_fraction_split(self, mlp, sine_data):
        x, y, _, _ = sine_data
        term = MeanSquaredError(mlp, x, y, selection_fraction=0.25, random_state=0, display=False)

        assert term.selection_instances_number == 10
        assert term.training_instances_number == 30
        term.check()

    def test_invalid_selection_fraction(self, mlp, sine_data):
        x, y, _, _ = sine_data

        with pytest.raises(ConfigurationError):
            MeanSquaredError(mlp, x, y, selection_fraction=1.5)

    def test_check_width_mismatch(self, mlp):
        term = MeanSquaredError(mlp, np.zeros((5, 2)), np.zeros((5, 1)))

        with pytest.raises(ConfigurationError, match="input columns"):
            term.check()

    def test_check_no_instances(self, mlp):
        with pytest.raises(ConfigurationError, match="training instances"):
            MeanSquaredError(mlp).check()


class TestRegularization:

    def test_norm_and_gradient(self, mlp):
        mlp.set_parameters(np.full(10, 2.0))
        term = NeuralParametersNorm(mlp)

        assert term.evaluate() == pytest.approx(2.0 * np.sqrt(10))
        np.testing.assert_allclose(term.gradient(), np.full(10, 1.0 / np.sqrt(10)))

    def test_gradient_at_origin(self, mlp):
        mlp.set_parameters(np.zeros(10))

        np.testing.assert_array_equal(NeuralParametersNorm(mlp).gradient(), np.zeros(10))


class TestPerformanceFunctional:

    def test_weighted_sum(self, mse_term, mlp):
        regularization = NeuralParametersNorm(mlp)
        functional = PerformanceFunctional(mse_term, regularization, regularization_weight=0.1)

        assert functional.evaluate() == pytest.approx(mse_term.evaluate() + 0.1 * regularization.evaluate())
        np.testing.assert_allclose(functional.gradient(),
                                   mse_term.gradient() + 0.1 * regularization.gradient())
        assert functional.evaluate_selection() == mse_term.evaluate_selection()
        assert functional.has_selection_data()
        assert functional.neural_network is mlp
        functional.check()

    def test_without_regularization(self, mse_term):
        functional = PerformanceFunctional(mse_term)

        assert functional.evaluate() == mse_term.evaluate()

    def test_negative_weight(self, mse_term):
        with pytest.raises(ConfigurationError):
            PerformanceFunctional(mse_term, regularization_weight=-1.0)

    def test_missing_objective(self):
        with pytest.raises(ConfigurationError):
            PerformanceFunctional().check()

    def test_terms_on_different_networks(self, mse_term):
        other = MultilayerPerceptron([1, 3, 1])
        functional = PerformanceFunctional(mse_term, NeuralParametersNorm(other))

        with pytest.raises(ConfigurationError):
            functional.check()


class TestOrdinaryDifferentialEquations:

    def test_exponential_growth(self, mlp):
        model = OrdinaryDifferentialEquations(0.0, 1.0, [1.0],
                                              dots_function=lambda network, variables: variables[1:])
        solutions = model.calculate_solutions(mlp)

        assert solutions.shape == (101, 2)
        assert solutions[0, 0] == 0.0
        assert solutions[-1, 0] == 1.0
        assert model.calculate_final_solutions(mlp)[1] == pytest.approx(np.e, abs=1e-8)
        np.testing.assert_allclose(model.simulate(mlp), solutions)

    def test_variable_counts(self):
        model = OrdinaryDifferentialEquations(0.0, 2.0, [1.0, 0.0])

        assert model.independent_variables_number == 1
        assert model.dependent_variables_number == 2
        assert model.count_variables_number() == 3

    def test_invalid_interval(self):
        with pytest.raises(ConfigurationError):
            OrdinaryDifferentialEquations(1.0, 0.0, [1.0])

    def test_missing_dots_function(self, mlp):
        with pytest.raises(ConfigurationError):
            OrdinaryDifferentialEquations(0.0, 1.0, [1.0]).calculate_solutions(mlp)


class TestSolutionsError:

    def test_zero_error_on_matching_target(self, mlp):
        term = SolutionsError(mlp, constant_model(), lambda t: np.ones((t.shape[0], 1)))
        term.check()

        assert term.evaluate() == pytest.approx(0.0)

    def test_weighted_norm_over_rows(self, mlp):
        term = SolutionsError(mlp, constant_model(), lambda t: np.zeros((t.shape[0], 1)),
                              solutions_errors_weights=[2.0])

        assert term.evaluate() == pytest.approx(2.0 * np.sqrt(101) / 101)

    def test_zero_weight_is_skipped(self, mlp):
        term = SolutionsError(mlp, constant_model(), lambda t: np.zeros((t.shape[0], 1)),
                              solutions_errors_weights=[0.0])

        assert term.evaluate() == 0.0

    def test_default_weights(self, mlp):
        term = SolutionsError(mlp, constant_model(), lambda t: np.zeros((t.shape[0], 1)))

        np.testing.assert_array_equal(term.solutions_errors_weights, [1.0])

    def test_integral_method_is_zero(self, mlp):
        term = SolutionsError(mlp, constant_model(), lambda t: np.zeros((t.shape[0], 1)),
                              method='SolutionsErrorIntegral')

        assert term.method is SolutionsErrorMethod.SOLUTIONS_ERROR_INTEGRAL
        assert term.evaluate() == 0.0

    def test_set_solution_error_weight(self, mlp):
        term = SolutionsError(mlp, constant_model(), lambda t: np.zeros((t.shape[0], 1)))

        term.set_solution_error_weight(0, 3.0)

        np.testing.assert_array_equal(term.solutions_errors_weights, [3.0])
        with pytest.raises(ConfigurationError, match="out of range"):
            term.set_solution_error_weight(1, 1.0)
        with pytest.raises(ConfigurationError):
            term.set_solution_error_weight(-1, 1.0)

    def test_weights_size_mismatch(self, mlp):
        term = SolutionsError(mlp, constant_model(), lambda t: t, solutions_errors_weights=[1.0, 1.0])

        with pytest.raises(ConfigurationError, match="dependent variables"):
            term.check()

    def test_missing_model(self, mlp):
        with pytest.raises(ConfigurationError, match="mathematical model"):
            SolutionsError(mlp, None, lambda t: t).check()

    def test_numerical_gradient_through_model(self):
        network = MultilayerPerceptron([1, 2, 1], rng=np.random.default_rng(2))

        def dots(net, variables):
            return net.calculate_outputs([[variables[0]]])[0]

        model = OrdinaryDifferentialEquations(0.0, 1.0, [0.0], points_number=21, dots_function=dots)
        term = SolutionsError(network, model, lambda t: np.sin(t))

        gradient = term.gradient()

        assert gradient.shape == (network.get_parameter_count(),)
        assert np.all(np.isfinite(gradient))
        assert np.any(gradient != 0.0)
