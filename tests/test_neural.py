"""Tests for the network collaborator: parameter vector, reconfiguration and persistence."""

import numpy as np
import pytest

from neurocore.exceptions import ConfigurationError
from neurocore.neural import MultilayerPerceptron, PerceptronLayer, get_activation, get_initializer


class TestPerceptronLayer:

    def test_shapes(self):
        layer = PerceptronLayer(3, 4, rng=np.random.default_rng(0))

        assert layer.inputs_number == 3
        assert layer.perceptrons_number == 4
        assert layer.parameters_number == 16
        assert layer.forward(np.ones((5, 3))).shape == (5, 4)

    def test_set_weights_shape_checked(self):
        layer = PerceptronLayer(2, 2)

        with pytest.raises(ConfigurationError):
            layer.set_weights({'W': np.zeros((3, 2)), 'b': np.zeros((1, 2))})

    def test_cannot_prune_last_perceptron(self):
        layer = PerceptronLayer(2, 1)

        with pytest.raises(ConfigurationError):
            layer.prune_perceptron(0)


class TestUtils:

    def test_unknown_activation(self):
        with pytest.raises(ConfigurationError):
            get_activation('softsign')

    def test_unknown_initializer(self):
        with pytest.raises(ConfigurationError):
            get_initializer('orthogonal')

    def test_tanh_derivative(self):
        activation, derivative = get_activation('tanh')
        z = np.array([0.0, 0.5])

        np.testing.assert_allclose(derivative(z), 1.0 - np.tanh(z) ** 2)
        np.testing.assert_allclose(activation(z), np.tanh(z))


class TestMultilayerPerceptron:

    def test_parameter_count(self, mlp):
        assert mlp.get_parameter_count() == 10
        assert mlp.get_parameters().shape == (10,)
        assert mlp.inputs_number == 1
        assert mlp.outputs_number == 1
        assert mlp.get_order() == 3

    def test_set_parameters_round_trip(self, mlp):
        parameters = np.arange(10, dtype=float)
        mlp.set_parameters(parameters)

        np.testing.assert_array_equal(mlp.get_parameters(), parameters)
        np.testing.assert_array_equal(mlp.layers[0].params['W'], [[0.0, 1.0, 2.0]])
        np.testing.assert_array_equal(mlp.layers[0].params['b'], [[3.0, 4.0, 5.0]])

    def test_set_parameters_size_mismatch(self, mlp):
        with pytest.raises(ConfigurationError):
            mlp.set_parameters(np.zeros(9))

    def test_get_parameters_returns_copy(self, mlp):
        parameters = mlp.get_parameters()
        parameters[:] = 100.0

        assert not np.any(mlp.get_parameters() == 100.0)

    def test_reconfigure_grow_keeps_weights(self, mlp):
        hidden_weights = mlp.layers[0].params['W'].copy()
        output_weights = mlp.layers[1].params['W'].copy()

        mlp.reconfigure(5)

        assert mlp.get_order() == 5
        assert mlp.get_parameter_count() == 16
        np.testing.assert_array_equal(mlp.layers[0].params['W'][:, :3], hidden_weights)
        np.testing.assert_array_equal(mlp.layers[1].params['W'][:3], output_weights)

    def test_reconfigure_prune_removes_last_units(self, mlp):
        hidden_weights = mlp.layers[0].params['W'].copy()

        mlp.reconfigure(2)

        assert mlp.get_order() == 2
        assert mlp.get_parameter_count() == 7
        np.testing.assert_array_equal(mlp.layers[0].params['W'], hidden_weights[:, :2])

    def test_reconfigure_invalid_order(self, mlp):
        with pytest.raises(ConfigurationError):
            mlp.reconfigure(0)

    def test_copy_is_independent(self, mlp):
        clone = mlp.copy()
        clone.set_parameters(np.zeros(10))

        assert np.any(mlp.get_parameters() != 0.0)

    def test_randomize_is_reproducible(self, mlp):
        mlp.randomize_parameters_normal(rng=np.random.default_rng(3))
        first = mlp.get_parameters()
        mlp.randomize_parameters_normal(rng=np.random.default_rng(3))

        np.testing.assert_array_equal(mlp.get_parameters(), first)

    def test_perturbate_is_bounded(self, mlp):
        before = mlp.get_parameters()
        mlp.perturbate_parameters(0.5, rng=np.random.default_rng(4))

        assert np.all(np.abs(mlp.get_parameters() - before) <= 0.5)

    def test_calculate_outputs_checks_columns(self, mlp):
        assert mlp.calculate_outputs(np.zeros((4, 1))).shape == (4, 1)

        with pytest.raises(ConfigurationError):
            mlp.calculate_outputs(np.zeros((4, 2)))

    def test_linear_network_outputs(self):
        network = MultilayerPerceptron([2, 1, 1], hidden_activation='linear')
        network.set_parameters([1.0, 2.0, 0.5, 3.0, -1.0])

        np.testing.assert_allclose(network.calculate_outputs([[1.0, 1.0]]), [[3.0 * 3.5 - 1.0]])

    def test_save_and_load_weights(self, mlp, tmp_path):
        path = tmp_path / "weights.npz"
        mlp.save_weights(path)

        other = MultilayerPerceptron([1, 3, 1], rng=np.random.default_rng(99))
        other.load_weights(path)

        np.testing.assert_array_equal(other.get_parameters(), mlp.get_parameters())

    def test_unsupported_weights_format(self, mlp, tmp_path):
        with pytest.raises(ValueError):
            mlp.save_weights(tmp_path / "weights.txt")
