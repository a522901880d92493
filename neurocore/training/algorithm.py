"""
Training Algorithm

This module contains the training loop shared by every optimizer: the
configuration, the results record and the stopping-condition state machine.
"""

import json
import logging
import time
import numpy as np
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .optimizers import Optimizer, get_optimizer
from ..exceptions import ConfigurationError, TrainingError

logger = logging.getLogger(__name__)


class StoppingCondition(Enum):
    """Reason a training run ended."""
    MAXIMUM_TIME = "MaximumTime"
    PERFORMANCE_GOAL = "PerformanceGoalReached"
    MAXIMUM_ITERATIONS = "MaximumIterations"
    MAXIMUM_SELECTION_FAILURES = "MaximumSelectionFailures"
    MINIMUM_PARAMETERS_INCREMENT = "MinimumParameterIncrement"
    ALGORITHM_FINISHED = "AlgorithmFinished"


CONVERGED_CONDITIONS = (
    StoppingCondition.PERFORMANCE_GOAL,
    StoppingCondition.MINIMUM_PARAMETERS_INCREMENT,
    StoppingCondition.ALGORITHM_FINISHED,
)


class TrainingState(Enum):
    """Lifecycle of a training algorithm."""
    CONFIGURED = "Configured"
    RUNNING = "Running"
    CONVERGED = "Converged"
    STOPPED_BY_LIMIT = "StoppedByLimit"
    FAILED = "Failed"


@dataclass
class TrainingConfig:
    """Configuration for a training run."""
    maximum_time: float = 1000.0
    performance_goal: float = float('-inf')
    maximum_iterations_number: int = 1000
    tolerance: float = 0.0  # Minimum parameters increment norm
    maximum_selection_failures: int = 1000000
    warning_parameters_norm: float = 1.0e3
    warning_gradient_norm: float = 1.0e3
    display: bool = True
    display_period: int = 5
    save_period: int = 0  # 0 disables snapshots
    neural_network_file_name: str = "neural_network.npz"
    reserve_parameters_history: bool = False
    reserve_performance_history: bool = False
    reserve_gradient_norm_history: bool = False
    reserve_selection_performance_history: bool = False
    reserve_elapsed_time_history: bool = False

    def validate(self):
        """Raise ConfigurationError if any value is out of range."""
        for name in ('maximum_time', 'maximum_iterations_number', 'tolerance',
                     'maximum_selection_failures', 'warning_parameters_norm',
                     'warning_gradient_norm', 'save_period'):
            value = getattr(self, name)
            if np.isnan(value) or value < 0:
                raise ConfigurationError('TrainingConfig', f"{name} must be non-negative", value)
        if np.isnan(self.performance_goal):
            raise ConfigurationError('TrainingConfig', "performance_goal must be a number",
                                     self.performance_goal)
        if self.display_period < 1:
            raise ConfigurationError('TrainingConfig', "display_period must be at least 1",
                                     self.display_period)
        if not self.neural_network_file_name:
            raise ConfigurationError('TrainingConfig', "neural_network_file_name is empty")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrainingConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError('TrainingConfig', f"Unknown keys: {sorted(unknown)}", sorted(unknown))
        return cls(**data)


@dataclass
class TrainingAlgorithmResults:
    """Outcome of a training run."""
    final_parameters: Optional[np.ndarray] = None
    final_performance: float = float('nan')
    final_selection_performance: float = 0.0
    final_gradient_norm: Optional[float] = None
    iterations_number: int = 0
    elapsed_time: float = 0.0
    stopping_condition: Optional[StoppingCondition] = None
    state: TrainingState = TrainingState.CONFIGURED
    parameters_history: List[np.ndarray] = field(default_factory=list)
    performance_history: List[float] = field(default_factory=list)
    gradient_norm_history: List[float] = field(default_factory=list)
    selection_performance_history: List[float] = field(default_factory=list)
    elapsed_time_history: List[float] = field(default_factory=list)

    def write_stopping_condition(self) -> str:
        if self.stopping_condition is None:
            return ""
        return self.stopping_condition.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert results to a JSON-friendly dictionary."""
        return {
            'final_parameters': None if self.final_parameters is None else self.final_parameters.tolist(),
            'final_performance': self.final_performance,
            'final_selection_performance': self.final_selection_performance,
            'final_gradient_norm': self.final_gradient_norm,
            'iterations_number': self.iterations_number,
            'elapsed_time': self.elapsed_time,
            'stopping_condition': self.write_stopping_condition(),
            'state': self.state.value,
            'parameters_history': [p.tolist() for p in self.parameters_history],
            'performance_history': self.performance_history,
            'gradient_norm_history': self.gradient_norm_history,
            'selection_performance_history': self.selection_performance_history,
            'elapsed_time_history': self.elapsed_time_history,
        }

    def save(self, filepath: str):
        """Save results to a JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class TrainingAlgorithm:
    """Drives an optimizer over a performance functional until a stopping condition holds."""

    def __init__(self, performance_functional: Any = None,
                 optimizer: Union[Optimizer, str] = 'quasi_newton',
                 config: Optional[TrainingConfig] = None,
                 callbacks: Optional[List[Any]] = None):
        """Initialize the training algorithm.

        Args:
            performance_functional: Term or functional to minimize. It is
                borrowed, never copied.
            optimizer: Optimizer instance or registry name.
            config: Training configuration. If None, default config is used.
            callbacks: Objects with an optional ``on_iteration_end(iteration, logs)``.
        """
        self.performance_functional = performance_functional
        self.config = config or TrainingConfig()
        self.callbacks = list(callbacks or [])
        self.set_optimizer(optimizer)
        self._state = TrainingState.CONFIGURED

    @property
    def state(self) -> TrainingState:
        return self._state

    def set_performance_functional(self, performance_functional: Any):
        self.performance_functional = performance_functional

    def has_performance_functional(self) -> bool:
        return self.performance_functional is not None

    def set_optimizer(self, optimizer: Union[Optimizer, str]):
        if isinstance(optimizer, str):
            optimizer = get_optimizer(optimizer)
        if not isinstance(optimizer, Optimizer):
            raise ConfigurationError('TrainingAlgorithm', f"Invalid optimizer: {optimizer!r}", optimizer)
        self.optimizer = optimizer

    def set_display(self, display: bool):
        self.config.display = display

    def check(self):
        """Raise ConfigurationError unless the algorithm is ready to train."""
        if self.performance_functional is None:
            raise ConfigurationError('TrainingAlgorithm', "Pointer to performance functional is NULL")
        if getattr(self.performance_functional, 'neural_network', None) is None:
            raise ConfigurationError('TrainingAlgorithm', "Pointer to neural network is NULL")
        self.config.validate()
        self.performance_functional.check()

    def _guard(self, operation: Callable[[], Any], iteration: int, what: str):
        """Run a functional evaluation, turning failures into TrainingError."""
        try:
            value = operation()
        except (ConfigurationError, TrainingError):
            self._state = TrainingState.FAILED
            raise
        except Exception as exc:
            self._state = TrainingState.FAILED
            raise TrainingError(f"Evaluation of {what} failed: {exc}", iteration) from exc

        if not np.all(np.isfinite(value)):
            self._state = TrainingState.FAILED
            raise TrainingError(f"Non-finite {what}", iteration)
        return value

    def _check_stopping_conditions(self, elapsed_time: float, performance: float, iteration: int,
                                   selection_failures: int,
                                   increment_norm: Optional[float]) -> Optional[StoppingCondition]:
        config = self.config
        if elapsed_time >= config.maximum_time:
            return StoppingCondition.MAXIMUM_TIME
        if performance <= config.performance_goal:
            return StoppingCondition.PERFORMANCE_GOAL
        if iteration >= config.maximum_iterations_number:
            return StoppingCondition.MAXIMUM_ITERATIONS
        if selection_failures >= config.maximum_selection_failures:
            return StoppingCondition.MAXIMUM_SELECTION_FAILURES
        if increment_norm is not None:
            if increment_norm < config.tolerance:
                return StoppingCondition.MINIMUM_PARAMETERS_INCREMENT
            if increment_norm == 0.0:
                return StoppingCondition.ALGORITHM_FINISHED
        return None

    def _record(self, results: TrainingAlgorithmResults, parameters: np.ndarray, performance: float,
                gradient_norm: Optional[float], selection_performance: float, elapsed_time: float):
        config = self.config
        if config.reserve_parameters_history:
            results.parameters_history.append(parameters.copy())
        if config.reserve_performance_history:
            results.performance_history.append(performance)
        if config.reserve_gradient_norm_history and gradient_norm is not None:
            results.gradient_norm_history.append(gradient_norm)
        if config.reserve_selection_performance_history:
            results.selection_performance_history.append(selection_performance)
        if config.reserve_elapsed_time_history:
            results.elapsed_time_history.append(elapsed_time)

    def _notify(self, iteration: int, logs: Dict[str, Any]):
        for callback in self.callbacks:
            if hasattr(callback, 'on_iteration_end'):
                try:
                    callback.on_iteration_end(iteration, logs)
                except Exception as exc:
                    logger.warning(f"Callback {type(callback).__name__} failed: {exc}")

    def _save_network(self, network):
        try:
            network.save_weights(self.config.neural_network_file_name)
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not save neural network to {self.config.neural_network_file_name}: {exc}")

    def perform_training(self) -> TrainingAlgorithmResults:
        """Train the network bound to the performance functional.

        Returns:
            Results of the run, including the stopping condition.

        Raises:
            ConfigurationError: If the algorithm is not properly configured.
            TrainingError: If the functional fails or produces non-finite values.
        """
        self.check()

        config = self.config
        functional = self.performance_functional
        network = functional.neural_network
        has_selection = functional.has_selection_data()

        self.optimizer.reset()
        self._state = TrainingState.RUNNING
        results = TrainingAlgorithmResults(state=self._state)

        beginning_time = time.time()
        iteration = 0
        selection_failures = 0
        gradient_norm = None

        parameters = network.get_parameters()
        performance = float(self._guard(lambda: functional.evaluate(parameters), iteration, "performance"))
        selection_performance = float(self._guard(lambda: functional.evaluate_selection(parameters),
                                                  iteration, "selection performance"))

        elapsed_time = time.time() - beginning_time
        self._record(results, parameters, performance, None, selection_performance, elapsed_time)
        stopping_condition = self._check_stopping_conditions(elapsed_time, performance, iteration,
                                                             selection_failures, None)

        while stopping_condition is None:
            current_parameters = parameters
            current_performance = performance
            gradient = self._guard(lambda: functional.gradient(current_parameters), iteration, "gradient")
            gradient_norm = float(np.linalg.norm(gradient))

            parameters_norm = float(np.linalg.norm(parameters))
            if parameters_norm >= config.warning_parameters_norm:
                logger.warning(f"Iteration {iteration}: parameters norm is {parameters_norm:.6g}")
            if gradient_norm >= config.warning_gradient_norm:
                logger.warning(f"Iteration {iteration}: gradient norm is {gradient_norm:.6g}")

            increment = self._guard(
                lambda: self.optimizer.calculate_parameters_increment(
                    functional, current_parameters, current_performance, gradient),
                iteration, "parameters increment")
            increment_norm = float(np.linalg.norm(increment))

            parameters = parameters + increment
            network.set_parameters(parameters)
            iteration += 1

            old_selection_performance = selection_performance
            performance = float(self._guard(lambda: functional.evaluate(parameters), iteration, "performance"))
            selection_performance = float(self._guard(lambda: functional.evaluate_selection(parameters),
                                                      iteration, "selection performance"))
            if has_selection and selection_performance > old_selection_performance:
                selection_failures += 1

            elapsed_time = time.time() - beginning_time
            self._record(results, parameters, performance, gradient_norm, selection_performance, elapsed_time)

            if iteration % config.display_period == 0:
                if config.display:
                    logger.info(f"Iteration {iteration}: performance {performance:.6g}, "
                                f"gradient norm {gradient_norm:.6g}, "
                                f"selection performance {selection_performance:.6g}, "
                                f"elapsed time {elapsed_time:.2f}s")
                self._notify(iteration, {
                    'performance': performance,
                    'selection_performance': selection_performance,
                    'gradient_norm': gradient_norm,
                    'parameters_increment_norm': increment_norm,
                    'elapsed_time': elapsed_time,
                })

            if config.save_period > 0 and iteration % config.save_period == 0:
                self._save_network(network)

            stopping_condition = self._check_stopping_conditions(elapsed_time, performance, iteration,
                                                                 selection_failures, increment_norm)

        if stopping_condition in CONVERGED_CONDITIONS:
            self._state = TrainingState.CONVERGED
        else:
            self._state = TrainingState.STOPPED_BY_LIMIT

        results.final_parameters = parameters.copy()
        results.final_performance = performance
        results.final_selection_performance = selection_performance
        results.final_gradient_norm = gradient_norm
        results.iterations_number = iteration
        results.elapsed_time = elapsed_time
        results.stopping_condition = stopping_condition
        results.state = self._state

        if config.display:
            logger.info(f"Iteration {iteration}: {stopping_condition.value}. "
                        f"Final performance {performance:.6g}, elapsed time {elapsed_time:.2f}s")

        return results

    def to_dict(self) -> Dict[str, Any]:
        return {
            'optimizer': self.optimizer.to_dict(),
            'config': self.config.to_dict(),
        }
