"""
Order Selection Algorithm

Searches the number of hidden units (the model order) that minimizes the
selection performance, retraining the network at every candidate order.
Concrete search policies live in the sibling modules.
"""

import json
import logging
import time
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from ..exceptions import ConfigurationError, NoValidOrderError, TrainingError

logger = logging.getLogger(__name__)


class PerformanceCalculationMethod(Enum):
    """How the results of several trials are reduced to one value."""
    MINIMUM = "Minimum"
    MAXIMUM = "Maximum"
    MEAN = "Mean"

    @classmethod
    def from_string(cls, name: str) -> 'PerformanceCalculationMethod':
        for method in cls:
            if method.value == name or method.name == name:
                return method
        raise ConfigurationError('OrderSelectionAlgorithm',
                                 f"Unknown performance calculation method: {name}", name)

    def reduce(self, values: List[float]) -> float:
        if self is PerformanceCalculationMethod.MAXIMUM:
            return float(np.max(values))
        if self is PerformanceCalculationMethod.MEAN:
            return float(np.mean(values))
        return float(np.min(values))


class OrderSelectionStoppingCondition(Enum):
    """Reason an order search ended."""
    MAXIMUM_TIME = "MaximumTime"
    SELECTION_PERFORMANCE_GOAL = "SelectionPerformanceGoal"
    MAXIMUM_ITERATIONS = "MaximumIterations"
    MAXIMUM_SELECTION_FAILURES = "MaximumSelectionFailures"
    MINIMUM_TEMPERATURE = "MinimumTemperature"
    ALGORITHM_FINISHED = "AlgorithmFinished"


@dataclass
class OrderSelectionConfig:
    """Configuration shared by every order search."""
    minimum_order: int = 1
    maximum_order: int = 10
    trials_number: int = 1
    performance_calculation_method: Union[PerformanceCalculationMethod, str] = PerformanceCalculationMethod.MINIMUM
    reserve_parameters_data: bool = False
    reserve_performance_data: bool = True
    reserve_selection_performance_data: bool = True
    reserve_minimal_parameters: bool = True
    selection_performance_goal: float = 0.0
    maximum_iterations_number: int = 1000
    maximum_time: float = 10000.0
    tolerance: float = 0.0  # Minimum improvement that resets the failure counter
    maximum_selection_failures: int = 10
    display: bool = True
    random_seed: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.performance_calculation_method, str):
            self.performance_calculation_method = PerformanceCalculationMethod.from_string(
                self.performance_calculation_method)

    @property
    def component(self) -> str:
        return type(self).__name__

    def validate(self):
        """Raise ConfigurationError if any value is out of range."""
        for name in ('minimum_order', 'maximum_order', 'trials_number', 'selection_performance_goal',
                     'maximum_iterations_number', 'maximum_time', 'tolerance',
                     'maximum_selection_failures'):
            value = getattr(self, name)
            if np.isnan(value) or value < 0:
                raise ConfigurationError(self.component, f"{name} must be non-negative", value)
        if self.minimum_order < 1:
            raise ConfigurationError(self.component, "minimum_order must be at least 1", self.minimum_order)
        if self.minimum_order > self.maximum_order:
            raise ConfigurationError(self.component, "minimum_order must not exceed maximum_order",
                                     (self.minimum_order, self.maximum_order))
        if self.trials_number < 1:
            raise ConfigurationError(self.component, "trials_number must be at least 1", self.trials_number)
        if not isinstance(self.performance_calculation_method, PerformanceCalculationMethod):
            raise ConfigurationError(self.component, "Invalid performance calculation method",
                                     self.performance_calculation_method)

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data['performance_calculation_method'] = self.performance_calculation_method.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(cls.__name__, f"Unknown keys: {sorted(unknown)}", sorted(unknown))
        return cls(**data)


@dataclass
class OrderEvaluation:
    """Reduced outcome of all trials at one order."""
    order: int
    performance: float
    selection_performance: float
    parameters: Optional[np.ndarray] = None
    trials_succeeded: int = 0
    trials_failed: int = 0

    @property
    def failed(self) -> bool:
        return self.trials_succeeded == 0


@dataclass
class OrderSelectionResults:
    """Outcome of an order search."""
    order_data: List[int] = field(default_factory=list)
    performance_data: List[float] = field(default_factory=list)
    selection_performance_data: List[float] = field(default_factory=list)
    parameters_data: List[Optional[np.ndarray]] = field(default_factory=list)
    minimal_parameters: Optional[np.ndarray] = None
    optimal_order: int = 0
    final_performance: float = float('nan')
    final_selection_performance: float = float('nan')
    iterations_number: int = 0
    trials_number: int = 0
    failed_trials_number: int = 0
    elapsed_time: float = 0.0
    stopping_condition: Optional[OrderSelectionStoppingCondition] = None

    def write_stopping_condition(self) -> str:
        if self.stopping_condition is None:
            return ""
        return self.stopping_condition.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            'order_data': list(self.order_data),
            'performance_data': list(self.performance_data),
            'selection_performance_data': list(self.selection_performance_data),
            'parameters_data': [None if p is None else p.tolist() for p in self.parameters_data],
            'minimal_parameters': None if self.minimal_parameters is None else self.minimal_parameters.tolist(),
            'optimal_order': self.optimal_order,
            'final_performance': self.final_performance,
            'final_selection_performance': self.final_selection_performance,
            'iterations_number': self.iterations_number,
            'trials_number': self.trials_number,
            'failed_trials_number': self.failed_trials_number,
            'elapsed_time': self.elapsed_time,
            'stopping_condition': self.write_stopping_condition(),
        }

    def save(self, filepath: str):
        """Save results to a JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_string(self) -> str:
        lines = ["Order selection results"]
        if self.order_data:
            lines.append(f"Orders history: {self.order_data}")
        if self.performance_data:
            lines.append(f"Performance history: {self.performance_data}")
        if self.selection_performance_data:
            lines.append(f"Selection performance history: {self.selection_performance_data}")
        lines.append(f"Stopping condition: {self.write_stopping_condition()}")
        lines.append(f"Optimal order: {self.optimal_order}")
        lines.append(f"Optimum training performance: {self.final_performance}")
        lines.append(f"Optimum selection performance: {self.final_selection_performance}")
        lines.append(f"Iterations number: {self.iterations_number}")
        lines.append(f"Elapsed time: {self.elapsed_time:.2f}s")
        return "\n".join(lines)

    def __str__(self):
        return self.to_string()


class OrderSelectionAlgorithm(ABC):
    """Base class for order searches.

    The search owns the training algorithm while it runs: it reconfigures the
    network to each candidate order and restores a consistent network when it
    finishes, whether or not a valid order was found.
    """

    config_class = OrderSelectionConfig

    def __init__(self, training_algorithm: Any = None,
                 config: Optional[OrderSelectionConfig] = None,
                 callbacks: Optional[List[Any]] = None):
        """Initialize the order search.

        Args:
            training_algorithm: Training algorithm bound to a performance
                functional with selection data.
            config: Search configuration. If None, default config is used.
            callbacks: Objects with an optional ``on_order_evaluated(iteration, logs)``.
        """
        if config is not None and not isinstance(config, self.config_class):
            config = self.config_class(**{f.name: getattr(config, f.name) for f in fields(config)})
        self.training_algorithm = training_algorithm
        self.config = config or self.config_class()
        self.callbacks = list(callbacks or [])
        self._reset_search()

    @property
    def component(self) -> str:
        return type(self).__name__

    @property
    def neural_network(self):
        functional = getattr(self.training_algorithm, 'performance_functional', None)
        return getattr(functional, 'neural_network', None)

    def set_training_algorithm(self, training_algorithm: Any):
        self.training_algorithm = training_algorithm

    def has_training_algorithm(self) -> bool:
        return self.training_algorithm is not None

    def set_display(self, display: bool):
        self.config.display = display

    def check(self):
        """Raise ConfigurationError unless the search can run."""
        if self.training_algorithm is None:
            raise ConfigurationError(self.component, "Pointer to training algorithm is NULL")
        self.config.validate()
        self.training_algorithm.check()
        if not self.training_algorithm.performance_functional.has_selection_data():
            raise ConfigurationError(self.component, "Performance functional has no selection data")

    # History

    def _reset_search(self):
        self.order_history: List[int] = []
        self.performance_history: List[float] = []
        self.selection_performance_history: List[float] = []
        self.parameters_history: List[np.ndarray] = []
        self.evaluations: Dict[int, OrderEvaluation] = {}
        self.optimal_evaluation: Optional[OrderEvaluation] = None
        self.selection_failures = 0
        self.trials_count = 0
        self.failed_trials_count = 0
        self.rng = np.random.default_rng(self.config.random_seed)
        self._beginning_time = time.time()
        self._snapshot = None

    def delete_selection_history(self):
        self.selection_performance_history = []

    def delete_performance_history(self):
        self.performance_history = []

    def delete_parameters_history(self):
        self.parameters_history = []

    @property
    def iterations_number(self) -> int:
        return len(self.evaluations)

    def elapsed_time(self) -> float:
        return time.time() - self._beginning_time

    # Evaluation

    def perform_model_evaluation(self, order: int) -> OrderEvaluation:
        """Train ``trials_number`` models of the given order and reduce their performances.

        Already evaluated orders are returned without retraining.
        """
        config = self.config
        if order < config.minimum_order or order > config.maximum_order:
            raise ConfigurationError(self.component,
                                     f"Order {order} is outside [{config.minimum_order}, "
                                     f"{config.maximum_order}]", order)

        order = int(order)
        if order in self.evaluations:
            return self.evaluations[order]

        network = self.neural_network
        performances = []
        selection_performances = []
        best_parameters = None
        best_selection_performance = np.inf
        failed = 0

        for trial in range(config.trials_number):
            network.reconfigure(order)
            if trial == 0:
                network.perturbate_parameters(0.5, rng=self.rng)
            else:
                network.randomize_parameters_normal(rng=self.rng)

            self.trials_count += 1
            try:
                results = self.training_algorithm.perform_training()
            except TrainingError as exc:
                failed += 1
                self.failed_trials_count += 1
                logger.warning(f"Order {order}, trial {trial + 1} failed: {exc}")
                continue

            performances.append(results.final_performance)
            selection_performances.append(results.final_selection_performance)
            if best_parameters is None or results.final_selection_performance < best_selection_performance:
                best_selection_performance = results.final_selection_performance
                best_parameters = np.array(results.final_parameters, dtype=float)

        method = config.performance_calculation_method
        if performances:
            evaluation = OrderEvaluation(order, method.reduce(performances),
                                         method.reduce(selection_performances),
                                         best_parameters, len(performances), failed)
        else:
            evaluation = OrderEvaluation(order, np.inf, np.inf, None, 0, failed)

        self.evaluations[order] = evaluation
        self._record(evaluation)
        return evaluation

    def _record(self, evaluation: OrderEvaluation):
        self.order_history.append(evaluation.order)
        self.performance_history.append(evaluation.performance)
        self.selection_performance_history.append(evaluation.selection_performance)
        self.parameters_history.append(evaluation.parameters)

        optimum = self.optimal_evaluation
        if not evaluation.failed and (optimum is None
                                      or evaluation.selection_performance < optimum.selection_performance):
            improvement = np.inf if optimum is None \
                else optimum.selection_performance - evaluation.selection_performance
            self.optimal_evaluation = evaluation
            if improvement > self.config.tolerance:
                # Failed trials of an improving order still count
                self.selection_failures = evaluation.trials_failed
            else:
                self.selection_failures += max(1, evaluation.trials_failed)
        else:
            self.selection_failures += max(1, evaluation.trials_failed)

        if self.config.display:
            logger.info(f"Order {evaluation.order}: training performance {evaluation.performance:.6g}, "
                        f"selection performance {evaluation.selection_performance:.6g}")

        logs = {
            'order': evaluation.order,
            'performance': evaluation.performance,
            'selection_performance': evaluation.selection_performance,
            'trials_succeeded': evaluation.trials_succeeded,
            'trials_failed': evaluation.trials_failed,
            'optimal_order': None if self.optimal_evaluation is None else self.optimal_evaluation.order,
        }
        for callback in self.callbacks:
            if hasattr(callback, 'on_order_evaluated'):
                try:
                    callback.on_order_evaluated(self.iterations_number, logs)
                except Exception as exc:
                    logger.warning(f"Callback {type(callback).__name__} failed: {exc}")

    # Stopping conditions

    def check_algorithm_stopping_condition(self) -> Optional[OrderSelectionStoppingCondition]:
        """Search-specific stopping condition, checked after the shared ones."""
        return None

    def check_stopping_conditions(self) -> Optional[OrderSelectionStoppingCondition]:
        config = self.config
        elapsed_time = self.elapsed_time()

        if elapsed_time >= config.maximum_time:
            condition = OrderSelectionStoppingCondition.MAXIMUM_TIME
        elif (self.optimal_evaluation is not None
              and self.optimal_evaluation.selection_performance <= config.selection_performance_goal):
            condition = OrderSelectionStoppingCondition.SELECTION_PERFORMANCE_GOAL
        elif self.iterations_number >= config.maximum_iterations_number:
            condition = OrderSelectionStoppingCondition.MAXIMUM_ITERATIONS
        elif self.selection_failures >= config.maximum_selection_failures:
            condition = OrderSelectionStoppingCondition.MAXIMUM_SELECTION_FAILURES
        else:
            condition = self.check_algorithm_stopping_condition()

        if condition is not None and config.display:
            logger.info(f"Order selection stopped: {condition.value}")
        return condition

    def evaluate_and_check(self, order: int) -> Optional[OrderSelectionStoppingCondition]:
        """Evaluate ``order`` and test the stopping conditions if it was new."""
        if order in self.evaluations:
            return None
        self.perform_model_evaluation(order)
        return self.check_stopping_conditions()

    # Search lifecycle

    def run_search(self, search: Callable[[], OrderSelectionStoppingCondition]) -> OrderSelectionResults:
        """Run ``search`` between a consistency check and the finalisation."""
        self.check()
        self._reset_search()

        network = self.neural_network
        self._snapshot = (network.get_order(), network.get_parameters())

        if self.config.display:
            logger.info(f"Performing {self.component} on orders "
                        f"[{self.config.minimum_order}, {self.config.maximum_order}]")

        try:
            stopping_condition = search()
        except Exception:
            self._restore_network()
            raise

        return self._finalize(stopping_condition)

    def _restore_network(self):
        if self._snapshot is None:
            return
        order, parameters = self._snapshot
        network = self.neural_network
        network.reconfigure(order)
        network.set_parameters(parameters)

    def _finalize(self, stopping_condition: OrderSelectionStoppingCondition) -> OrderSelectionResults:
        config = self.config
        optimum = self.optimal_evaluation

        if optimum is None:
            self._restore_network()
            raise NoValidOrderError(self.component)

        network = self.neural_network
        network.reconfigure(optimum.order)
        network.set_parameters(optimum.parameters)

        results = OrderSelectionResults(
            order_data=list(self.order_history),
            optimal_order=optimum.order,
            final_performance=optimum.performance,
            final_selection_performance=optimum.selection_performance,
            iterations_number=self.iterations_number,
            trials_number=self.trials_count,
            failed_trials_number=self.failed_trials_count,
            elapsed_time=self.elapsed_time(),
            stopping_condition=stopping_condition,
        )
        if config.reserve_performance_data:
            results.performance_data = list(self.performance_history)
        if config.reserve_selection_performance_data:
            results.selection_performance_data = list(self.selection_performance_history)
        if config.reserve_parameters_data:
            results.parameters_data = list(self.parameters_history)
        if config.reserve_minimal_parameters:
            results.minimal_parameters = optimum.parameters.copy()

        if config.display:
            logger.info(f"Optimal order: {optimum.order}, "
                        f"selection performance {optimum.selection_performance:.6g}")

        return results

    @abstractmethod
    def perform_order_selection(self) -> OrderSelectionResults:
        """Search the order range and leave the network at the optimal order."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.component, 'config': self.config.to_dict()}
