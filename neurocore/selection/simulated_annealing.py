"""
Simulated Annealing Order

Random walk over the order range that accepts worse orders with a
probability that decreases as the temperature cools.
"""

import numpy as np
from dataclasses import dataclass
from typing import Any, List, Optional

from .algorithm import (OrderSelectionAlgorithm, OrderSelectionConfig, OrderSelectionResults,
                        OrderSelectionStoppingCondition)
from ..exceptions import ConfigurationError


@dataclass
class SimulatedAnnealingOrderConfig(OrderSelectionConfig):
    """Configuration for simulated annealing."""
    cooling_rate: float = 0.5
    minimum_temperature: float = 1.0e-3

    def validate(self):
        super().validate()
        if not 0.0 < self.cooling_rate < 1.0:
            raise ConfigurationError(self.component, "cooling_rate must be in (0, 1)", self.cooling_rate)
        if self.minimum_temperature < 0:
            raise ConfigurationError(self.component, "minimum_temperature must be non-negative",
                                     self.minimum_temperature)


class SimulatedAnnealingOrder(OrderSelectionAlgorithm):
    """Simulated annealing over orders.

    The initial temperature is the selection performance of the random
    starting order (1.0 when that is not a positive finite number).
    """

    config_class = SimulatedAnnealingOrderConfig

    def __init__(self, training_algorithm: Any = None,
                 config: Optional[SimulatedAnnealingOrderConfig] = None,
                 callbacks: Optional[List[Any]] = None,
                 cooling_rate: Optional[float] = None,
                 minimum_temperature: Optional[float] = None):
        super().__init__(training_algorithm, config, callbacks)
        if cooling_rate is not None:
            self.config.cooling_rate = cooling_rate
        if minimum_temperature is not None:
            self.config.minimum_temperature = minimum_temperature
        self.temperature = None

    def check_algorithm_stopping_condition(self) -> Optional[OrderSelectionStoppingCondition]:
        if self.temperature is not None and self.temperature <= self.config.minimum_temperature:
            return OrderSelectionStoppingCondition.MINIMUM_TEMPERATURE
        return None

    def _orders_number(self) -> int:
        return self.config.maximum_order - self.config.minimum_order + 1

    def select_neighbour(self, current_order: int) -> Optional[int]:
        """Draw an order within a third of the range around ``current_order``.

        Unevaluated orders are preferred. Returns None if the range has no other order.
        """
        minimum_order = self.config.minimum_order
        maximum_order = self.config.maximum_order
        radius = max(1, (maximum_order - minimum_order) // 3)

        window = [order for order in range(max(minimum_order, current_order - radius),
                                           min(maximum_order, current_order + radius) + 1)
                  if order != current_order]
        if not window:
            return None

        unevaluated = [order for order in window if order not in self.evaluations]
        candidates = unevaluated or window
        return int(self.rng.choice(candidates))

    def _accept(self, current_performance: float, new_performance: float) -> bool:
        if not np.isfinite(new_performance):
            return False
        if not np.isfinite(current_performance):
            return True
        delta = new_performance - current_performance
        if delta <= 0.0:
            return True
        return self.rng.random() < np.exp(-delta / self.temperature)

    def _search(self) -> OrderSelectionStoppingCondition:
        config = self.config
        self.temperature = None

        current_order = int(self.rng.integers(config.minimum_order, config.maximum_order + 1))
        evaluation = self.perform_model_evaluation(current_order)
        current_performance = evaluation.selection_performance

        if np.isfinite(current_performance) and current_performance > 0.0:
            self.temperature = float(current_performance)
        else:
            self.temperature = 1.0

        stopping_condition = self.check_stopping_conditions()
        if stopping_condition is not None:
            return stopping_condition

        while True:
            if len(self.evaluations) >= self._orders_number():
                return OrderSelectionStoppingCondition.ALGORITHM_FINISHED

            candidate = self.select_neighbour(current_order)
            if candidate is None:
                return OrderSelectionStoppingCondition.ALGORITHM_FINISHED

            candidate_performance = self.perform_model_evaluation(candidate).selection_performance
            if self._accept(current_performance, candidate_performance):
                current_order = candidate
                current_performance = candidate_performance

            self.temperature *= config.cooling_rate

            stopping_condition = self.check_stopping_conditions()
            if stopping_condition is not None:
                return stopping_condition

    def perform_order_selection(self) -> OrderSelectionResults:
        return self.run_search(self._search)
