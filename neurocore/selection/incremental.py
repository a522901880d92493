"""
Incremental Order

Scans the order range from the minimum order upwards in fixed steps.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from .algorithm import (OrderSelectionAlgorithm, OrderSelectionConfig, OrderSelectionResults,
                        OrderSelectionStoppingCondition)
from ..exceptions import ConfigurationError


@dataclass
class IncrementalOrderConfig(OrderSelectionConfig):
    """Configuration for the incremental search."""
    step: int = 1

    def validate(self):
        super().validate()
        if self.step < 1:
            raise ConfigurationError(self.component, "step must be at least 1", self.step)


class IncrementalOrder(OrderSelectionAlgorithm):
    """Evaluates ``minimum_order``, ``minimum_order + step``, ... up to ``maximum_order``."""

    config_class = IncrementalOrderConfig

    def __init__(self, training_algorithm: Any = None,
                 config: Optional[IncrementalOrderConfig] = None,
                 callbacks: Optional[List[Any]] = None,
                 step: Optional[int] = None):
        super().__init__(training_algorithm, config, callbacks)
        if step is not None:
            self.set_step(step)

    @property
    def step(self) -> int:
        return self.config.step

    def set_step(self, step: int):
        if step < 1:
            raise ConfigurationError(self.component, "step must be at least 1", step)
        self.config.step = step

    def _search(self) -> OrderSelectionStoppingCondition:
        for order in range(self.config.minimum_order, self.config.maximum_order + 1, self.step):
            stopping_condition = self.evaluate_and_check(order)
            if stopping_condition is not None:
                return stopping_condition
        return OrderSelectionStoppingCondition.ALGORITHM_FINISHED

    def perform_order_selection(self) -> OrderSelectionResults:
        return self.run_search(self._search)
