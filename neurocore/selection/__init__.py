"""
Selection Module

Order selection algorithms: searches over the number of hidden units.
"""

from typing import Any, Dict, List, Optional, Type

from .algorithm import *
from .incremental import *
from .golden_section import *
from .simulated_annealing import *
from ..exceptions import ConfigurationError

ORDER_SELECTION_ALGORITHMS: Dict[str, Type[OrderSelectionAlgorithm]] = {
    'incremental': IncrementalOrder,
    'golden_section': GoldenSectionOrder,
    'simulated_annealing': SimulatedAnnealingOrder,
}


def get_order_selection_algorithm(name: str, training_algorithm: Any = None,
                                  config: Optional[OrderSelectionConfig] = None,
                                  callbacks: Optional[List[Any]] = None,
                                  **kwargs) -> OrderSelectionAlgorithm:
    """Get an order selection algorithm by name.

    Args:
        name: ``'incremental'``, ``'golden_section'`` or ``'simulated_annealing'``.
        training_algorithm: Training algorithm to drive.
        config: Search configuration.
        callbacks: Objects with an optional ``on_order_evaluated`` method.
        **kwargs: Algorithm-specific arguments (``step``, ``cooling_rate``, ...).
    """
    name = name.lower()
    if name not in ORDER_SELECTION_ALGORITHMS:
        raise ConfigurationError('OrderSelectionAlgorithm', f"Unknown order selection algorithm: {name}", name)
    return ORDER_SELECTION_ALGORITHMS[name](training_algorithm, config, callbacks, **kwargs)


__all__ = [
    'OrderSelectionAlgorithm',
    'OrderSelectionConfig',
    'OrderSelectionResults',
    'OrderEvaluation',
    'OrderSelectionStoppingCondition',
    'PerformanceCalculationMethod',
    'IncrementalOrder',
    'IncrementalOrderConfig',
    'GoldenSectionOrder',
    'SimulatedAnnealingOrder',
    'SimulatedAnnealingOrderConfig',
    'get_order_selection_algorithm',
]
