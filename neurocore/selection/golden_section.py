"""
Golden Section Order

Integer golden-section search over the order range. Assumes the selection
performance is roughly unimodal in the order.
"""

from .algorithm import OrderSelectionAlgorithm, OrderSelectionResults, OrderSelectionStoppingCondition

LOWER_SECTION = 0.382
UPPER_SECTION = 0.618


class GoldenSectionOrder(OrderSelectionAlgorithm):
    """Shrinks ``[minimum_order, maximum_order]`` toward the lower selection performance."""

    @staticmethod
    def calculate_interior_orders(a: int, b: int):
        """Return two distinct interior orders of ``[a, b]``; requires ``b - a > 2``."""
        x1 = a + int(round(LOWER_SECTION * (b - a)))
        x2 = a + int(round(UPPER_SECTION * (b - a)))

        x1 = min(max(x1, a + 1), b - 2)
        x2 = min(max(x2, x1 + 1), b - 1)
        return x1, x2

    def _search(self) -> OrderSelectionStoppingCondition:
        a = self.config.minimum_order
        b = self.config.maximum_order

        while b - a > 2:
            x1, x2 = self.calculate_interior_orders(a, b)

            for order in (x1, x2):
                stopping_condition = self.evaluate_and_check(order)
                if stopping_condition is not None:
                    return stopping_condition

            if self.evaluations[x1].selection_performance <= self.evaluations[x2].selection_performance:
                b = x2
            else:
                a = x1

        for order in range(a, b + 1):
            stopping_condition = self.evaluate_and_check(order)
            if stopping_condition is not None:
                return stopping_condition

        return OrderSelectionStoppingCondition.ALGORITHM_FINISHED

    def perform_order_selection(self) -> OrderSelectionResults:
        return self.run_search(self._search)
