"""
Exceptions

Error hierarchy shared by every neurocore component. Configuration errors are
fatal and raised as soon as they are detected; training errors describe a
single failed optimization run and may be recovered from by callers that
repeat training (order selection).
"""

from typing import Any, Optional


class NeurocoreError(Exception):
    """Base class for all neurocore errors."""


class ConfigurationError(NeurocoreError, ValueError):
    """Raised when a component is mis-configured.

    Covers unbound collaborators, out-of-range values, mismatched vector
    sizes and unknown enum names.
    """

    def __init__(self, component: str, message: str, value: Any = None):
        self.component = component
        self.value = value
        super().__init__(f"{component}: {message}")


class TrainingError(NeurocoreError, RuntimeError):
    """Raised when a single training run fails numerically."""

    def __init__(self, message: str, iteration: Optional[int] = None):
        self.iteration = iteration
        if iteration is not None:
            message = f"{message} (iteration {iteration})"
        super().__init__(message)


class NoValidOrderError(ConfigurationError):
    """Raised when an order search could not train a single model."""

    def __init__(self, component: str, message: str = "no valid order evaluated"):
        super().__init__(component, message)
