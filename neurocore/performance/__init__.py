"""
Performance Module

Objective functions minimized by the training algorithms.
"""

from .functional import *
from .mathematical_model import *
from .solutions_error import *
from .data_error import *
from .regularization import *

__all__ = [
    'PerformanceTerm',
    'PerformanceFunctional',
    'MathematicalModel',
    'OrdinaryDifferentialEquations',
    'SolutionsError',
    'SolutionsErrorMethod',
    'SumSquaredError',
    'MeanSquaredError',
    'NeuralParametersNorm',
]
