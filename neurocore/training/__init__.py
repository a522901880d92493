"""
Training Module

Training algorithms, optimizers and line searches.
"""

from .training_rate import *
from .optimizers import *
from .algorithm import *

__all__ = [
    'TrainingAlgorithm',
    'TrainingConfig',
    'TrainingAlgorithmResults',
    'TrainingState',
    'StoppingCondition',
    'Optimizer',
    'GradientDescent',
    'QuasiNewtonMethod',
    'InverseHessianApproximation',
    'get_optimizer',
    'TrainingRateAlgorithm',
    'TrainingRateMethod',
]
