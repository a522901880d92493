"""
Numerical Methods Module

Finite-difference differentiation and quadrature of tabulated data.
"""

from .differentiation import NumericalDifferentiation, NumericalDifferentiationMethod
from .integration import NumericalIntegration, NumericalIntegrationMethod

__all__ = [
    'NumericalDifferentiation',
    'NumericalDifferentiationMethod',
    'NumericalIntegration',
    'NumericalIntegrationMethod',
]
