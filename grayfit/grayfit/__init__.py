"""grayfit package root.

Exposes the fitting engine for convenience.
"""
from .analysis.fits import (  # noqa: F401
	FitInputError,
	FitResult,
	FitStatus,
	ModelKind,
	best_fit,
	fit_all,
	fit_exponential,
	fit_logarithmic,
	fit_polynomial3,
	fit_power,
	fit_quadratic,
)
from .analysis.linalg import solve_linear_system  # noqa: F401
from .workbook import load_calibration, load_raw_matrix  # noqa: F401

__version__ = "0.1.0"
