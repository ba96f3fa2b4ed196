"""Closed-form least-squares fitting routines: logarithmic, exponential,
cubic polynomial, power law and quadratic.

Every fitter returns a ``FitResult``. Models that cannot be estimated
(too few usable points, singular normal equations) come back as a zeroed
"soft failure" result instead of raising.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import numpy as np

from grayfit.constants import FORMULA_PRECISION, MODEL_LABELS
from grayfit.analysis.linalg import solve_linear_system
from grayfit.analysis.metrics import score

logger = logging.getLogger(__name__)


class ModelKind(str, Enum):
    LOGARITHMIC = "logarithmic"
    EXPONENTIAL = "exponential"
    POLYNOMIAL3 = "polynomial3"
    POWER = "power"
    QUADRATIC = "quadratic"


class FitStatus(str, Enum):
    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"
    SINGULAR_MATRIX = "singular_matrix"


class FitInputError(ValueError):
    """Raised when x and y do not form a valid sample set."""
    pass


FAILURE_FORMULAS = {
    FitStatus.INSUFFICIENT_DATA: "Unable to fit (insufficient data)",
    FitStatus.SINGULAR_MATRIX: "Unable to fit (singular matrix)",
}


# --- Model evaluation (0 where the model is undefined) ---

def _eval_logarithmic(x: np.ndarray, c: Sequence[float]) -> np.ndarray:
    a, b = c
    out = np.zeros_like(x)
    pos = x > 0
    out[pos] = a * np.log(x[pos]) + b
    return out


def _eval_exponential(x: np.ndarray, c: Sequence[float]) -> np.ndarray:
    a, b = c
    return a * np.exp(b * x)


def _eval_polynomial3(x: np.ndarray, c: Sequence[float]) -> np.ndarray:
    a, b, cc, d = c
    return a * x ** 3 + b * x ** 2 + cc * x + d


def _eval_power(x: np.ndarray, c: Sequence[float]) -> np.ndarray:
    a, b = c
    out = np.zeros_like(x)
    pos = x > 0
    out[pos] = a * np.power(x[pos], b)
    return out


def _eval_quadratic(x: np.ndarray, c: Sequence[float]) -> np.ndarray:
    a, b, cc = c
    return a * x ** 2 + b * x + cc


@dataclass(frozen=True)
class ModelSpec:
    kind: ModelKind
    param_names: Tuple[str, ...]
    min_points: int
    template: str
    func: Callable[[np.ndarray, Sequence[float]], np.ndarray]

    def evaluate(self, x, coefficients: Sequence[float]):
        arr = np.asarray(x, dtype=float)
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            out = self.func(np.atleast_1d(arr), coefficients)
        if arr.ndim == 0:
            return float(out[0])
        return out

    def format_formula(self, coefficients: Sequence[float]) -> str:
        text = [f"{c:.{FORMULA_PRECISION}f}" for c in coefficients]
        return self.template.format(*text)


MODELS: Dict[ModelKind, ModelSpec] = {
    ModelKind.LOGARITHMIC: ModelSpec(
        ModelKind.LOGARITHMIC, ("a", "b"), 2,
        "y = {0}*ln(x) + {1}", _eval_logarithmic,
    ),
    ModelKind.EXPONENTIAL: ModelSpec(
        ModelKind.EXPONENTIAL, ("a", "b"), 2,
        "y = {0}*e^({1}*x)", _eval_exponential,
    ),
    ModelKind.POLYNOMIAL3: ModelSpec(
        ModelKind.POLYNOMIAL3, ("a", "b", "c", "d"), 4,
        "y = {0}*x^3 + {1}*x^2 + {2}*x + {3}", _eval_polynomial3,
    ),
    ModelKind.POWER: ModelSpec(
        ModelKind.POWER, ("a", "b"), 2,
        "y = {0}*x^{1}", _eval_power,
    ),
    ModelKind.QUADRATIC: ModelSpec(
        ModelKind.QUADRATIC, ("a", "b", "c"), 3,
        "y = {0}*x^2 + {1}*x + {2}", _eval_quadratic,
    ),
}

MODEL_ORDER: Tuple[ModelKind, ...] = (
    ModelKind.LOGARITHMIC,
    ModelKind.EXPONENTIAL,
    ModelKind.POLYNOMIAL3,
    ModelKind.POWER,
    ModelKind.QUADRATIC,
)


@dataclass(frozen=True, eq=False)
class FitResult:
    model: ModelKind
    formula: str
    coefficients: Tuple[float, ...]
    predicted: np.ndarray
    r2: float
    rmse: float
    mae: float
    max_error: float
    status: FitStatus = FitStatus.OK

    @property
    def ok(self) -> bool:
        return self.status is FitStatus.OK

    @property
    def label(self) -> str:
        return MODEL_LABELS[self.model.value]

    @property
    def params(self) -> Dict[str, float]:
        return dict(zip(MODELS[self.model].param_names, self.coefficients))

    def evaluate(self, x):
        """Evaluate the fitted model at scalar or array ``x``."""
        return MODELS[self.model].evaluate(x, self.coefficients)

    def to_dict(self) -> Dict[str, object]:
        return {
            "model": self.model.value,
            "label": self.label,
            "status": self.status.value,
            "formula": self.formula,
            "coefficients": list(self.coefficients),
            "r2": self.r2,
            "rmse": self.rmse,
            "mae": self.mae,
            "max_error": self.max_error,
        }


def _as_arrays(x, y) -> Tuple[np.ndarray, np.ndarray]:
    return np.asarray(x, dtype=float), np.asarray(y, dtype=float)


def _soft_failure(kind: ModelKind, n: int, status: FitStatus) -> FitResult:
    logger.debug("%s fit skipped: %s (n=%d)", kind.value, status.value, n)
    predicted = np.zeros(n)
    predicted.setflags(write=False)
    return FitResult(
        kind,
        FAILURE_FORMULAS[status],
        tuple(0.0 for _ in MODELS[kind].param_names),
        predicted,
        0.0,
        0.0,
        0.0,
        0.0,
        status=status,
    )


def _finish(kind: ModelKind, coefficients: Iterable[float], x, y) -> FitResult:
    spec = MODELS[kind]
    coeffs = tuple(float(c) for c in coefficients)
    predicted = spec.evaluate(x, coeffs)
    predicted.setflags(write=False)
    stats = score(y, predicted)
    return FitResult(
        kind,
        spec.format_formula(coeffs),
        coeffs,
        predicted,
        stats["r2"],
        stats["rmse"],
        stats["mae"],
        stats["max_error"],
    )


def _linear_regression(u: np.ndarray, v: np.ndarray) -> Tuple[float, float]:
    """Closed-form simple regression of v on u: (slope, intercept)."""
    m = len(u)
    su = np.sum(u)
    sv = np.sum(v)
    suv = np.sum(u * v)
    suu = np.sum(u * u)
    with np.errstate(divide="ignore", invalid="ignore"):
        slope = (m * suv - su * sv) / (m * suu - su ** 2)
        intercept = (sv - slope * su) / m
    return float(slope), float(intercept)


def fit_logarithmic(x, y) -> FitResult:
    """y = a*ln(x) + b, estimated on points with x > 0."""
    x, y = _as_arrays(x, y)
    mask = x > 0
    if mask.sum() < MODELS[ModelKind.LOGARITHMIC].min_points:
        return _soft_failure(
            ModelKind.LOGARITHMIC, len(y), FitStatus.INSUFFICIENT_DATA
        )
    a, b = _linear_regression(np.log(x[mask]), y[mask])
    return _finish(ModelKind.LOGARITHMIC, (a, b), x, y)


def fit_exponential(x, y) -> FitResult:
    """y = a*e^(b*x), estimated as ln y = ln a + b*x on points with y > 0."""
    x, y = _as_arrays(x, y)
    mask = y > 0
    if mask.sum() < MODELS[ModelKind.EXPONENTIAL].min_points:
        return _soft_failure(
            ModelKind.EXPONENTIAL, len(y), FitStatus.INSUFFICIENT_DATA
        )
    b, ln_a = _linear_regression(x[mask], np.log(y[mask]))
    with np.errstate(over="ignore", invalid="ignore"):
        a = np.exp(ln_a)
    return _finish(ModelKind.EXPONENTIAL, (a, b), x, y)


def fit_power(x, y) -> FitResult:
    """y = a*x^b, estimated in log-log space on points with x, y > 0."""
    x, y = _as_arrays(x, y)
    mask = (x > 0) & (y > 0)
    if mask.sum() < MODELS[ModelKind.POWER].min_points:
        return _soft_failure(
            ModelKind.POWER, len(y), FitStatus.INSUFFICIENT_DATA
        )
    b, ln_a = _linear_regression(np.log(x[mask]), np.log(y[mask]))
    with np.errstate(over="ignore", invalid="ignore"):
        a = np.exp(ln_a)
    return _finish(ModelKind.POWER, (a, b), x, y)


def _fit_polynomial(kind: ModelKind, degree: int, x, y) -> FitResult:
    x, y = _as_arrays(x, y)
    if len(x) < MODELS[kind].min_points:
        return _soft_failure(kind, len(y), FitStatus.INSUFFICIENT_DATA)
    # Normal equations with unknowns ordered from the highest power down
    power_sums = [np.sum(x ** k) for k in range(2 * degree + 1)]
    A = [
        [power_sums[2 * degree - i - j] for j in range(degree + 1)]
        for i in range(degree + 1)
    ]
    b = [np.sum(x ** (degree - i) * y) for i in range(degree + 1)]
    coeffs = solve_linear_system(A, b)
    if coeffs is None:
        return _soft_failure(kind, len(y), FitStatus.SINGULAR_MATRIX)
    return _finish(kind, coeffs, x, y)


def fit_polynomial3(x, y) -> FitResult:
    """y = a*x^3 + b*x^2 + c*x + d via 4x4 normal equations."""
    return _fit_polynomial(ModelKind.POLYNOMIAL3, 3, x, y)


def fit_quadratic(x, y) -> FitResult:
    """y = a*x^2 + b*x + c via 3x3 normal equations."""
    return _fit_polynomial(ModelKind.QUADRATIC, 2, x, y)


FIT_FUNCTIONS: Dict[ModelKind, Callable[..., FitResult]] = {
    ModelKind.LOGARITHMIC: fit_logarithmic,
    ModelKind.EXPONENTIAL: fit_exponential,
    ModelKind.POLYNOMIAL3: fit_polynomial3,
    ModelKind.POWER: fit_power,
    ModelKind.QUADRATIC: fit_quadratic,
}


def validate_samples(x, y) -> Tuple[np.ndarray, np.ndarray]:
    x_arr, y_arr = _as_arrays(x, y)
    if x_arr.ndim != 1 or y_arr.ndim != 1:
        raise FitInputError(
            f"x and y must be one-dimensional, got {x_arr.shape} "
            f"and {y_arr.shape}"
        )
    if len(x_arr) != len(y_arr):
        raise FitInputError(
            f"x and y must have equal length ({len(x_arr)} != {len(y_arr)})"
        )
    return x_arr, y_arr


def fit_all(x, y) -> List[FitResult]:
    """Run every model on the same samples.

    Order is fixed (logarithmic, exponential, polynomial3, power,
    quadratic); callers index the list positionally.
    """
    x_arr, y_arr = validate_samples(x, y)
    return [FIT_FUNCTIONS[kind](x_arr, y_arr) for kind in MODEL_ORDER]


def best_fit(results: Iterable[FitResult]) -> Optional[FitResult]:
    """Highest R² among results whose R² is a non-negative number.

    Ties keep the earlier result.
    """
    best = None
    for res in results:
        if np.isnan(res.r2) or res.r2 < 0:
            continue
        if best is None or res.r2 > best.r2:
            best = res
    return best


__all__ = [
    "ModelKind",
    "FitStatus",
    "FitInputError",
    "FitResult",
    "ModelSpec",
    "MODELS",
    "MODEL_ORDER",
    "FIT_FUNCTIONS",
    "fit_logarithmic",
    "fit_exponential",
    "fit_polynomial3",
    "fit_power",
    "fit_quadratic",
    "fit_all",
    "best_fit",
    "validate_samples",
]
