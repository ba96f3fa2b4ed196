"""Goodness-of-fit statistics over observed vs. predicted values."""
from __future__ import annotations
from typing import Dict
import numpy as np


def r_squared(y, yhat) -> float:
    # Constant y gives nan (perfect fit) or -inf, never an exception
    y = np.asarray(y, dtype=float)
    yhat = np.asarray(yhat, dtype=float)
    ss_res = np.sum((y - yhat) ** 2)
    ss_tot = np.sum((y - np.mean(y)) ** 2)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(1.0 - ss_res / ss_tot)


def rmse(y, yhat) -> float:
    resid = np.asarray(y, dtype=float) - np.asarray(yhat, dtype=float)
    return float(np.sqrt(np.mean(resid ** 2)))


def mae(y, yhat) -> float:
    resid = np.asarray(y, dtype=float) - np.asarray(yhat, dtype=float)
    return float(np.mean(np.abs(resid)))


def max_abs_error(y, yhat) -> float:
    resid = np.asarray(y, dtype=float) - np.asarray(yhat, dtype=float)
    return float(np.max(np.abs(resid)))


def score(y, yhat) -> Dict[str, float]:
    """All four statistics keyed as on ``FitResult``."""
    return {
        "r2": r_squared(y, yhat),
        "rmse": rmse(y, yhat),
        "mae": mae(y, yhat),
        "max_error": max_abs_error(y, yhat),
    }


__all__ = ["r_squared", "rmse", "mae", "max_abs_error", "score"]
