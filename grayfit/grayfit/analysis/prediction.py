"""Gray-level prediction for raw brightness cells.

Every raw cell gets its own calibration curve: the cell's brightness in
each calibration block is paired with that block's gray value and all
models are fitted on those pairs.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging
import numpy as np
import pandas as pd

from grayfit.constants import (
    BLOCK_COLS,
    BLOCK_ROWS,
    MIN_POSITION_POINTS,
    RAW_START_ROW,
)
from grayfit.analysis.fits import (
    FitInputError,
    FitResult,
    ModelKind,
    best_fit,
    fit_all,
)
from grayfit.workbook import (
    CalibrationData,
    RawMatrix,
    column_index,
    column_name,
    split_address,
)

logger = logging.getLogger(__name__)


def calibration_samples(data: CalibrationData) -> Tuple[np.ndarray, np.ndarray]:
    """Centre brightness of each block (x) against its gray value (y)."""
    x = np.asarray(data.center_values, dtype=float)
    y = np.asarray(data.gray_scale.values, dtype=float)
    if len(x) != len(y):
        raise FitInputError(
            f"{len(x)} brightness blocks but {len(y)} gray values"
        )
    return x, y


def predict_value(result: FitResult, x: float) -> float:
    """Gray level predicted by one fitted model at brightness ``x``."""
    return float(result.evaluate(float(x)))


def usable(result: FitResult) -> bool:
    return not np.isnan(result.r2) and result.r2 >= 0


@dataclass
class MethodPrediction:
    model: ModelKind
    value: float
    r2: float
    formula: str


@dataclass
class PositionPrediction:
    position: str
    brightness: float
    fits: List[FitResult]
    predictions: Dict[ModelKind, MethodPrediction] = field(default_factory=dict)
    best: Optional[FitResult] = None
    used_fallback: bool = False


@dataclass
class PredictionReport:
    positions: List[PositionPrediction]
    best: Optional[FitResult]

    @property
    def models(self) -> List[ModelKind]:
        seen: List[ModelKind] = []
        for pos in self.positions:
            for kind in pos.predictions:
                if kind not in seen:
                    seen.append(kind)
        return seen

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for pos in self.positions:
            for kind, pred in pos.predictions.items():
                rows.append({
                    "position": pos.position,
                    "brightness": pos.brightness,
                    "model": kind.value,
                    "prediction": pred.value,
                    "r2": pred.r2,
                    "formula": pred.formula,
                })
        return pd.DataFrame(
            rows,
            columns=[
                "position", "brightness", "model",
                "prediction", "r2", "formula",
            ],
        )

    def matrix(self, model: ModelKind) -> pd.DataFrame:
        """Predictions for ``model`` laid out like the raw sheet (NaN if none)."""
        grid = np.full((BLOCK_ROWS, BLOCK_COLS), np.nan)
        for pos in self.positions:
            pred = pos.predictions.get(model)
            if pred is None:
                continue
            letters, row = split_address(pos.position)
            grid[row - RAW_START_ROW, column_index(letters)] = pred.value
        return pd.DataFrame(
            grid,
            index=range(RAW_START_ROW, RAW_START_ROW + BLOCK_ROWS),
            columns=[column_name(j) for j in range(BLOCK_COLS)],
        )


def _position_samples(
    data: CalibrationData, row: int, col: int
) -> Tuple[List[float], List[float]]:
    xs: List[float] = []
    ys: List[float] = []
    gray = data.gray_scale.values
    for k, block in enumerate(data.blocks):
        if k >= len(gray):
            break
        if 0 <= row < block.data.shape[0] and 0 <= col < block.data.shape[1]:
            xs.append(float(block.data[row, col]))
            ys.append(gray[k])
    return xs, ys


def predict_position(
    data: CalibrationData, position: str, brightness: float
) -> PositionPrediction:
    letters, row = split_address(position)
    xs, ys = _position_samples(data, row - RAW_START_ROW, column_index(letters))
    fallback = len(xs) < MIN_POSITION_POINTS
    if fallback:
        logger.warning(
            "Only %d training points at %s, adding centre-pixel samples",
            len(xs), position,
        )
        cx, cy = calibration_samples(data)
        xs.extend(cx.tolist())
        ys.extend(cy.tolist())

    fits = fit_all(xs, ys)
    out = PositionPrediction(position, float(brightness), fits,
                             used_fallback=fallback)
    for res in fits:
        if not usable(res):
            continue
        out.predictions[res.model] = MethodPrediction(
            res.model, predict_value(res, brightness), res.r2, res.formula
        )
    out.best = best_fit(fits)
    return out


def predict_positions(raw: RawMatrix, data: CalibrationData) -> PredictionReport:
    """Fit and predict every numeric raw cell; track the overall best fit."""
    calibration_samples(data)
    positions: List[PositionPrediction] = []
    overall: Optional[FitResult] = None
    for position, value in zip(raw.positions, raw.values):
        pred = predict_position(data, position, value)
        positions.append(pred)
        if pred.best is not None and (
            overall is None or pred.best.r2 > overall.r2
        ):
            overall = pred.best
    logger.info("Predicted %d raw positions", len(positions))
    return PredictionReport(positions, overall)


__all__ = [
    "calibration_samples",
    "predict_value",
    "usable",
    "MethodPrediction",
    "PositionPrediction",
    "PredictionReport",
    "predict_position",
    "predict_positions",
]
