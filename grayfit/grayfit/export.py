"""Excel export of fit tables and raw-data predictions."""
from __future__ import annotations
from typing import Iterable, Sequence
import io
import logging
import pandas as pd

from grayfit.constants import (
    BLOCK_COLS,
    FORMULA_PRECISION,
    MODEL_LABELS,
    RAW_START_ROW,
)
from grayfit.analysis.fits import FitResult
from grayfit.analysis.prediction import PredictionReport
from grayfit.workbook import RawMatrix, column_name

logger = logging.getLogger(__name__)

FIT_TABLE_COLUMNS = ["model", "formula", "r2", "rmse", "mae", "max_error"]


def fit_table(results: Iterable[FitResult]) -> pd.DataFrame:
    rows = [
        {
            "model": r.label,
            "formula": r.formula,
            "r2": r.r2,
            "rmse": r.rmse,
            "mae": r.mae,
            "max_error": r.max_error,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=FIT_TABLE_COLUMNS)


def _raw_frame(raw: RawMatrix) -> pd.DataFrame:
    return pd.DataFrame(
        raw.matrix,
        index=range(RAW_START_ROW, RAW_START_ROW + raw.matrix.shape[0]),
        columns=[column_name(j) for j in range(BLOCK_COLS)],
    )


def export_fits(x: Sequence[float], y: Sequence[float],
                results: Sequence[FitResult]) -> bytes:
    """Workbook with the samples, each model's fitted column and the fit table."""
    samples = pd.DataFrame({"x": list(x), "y": list(y)})
    for r in results:
        samples[r.model.value] = r.predicted
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        samples.to_excel(writer, sheet_name="Samples", index=False)
        fit_table(results).to_excel(writer, sheet_name="Fits", index=False)
    return buf.getvalue()


def export_predictions(report: PredictionReport, raw: RawMatrix) -> bytes:
    """Workbook with the raw matrix, one prediction matrix per model,
    the long detail table and a summary of the best fit."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        _raw_frame(raw).to_excel(writer, sheet_name="Raw data")
        for kind in report.models:
            matrix = report.matrix(kind).round(FORMULA_PRECISION)
            matrix.to_excel(writer, sheet_name=MODEL_LABELS[kind.value])
        details = report.to_frame()
        details["model"] = details["model"].map(MODEL_LABELS)
        details.to_excel(writer, sheet_name="Details", index=False)
        if report.best is not None:
            best = report.best
            info = pd.DataFrame(
                [
                    ("Best model", best.label),
                    ("Formula", best.formula),
                    ("R2", round(best.r2, FORMULA_PRECISION)),
                    ("RMSE", round(best.rmse, FORMULA_PRECISION)),
                    ("MAE", round(best.mae, FORMULA_PRECISION)),
                    ("Max error", round(best.max_error, FORMULA_PRECISION)),
                ],
                columns=["field", "value"],
            )
            info.to_excel(writer, sheet_name="Fit info", index=False)
    logger.info("Exported predictions for %d positions", len(report.positions))
    return buf.getvalue()


__all__ = ["fit_table", "export_fits", "export_predictions"]
