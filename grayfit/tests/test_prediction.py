import numpy as np
import pytest

from grayfit.analysis.fits import FitInputError, ModelKind, fit_all
from grayfit.analysis.prediction import (
    calibration_samples,
    predict_position,
    predict_positions,
    predict_value,
)
from grayfit.workbook import (
    CalibrationData,
    GrayScaleData,
    load_calibration,
    load_raw_matrix,
)


@pytest.fixture
def calibration(calibration_path):
    return load_calibration(calibration_path)


def test_calibration_samples(calibration):
    x, y = calibration_samples(calibration)
    np.testing.assert_allclose(x, [44, 64, 104, 184])
    np.testing.assert_allclose(y, [10, 20, 40, 80])


def test_calibration_samples_length_mismatch(calibration):
    short = CalibrationData(
        GrayScaleData([10.0, 20.0], ["B1", "B23"]), calibration.blocks
    )
    with pytest.raises(FitInputError):
        calibration_samples(short)


def test_predict_value_respects_domain():
    results = fit_all([1, 2, 3, 4], [2, 4, 6, 8])
    log = results[0]
    assert predict_value(log, -1.0) == 0.0
    quad = results[4]
    assert predict_value(quad, 5.0) == pytest.approx(10.0)


def test_predict_position_uses_cell_history(calibration):
    # B5 -> block row 3, column 1: brightness 2*g + 4
    pred = predict_position(calibration, "B5", 54.0)
    assert not pred.used_fallback
    quad = next(r for r in pred.fits if r.model is ModelKind.QUADRATIC)
    assert quad.r2 == pytest.approx(1.0)
    assert pred.predictions[ModelKind.QUADRATIC].value == pytest.approx(25.0)
    assert pred.best is not None
    assert pred.best.r2 == pytest.approx(1.0)


def test_predict_positions_report(calibration_path, calibration):
    raw = load_raw_matrix(calibration_path)
    report = predict_positions(raw, calibration)
    assert len(report.positions) == len(raw.values)
    assert report.best is not None
    assert report.best.r2 == pytest.approx(1.0)
    assert ModelKind.QUADRATIC in report.models

    quad = report.matrix(ModelKind.QUADRATIC)
    assert quad.shape == (20, 32)
    assert list(quad.index)[:2] == [2, 3]
    assert list(quad.columns)[-1] == "AF"
    # A2 was empty in the raw sheet
    assert np.isnan(quad.loc[2, "A"])
    np.testing.assert_allclose(quad.loc[3:, "B":].to_numpy(), 25.0, atol=1e-6)

    frame = report.to_frame()
    assert list(frame.columns) == [
        "position", "brightness", "model", "prediction", "r2", "formula",
    ]
    assert set(frame["position"]) == set(raw.positions)
    assert (frame["r2"] >= 0).all()


def test_fallback_to_centre_samples(two_block_path):
    data = load_calibration(two_block_path)
    raw = load_raw_matrix(two_block_path)
    report = predict_positions(raw, data)
    first = report.positions[0]
    assert first.used_fallback
    # Two block points plus two centre-pixel samples
    assert all(len(r.predicted) == 4 for r in first.fits)


def test_predict_positions_rejects_mismatched_calibration(calibration_path, calibration):
    raw = load_raw_matrix(calibration_path)
    broken = CalibrationData(GrayScaleData([1.0], ["B1"]), calibration.blocks)
    with pytest.raises(FitInputError):
        predict_positions(raw, broken)
