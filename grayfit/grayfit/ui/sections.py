"""Main-area sections of the Streamlit app."""
from __future__ import annotations

import numpy as np
import pandas as pd
import streamlit as st

from grayfit.analysis.fits import FitInputError, best_fit, fit_all
from grayfit.analysis.prediction import (
    calibration_samples,
    predict_positions,
    predict_value,
)
from grayfit.charts import make_fit_chart, make_heatmap
from grayfit.constants import MODEL_LABELS
from grayfit.export import export_fits, export_predictions, fit_table
from grayfit.ui.helpers import format_table
from grayfit.workbook import (
    CalibrationData,
    WorkbookError,
    column_name,
    load_raw_matrix,
)


def data_section(data: CalibrationData):
    """Gray values and brightness blocks as parsed from the workbook."""
    st.subheader("Gray scale")
    gray_df = pd.DataFrame({
        "cell": data.gray_scale.positions,
        "gray": data.gray_scale.values,
    })
    st.dataframe(gray_df, use_container_width=True)

    st.subheader("Brightness blocks")
    if not data.blocks:
        st.info("No brightness blocks found.")
        return
    labels = [b.label for b in data.blocks]
    sel = st.selectbox("Block", labels, index=0, key="block_sel")
    block = data.blocks[labels.index(sel)]
    normalized = st.checkbox(
        "Normalize by centre pixel", False, key="block_normalized"
    )
    values = block.normalized if normalized else block.data
    frame = pd.DataFrame(
        values,
        index=range(block.start_row, block.end_row + 1),
        columns=[column_name(j) for j in range(values.shape[1])],
    )
    st.caption(f"Centre pixel value: {block.center_value:g}")
    st.plotly_chart(make_heatmap(frame, block.label), use_container_width=True)


def fitting_section(data: CalibrationData):
    """Fit every model to centre brightness vs. gray value."""
    try:
        x, y = calibration_samples(data)
    except FitInputError as e:
        st.error(str(e))
        return
    if len(x) == 0:
        st.info("No calibration samples.")
        return

    results = fit_all(x, y)
    best = best_fit(results)
    st.plotly_chart(
        make_fit_chart(x, y, results, highlight=best),
        use_container_width=True,
    )
    st.dataframe(format_table(fit_table(results)), use_container_width=True)
    if best is not None:
        st.success(
            f"Best model: {best.label} | R²={best.r2:.6f}\n\n{best.formula}"
        )
    else:
        st.warning("No model produced a usable fit.")

    st.markdown("---")
    st.subheader("Predict")
    col1, col2 = st.columns(2)
    with col1:
        value = st.number_input(
            "Brightness", value=float(np.median(x)), key="predict_input"
        )
    ok = [r for r in results if r.ok]
    labels = [r.label for r in ok]
    chosen = None
    with col2:
        if ok:
            default = ok.index(best) if best in ok else 0
            chosen = st.selectbox(
                "Model", labels, index=default, key="predict_model"
            )
    if chosen is not None:
        res = ok[labels.index(chosen)]
        st.metric("Predicted gray level", f"{predict_value(res, value):.6f}")

    st.download_button(
        "Download fits (.xlsx)",
        data=export_fits(x, y, results),
        file_name="fits.xlsx",
        key="download_fits",
    )


def prediction_section(data: CalibrationData):
    """Per-position fits over the raw brightness sheet."""
    st.caption(
        "Raw data is read from Sheet3 (A2:AF21) of the calibration workbook "
        "or of a separate upload."
    )
    up = st.file_uploader(
        "Raw data workbook (optional)", type=["xlsx", "xls"], key="raw_upload"
    )
    source = up if up is not None else st.session_state.get("calibration_file")
    if source is None:
        st.info("Upload a workbook containing Sheet3.")
        return

    if st.button("Generate predictions", key="run_predictions"):
        try:
            raw = load_raw_matrix(source)
            with st.spinner("Fitting each position..."):
                report = predict_positions(raw, data)
        except (WorkbookError, FitInputError) as e:
            st.error(str(e))
            return
        st.session_state["raw_matrix"] = raw
        st.session_state["prediction_report"] = report

    report = st.session_state.get("prediction_report")
    raw = st.session_state.get("raw_matrix")
    if report is None or raw is None:
        return
    if report.best is None:
        st.warning("No usable fit for any position.")
    else:
        st.success(
            f"Best fit: {report.best.label} | R²={report.best.r2:.6f}\n\n"
            f"{report.best.formula}"
        )
    fallback = sum(1 for p in report.positions if p.used_fallback)
    if fallback:
        st.warning(f"{fallback} positions used centre-pixel training data.")

    kinds = report.models
    if kinds:
        labels = [MODEL_LABELS[k.value] for k in kinds]
        sel = st.selectbox("Model", labels, key="pred_model")
        matrix = report.matrix(kinds[labels.index(sel)])
        st.plotly_chart(
            make_heatmap(matrix, f"Predicted gray level ({sel})"),
            use_container_width=True,
        )
    st.dataframe(format_table(report.to_frame()), use_container_width=True)
    st.download_button(
        "Download predictions (.xlsx)",
        data=export_predictions(report, raw),
        file_name="predictions.xlsx",
        key="download_predictions",
    )


__all__ = ["data_section", "fitting_section", "prediction_section"]
