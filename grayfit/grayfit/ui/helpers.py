"""Helper utilities for the Streamlit UI (workbook loading, tables)."""

import hashlib
from typing import Optional

import pandas as pd
import streamlit as st

from grayfit.constants import FORMULA_PRECISION
from grayfit.workbook import CalibrationData, WorkbookError, load_calibration

_DATA_KEYS = [
    "calibration",
    "calibration_source",
    "raw_matrix",
    "prediction_report",
    "calibration_file",
]


def clear_data_state():
    for k in _DATA_KEYS:
        st.session_state.pop(k, None)


def upload_fingerprint(file_obj) -> str:
    """Source id built from name and MD5(content) so a replaced file with
    the same name still triggers a reload."""
    raw = file_obj.getvalue()
    digest = hashlib.md5(raw).hexdigest()
    return f"upload:{file_obj.name}:{len(raw)}:{digest}"


def load_calibration_sidebar() -> Optional[CalibrationData]:
    """Render the calibration workbook uploader and return parsed data.

    The parsed workbook is cached in session state keyed by the upload
    fingerprint; ``Reload`` forces a re-parse, ``Reset`` clears all
    data-related state.
    """
    with st.sidebar.expander("Calibration workbook", expanded=True):
        file_obj = st.file_uploader(
            "Upload XLSX",
            type=["xlsx", "xls"],
            key="calibration_upload",
            help=(
                "Gray values in column B every 22 rows (B1, B23, ...), "
                "20x32 brightness blocks A2:AF21, A24:AF43, ..."
            ),
        )
        col1, col2 = st.columns(2)
        with col1:
            force_reload = st.button("Reload", key="force_reload_btn")
        with col2:
            reset = st.button("Reset", key="reset_data_btn")
        if reset:
            clear_data_state()
            st.info("State cleared. Upload a workbook again.")
            return None

    if file_obj is None:
        return st.session_state.get("calibration")

    source_id = upload_fingerprint(file_obj)
    if (
        not force_reload
        and st.session_state.get("calibration_source") == source_id
        and "calibration" in st.session_state
    ):
        st.sidebar.caption(f"Using cached data: {source_id[-24:]}")
        return st.session_state["calibration"]

    try:
        data = load_calibration(file_obj)
    except WorkbookError as e:
        st.sidebar.error(str(e))
        clear_data_state()
        return None

    clear_data_state()
    st.session_state["calibration"] = data
    st.session_state["calibration_source"] = source_id
    st.sidebar.success(
        f"Loaded {len(data.gray_scale.values)} gray values, "
        f"{len(data.blocks)} blocks"
    )
    # The calibration workbook usually carries the raw sheet as well
    st.session_state["calibration_file"] = file_obj
    return data


def format_table(df: pd.DataFrame) -> pd.DataFrame:
    """Round float columns for display."""
    return df.round(FORMULA_PRECISION)
