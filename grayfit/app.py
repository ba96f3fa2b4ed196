import logging

import streamlit as st

from grayfit.ui.helpers import clear_data_state, load_calibration_sidebar
from grayfit.ui.sections import (
    data_section,
    fitting_section,
    prediction_section,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(page_title="grayfit", layout="wide")

# Initialize only once per user session (survives code reloads)
if 'startup_initialized' not in st.session_state:
    clear_data_state()
    st.session_state['startup_initialized'] = True

st.sidebar.markdown("## grayfit")
st.sidebar.caption(
    "Gray-scale calibration: fit brightness to gray level with "
    "logarithmic, exponential, cubic, power and quadratic models."
)

data = load_calibration_sidebar()

if data is None:
    st.info("Upload a calibration workbook in the sidebar to begin.")
    st.stop()

data_tab, fit_tab, predict_tab = st.tabs(
    ["Data", "Curve fitting", "Raw data prediction"]
)
with data_tab:
    data_section(data)
with fit_tab:
    fitting_section(data)
with predict_tab:
    prediction_section(data)
