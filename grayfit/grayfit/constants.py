"""Central constants & enumerations."""

# Fitting
FORMULA_PRECISION = 6
SINGULAR_TOLERANCE = 1e-10

MODEL_LABELS = {
    "logarithmic": "Logarithmic",
    "exponential": "Exponential",
    "polynomial3": "Cubic polynomial",
    "power": "Power law",
    "quadratic": "Quadratic",
}

# Plotly qualitative palette, one colour per model in fit order
MODEL_COLORS = {
    "logarithmic": "#1f77b4",
    "exponential": "#ff7f0e",
    "polynomial3": "#2ca02c",
    "power": "#d62728",
    "quadratic": "#9467bd",
}

# Calibration workbook layout (1-based rows, column letters)
GRAY_COLUMN = "B"
GRAY_START_ROW = 1
BLOCK_STRIDE = 22
BLOCK_START_ROW = 2
BLOCK_ROWS = 20
BLOCK_COLS = 32
# Centre pixel of a block: 10th row, 16th column
CENTER_ROW = 9
CENTER_COL = 15

# Raw brightness sheet (A2:AF21)
RAW_SHEET = "Sheet3"
RAW_START_ROW = 2

# Positions with fewer training points fall back to centre-pixel samples
MIN_POSITION_POINTS = 3

CURVE_SAMPLES = 200

__all__ = [
    "FORMULA_PRECISION",
    "SINGULAR_TOLERANCE",
    "MODEL_LABELS",
    "MODEL_COLORS",
    "GRAY_COLUMN",
    "GRAY_START_ROW",
    "BLOCK_STRIDE",
    "BLOCK_START_ROW",
    "BLOCK_ROWS",
    "BLOCK_COLS",
    "CENTER_ROW",
    "CENTER_COL",
    "RAW_SHEET",
    "RAW_START_ROW",
    "MIN_POSITION_POINTS",
    "CURVE_SAMPLES",
]
