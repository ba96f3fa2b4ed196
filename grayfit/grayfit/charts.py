from typing import Optional, Sequence
import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objs as go

from grayfit.constants import CURVE_SAMPLES, MODEL_COLORS
from grayfit.analysis.fits import FitResult, ModelKind


def _curve(result: FitResult, lo: float, hi: float, samples: int) -> pd.DataFrame:
    xs = np.linspace(lo, hi, samples)
    if result.model in (ModelKind.LOGARITHMIC, ModelKind.POWER):
        # Models undefined for x <= 0 are not drawn there
        xs = xs[xs > 0]
    return pd.DataFrame({"x": xs, "y": result.evaluate(xs)})


def make_fit_chart(
    x: Sequence[float],
    y: Sequence[float],
    results: Sequence[FitResult],
    x_title: str = "Brightness",
    y_title: str = "Gray level",
    highlight: Optional[FitResult] = None,
    samples: int = CURVE_SAMPLES,
):
    """Scatter of the samples with one fitted curve per successful model."""
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=x_arr, y=y_arr, mode="markers", name="Samples",
            marker=dict(color="#111111", size=8),
        )
    )
    if len(x_arr):
        lo, hi = float(np.min(x_arr)), float(np.max(x_arr))
        for res in results:
            if not res.ok:
                continue
            curve = _curve(res, lo, hi, samples)
            curve = curve[np.isfinite(curve["y"])]
            width = 4 if highlight is not None and res is highlight else 2
            fig.add_trace(
                go.Scatter(
                    x=curve["x"], y=curve["y"], mode="lines", name=res.label,
                    line=dict(color=MODEL_COLORS[res.model.value], width=width),
                )
            )
    fig.update_layout(xaxis_title=x_title, yaxis_title=y_title)
    return fig


def make_heatmap(matrix: pd.DataFrame, title: Optional[str] = None):
    fig = px.imshow(
        matrix, aspect="auto", color_continuous_scale="RdBu_r",
        labels=dict(color="value"),
    )
    if title:
        fig.update_layout(title=title)
    return fig
