import sys
from pathlib import Path

import numpy as np
import pytest
from openpyxl import Workbook

# Make the nested 'grayfit' package importable without installation
TEST_FILE = Path(__file__).resolve()
PROJECT_DIR = TEST_FILE.parents[1]  # directory containing 'grayfit' package dir
sp = str(PROJECT_DIR)
if sp not in sys.path:
    sys.path.insert(0, sp)

GRAY_VALUES = [10.0, 20.0, 40.0, 80.0]


def block_value(gray: float, i: int, j: int) -> float:
    """Brightness at block row i, column j for a given gray level."""
    return 2.0 * gray + i + j


def raw_value(i: int, j: int) -> float:
    """Raw brightness whose linear calibration maps to gray 25."""
    return 50.0 + i + j


def write_calibration(ws, gray_values, n_blocks=None):
    n_blocks = len(gray_values) if n_blocks is None else n_blocks
    for k, g in enumerate(gray_values):
        ws.cell(row=1 + 22 * k, column=2, value=g)
    for k in range(n_blocks):
        g = gray_values[k] if k < len(gray_values) else 1.0
        start = 2 + 22 * k
        for i in range(20):
            for j in range(32):
                ws.cell(row=start + i, column=j + 1, value=block_value(g, i, j))


def write_raw(ws, skip=()):
    ws.cell(row=1, column=1, value="raw brightness")
    for i in range(20):
        for j in range(32):
            if (i, j) in skip:
                continue
            ws.cell(row=2 + i, column=j + 1, value=raw_value(i, j))


@pytest.fixture
def calibration_path(tmp_path):
    """Workbook with 4 calibration blocks on Sheet1 and raw data on Sheet3.

    Raw cell A2 is left empty.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    write_calibration(ws, GRAY_VALUES)
    wb.create_sheet("Sheet2")
    write_raw(wb.create_sheet("Sheet3"), skip={(0, 0)})
    path = tmp_path / "calibration.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def two_block_path(tmp_path):
    wb = Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    write_calibration(ws, GRAY_VALUES[:2])
    write_raw(wb.create_sheet("Sheet3"))
    path = tmp_path / "two_blocks.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def rng():
    return np.random.default_rng(0)
