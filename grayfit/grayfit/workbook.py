"""Calibration workbook reader.

Layout of the calibration sheet (first sheet of the workbook):

* gray-scale reference values in column B, starting at B1 and repeating
  every 22 rows (B1, B23, B45, ...);
* one 20x32 block of pixel brightness (A..AF) per reference value, the
  first block spanning A2:AF21 and each next block starting 22 rows lower.

The raw brightness matrix to predict lives in ``Sheet3`` at A2:AF21.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import io
import logging
import re
import numpy as np
import pandas as pd

from grayfit.constants import (
    BLOCK_COLS,
    BLOCK_ROWS,
    BLOCK_START_ROW,
    BLOCK_STRIDE,
    CENTER_COL,
    CENTER_ROW,
    GRAY_COLUMN,
    GRAY_START_ROW,
    RAW_SHEET,
    RAW_START_ROW,
)

logger = logging.getLogger(__name__)

ADDRESS_RE = re.compile(r"^([A-Z]+)([1-9][0-9]*)$")


class WorkbookError(ValueError):
    """Raised when a workbook cannot be read or lacks the expected data."""
    pass


# --- Cell addressing ---

def column_name(index: int) -> str:
    """0-based column index to letters (0 -> A, 26 -> AA)."""
    if index < 0:
        raise WorkbookError(f"Column index must be >= 0, got {index}")
    name = ""
    while index >= 0:
        name = chr(ord("A") + index % 26) + name
        index = index // 26 - 1
    return name


def column_index(letters: str) -> int:
    """Column letters to 0-based index (A -> 0, AF -> 31)."""
    letters = letters.strip().upper()
    if not letters or not letters.isalpha() or not letters.isascii():
        raise WorkbookError(f"Invalid column letters: {letters!r}")
    result = 0
    for ch in letters:
        result = result * 26 + (ord(ch) - ord("A") + 1)
    return result - 1


def split_address(address: str) -> Tuple[str, int]:
    m = ADDRESS_RE.match(address.strip().upper())
    if not m:
        raise WorkbookError(f"Invalid cell address: {address!r}")
    return m.group(1), int(m.group(2))


def cell_address(row: int, col: int) -> str:
    """Address for a 1-based row and a 0-based column."""
    if row < 1:
        raise WorkbookError(f"Row must be >= 1, got {row}")
    return f"{column_name(col)}{row}"


# --- Parsed structures ---

@dataclass
class GrayScaleData:
    values: List[float] = field(default_factory=list)
    positions: List[str] = field(default_factory=list)


@dataclass
class BrightnessBlock:
    data: np.ndarray
    start_row: int
    end_row: int
    label: str
    center_value: float
    normalized: np.ndarray

    @classmethod
    def from_data(cls, data: np.ndarray, start_row: int, index: int):
        end_row = start_row + BLOCK_ROWS - 1
        center = float(data[CENTER_ROW, CENTER_COL])
        if center != 0:
            normalized = data / center
        else:
            normalized = np.zeros_like(data)
        last_col = column_name(BLOCK_COLS - 1)
        return cls(
            data=data,
            start_row=start_row,
            end_row=end_row,
            label=f"Block {index} (A{start_row}-{last_col}{end_row})",
            center_value=center,
            normalized=normalized,
        )


@dataclass
class CalibrationData:
    gray_scale: GrayScaleData
    blocks: List[BrightnessBlock]

    @property
    def center_values(self) -> List[float]:
        return [b.center_value for b in self.blocks]


@dataclass
class RawMatrix:
    """Raw brightness cells; ``values``/``positions`` hold numeric cells only."""
    values: List[float]
    positions: List[str]
    matrix: np.ndarray


# --- Reading ---

def read_sheet(source, sheet=0) -> pd.DataFrame:
    """Read one sheet as a header-less frame (1-based row r is iloc[r-1]).

    ``source`` may be a path, raw bytes or a file-like upload.
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    elif hasattr(source, "seek"):
        source.seek(0)
    try:
        return pd.read_excel(source, sheet_name=sheet, header=None)
    except Exception as exc:
        raise WorkbookError(f"Could not read sheet {sheet!r}: {exc}") from exc


def _cell(sheet: pd.DataFrame, row: int, col: int):
    """Raw cell value, or None when empty / outside the sheet."""
    r = row - 1
    if r < 0 or r >= sheet.shape[0] or col >= sheet.shape[1]:
        return None
    value = sheet.iat[r, col]
    if isinstance(value, str):
        return value if value != "" else None
    if pd.isna(value):
        return None
    return value


def _is_bool(value) -> bool:
    return isinstance(value, (bool, np.bool_))


def _to_number(value) -> Optional[float]:
    if _is_bool(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _numeric_range(
    sheet: pd.DataFrame, first_row: int, n_rows: int, n_cols: int
) -> np.ndarray:
    """Numeric window with NaN for empty / non-numeric cells."""
    r0 = first_row - 1
    window = sheet.reindex(
        index=range(r0, r0 + n_rows), columns=range(n_cols)
    )
    # Boolean cells are not brightness readings
    window = window.apply(lambda col: col.mask(col.map(_is_bool).astype(bool)))
    numeric = window.apply(pd.to_numeric, errors="coerce")
    return numeric.to_numpy(dtype=float)


def parse_gray_scale(sheet: pd.DataFrame) -> GrayScaleData:
    """Column B from row 1, every 22 rows, until the first empty cell."""
    out = GrayScaleData()
    col = column_index(GRAY_COLUMN)
    row = GRAY_START_ROW
    while True:
        raw = _cell(sheet, row, col)
        if raw is None:
            break
        value = _to_number(raw)
        addr = cell_address(row, col)
        if value is None:
            logger.warning("Skipping non-numeric gray value at %s: %r", addr, raw)
        else:
            out.values.append(value)
            out.positions.append(addr)
        row += BLOCK_STRIDE
    return out


def parse_brightness_blocks(sheet: pd.DataFrame) -> List[BrightnessBlock]:
    """20x32 blocks every 22 rows from A2; stops at the first empty block."""
    blocks: List[BrightnessBlock] = []
    start = BLOCK_START_ROW
    while True:
        window = _numeric_range(sheet, start, BLOCK_ROWS, BLOCK_COLS)
        if np.isnan(window).all():
            break
        data = np.nan_to_num(window, nan=0.0)
        blocks.append(BrightnessBlock.from_data(data, start, len(blocks) + 1))
        start += BLOCK_STRIDE
    return blocks


def parse_raw_matrix(sheet: pd.DataFrame) -> RawMatrix:
    window = _numeric_range(sheet, RAW_START_ROW, BLOCK_ROWS, BLOCK_COLS)
    values: List[float] = []
    positions: List[str] = []
    for i in range(BLOCK_ROWS):
        for j in range(BLOCK_COLS):
            if not np.isnan(window[i, j]):
                values.append(float(window[i, j]))
                positions.append(cell_address(RAW_START_ROW + i, j))
    return RawMatrix(values, positions, np.nan_to_num(window, nan=0.0))


def load_calibration(source) -> CalibrationData:
    sheet = read_sheet(source, 0)
    data = CalibrationData(parse_gray_scale(sheet), parse_brightness_blocks(sheet))
    logger.info(
        "Calibration loaded: %d gray values, %d blocks",
        len(data.gray_scale.values), len(data.blocks),
    )
    return data


def load_raw_matrix(source, sheet: str = RAW_SHEET) -> RawMatrix:
    raw = parse_raw_matrix(read_sheet(source, sheet))
    if not raw.values:
        raise WorkbookError(f"No numeric raw data found in {sheet!r}")
    return raw


__all__ = [
    "WorkbookError",
    "column_name",
    "column_index",
    "split_address",
    "cell_address",
    "GrayScaleData",
    "BrightnessBlock",
    "CalibrationData",
    "RawMatrix",
    "read_sheet",
    "parse_gray_scale",
    "parse_brightness_blocks",
    "parse_raw_matrix",
    "load_calibration",
    "load_raw_matrix",
]
