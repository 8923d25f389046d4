from __future__ import annotations

import base64
import binascii
import io
import zipfile
from pathlib import Path

import pandas as pd
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

from utils.preprocess import clean_sales, normalize_columns

SUPPORTED_FILE_TYPES = {"csv", "xlsx", "xls"}


def load_sales_csv(path: str | Path) -> pd.DataFrame:
    return clean_sales(pd.read_csv(path))


def decode_file_content(file_content: str) -> bytes:
    """Decode base64 upload content, dropping a ``data:...;base64,`` prefix."""
    payload = file_content.split(",")[-1].strip()
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"File content is not valid base64: {e}")


def read_spreadsheet(raw: bytes, file_type: str) -> pd.DataFrame:
    """Parse CSV/XLSX/XLS bytes into a frame with normalized headers.

    Only the first sheet of a workbook is read. Fully blank rows are dropped.
    """
    kind = (file_type or "").strip().lower().lstrip(".")
    if kind not in SUPPORTED_FILE_TYPES:
        raise ValueError("Unsupported file type; use csv, xlsx or xls")

    try:
        if kind == "csv":
            df = pd.read_csv(io.BytesIO(raw), skip_blank_lines=True)
        elif kind == "xlsx":
            df = pd.read_excel(io.BytesIO(raw), sheet_name=0, engine="openpyxl")
        else:
            df = pd.read_excel(io.BytesIO(raw), sheet_name=0, engine="xlrd")
    except (zipfile.BadZipFile, InvalidFileException, xlrd.XLRDError) as e:
        raise ValueError(f"Could not read the {kind} file: {e}")
    except pd.errors.EmptyDataError:
        raise ValueError("File is empty")

    df = df.dropna(how="all")
    return normalize_columns(df)
