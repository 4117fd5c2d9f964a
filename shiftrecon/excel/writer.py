from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from shiftrecon.errors import SinkError
from shiftrecon.models.report_result import SheetOutput

"""Sheet sink.

Each SheetOutput is written cell for cell (no pandas header or index row);
every value is a string. Files are written to a temporary sibling first and
moved into place with ``os.replace`` so a failed run never leaves a
half-written workbook under the final name.
"""

logger = logging.getLogger(__name__)


def _frame(sheet: SheetOutput) -> pd.DataFrame:
    return pd.DataFrame(sheet.rows, dtype=object)


def _atomic_target(path: Path, suffix: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=suffix, dir=path.parent)
    os.close(fd)
    return Path(tmp)


def write_workbook(path: Path, sheets: Sequence[SheetOutput]) -> Path:
    """Write all ``sheets`` into one .xlsx workbook at ``path``.

    Raises:
        SinkError: any failure; the temporary file is removed and ``path``
            is left untouched.
    """
    if not sheets:
        raise SinkError("no sheets to write")
    tmp = _atomic_target(path, ".xlsx")
    try:
        with pd.ExcelWriter(tmp, engine="openpyxl") as writer:
            for sheet in sheets:
                _frame(sheet).to_excel(writer, sheet_name=sheet.name, header=False, index=False)
        os.replace(tmp, path)
    except Exception as e:
        tmp.unlink(missing_ok=True)
        raise SinkError(f"failed to write workbook {path}: {e}") from e
    logger.info("workbook saved to: %s", path)
    return path


def write_csv(path: Path, sheet: SheetOutput, delimiter: str = ",") -> Path:
    """Write one sheet as delimited text (no quoting beyond what pandas needs)."""
    tmp = _atomic_target(path, ".csv")
    try:
        _frame(sheet).to_csv(tmp, sep=delimiter, header=False, index=False)
        os.replace(tmp, path)
    except Exception as e:
        tmp.unlink(missing_ok=True)
        raise SinkError(f"failed to write csv {path}: {e}") from e
    logger.info("combined csv saved to: %s", path)
    return path
