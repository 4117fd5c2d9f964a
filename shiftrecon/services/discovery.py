from __future__ import annotations

from pathlib import Path

from shiftrecon.errors import SourceMissingError

"""Source file discovery.

Sensor heads keep writing new exports into the same directory, so the input
for a run is always the most recently modified matching file. Shift logs are
named ``<station>_Report_Shift_<shift>_<date>.csv`` and are looked up by the
report key instead.
"""


def _mtime(path: Path) -> float:
    return path.stat().st_mtime


def list_files(directory: Path, suffix: str = ".csv") -> list[Path]:
    """Files in ``directory`` (non-recursive) with ``suffix``, newest first.

    Raises:
        SourceMissingError: directory does not exist or cannot be read
    """
    if not directory.exists():
        raise SourceMissingError(f"directory not found: {directory}")
    if not directory.is_dir():
        raise SourceMissingError(f"path is not a directory: {directory}")
    try:
        files = [p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == suffix]
        # name as secondary key keeps ordering stable for equal mtimes
        return sorted(files, key=lambda p: (-_mtime(p), p.name))
    except OSError as e:
        # includes a file removed between listing and sorting
        raise SourceMissingError(f"error reading directory {directory}: {e}") from e


def latest_matching(directory: Path, name_contains: str = "", suffix: str = ".csv") -> Path | None:
    """Most recently modified file whose name contains ``name_contains`` (case-insensitive)."""
    needle = name_contains.casefold()
    for path in list_files(directory, suffix):
        if needle in path.name.casefold():
            return path
    return None


def find_shift_log(directory: Path, shift: str, date: str) -> Path | None:
    """Shift log for ``shift``; a file whose name contains ``date`` is preferred.

    Returns None when the directory is missing or holds no log for the shift.
    """
    if not directory.is_dir():
        return None
    marker = f"_report_shift_{shift}_".casefold()
    candidates = [p for p in list_files(directory) if marker in p.name.casefold()]
    for path in candidates:
        if date and date.casefold() in path.stem.casefold():
            return path
    return candidates[0] if candidates else None


def any_csv(directory: Path) -> Path | None:
    """Any CSV in ``directory`` to sample a schema from, or None."""
    if not directory.is_dir():
        return None
    files = list_files(directory)
    return files[0] if files else None
