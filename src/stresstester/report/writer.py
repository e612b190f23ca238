"""Report file persistence."""

from __future__ import annotations

from pathlib import Path

from stresstester._internal.errors import ReportError
from stresstester._internal.logging import get_logger

logger = get_logger("report.writer")


def write_report(text: str, path: str | Path) -> Path:
    """Write the rendered report to a file.

    Parent directories are created as needed and an existing file is
    overwritten.

    Args:
        text: Rendered report text.
        path: Destination file path.

    Returns:
        The resolved path that was written.

    Raises:
        ReportError: If the file cannot be created or written.
    """
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to write report to {target}: {exc}"
        raise ReportError(msg) from exc

    resolved = target.resolve()
    logger.info("Report written to %s", resolved)
    return resolved
