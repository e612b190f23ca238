"""Fixed-width text rendering of a run report."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stresstester.metrics.models import FAILED_STATUS

if TYPE_CHECKING:
    from stresstester.metrics.models import RunReport

TITLE = "Stress-Tester Report"
RULE = "=" * 48
SEPARATOR = "-" * 48

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000
_NS_PER_M = 60 * _NS_PER_S
_NS_PER_H = 60 * _NS_PER_M


def _trim(value: float) -> str:
    """Format with at most three decimals, dropping trailing zeros."""
    return f"{value:.3f}".rstrip("0").rstrip(".")


def _round_to(total_ns: int, step: int) -> int:
    return (total_ns + step // 2) // step * step


def format_duration(seconds: float) -> str:
    """Format a duration the way Go prints ``time.Duration`` values.

    Sub-second values use ``ns``, ``µs`` or ``ms``; longer ones use
    ``h``/``m``/``s`` components (``1m30s``, ``2h0m5.5s``). Fractions are
    kept to three decimals.

    Args:
        seconds: Duration in seconds. Must not be negative.

    Returns:
        The formatted duration.
    """
    total_ns = round(seconds * _NS_PER_S)
    if total_ns == 0:
        return "0s"
    if total_ns < _NS_PER_US:
        return f"{total_ns}ns"
    if total_ns < _NS_PER_MS:
        return f"{_trim(total_ns / _NS_PER_US)}µs"

    # Round to the shown precision before picking the unit, so 999.9996ms
    # carries over to 1s.
    total_ns = _round_to(total_ns, _NS_PER_US)
    if total_ns < _NS_PER_S:
        return f"{_trim(total_ns / _NS_PER_MS)}ms"

    total_ns = _round_to(total_ns, _NS_PER_MS)
    hours, rem = divmod(total_ns, _NS_PER_H)
    minutes, rem = divmod(rem, _NS_PER_M)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{_trim(rem / _NS_PER_S)}s")
    return "".join(parts)


def _status_lines(other_statuses: dict[int, int]) -> list[str]:
    # Numeric codes ascending, the failed bucket last.
    codes = sorted(code for code in other_statuses if code != FAILED_STATUS)
    lines = [f"    Status {code}: {other_statuses[code]}" for code in codes]
    if FAILED_STATUS in other_statuses:
        lines.append(f"    Status timeout: {other_statuses[FAILED_STATUS]}")
    return lines


def render_report(report: RunReport) -> str:
    """Render the report as fixed-width text.

    The output holds the execution parameters followed by the results,
    including the distribution of non-200 status codes.

    Args:
        report: The run report to render.

    Returns:
        The report text, ending with a newline.
    """
    config = report.config
    lines = [
        TITLE,
        RULE,
        "Execution Parameters:",
        f"  URL: {config.url}",
        f"  HTTP Method: {config.method}",
        f"  Body: {config.body}",
        "  Headers:",
        *(f"    {key}: {value}" for key, value in config.headers.items()),
        f"  Timeout: {format_duration(config.timeout)}",
        f"  Total number of requests desired: {config.requests}",
        f"  Concurrency level: {config.concurrency}",
        SEPARATOR,
        "Results:",
        f"  Total time taken: {format_duration(report.total_time)}",
        f"  Total number of requests made: {report.total_requests}",
        f"  Number of requests with HTTP 200 status: {report.status_200}",
        f"  Success rate: {report.success_rate:.2f}%",
        f"  Error rate: {report.error_rate:.2f}%",
        f"  Average time per request: {format_duration(report.average_time_per_request)}",
        "  Distribution of other HTTP status codes:",
        *_status_lines(report.other_statuses),
        RULE,
    ]
    return "\n".join(lines) + "\n"
