"""Run configuration, flag-value parsing and environment defaults."""

from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from stresstester._internal.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from stresstester._internal.types import Headers

DEFAULT_TIMEOUT = 30.0
DEFAULT_REPORT_PATH = "stress_test_report.txt"

_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


@dataclass(frozen=True)
class RunConfig:
    """Immutable parameter set for one load-test invocation.

    Built once at startup and passed explicitly to the pool, the workers
    and the report. Use :meth:`create` to get a validated instance.

    Attributes:
        url: Target URL hit by every request.
        requests: Total number of requests to send (N).
        concurrency: Number of concurrent workers (C).
        method: HTTP method, upper-cased.
        body: Request body, empty for none.
        headers: Headers sent with every request.
        timeout: Per-request timeout in seconds.
    """

    url: str
    requests: int
    concurrency: int = 1
    method: str = "GET"
    body: str = ""
    headers: Headers = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def create(
        cls,
        url: str,
        requests: int,
        *,
        concurrency: int = 1,
        method: str = "GET",
        body: str = "",
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> RunConfig:
        """Validate inputs and build a RunConfig.

        Args:
            url: Target URL. Must be non-empty.
            requests: Total request count. Must be >= 1.
            concurrency: Concurrency level. Must be >= 1.
            method: HTTP method. Must be non-empty.
            body: Request body.
            headers: Header mapping, copied.
            timeout: Per-request timeout in seconds. Must be positive.

        Returns:
            A validated RunConfig.

        Raises:
            ConfigError: If any value is out of range.
        """
        url = url.strip()
        if not url:
            msg = "url must not be empty"
            raise ConfigError(msg)

        if requests < 1:
            msg = f"requests must be >= 1, got: {requests}"
            raise ConfigError(msg)

        if concurrency < 1:
            msg = f"concurrency must be >= 1, got: {concurrency}"
            raise ConfigError(msg)

        method = method.strip().upper()
        if not method:
            msg = "method must not be empty"
            raise ConfigError(msg)

        if timeout <= 0:
            msg = f"timeout must be positive, got: {timeout}"
            raise ConfigError(msg)

        return cls(
            url=url,
            requests=requests,
            concurrency=concurrency,
            method=method,
            body=body,
            headers=dict(headers or {}),
            timeout=float(timeout),
        )


@dataclass(frozen=True)
class Settings:
    """Environment-provided defaults for the CLI.

    Attributes:
        request_timeout: Default per-request timeout in seconds.
        report_path: Default path of the report file.
    """

    request_timeout: float = DEFAULT_TIMEOUT
    report_path: str = DEFAULT_REPORT_PATH


def parse_header(value: str) -> tuple[str, str]:
    """Parse a ``Key: Value`` header flag.

    Args:
        value: Raw flag value. Split on the first colon.

    Returns:
        Tuple of (key, value), both stripped.

    Raises:
        ConfigError: If there is no colon or the key is empty.
    """
    key, sep, val = value.partition(":")
    key = key.strip()
    if not sep or not key:
        msg = f"invalid header format, expected 'Key: Value', got: {value!r}"
        raise ConfigError(msg)
    return key, val.strip()


def parse_headers(values: Iterable[str]) -> Headers:
    """Parse repeated header flags into a mapping.

    Duplicate keys keep the value of their last occurrence.
    """
    headers: Headers = {}
    for raw in values:
        key, val = parse_header(raw)
        headers[key] = val
    return headers


def parse_duration(value: str) -> float:
    """Parse a duration string into seconds.

    Accepts Go-style durations (``30s``, ``1m30s``, ``500ms``, ``1.5h``)
    or a bare number of seconds (``2.5``).

    Args:
        value: Duration string.

    Returns:
        Duration in seconds.

    Raises:
        ConfigError: If the value is malformed or not positive.
    """
    text = value.strip()
    try:
        seconds = float(text)
    except ValueError:
        seconds = _parse_unit_duration(text)

    if not math.isfinite(seconds) or seconds <= 0:
        msg = f"duration must be positive, got: {value!r}"
        raise ConfigError(msg)
    return seconds


def _parse_unit_duration(text: str) -> float:
    pos = 0
    total = 0.0
    while pos < len(text):
        match = _DURATION_PART_RE.match(text, pos)
        if match is None:
            msg = f"invalid duration: {text!r}"
            raise ConfigError(msg)
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0:
        msg = f"invalid duration: {text!r}"
        raise ConfigError(msg)
    return total


def load_settings() -> Settings:
    """Load CLI defaults from environment variables.

    Environment variables:
        STRESSTESTER_TIMEOUT: Default request timeout (default: 30s).
        STRESSTESTER_REPORT_PATH: Default report file path
            (default: stress_test_report.txt).

    Returns:
        Populated Settings instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    timeout_str = os.environ.get("STRESSTESTER_TIMEOUT")
    timeout = DEFAULT_TIMEOUT
    if timeout_str is not None:
        try:
            timeout = parse_duration(timeout_str)
        except ConfigError:
            msg = f"STRESSTESTER_TIMEOUT must be a positive duration, got: {timeout_str!r}"
            raise ConfigError(msg) from None

    report_path = os.environ.get("STRESSTESTER_REPORT_PATH", DEFAULT_REPORT_PATH).strip()
    if not report_path:
        msg = "STRESSTESTER_REPORT_PATH must not be empty"
        raise ConfigError(msg)

    return Settings(request_timeout=timeout, report_path=report_path)
