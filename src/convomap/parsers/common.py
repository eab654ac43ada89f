"""Helpers shared by the extraction strategies."""

from __future__ import annotations

import functools
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, TypeVar

from ..errors import ParseError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_LEVEL1_HEADING = re.compile(r"^#[ \t]+(.+?)[ \t]*$", re.MULTILINE)

# Exports mix seconds and milliseconds; anything this large is milliseconds.
MILLISECONDS_THRESHOLD = 10_000_000_000


def parser_errors(label: str) -> Callable[[F], F]:
    """Label ParseErrors with the parser name and wrap low-level failures.

    Malformed input tends to surface as KeyError/TypeError/ValueError deep in
    a parser; those become a ParseError chained to the original cause.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except ParseError as exc:
                if exc.strategy is None:
                    exc.strategy = label
                raise
            except (ValueError, TypeError, KeyError, AttributeError, RecursionError) as exc:
                raise ParseError(str(exc) or type(exc).__name__, strategy=label) from exc

        return wrapper  # type: ignore[return-value]

    return decorator


def from_epoch_seconds(value: Any) -> datetime | None:
    """Convert epoch seconds to an aware UTC datetime, or None if unusable."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug("Ignoring out-of-range timestamp %r", value)
        return None


def from_epoch_auto(value: int | float) -> datetime | None:
    """Epoch number in either seconds or milliseconds."""
    if value >= MILLISECONDS_THRESHOLD:
        value = value / 1000
    return from_epoch_seconds(value)


def parse_iso_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 string; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        logger.debug("Ignoring unparseable timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def first_heading(content: str, skip: Callable[[str], bool] | None = None) -> str | None:
    """Text of the first level-1 Markdown heading, optionally skipping some."""
    for match in _LEVEL1_HEADING.finditer(content):
        if skip is not None and skip(match.group(0)):
            continue
        return match.group(1)
    return None


def title_from_filename(filename: str | None) -> str | None:
    if not filename:
        return None
    return Path(filename).stem or None
