"""Content-line output on top of ``icalendar``'s value and line types."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from icalendar import Parameters, vText
from icalendar.parser import Contentline, Contentlines


def escape_text(value: str) -> str:
    return vText(value).to_ical().decode("utf-8")


def build_line(name: str, value: str, params: Mapping[str, str] | None = None) -> str:
    """Build one unfolded line; ``value`` must already be in wire form."""
    if params:
        encoded = Parameters(dict(params)).to_ical().decode("utf-8")
        return f"{name};{encoded}:{value}"
    return f"{name}:{value}"


def render(lines: Iterable[str]) -> str:
    """Fold lines at 75 octets and join them with CRLF."""
    return Contentlines(Contentline(line) for line in lines).to_ical().decode("utf-8")
