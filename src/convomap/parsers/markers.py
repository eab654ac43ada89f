"""Role markers in loosely formatted conversation text.

Recognizes lines such as ``## Human``, ``**Assistant:**``, ``User: hi`` and
``--- Claude ---`` and reports where each one starts and which role it opens.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from ..models import Role

USER_NAMES = frozenset({"human", "user"})
ASSISTANT_NAMES = frozenset({"assistant", "ai", "claude", "gpt"})

_NAME = r"(?P<name>human|user|assistant|ai|claude|gpt)"

_PATTERNS = [
    # ## Human / # Assistant:
    re.compile(rf"^#{{1,3}}[ \t]*{_NAME}[ \t]*:?[ \t]*$", re.IGNORECASE | re.MULTILINE),
    # **Human:** / **Assistant**:
    re.compile(rf"^\*\*{_NAME}[ \t]*(?::\*\*|\*\*[ \t]*:)[ \t]*", re.IGNORECASE | re.MULTILINE),
    # Human: hi / Assistant (alone on its line)
    re.compile(rf"^{_NAME}[ \t]*(?::[ \t]*|$)", re.IGNORECASE | re.MULTILINE),
    # --- Human ---
    re.compile(rf"^-{{3,}}[ \t]*{_NAME}[ \t]*:?[ \t]*-{{3,}}[ \t]*$", re.IGNORECASE | re.MULTILINE),
]


class Marker(NamedTuple):
    position: int
    role: Role
    end: int  # offset just past the marker text


def _role_for(name: str) -> Role:
    return "user" if name.lower() in USER_NAMES else "assistant"


def find_markers(text: str) -> list[Marker]:
    """All role markers in ``text`` ordered by position.

    Matches from different syntaxes at the same offset are all kept.
    """
    markers = [
        Marker(match.start(), _role_for(match.group("name")), match.end())
        for pattern in _PATTERNS
        for match in pattern.finditer(text)
    ]
    markers.sort(key=lambda m: m.position)
    return markers


def is_marker_line(line: str) -> bool:
    return any(pattern.match(line.strip()) for pattern in _PATTERNS)
