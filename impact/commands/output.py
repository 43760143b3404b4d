"""Text rendering shared by the catalog commands."""

from __future__ import annotations

import json
from typing import Any, Iterable

ENVELOPE_VERSION = "v1"


def render_output(
    *,
    command: str,
    payload: dict[str, Any],
    json_output: bool,
    human_lines: Iterable[str] = (),
) -> str:
    """Render a command result as table lines, or as one stable JSON envelope.

    The envelope is ``{"schema_version", "command", "data"}`` with sorted keys
    and ASCII-only output, so repeated runs over the same catalog compare equal.
    """
    if not json_output:
        return "\n".join(human_lines)
    return json.dumps(
        {"schema_version": ENVELOPE_VERSION, "command": command, "data": payload},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    )
