"""Step template rendering: substitute {{dotted.path}} tokens from the run context.

Single pass with no escaping and no nested expansion. A template without
tokens is returned unchanged. The flow executor renders the text-bearing
fields of a step (Slack template, WhatsApp to/template, email to/subject/text).
"""

import re
from collections.abc import Mapping
from typing import Any

# {{ deal.name }} -> "deal.name"; whitespace inside the braces is tolerated.
TOKEN_RE = re.compile(r"\{\{\s*(\w+(?:\.\w+)*)\s*\}\}")


def resolve_path(context: Mapping[str, Any] | None, path: str) -> Any:
    """Walk context key by key; return None if a segment is missing or a non-mapping is hit."""
    current: Any = context
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return None
        current = current[segment]
    return current


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render(template: str, context: Mapping[str, Any] | None) -> str:
    """Replace every {{path}} token in template with its value from context.

    Unresolved paths and None render as the empty string; other non-string
    values are stringified (booleans as true/false).

    >>> render("Hello {{deal.name}}", {"deal": {"name": "Acme"}})
    'Hello Acme'
    >>> render("Hello {{deal.name}}", {})
    'Hello '
    """
    if "{{" not in template:
        return template
    return TOKEN_RE.sub(
        lambda m: _stringify(resolve_path(context, m.group(1))), template
    )
