from __future__ import annotations

import json
from typing import Any, Iterable

from .blocks import blocks_to_text, parse_markdown
from .catalog import SWOT_REPORT_ID


ERROR_PHRASES: tuple[str, ...] = (
    'error generating',
    'try again',
    'failed to generate',
)

SWOT_QUADRANTS: tuple[str, ...] = ('Strengths', 'Weaknesses', 'Opportunities', 'Threats')


def coerce_report_content(raw: Any) -> str:
    """Flatten the shapes a provider may return a report in to one string."""
    if raw is None:
        return ''
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        for key in ('content', 'report'):
            value = raw.get(key)
            if isinstance(value, str):
                return value
            if isinstance(value, dict):
                return coerce_report_content(value)
    return json.dumps(raw, ensure_ascii=False, indent=2)


def _swot_items(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, Iterable):
        return [str(item).strip() for item in value if str(item or '').strip()]
    return []


def swot_to_markdown(payload: Any) -> str | None:
    """Render a SWOT JSON object as markdown, or None when it is not one."""
    obj = payload
    if isinstance(payload, str):
        try:
            obj = json.loads(payload)
        except ValueError:
            return None
    if not isinstance(obj, dict):
        return None
    if not any(key in obj for key in SWOT_QUADRANTS):
        return None

    parts = ['# SWOT Analysis']
    for quadrant in SWOT_QUADRANTS:
        items = _swot_items(obj.get(quadrant) or [])
        bullet_lines = '\n'.join(f'- {item}' for item in items)
        parts.append(f'## {quadrant}\n{bullet_lines}'.rstrip())
    return '\n\n'.join(parts)


def normalize_report_content(report_type_id: str, raw: Any) -> str:
    if report_type_id == SWOT_REPORT_ID:
        swot = swot_to_markdown(raw)
        if swot is not None:
            return swot
    return coerce_report_content(raw)


def rendered_text(markdown: str) -> str:
    return blocks_to_text(parse_markdown(markdown))


def looks_like_error_content(text: str, *, phrases: Iterable[str] = ERROR_PHRASES) -> bool:
    """Heuristic: does the rendered report read like a generation failure?

    Case-insensitive substring match. Kept behind this predicate so callers
    can switch to the provider's structured success flag.
    """
    haystack = str(text or '').lower()
    if not haystack:
        return False
    return any(phrase.lower() in haystack for phrase in phrases)
