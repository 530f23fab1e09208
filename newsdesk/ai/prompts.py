"""
Prompt Rendering
================

Fills ``{placeholder}`` markers in database-stored prompt templates.
"""

from typing import Any


def render_prompt(template: str, **values: Any) -> str:
    """Substitute the first occurrence of each ``{name}`` placeholder.

    Templates are edited by hand and may contain literal JSON braces, so
    ``str.format`` is not used. Unknown placeholders are left untouched.

    Args:
        template: Prompt text
        **values: Placeholder values; None becomes an empty string

    Returns:
        Rendered prompt
    """
    rendered = template
    for name, value in values.items():
        rendered = rendered.replace(f"{{{name}}}", "" if value is None else str(value), 1)
    return rendered
