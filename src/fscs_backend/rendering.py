from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from fscs_backend.errors import ValidationError

# Stored templates are user supplied, so they only ever run sandboxed. Unknown
# names and blocked attributes fail the render instead of printing nothing.
_environment = SandboxedEnvironment(
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)


def render_template(source: str, context: Mapping[str, Any]) -> str:
    try:
        return _environment.from_string(source).render(**context)
    except TemplateError as exc:
        raise ValidationError(f"Template error: {exc.message}") from exc
