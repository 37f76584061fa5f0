from __future__ import annotations

import pytest

from fscs_backend.errors import ValidationError
from fscs_backend.rendering import render_template


def test_renders_context_values() -> None:
    assert render_template("Hallo {{ name }}", {"name": "FSR"}) == "Hallo FSR"


@pytest.mark.parametrize(
    "source",
    [
        "{{ ''.__class__ }}",
        "{{ sitzung.__init__ }}",
        "{{ unknown_name }}",
        "{{ sitzung.no_such_field }}",
        "{% for %}",
    ],
)
def test_blocked_or_unknown_lookups_are_template_errors(source: str) -> None:
    with pytest.raises(ValidationError):
        render_template(source, {"sitzung": {"location": "room A"}})
