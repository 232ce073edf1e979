"""Parse ``tg`` field tags on dataclasses.

Edit forms read per-field display options from dataclass field metadata:

    @dataclass
    class Profile:
        id: int = field(metadata={"tg": "noedit"})
        name: str = field(default="", metadata={"tg": "label: Full name"})

``parse_tg_tags(Profile(...))`` → ``{"id": {"noedit": "true"},
"name": {"label": "Full name"}}``. Parts are separated by ';'; a part
without ':' is a flag and maps to "true".
"""

import dataclasses
from typing import Any

TAG_KEY = "tg"


def parse_tag(tag: str) -> dict[str, str]:
    """Parse one tag string into a dict of options."""
    options: dict[str, str] = {}
    for part in tag.split(";"):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition(":")
        if sep:
            options[name.strip()] = value.strip()
        else:
            options[name] = "true"
    return options


def parse_tg_tags(target: Any) -> dict[str, dict[str, str]]:
    """Return field name → tag options for a dataclass instance or class.

    Raises TypeError if target is not a dataclass.
    """
    if not dataclasses.is_dataclass(target):
        raise TypeError(f"expected a dataclass, got {type(target).__name__}")
    return {
        f.name: parse_tag(f.metadata.get(TAG_KEY, ""))
        for f in dataclasses.fields(target)
    }
