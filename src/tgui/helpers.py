"""Small shared helpers.

Provides:
  - random_string(): alphanumeric ids used as callback routing prefixes.
  - escape(): escape plain text for Telegram MarkdownV2.
  - truncate(): shorten button labels.
"""

import re
import secrets
import string

_ALPHABET = string.ascii_letters + string.digits

# Characters that must be escaped in Telegram MarkdownV2 plain text
_MDV2_ESCAPE_RE = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")


def random_string(length: int) -> str:
    """Return a random alphanumeric string of the given length."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def escape(text: str) -> str:
    """Escape special characters for Telegram MarkdownV2."""
    return _MDV2_ESCAPE_RE.sub(r"\\\1", text)


def truncate(text: str, max_len: int) -> str:
    """Cut text to max_len characters, ending with an ellipsis when cut."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + "…"
