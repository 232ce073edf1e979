"""Markdown → Telegram MarkdownV2 conversion layer.

Widgets that display caller-supplied text (data tables, paginators,
dialogs) accept standard Markdown and convert it here before sending.

Key function: convert_markdown(text) → MarkdownV2 string.
"""

import telegramify_markdown


def convert_markdown(text: str) -> str:
    """Convert standard Markdown to Telegram MarkdownV2 format."""
    if not text:
        return text
    return telegramify_markdown.markdownify(text).rstrip("\n")
