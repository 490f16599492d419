import html as html_lib

import markdown
from django.utils.html import strip_tags
from django.utils.text import Truncator

EXCERPT_LENGTH = 300


def render_markdown(value: str) -> str:
    source = str(value or "").strip()
    if not source:
        return ""
    return markdown.markdown(source, extensions=["fenced_code", "tables"], output_format="html")


def purge(value: str) -> str:
    """Strips the markup and collapses whitespace."""
    text = html_lib.unescape(strip_tags(str(value or "")))
    return " ".join(text.split())


def truncate(value: str, length: int = EXCERPT_LENGTH) -> str:
    return Truncator(str(value or "")).chars(length)


def excerpt_from_html(value: str, length: int = EXCERPT_LENGTH) -> str:
    return truncate(purge(value), length)


def normalize_tag_name(value: str) -> str:
    return str(value or "").strip().lower().replace(" ", "-")
