"""Conversions applied to legacy bodies: HTML and BBCode to Markdown."""
import re
from typing import Dict, Optional

from markdownify import markdownify as markdownify_html


def html_to_markdown(value: str) -> str:
    source = str(value or "").strip()
    if not source:
        return ""
    # Square brackets are left alone so that embedded BBCode survives the conversion.
    return str(markdownify_html(source, heading_style="ATX", bullets="-", escape_underscores=False) or "").strip()


_CODE_RE = re.compile(r"\[code(?:=([\w+#-]+))?\](.*?)\[/code\]", re.S | re.I)
_QUOTE_RE = re.compile(r"\[quote(?:=([^\]]*))?\](.*?)\[/quote\]", re.S | re.I)
_LIST_RE = re.compile(r"\[list(=1|=a)?\](.*?)\[/list\]", re.S | re.I)
_SIMPLE_TAGS = [
    (re.compile(r"\[b\](.*?)\[/b\]", re.S | re.I), r"**\1**"),
    (re.compile(r"\[i\](.*?)\[/i\]", re.S | re.I), r"*\1*"),
    (re.compile(r"\[u\](.*?)\[/u\]", re.S | re.I), r"\1"),
    (re.compile(r"\[s\](.*?)\[/s\]", re.S | re.I), r"~~\1~~"),
    (re.compile(r"\[img\](.*?)\[/img\]", re.S | re.I), r"![](\1)"),
    (re.compile(r"\[url=([^\]]+)\](.*?)\[/url\]", re.S | re.I), r"[\2](\1)"),
    (re.compile(r"\[url\](.*?)\[/url\]", re.S | re.I), r"<\1>"),
    (re.compile(r"\[email\](.*?)\[/email\]", re.S | re.I), r"<\1>"),
    (re.compile(r"\[h([1-6])\](.*?)\[/h\1\]", re.S | re.I), lambda m: "\n" + "#" * int(m.group(1)) + " " + m.group(2).strip() + "\n"),
    (re.compile(r"\[(?:center|left|right|size=[^\]]*|color=[^\]]*|font=[^\]]*)\](.*?)\[/(?:center|left|right|size|color|font)\]", re.S | re.I), r"\1"),
]


def _convert_code(match: "re.Match") -> str:
    language = match.group(1) or ""
    body = match.group(2).strip("\n")
    return f"\n```{language}\n{body}\n```\n"


def _convert_quote(match: "re.Match") -> str:
    author = (match.group(1) or "").strip().strip('"')
    lines = match.group(2).strip().splitlines() or [""]
    quoted = "\n".join(f"> {line}".rstrip() for line in lines)
    if author:
        quoted = f"> **{author}:**\n{quoted}"
    return f"\n{quoted}\n\n"


def _convert_list(match: "re.Match") -> str:
    ordered = bool(match.group(1))
    items = [item.strip() for item in re.split(r"\[\*\]", match.group(2)) if item.strip()]
    lines = []
    for index, item in enumerate(items, start=1):
        marker = f"{index}." if ordered else "-"
        lines.append(f"{marker} {item}")
    return "\n" + "\n".join(lines) + "\n\n"


def bbcode_to_markdown(value: str) -> str:
    text = str(value or "")
    if not text.strip():
        return ""
    # Code blocks are protected so that their content is not converted.
    blocks = []

    def _stash(match):
        blocks.append(_convert_code(match))
        return f"\x00{len(blocks) - 1}\x00"

    text = _CODE_RE.sub(_stash, text)
    previous = None
    while previous != text:
        previous = text
        for pattern, replacement in _SIMPLE_TAGS:
            text = pattern.sub(replacement, text)
        text = _QUOTE_RE.sub(_convert_quote, text)
        text = _LIST_RE.sub(_convert_list, text)
    text = re.sub(r"\x00(\d+)\x00", lambda m: blocks[int(m.group(1))], text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


BOOK_SECTIONS = (
    "isbn",
    "authors",
    "publisher",
    "language",
    "year",
    "pages",
    "attachments",
    "review",
    "positive",
    "negative",
    "vendorLink",
)


def extract_section(body: str, name: str) -> Optional[str]:
    match = re.search(r"\[{0}\](.*?)\[/{0}\]".format(re.escape(name)), str(body or ""), re.S)
    return match.group(1) if match else None


def extract_book_sections(body: str) -> Dict[str, str]:
    sections = {}
    for name in BOOK_SECTIONS:
        value = extract_section(body, name)
        if value is not None:
            sections[name] = value
    return sections
