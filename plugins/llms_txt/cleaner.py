import re
from typing import Callable, Optional

from plugins.llms_txt.models import CleanOptions

# Module scope regex variables

FENCE_RE = re.compile(r"^(\s*)(`{3,}|~{3,})")
HEADING_RE = re.compile(r"^\s*(#+)\s+(.+)$")

# default, named, destructured (multi-line too), namespace, type and side-effect imports
IMPORT_RE = re.compile(
    r"^[ \t]*import[ \t]+"
    r"(?:type[ \t]+)?"
    r"(?:"
    r"(?:[\w$]+[ \t]*,?[ \t]*)?"
    r"(?:\*[ \t]+as[ \t]+[\w$]+|\{[^}]*\})?"
    r"[ \t]*from[ \t]+"
    r")?"
    r"(['\"])[^'\"\n]+\1[ \t]*;?[ \t]*$",
    re.MULTILINE,
)

HTML_TAGS = (
    "div", "span", "p", "br", "hr", "img", "a", "strong", "em", "b", "i", "u",
    "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li",
    "table", "thead", "tbody", "tfoot", "tr", "th", "td", "caption", "colgroup", "col",
)
HTML_TAG_RE = re.compile(
    r"</?(?:%s)(?:\s[^<>]*?)?\s*/?>" % "|".join(HTML_TAGS),
    re.IGNORECASE,
)
INLINE_CODE_RE = re.compile(r"(`[^`\n]+`)")


def map_outside_fences(text: str, func: Callable[[str], str]) -> str:
    """Apply ``func`` to every run of lines that is not inside a fenced code block."""
    out: list[str] = []
    prose: list[str] = []
    fence: Optional[str] = None

    for line in text.split("\n"):
        m = FENCE_RE.match(line)
        if fence is None:
            if m:
                if prose:
                    out.append(func("\n".join(prose)))
                    prose = []
                fence = m.group(2)
                out.append(line)
            else:
                prose.append(line)
            continue

        out.append(line)
        if m:
            token = m.group(2)
            if token[0] == fence[0] and len(token) >= len(fence):
                fence = None

    if prose:
        out.append(func("\n".join(prose)))
    return "\n".join(out)


def strip_imports(text: str) -> str:
    return map_outside_fences(text, lambda chunk: IMPORT_RE.sub("", chunk))


def map_outside_code_spans(text: str, func: Callable[[str], str]) -> str:
    parts = INLINE_CODE_RE.split(text)
    # Odd indices are the captured code spans
    return "".join(part if i % 2 else func(part) for i, part in enumerate(parts))


def strip_html_tags(text: str) -> str:
    """Remove the known HTML tags; other angle brackets (JSX, XML samples) stay.

    Fenced blocks and inline code spans are left alone.
    """
    return map_outside_fences(
        text, lambda chunk: map_outside_code_spans(chunk, lambda prose: HTML_TAG_RE.sub("", prose))
    )


def remove_duplicate_headings(text: str) -> str:
    """Drop a line that only repeats the heading right above it."""
    lines = text.split("\n")
    processed: list[str] = []
    fence: Optional[str] = None
    i = 0

    while i < len(lines):
        line = lines[i]
        m_fence = FENCE_RE.match(line)
        if m_fence:
            token = m_fence.group(2)
            if fence is None:
                fence = token
            elif token[0] == fence[0] and len(token) >= len(fence):
                fence = None
            processed.append(line)
            i += 1
            continue

        heading = HEADING_RE.match(line) if fence is None else None
        processed.append(line)
        i += 1
        if not heading:
            continue

        heading_text = heading.group(2).strip()
        while i < len(lines) and lines[i].strip() == "":
            processed.append(lines[i])
            i += 1

        if (
            i < len(lines)
            and lines[i].strip() == heading_text
            and not HEADING_RE.match(lines[i])
        ):
            i += 1

    return "\n".join(processed)


def normalize_whitespace(text: str) -> str:
    text = text.replace("\r\n", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def clean_markdown_content(content: str, options: Optional[CleanOptions] = None) -> str:
    """Normalize a document body for LLM consumption. Never raises."""
    options = options or CleanOptions()
    cleaned = content.replace("\r\n", "\n")

    if options.strip_imports:
        cleaned = strip_imports(cleaned)

    cleaned = strip_html_tags(cleaned)

    if options.dedup_headings:
        cleaned = remove_duplicate_headings(cleaned)

    return normalize_whitespace(cleaned)
