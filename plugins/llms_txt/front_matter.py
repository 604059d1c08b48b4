import re

import yaml

from plugins.llms_txt.models import FrontMatter

FM_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


class FrontMatterError(ValueError):
    """Raised when a metadata block exists but is not valid YAML."""


def split_front_matter(source_text: str) -> tuple[FrontMatter, str]:
    """
    Return (front_matter, body_text). If no FM, front matter is empty and body=source_text.
    """
    m = FM_PATTERN.match(source_text)
    if not m:
        return FrontMatter(), source_text
    try:
        data = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"invalid front matter: {exc}") from exc
    if not isinstance(data, dict):
        data = {}
    return FrontMatter(data), source_text[m.end() :]


def dump_front_matter(data: dict) -> str:
    """Render a YAML front matter block, keys in the given order."""
    fm_yaml = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, width=4096).strip()
    return f"---\n{fm_yaml}\n---"
