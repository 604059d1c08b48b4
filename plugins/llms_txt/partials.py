"""
Inline MDX partials.

A partial is a fragment file whose name starts with ``_`` (``_shared.mdx``).
Documents pull it in with ``import Shared from './_shared.mdx'`` and render it
with ``<Shared />``; for LLM output the tag is replaced by the partial's body.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Optional

from plugins.llms_txt.cleaner import map_outside_fences
from plugins.llms_txt.front_matter import FrontMatterError, split_front_matter

log = logging.getLogger("mkdocs.plugins.llms_txt")

PARTIAL_IMPORT_RE = re.compile(
    r"^[ \t]*import[ \t]+([A-Za-z_$][\w$]*)[ \t]+from[ \t]+"
    r"(['\"])((?:[^'\"\n]*/)?_[^'\"/\n]+)\2[ \t]*;?[ \t]*$",
    re.MULTILINE,
)
PARTIAL_EXTENSIONS = (".mdx", ".md")


@dataclass(frozen=True)
class PartialImport:
    identifier: str
    target: str
    statement: str


def is_partial(filename: str) -> bool:
    return Path(filename).name.startswith("_")


def find_partial_imports(body: str) -> list[PartialImport]:
    """Collect the partial import bindings of ``body`` in source order.

    Imports shown inside fenced code blocks are samples, not bindings.
    """
    imports: list[PartialImport] = []

    def collect(chunk: str) -> str:
        imports.extend(
            PartialImport(identifier=m.group(1), target=m.group(3), statement=m.group(0))
            for m in PARTIAL_IMPORT_RE.finditer(chunk)
        )
        return chunk

    map_outside_fences(body, collect)
    return imports


def usage_pattern(identifier: str) -> re.Pattern:
    ident = re.escape(identifier)
    return re.compile(
        rf"<{ident}(?:\s[^<>]*?)?\s*/>|<{ident}(?:\s[^<>]*)?>.*?</{ident}\s*>",
        re.DOTALL,
    )


def locate_partial(base_dir: Path, target: str) -> Optional[Path]:
    """Resolve ``target`` relative to ``base_dir``; extension may be omitted."""
    candidate = (base_dir / target).resolve()
    if candidate.is_file():
        return candidate
    if not candidate.suffix:
        for ext in PARTIAL_EXTENSIONS:
            with_ext = candidate.with_name(candidate.name + ext)
            if with_ext.is_file():
                return with_ext
    return None


def resolve_partial_imports(
    body: str, source_file, _chain: FrozenSet[Path] = frozenset()
) -> str:
    """Replace partial imports and their usages in ``body`` with the partial content.

    Partials may import other partials. A partial already on the current import
    chain is left as is, which stops cycles. Missing or unreadable partials are
    also left untouched and only produce a warning.
    """
    imports = find_partial_imports(body)
    if not imports:
        return body

    source_file = Path(source_file)
    chain = _chain | {source_file.resolve()}
    resolved = body

    for partial in imports:
        partial_path = locate_partial(source_file.parent, partial.target)
        if partial_path is None:
            log.warning(
                f"[llms_txt] partial '{partial.target}' imported by {source_file} not found"
            )
            continue
        if partial_path in chain:
            log.warning(
                f"[llms_txt] cyclic partial import of {partial_path} from {source_file}; left unresolved"
            )
            continue

        try:
            text = partial_path.read_text(encoding="utf-8")
            _, partial_body = split_front_matter(text)
        except (OSError, UnicodeDecodeError, FrontMatterError) as exc:
            log.warning(f"[llms_txt] unable to read partial {partial_path}: {exc}")
            continue

        partial_body = resolve_partial_imports(partial_body, partial_path, chain).strip()

        usage = usage_pattern(partial.identifier)

        def inline(chunk: str) -> str:
            chunk = chunk.replace(partial.statement, "")
            return usage.sub(lambda _: partial_body, chunk)

        resolved = map_outside_fences(resolved, inline)
        log.debug(f"[llms_txt] inlined partial {partial_path} into {source_file}")

    return resolved
