import logging
import os
from pathlib import Path
from typing import Iterable, Sequence

from wcmatch import glob

from plugins.llms_txt.models import SelectionRules
from plugins.llms_txt.partials import is_partial

log = logging.getLogger("mkdocs.plugins.llms_txt")

MARKDOWN_EXTENSIONS = (".md", ".mdx")
GLOB_FLAGS = glob.GLOBSTAR | glob.MATCHBASE | glob.FORCEUNIX


def matches_pattern(path: str, pattern: str) -> bool:
    """Glob-match a corpus-relative posix path.

    ``*`` stays inside one path segment while ``**`` spans any number of them,
    including none (``docs/**/*.md`` matches ``docs/index.md``). Patterns
    without a slash are matched against the basename.
    """
    return glob.globmatch(path.replace("\\", "/"), pattern, flags=GLOB_FLAGS)


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(matches_pattern(path, pattern) for pattern in patterns)


def select_files(corpus: Sequence[str], rules: SelectionRules) -> list[str]:
    """Filter and order ``corpus`` for one output target.

    Each file lands in the bucket of the first order pattern it matches.
    Buckets and the unmatched tail keep corpus order.
    """
    eligible = list(corpus)
    if rules.include:
        eligible = [f for f in eligible if matches_any(f, rules.include)]
    if rules.ignore:
        eligible = [f for f in eligible if not matches_any(f, rules.ignore)]

    if not rules.order:
        return eligible

    selected: list[str] = []
    claimed: set[str] = set()
    for pattern in rules.order:
        bucket = [f for f in eligible if f not in claimed and matches_pattern(f, pattern)]
        selected.extend(bucket)
        claimed.update(bucket)

    if rules.include_unmatched_last:
        selected.extend(f for f in eligible if f not in claimed)

    return selected


def collect_doc_files(
    project_root, roots: Sequence[str], ignore_patterns: Sequence[str] = ()
) -> list[str]:
    """Collect *.md|*.mdx under each root, as paths relative to ``project_root``.

    Partials and ignored files or directories are skipped. A missing root only
    produces a warning.
    """
    project_root = Path(project_root)
    corpus: list[str] = []

    for root_name in roots:
        root = project_root / root_name
        if not root.is_dir():
            log.warning(f"[llms_txt] directory not found: {root}")
            continue

        found = []
        for dirpath, dirnames, filenames in os.walk(root):
            rel_dir = Path(os.path.relpath(dirpath, project_root)).as_posix()
            dirnames[:] = [
                d for d in dirnames if not matches_any(f"{rel_dir}/{d}", ignore_patterns)
            ]
            for name in filenames:
                if not name.endswith(MARKDOWN_EXTENSIONS) or is_partial(name):
                    continue
                rel_path = f"{rel_dir}/{name}"
                if matches_any(rel_path, ignore_patterns):
                    continue
                found.append(rel_path)

        log.debug(f"[llms_txt] {len(found)} markdown files under {root}")
        corpus.extend(sorted(found))

    # Nested roots (docs/blog inside docs) would otherwise list files twice
    return list(dict.fromkeys(corpus))
