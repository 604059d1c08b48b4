import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Mapping, Optional, Sequence

from plugins.llms_txt.cleaner import clean_markdown_content
from plugins.llms_txt.front_matter import split_front_matter
from plugins.llms_txt.models import (
    CleanOptions,
    Document,
    FrontMatter,
    PathRules,
    PipelineOptions,
)
from plugins.llms_txt.partials import resolve_partial_imports
from plugins.llms_txt.paths import derive_url, join_url, lookup_route

log = logging.getLogger("mkdocs.plugins.llms_txt")

H1_RE = re.compile(r"^#[ \t]+(.*?)$", re.MULTILINE)
HEADING_MARKER_RE = re.compile(r"^#+\s+", re.MULTILINE)
HTML_TAG_HINT_RE = re.compile(r"<[^>]+>")
MAX_DESCRIPTION_LENGTH = 500


def extract_title(front_matter: FrontMatter, content: str, file_path: str) -> str:
    """Front matter title, else the first H1, else a title made from the filename."""
    if front_matter.title:
        return front_matter.title

    m = H1_RE.search(content)
    if m and m.group(1).strip():
        return m.group(1).strip()

    stem = Path(file_path).stem.replace("-", " ")
    return re.sub(r"\b\w", lambda c: c.group(0).upper(), stem)


def extract_description(front_matter: FrontMatter, content: str) -> str:
    """Front matter description, else the first non-heading paragraph, else the first H1.

    Heading markers are removed only where they start a line and are followed
    by whitespace, so inline ``#`` characters survive.
    """
    description = front_matter.description or ""

    if not description:
        for para in content.split("\n\n"):
            trimmed = para.strip()
            if trimmed and not trimmed.startswith("#"):
                description = trimmed
                break

    if not description:
        m = H1_RE.search(content)
        if m:
            description = m.group(1).strip()

    return HEADING_MARKER_RE.sub("", description)


def process_markdown_file(
    project_root,
    source_path: str,
    site_url: str,
    path_prefix: str = "docs",
    path_rules: Optional[PathRules] = None,
    clean_options: Optional[CleanOptions] = None,
    resolved_url: Optional[str] = None,
) -> Optional[Document]:
    """Load one source file into a Document, or None for drafts.

    ``resolved_url`` is the route the host assigned to the page; without it
    the URL is derived from ``source_path``.
    """
    file_path = Path(project_root) / source_path
    text = file_path.read_text(encoding="utf-8")
    front_matter, body = split_front_matter(text)

    if front_matter.is_draft:
        log.debug(f"[llms_txt] skipping draft {source_path}")
        return None

    # Partials first so inlined content goes through the same cleaning
    body = resolve_partial_imports(body.replace("\r\n", "\n"), file_path)

    if resolved_url is not None:
        url = join_url(site_url, resolved_url)
    else:
        url = derive_url(source_path, site_url, path_prefix, path_rules)

    title = extract_title(front_matter, body, source_path)
    description = extract_description(front_matter, body)

    if HTML_TAG_HINT_RE.search(description):
        log.warning(f"[llms_txt] description for '{title}' contains HTML tags")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        log.warning(
            f"[llms_txt] description for '{title}' is very long ({len(description)} characters)"
        )

    return Document(
        title=title,
        source_path=source_path,
        url=url,
        content=clean_markdown_content(body, clean_options),
        description=description,
        front_matter=front_matter,
    )


def path_prefix_for(source_path: str, options: PipelineOptions) -> str:
    blog_dir = options.blog_dir.strip("/")
    if options.include_blog and blog_dir and source_path.startswith(f"{blog_dir}/"):
        return blog_dir
    return options.docs_dir.strip("/")


def process_files(
    files: Sequence[str],
    options: PipelineOptions,
    route_map: Optional[Mapping[str, str]] = None,
) -> list[Document]:
    """Load ``files`` concurrently, keeping their order.

    A file that fails to load is logged and left out; drafts are left out
    silently.
    """

    def load(source_path: str) -> Optional[Document]:
        resolved_url = lookup_route(route_map, source_path)
        if resolved_url is not None:
            log.debug(f"[llms_txt] resolved route for {source_path}: {resolved_url}")
        try:
            return process_markdown_file(
                options.project_root,
                source_path,
                options.site_url,
                path_prefix_for(source_path, options),
                options.path_rules,
                options.clean_options,
                resolved_url,
            )
        except Exception as e:
            log.warning(f"[llms_txt] error processing {source_path}: {e}")
            return None

    if not files:
        return []

    # map() yields results in input order regardless of completion order
    with ThreadPoolExecutor(max_workers=options.max_workers) as executor:
        results = list(executor.map(load, files))

    return [doc for doc in results if doc is not None]
