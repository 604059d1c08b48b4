import dataclasses
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Sequence

from plugins.llms_txt.front_matter import dump_front_matter
from plugins.llms_txt.models import Document, OutputTarget, PipelineOptions
from plugins.llms_txt.paths import join_url
from plugins.llms_txt.processor import process_files
from plugins.llms_txt.selection import collect_doc_files, select_files

log = logging.getLogger("mkdocs.plugins.llms_txt")

LINKS_ROOT_CONTENT = (
    "This file contains links to documentation sections following the llmstxt.org standard."
)
FULL_ROOT_CONTENT = (
    "This file contains all documentation content in a single document following the llmstxt.org standard."
)
TOC_DESCRIPTION_MAX = 150
LEADING_HEADING_RE = re.compile(r"^#+\s+(.+)$")


# ----- Rendering -------


def clean_description_for_toc(description: str) -> str:
    """First line only, heading marker removed, truncated to 150 characters."""
    if not description:
        return ""
    first_line = description.split("\n")[0]
    cleaned = re.sub(r"^#+\s+", "", first_line)
    if len(cleaned) > TOC_DESCRIPTION_MAX:
        return cleaned[: TOC_DESCRIPTION_MAX - 3] + "..."
    return cleaned


def blockquote(text: str) -> str:
    return "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))


def unique_header(title: str, source_path: str, used: set[str]) -> str:
    """Pick a section header not yet in ``used`` (compared lowercased).

    Collisions get the capitalized parent folder first, then a counter.
    """
    if title.lower() not in used:
        return title

    parts = source_path.split("/")
    folder = parts[-2] if len(parts) > 1 else ""
    if folder:
        candidate = f"{title} ({folder[:1].upper()}{folder[1:]})"
        if candidate.lower() not in used:
            return candidate

    counter = 2
    while f"{title} ({counter})".lower() in used:
        counter += 1
    return f"{title} ({counter})"


def strip_title_heading(content: str, title: str) -> str:
    """Drop a leading heading that only repeats ``title``."""
    content = content.strip()
    lines = content.split("\n")
    m = LEADING_HEADING_RE.match(lines[0])
    if m and m.group(1).strip() == title:
        return "\n".join(lines[1:]).strip()
    return content


def render_section(doc: Document, header: str) -> str:
    # The artifact owns the single H1; the page heading becomes the H2 below
    content = strip_title_heading(doc.content, doc.title)
    if not content:
        return f"## {header}"
    return f"## {header}\n\n{content}"


def render_full_sections(docs: Sequence[Document]) -> list[str]:
    used: set[str] = set()
    sections: list[str] = []
    for doc in docs:
        header = unique_header(doc.title, doc.source_path, used)
        used.add(header.lower())
        sections.append(render_section(doc, header))
    return sections


def render_toc_items(docs: Sequence[Document]) -> list[str]:
    items = []
    for doc in docs:
        description = clean_description_for_toc(doc.description)
        suffix = f": {description}" if description else ""
        items.append(f"- [{doc.title}]({doc.url}){suffix}")
    return items


def render_llm_file(
    docs: Sequence[Document],
    target: OutputTarget,
    default_title: str = "",
    default_description: str = "",
) -> str:
    """Render one llms artifact, links-only or full content."""
    title = target.title or default_title
    description = target.description or default_description

    blocks = [f"# {title}"]
    if description:
        blocks.append(blockquote(description))
    if target.version:
        blocks.append(f"Version: {target.version}")

    if target.full_content:
        blocks.append(target.root_content or FULL_ROOT_CONTENT)
        blocks.append("\n\n---\n\n".join(render_full_sections(docs)))
    else:
        blocks.append(target.root_content or LINKS_ROOT_CONTENT)
        blocks.append("## Table of Contents")
        blocks.append("\n".join(render_toc_items(docs)))

    return "\n\n".join(blocks) + "\n"


# ----- Standalone markdown files -------


def sanitize_filename(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def markdown_filename_base(doc: Document) -> str:
    """slug -> id -> title -> source path, first one that sanitizes to something."""
    fm = doc.front_matter
    no_ext = re.sub(r"\.mdx?$", "", doc.source_path)
    for value in (fm.slug, fm.id, doc.title, no_ext):
        if value:
            base = sanitize_filename(value)
            if base:
                return base
    return "document"


def render_markdown_file(doc: Document, keep_front_matter: Iterable[str] = ()) -> str:
    parts = []
    preserved = {key: doc.front_matter.raw[key] for key in keep_front_matter if key in doc.front_matter.raw}
    if preserved:
        parts.append(dump_front_matter(preserved))
    parts.append(f"# {doc.title}")
    if doc.description:
        parts.append(blockquote(doc.description))
    content = strip_title_heading(doc.content, doc.title)
    if content:
        parts.append(content)
    return "\n\n".join(parts) + "\n"


def generate_individual_markdown_files(
    docs: Sequence[Document],
    output_dir,
    site_url: str,
    keep_front_matter: Iterable[str] = (),
    assigned: Optional[Dict[str, str]] = None,
) -> list[Document]:
    """Write one cleaned markdown file per document.

    ``assigned`` maps source paths to the filenames already written in this
    run; it is updated in place so every target links a document to the same
    file. Returns the documents with their URL pointing at the generated file.
    """
    keep_front_matter = list(keep_front_matter)
    output_dir = Path(output_dir)
    if assigned is None:
        assigned = {}
    used_filenames = set(assigned.values())
    updated = []

    for doc in docs:
        filename = assigned.get(doc.source_path)
        if filename is None:
            base = markdown_filename_base(doc)
            filename = f"{base}.md"
            counter = 2
            while filename in used_filenames:
                filename = f"{base}-{counter}.md"
                counter += 1
            used_filenames.add(filename)
            assigned[doc.source_path] = filename

            write_text(output_dir / filename, render_markdown_file(doc, keep_front_matter))
            log.debug(f"[llms_txt] wrote markdown file {filename}")

        updated.append(dataclasses.replace(doc, url=join_url(site_url, filename)))

    return updated


# ----- Pipeline -------


def write_text(out_path: Path, content: str) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8", newline="\n") as fh:
        fh.write(content)


def generate_target(
    target: OutputTarget,
    corpus: Sequence[str],
    options: PipelineOptions,
    route_map: Optional[Mapping[str, str]] = None,
    markdown_files: Optional[Dict[str, str]] = None,
) -> Optional[Path]:
    """Select, load and render one artifact. Returns the written path, or None if skipped."""
    files = select_files(corpus, target.rules)
    docs = process_files(files, options, route_map)
    if not docs:
        log.warning(f"[llms_txt] no matching documents for {target.filename}; skipping")
        return None

    if options.generate_markdown_files:
        docs = generate_individual_markdown_files(
            docs, options.output_dir, options.site_url, options.keep_front_matter, markdown_files
        )

    content = render_llm_file(docs, target, options.title, options.description)
    out_path = Path(options.output_dir) / target.filename
    write_text(out_path, content)
    log.info(f"[llms_txt] {target.filename} written to {out_path} (documents={len(docs)})")
    return out_path


def generate_llm_files(
    options: PipelineOptions, route_map: Optional[Mapping[str, str]] = None
) -> list[Path]:
    """Build the corpus once, then every standard and custom artifact from it."""
    roots = [options.docs_dir]
    if options.include_blog:
        roots.append(options.blog_dir)

    corpus = collect_doc_files(options.project_root, roots, options.ignore_files)
    if not corpus:
        log.warning("[llms_txt] no documents found to process")
        return []
    log.info(f"[llms_txt] found {len(corpus)} markdown files")

    # Standalone filenames are shared by all targets of the run
    markdown_files: Dict[str, str] = {}
    written = []
    for target in (*options.standard_targets, *options.custom_targets):
        out_path = generate_target(target, corpus, options, route_map, markdown_files)
        if out_path is not None:
            written.append(out_path)

    log.info(
        f"[llms_txt] generated {len(written)} files from {len(corpus)} available documents"
    )
    return written
