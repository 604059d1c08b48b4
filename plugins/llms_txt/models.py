from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class FrontMatter:
    """Parsed metadata block of a document.

    Well-known keys are exposed as attributes; ``raw`` keeps every key so
    callers can pass arbitrary fields through.
    """

    raw: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "raw", MappingProxyType(dict(self.raw)))

    @property
    def title(self) -> Optional[str]:
        value = self.raw.get("title")
        return str(value) if value else None

    @property
    def description(self) -> Optional[str]:
        value = self.raw.get("description")
        return str(value) if value else None

    @property
    def slug(self) -> Optional[str]:
        value = self.raw.get("slug")
        return str(value) if value else None

    @property
    def id(self) -> Optional[str]:
        value = self.raw.get("id")
        return str(value) if value else None

    @property
    def is_draft(self) -> bool:
        # Only the YAML boolean counts; "true" as a string does not
        return self.raw.get("draft") is True

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)


@dataclass(frozen=True)
class Document:
    title: str
    source_path: str
    url: str
    content: str
    description: str = ""
    front_matter: FrontMatter = field(default_factory=FrontMatter)


@dataclass(frozen=True)
class PathRules:
    ignore_paths: tuple[str, ...] = ()
    add_paths: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.ignore_paths or self.add_paths)


@dataclass(frozen=True)
class CleanOptions:
    strip_imports: bool = False
    dedup_headings: bool = False


@dataclass(frozen=True)
class SelectionRules:
    include: tuple[str, ...] = ()
    ignore: tuple[str, ...] = ()
    order: tuple[str, ...] = ()
    include_unmatched_last: bool = True


@dataclass(frozen=True)
class OutputTarget:
    filename: str
    full_content: bool = False
    title: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    root_content: Optional[str] = None
    rules: SelectionRules = field(default_factory=SelectionRules)


@dataclass(frozen=True)
class PipelineOptions:
    """Everything the pipeline needs, detached from the MkDocs config."""

    project_root: str
    output_dir: str
    site_url: str = ""
    title: str = ""
    description: str = ""
    docs_dir: str = "docs"
    blog_dir: str = "blog"
    include_blog: bool = False
    ignore_files: tuple[str, ...] = ()
    path_rules: PathRules = field(default_factory=PathRules)
    clean_options: CleanOptions = field(default_factory=CleanOptions)
    standard_targets: tuple[OutputTarget, ...] = ()
    custom_targets: tuple[OutputTarget, ...] = ()
    generate_markdown_files: bool = False
    keep_front_matter: tuple[str, ...] = ()
    max_workers: Optional[int] = None
