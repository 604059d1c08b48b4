"""
An MkDocs plugin that writes LLM-friendly documentation files (llms.txt standard)
after the site is built.
"""

import dataclasses
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional

from mkdocs.config import config_options as c
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin

from plugins.llms_txt.generator import generate_llm_files
from plugins.llms_txt.models import (
    CleanOptions,
    OutputTarget,
    PathRules,
    PipelineOptions,
    SelectionRules,
)

log = logging.getLogger("mkdocs.plugins.llms_txt")

CUSTOM_FILE_KEYS = {
    "filename",
    "include_patterns",
    "full_content",
    "title",
    "description",
    "ignore_patterns",
    "order_patterns",
    "include_unmatched_last",
    "version",
    "root_content",
}
PATH_TRANSFORMATION_KEYS = {"ignore_paths", "add_paths"}


def as_string_tuple(value: Any, key: str) -> tuple[str, ...]:
    """Accept a single string or a list of strings."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise PluginError(f"[llms_txt] '{key}' must be a string or a list of strings")


def as_optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def check_output_filename(filename: Any, key: str) -> str:
    """Output files must stay inside the site directory."""
    if not isinstance(filename, str) or not filename.strip():
        raise PluginError(f"[llms_txt] '{key}' must be a non-empty string")
    path = PurePosixPath(filename.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts:
        raise PluginError(f"[llms_txt] '{key}' resolves outside the site directory: {filename}")
    return filename


def parse_path_rules(raw: Dict[str, Any]) -> PathRules:
    unknown = set(raw) - PATH_TRANSFORMATION_KEYS
    if unknown:
        raise PluginError(
            f"[llms_txt] unknown path_transformation keys: {', '.join(sorted(unknown))}"
        )
    return PathRules(
        ignore_paths=as_string_tuple(raw.get("ignore_paths"), "path_transformation.ignore_paths"),
        add_paths=as_string_tuple(raw.get("add_paths"), "path_transformation.add_paths"),
    )


def parse_custom_target(
    entry: Any, index: int, global_ignore: tuple[str, ...], version: Optional[str]
) -> OutputTarget:
    """Turn one `custom_llm_files` entry into an OutputTarget."""
    key = f"custom_llm_files[{index}]"
    if not isinstance(entry, dict):
        raise PluginError(f"[llms_txt] {key} must be a mapping")
    unknown = set(entry) - CUSTOM_FILE_KEYS
    if unknown:
        raise PluginError(f"[llms_txt] {key} has unknown keys: {', '.join(sorted(unknown))}")

    filename = check_output_filename(entry.get("filename"), f"{key}.filename")
    own_ignore = as_string_tuple(entry.get("ignore_patterns"), f"{key}.ignore_patterns")

    return OutputTarget(
        filename=filename,
        full_content=bool(entry.get("full_content", False)),
        title=as_optional_text(entry.get("title")),
        description=as_optional_text(entry.get("description")),
        version=as_optional_text(entry.get("version")) or version,
        root_content=as_optional_text(entry.get("root_content")),
        rules=SelectionRules(
            include=as_string_tuple(entry.get("include_patterns"), f"{key}.include_patterns"),
            ignore=global_ignore + own_ignore,
            order=as_string_tuple(entry.get("order_patterns"), f"{key}.order_patterns"),
            include_unmatched_last=bool(entry.get("include_unmatched_last", False)),
        ),
    )


class LLMsTxtPlugin(BasePlugin):
    """MkDocs plugin that generates llms.txt, llms-full.txt and custom LLM files.

    The Markdown sources under `docs_dir` (and optionally `blog_dir`) are
    re-read after the build; page URLs come from the MkDocs file collection
    when available.
    """

    config_scheme = (
        ("generate_llms_txt", c.Type(bool, default=True)),
        ("generate_llms_full_txt", c.Type(bool, default=True)),
        ("llms_txt_filename", c.Type(str, default="llms.txt")),
        ("llms_full_txt_filename", c.Type(str, default="llms-full.txt")),
        ("docs_dir", c.Type(str, default="")),
        ("include_blog", c.Type(bool, default=False)),
        ("blog_dir", c.Type(str, default="blog")),
        ("ignore_files", c.Type((str, list), default=[])),
        ("include_order", c.Type((str, list), default=[])),
        ("include_unmatched_last", c.Type(bool, default=True)),
        ("path_transformation", c.Type(dict, default={})),
        ("custom_llm_files", c.Type(list, default=[])),
        ("title", c.Type(str, default="")),
        ("description", c.Type(str, default="")),
        ("version", c.Type((str, int, float), default="")),
        ("exclude_imports", c.Type(bool, default=False)),
        ("remove_duplicate_headings", c.Type(bool, default=False)),
        ("generate_markdown_files", c.Type(bool, default=False)),
        ("keep_front_matter", c.Type((str, list), default=[])),
        ("root_content", c.Type(str, default="")),
        ("full_root_content", c.Type(str, default="")),
        ("max_workers", c.Type(int, default=0)),
    )

    def __init__(self):
        super().__init__()
        self.options: Optional[PipelineOptions] = None
        self.route_map: Dict[str, str] = {}
        self._project_root: Optional[Path] = None

    # -------------------------------
    # Hooks
    # -------------------------------

    def on_config(self, config, **kwargs):
        """Validate plugin options and turn them into PipelineOptions."""
        self._project_root = self._resolve_project_root(config)
        self.options = self.build_options(config, self._project_root)
        log.debug(
            f"[llms_txt] targets: {[t.filename for t in self.options.standard_targets + self.options.custom_targets]}"
        )
        return config

    def on_files(self, files, config, **kwargs):
        """Record the URL MkDocs assigned to every documentation page."""
        project_root = self._project_root or self._resolve_project_root(config)
        route_map: Dict[str, str] = {}
        for f in files.documentation_pages():
            if not f.abs_src_path:
                continue
            rel_path = Path(os.path.relpath(Path(f.abs_src_path).resolve(), project_root)).as_posix()
            route_map[rel_path] = f.url
        self.route_map = route_map
        log.debug(f"[llms_txt] recorded {len(route_map)} page routes")
        return files

    def on_post_build(self, config, **kwargs):
        if self.options is None:
            self.on_config(config)
        if not (self.options.standard_targets or self.options.custom_targets):
            log.info("[llms_txt] no output files enabled; nothing to do")
            return

        options = dataclasses.replace(
            self.options, output_dir=str(Path(config["site_dir"]).resolve())
        )
        log.info("[llms_txt] generating LLM-friendly documentation")
        try:
            generate_llm_files(options, self.route_map)
        except Exception as e:
            log.error(f"[llms_txt] error generating LLM documentation: {e}", exc_info=True)
            raise PluginError(f"[llms_txt] error generating LLM documentation: {e}") from e

    # -------------------------------
    # Helpers
    # -------------------------------

    @staticmethod
    def _resolve_project_root(config) -> Path:
        config_file_path = config.get("config_file_path")
        if config_file_path:
            return Path(config_file_path).resolve().parent
        return Path.cwd()

    def build_options(self, config, project_root: Path) -> PipelineOptions:
        cfg = self.config

        docs_dir = cfg["docs_dir"]
        if not docs_dir:
            docs_dir = os.path.relpath(Path(config.get("docs_dir") or "docs").resolve(), project_root)
        docs_dir = Path(docs_dir).as_posix().strip("/")

        ignore_files = as_string_tuple(cfg["ignore_files"], "ignore_files")
        include_order = as_string_tuple(cfg["include_order"], "include_order")
        version = as_optional_text(cfg["version"])

        standard_rules = SelectionRules(
            order=include_order,
            include_unmatched_last=cfg["include_unmatched_last"],
        )
        standard_targets = []
        if cfg["generate_llms_txt"]:
            standard_targets.append(
                OutputTarget(
                    filename=check_output_filename(cfg["llms_txt_filename"], "llms_txt_filename"),
                    full_content=False,
                    version=version,
                    root_content=as_optional_text(cfg["root_content"]),
                    rules=standard_rules,
                )
            )
        if cfg["generate_llms_full_txt"]:
            standard_targets.append(
                OutputTarget(
                    filename=check_output_filename(
                        cfg["llms_full_txt_filename"], "llms_full_txt_filename"
                    ),
                    full_content=True,
                    version=version,
                    root_content=as_optional_text(cfg["full_root_content"]),
                    rules=standard_rules,
                )
            )

        custom_targets = [
            parse_custom_target(entry, i, ignore_files, version)
            for i, entry in enumerate(cfg["custom_llm_files"])
        ]

        return PipelineOptions(
            project_root=str(project_root),
            output_dir=str(config.get("site_dir") or project_root / "site"),
            site_url=(config.get("site_url") or "").rstrip("/"),
            title=cfg["title"] or config.get("site_name") or "",
            description=cfg["description"] or config.get("site_description") or "",
            docs_dir=docs_dir,
            blog_dir=Path(cfg["blog_dir"]).as_posix().strip("/"),
            include_blog=cfg["include_blog"],
            ignore_files=ignore_files,
            path_rules=parse_path_rules(cfg["path_transformation"]),
            clean_options=CleanOptions(
                strip_imports=cfg["exclude_imports"],
                dedup_headings=cfg["remove_duplicate_headings"],
            ),
            standard_targets=tuple(standard_targets),
            custom_targets=tuple(custom_targets),
            generate_markdown_files=cfg["generate_markdown_files"],
            keep_front_matter=as_string_tuple(cfg["keep_front_matter"], "keep_front_matter"),
            max_workers=cfg["max_workers"] or None,
        )
