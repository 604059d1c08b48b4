import re
from typing import Mapping, Optional

from plugins.llms_txt.models import PathRules

MD_EXTENSION_RE = re.compile(r"\.mdx?$")
INDEX_LEAF_RE = re.compile(r"(^|/)index$")
NUMBERED_PREFIX_RE = re.compile(r"^\d+-")


def transform_path(url_path: str, rules: Optional[PathRules] = None) -> str:
    """Remove ignored segments from ``url_path`` and prepend added ones."""
    if not rules:
        return url_path

    transformed = url_path

    if rules.ignore_paths:
        patterns = [
            re.compile(rf"(^|/)({re.escape(segment)})(/|$)")
            for segment in rules.ignore_paths
            if segment
        ]
        # Adjacent repeats share a slash, so a single pass can miss one
        previous = None
        while previous != transformed:
            previous = transformed
            for pattern in patterns:
                transformed = pattern.sub(r"\1\3", transformed)
        transformed = re.sub(r"/+", "/", transformed)
        transformed = transformed.lstrip("/")

    # Reversed so the first configured segment ends up leftmost
    for segment in reversed(rules.add_paths):
        if not segment:
            continue
        if transformed.startswith(f"{segment}/") or transformed == segment:
            continue
        transformed = f"{segment}/{transformed}"

    return transformed


def join_url(site_url: str, route: str) -> str:
    """Join a site URL and a route with exactly one slash between them."""
    if re.match(r"^[a-z][a-z0-9+.-]*://", route, re.IGNORECASE):
        return route
    base = (site_url or "").rstrip("/")
    return f"{base}/{route.lstrip('/')}"


def derive_url(
    source_path: str,
    site_url: str,
    path_prefix: str = "docs",
    rules: Optional[PathRules] = None,
) -> str:
    """Build a document URL from its source path when the host has no route for it."""
    link_path = MD_EXTENSION_RE.sub("", source_path)
    link_path = INDEX_LEAF_RE.sub("", link_path)

    # The prefix is transformed separately so `ignore_paths` can drop it
    if path_prefix and link_path.startswith(f"{path_prefix}/"):
        link_path = link_path[len(path_prefix) + 1 :]
    elif path_prefix and link_path == path_prefix:
        link_path = ""

    transformed = transform_path(link_path, rules)

    prefix = path_prefix
    if prefix and rules and prefix in rules.ignore_paths:
        prefix = ""

    route = "/".join(part for part in (prefix, transformed) if part)
    return join_url(site_url, route)


def strip_numbered_prefixes(path: str) -> str:
    """``01-intro/02-setup`` -> ``intro/setup``."""
    return "/".join(NUMBERED_PREFIX_RE.sub("", segment) for segment in path.split("/"))


def route_candidates(source_path: str) -> list[str]:
    """Keys under which the host may have registered a route for ``source_path``."""
    no_ext = MD_EXTENSION_RE.sub("", source_path)
    candidates = [source_path, no_ext, strip_numbered_prefixes(source_path)]
    candidates.append(strip_numbered_prefixes(no_ext))

    seen = set()
    ordered = []
    for candidate in candidates:
        if candidate not in seen:
            seen.add(candidate)
            ordered.append(candidate)
    return ordered


def lookup_route(route_map: Optional[Mapping[str, str]], source_path: str) -> Optional[str]:
    if not route_map:
        return None
    for candidate in route_candidates(source_path):
        route = route_map.get(candidate)
        if route is not None:
            return route
    return None
