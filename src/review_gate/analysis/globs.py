"""Path glob matching for critical paths, profiles and patterns."""

from collections.abc import Iterable
from fnmatch import fnmatchcase
from functools import lru_cache
from itertools import product


def normalize_path(path: str) -> str:
    """Forward slashes, no leading './'."""
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


@lru_cache(maxsize=256)
def _expand_globstars(pattern: str) -> tuple[str, ...]:
    """Variants of a pattern with each `**/` kept or dropped.

    fnmatch has no globstar, so `src/**/a.ts` needs a second form
    `src/a.ts` to match zero directories.
    """
    parts = pattern.split("**/")
    if len(parts) == 1:
        return (pattern,)
    variants = []
    for keep in product((True, False), repeat=len(parts) - 1):
        variant = parts[0]
        for kept, part in zip(keep, parts[1:]):
            variant += ("**/" if kept else "") + part
        variants.append(variant)
    return tuple(variants)


def matches_glob(path: str, pattern: str) -> bool:
    """Whether a project-relative path matches a glob.

    `*` also crosses directory separators, so `src/commands/**` covers every
    file below `src/commands`. Each `**/` matches zero or more directories.
    A pattern without a separator matches the file name anywhere.
    """
    path = normalize_path(path)
    pattern = normalize_path(pattern)

    if any(fnmatchcase(path, variant) for variant in _expand_globstars(pattern)):
        return True
    if "/" not in pattern:
        return fnmatchcase(path.rsplit("/", 1)[-1], pattern)
    return False


def first_match(path: str, patterns: Iterable[str]) -> str | None:
    """First pattern that matches the path, or None."""
    for pattern in patterns:
        if matches_glob(path, pattern):
            return pattern
    return None
