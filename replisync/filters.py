from __future__ import annotations

from pathspec import GitIgnoreSpec


def _normalize_pattern(pattern: str) -> str:
    normalized = pattern.strip().replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


class PathFilter:
    """gitignore-style rules deciding which relative paths take part in a sync.

    Both trees are filtered with the same rules, so an excluded path is neither
    copied from the source nor deleted from the replica.
    """

    def __init__(
        self,
        include_patterns: tuple[str, ...] = (),
        exclude_patterns: tuple[str, ...] = (),
    ) -> None:
        self.include_patterns = include_patterns
        self.exclude_patterns = exclude_patterns
        self._include = GitIgnoreSpec.from_lines(include_patterns) if include_patterns else None
        self._exclude = GitIgnoreSpec.from_lines(exclude_patterns) if exclude_patterns else None

    @property
    def is_noop(self) -> bool:
        return self._include is None and self._exclude is None

    def prunes_directory(self, relative_dir: str) -> bool:
        """True when every file below ``relative_dir`` is excluded, so a walk can skip it."""
        if self._exclude is None:
            return False
        return self._exclude.match_file(relative_dir.rstrip("/") + "/")

    def matches(self, path: str) -> bool:
        if self._include is not None and not self._include.match_file(path):
            return False
        if self._exclude is not None and self._exclude.match_file(path):
            return False
        return True


def build_path_filter(
    include_patterns: list[str] | tuple[str, ...] | None = None,
    exclude_patterns: list[str] | tuple[str, ...] | None = None,
) -> PathFilter:
    include = tuple(p for p in map(_normalize_pattern, include_patterns or []) if p)
    exclude = tuple(p for p in map(_normalize_pattern, exclude_patterns or []) if p)
    return PathFilter(include_patterns=include, exclude_patterns=exclude)
