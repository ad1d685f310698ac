"""Regex filter matching for include/exclude lists.

Patterns are regular expressions searched anywhere in a root-relative,
forward-slash path (``re.search``), so ``\\.log$`` matches ``logs/game.log``
and ``^assets/`` matches everything under the top-level ``assets`` directory.

Filtering is best-effort: an invalid pattern is logged and never matches.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern, Tuple

from .errors import PatternError
from .utils import to_posix

logger = logging.getLogger(__name__)


def compile_patterns(patterns: Optional[Iterable[str]], strict: bool = False) -> Tuple[Pattern, ...]:
    """Compile filter expressions.

    Args:
        patterns: Regular expressions (None is treated as empty)
        strict: Raise PatternError on the first invalid pattern instead of
            logging it and leaving it out

    Returns:
        Tuple of compiled patterns, in input order
    """
    compiled = []
    for pattern in patterns or ():
        try:
            compiled.append(re.compile(pattern))
        except (re.error, TypeError) as e:
            err = PatternError(str(pattern), str(e))
            if strict:
                raise err from e
            logger.warning("%s (treated as non-matching)", err)
    return tuple(compiled)


def _search_any(path: str, compiled: Iterable[Pattern]) -> bool:
    return any(p.search(path) for p in compiled)


def matches(path: str, patterns: Optional[Iterable[str]]) -> bool:
    """Check whether a relative path matches any of the patterns.

    Args:
        path: Root-relative path; backslashes are normalized to "/"
        patterns: Regular expressions, combined with logical OR

    Returns:
        True if at least one valid pattern matches
    """
    return _search_any(to_posix(path), compile_patterns(patterns))


@dataclass(frozen=True)
class PathFilter:
    """Pre-compiled include/exclude lists for one walk.

    A directory is tested on both its bare path and its path with a trailing
    slash, so ``^assets/`` admits the ``assets`` directory itself and
    ``^logs$`` still prunes ``logs``.
    """

    include: Tuple[Pattern, ...] = ()
    exclude: Tuple[Pattern, ...] = ()

    @classmethod
    def from_patterns(
        cls,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        strict: bool = False,
    ) -> "PathFilter":
        return cls(
            include=compile_patterns(include, strict=strict),
            exclude=compile_patterns(exclude, strict=strict),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.include or self.exclude)

    @staticmethod
    def _candidates(relpath: str, is_dir: bool) -> Tuple[str, ...]:
        relpath = to_posix(relpath)
        return (relpath, relpath + "/") if is_dir else (relpath,)

    def excludes(self, relpath: str, is_dir: bool = False) -> bool:
        """True if a non-empty exclude list matches the path."""
        if not self.exclude:
            return False
        return any(_search_any(c, self.exclude) for c in self._candidates(relpath, is_dir))

    def includes(self, relpath: str, is_dir: bool = False) -> bool:
        """True if the include list is empty or matches the path."""
        if not self.include:
            return True
        return any(_search_any(c, self.include) for c in self._candidates(relpath, is_dir))

    def accepts(self, relpath: str, is_dir: bool = False) -> bool:
        """Apply exclusion first, then inclusion."""
        return not self.excludes(relpath, is_dir) and self.includes(relpath, is_dir)
