"""Compiled name patterns (glob and regex)."""

import re


class GlobMatcher:
    """Matches whole names against a glob pattern.

    ``*`` matches any run of characters, including none. Every other
    character is literal, so ``user_?`` only matches the name ``user_?``.
    """

    def __init__(self, pattern: str, *, case_sensitive: bool = False) -> None:
        """Compile the glob.

        Args:
            pattern: Glob pattern.
            case_sensitive: Whether matching respects case.
        """
        self._pattern = pattern
        body = ".*".join(re.escape(part) for part in pattern.split("*"))
        flags = 0 if case_sensitive else re.IGNORECASE
        self._regex = re.compile(body, flags | re.DOTALL)

    @property
    def pattern(self) -> str:
        """Get the original glob pattern."""
        return self._pattern

    def matches(self, name: str) -> bool:
        """Check whether the whole name matches the glob."""
        return self._regex.fullmatch(name) is not None

    def __repr__(self) -> str:
        return f"GlobMatcher({self._pattern!r})"


class RegexMatcher:
    """Matches names against a regular expression.

    The pattern is used as written: it matches anywhere in the name unless
    it carries its own ``^``/``$`` anchors.
    """

    def __init__(self, pattern: str, *, case_sensitive: bool = False) -> None:
        """Compile the regex.

        Args:
            pattern: Regular expression.
            case_sensitive: Whether matching respects case.

        Raises:
            re.error: If the pattern is malformed.
        """
        self._pattern = pattern
        flags = 0 if case_sensitive else re.IGNORECASE
        self._regex = re.compile(pattern, flags)

    @property
    def pattern(self) -> str:
        """Get the original regex pattern."""
        return self._pattern

    def matches(self, name: str) -> bool:
        """Check whether the regex matches anywhere in the name."""
        return self._regex.search(name) is not None

    def __repr__(self) -> str:
        return f"RegexMatcher({self._pattern!r})"
