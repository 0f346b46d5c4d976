"""Include/exclude rule matching for catalog, schema and table names.

This module provides RuleMatcher, which compiles a MatchingRule once and
answers "is this name in scope?" with the following decision:

1. Any exclude pattern matches: rejected (exclude always wins).
2. Include list is empty: accepted.
3. Any include pattern matches: accepted.
4. Otherwise: rejected.

Compiled matchers are immutable and safe to share across threads.
"""

import re
from collections.abc import Iterable

from metaingest.collectors.errors import InvalidConfigError
from metaingest.config.schemas.matching import MatchingConfig, MatchingRule, PatternType
from metaingest.matcher.patterns import GlobMatcher, RegexMatcher


NamePattern = GlobMatcher | RegexMatcher


def _compile_patterns(
    patterns: Iterable[str],
    pattern_type: PatternType,
    case_sensitive: bool,
    field: str,
    source: str,
) -> tuple[NamePattern, ...]:
    """Compile a list of patterns of one type.

    Raises:
        InvalidConfigError: If a regex pattern is malformed.
    """
    compiled: list[NamePattern] = []
    for pattern in patterns:
        if pattern_type == PatternType.GLOB:
            compiled.append(GlobMatcher(pattern, case_sensitive=case_sensitive))
            continue
        try:
            compiled.append(RegexMatcher(pattern, case_sensitive=case_sensitive))
        except re.error as e:
            raise InvalidConfigError(
                source, field, f"invalid regex pattern '{pattern}': {e}"
            ) from e
    return tuple(compiled)


class RuleMatcher:
    """Compiled include/exclude rule."""

    def __init__(
        self,
        rule: MatchingRule | None,
        pattern_type: PatternType | str = PatternType.GLOB,
        case_sensitive: bool = False,
        *,
        source: str = "",
    ) -> None:
        """Compile the rule.

        Args:
            rule: Include/exclude patterns; None matches every name.
            pattern_type: Pattern syntax (glob or regex).
            case_sensitive: Whether matching respects case.
            source: Source type reported in configuration errors.

        Raises:
            InvalidConfigError: If the pattern type is unknown or a pattern is
                malformed for it.
        """
        try:
            self._pattern_type = PatternType(pattern_type)
        except ValueError as e:
            raise InvalidConfigError(
                source, "pattern_type", f"unknown pattern type '{pattern_type}'"
            ) from e
        self._case_sensitive = case_sensitive

        rule = rule or MatchingRule()
        self._include = _compile_patterns(
            rule.include, self._pattern_type, case_sensitive, "include", source
        )
        self._exclude = _compile_patterns(
            rule.exclude, self._pattern_type, case_sensitive, "exclude", source
        )

    @property
    def pattern_type(self) -> PatternType:
        """Get the pattern syntax."""
        return self._pattern_type

    @property
    def case_sensitive(self) -> bool:
        """Check whether matching respects case."""
        return self._case_sensitive

    def match(self, name: str) -> bool:
        """Decide whether a name is in scope.

        Args:
            name: Catalog, schema or table name.

        Returns:
            True if the name passes the rule.
        """
        if any(p.matches(name) for p in self._exclude):
            return False
        if not self._include:
            return True
        return any(p.matches(name) for p in self._include)

    def filter(self, names: Iterable[str]) -> list[str]:
        """Keep the names that pass the rule, in input order."""
        return [name for name in names if self.match(name)]


class MatcherSet:
    """Compiled matchers for every level of the catalog hierarchy."""

    def __init__(
        self,
        databases: RuleMatcher,
        schemas: RuleMatcher,
        tables: RuleMatcher,
    ) -> None:
        self._databases = databases
        self._schemas = schemas
        self._tables = tables

    @classmethod
    def from_config(
        cls, config: MatchingConfig | None, *, source: str = ""
    ) -> "MatcherSet":
        """Compile a matching configuration.

        Args:
            config: Matching configuration; None matches every name.
            source: Source type reported in configuration errors.

        Returns:
            MatcherSet for databases, schemas and tables.

        Raises:
            InvalidConfigError: If any pattern is malformed.
        """
        config = config or MatchingConfig()

        def build(rule: MatchingRule | None) -> RuleMatcher:
            return RuleMatcher(
                rule, config.pattern_type, config.case_sensitive, source=source
            )

        return cls(
            databases=build(config.databases),
            schemas=build(config.schemas),
            tables=build(config.tables),
        )

    @property
    def tables(self) -> RuleMatcher:
        """Get the table-level matcher."""
        return self._tables

    def match_database(self, name: str) -> bool:
        """Check if a database/catalog name is in scope."""
        return self._databases.match(name)

    def match_schema(self, name: str) -> bool:
        """Check if a schema name is in scope."""
        return self._schemas.match(name)

    def match_table(self, name: str) -> bool:
        """Check if a table name is in scope."""
        return self._tables.match(name)
