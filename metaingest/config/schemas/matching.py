"""Include/exclude matching configuration schema."""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PatternType(str, Enum):
    """Syntax of include/exclude patterns."""

    GLOB = "glob"
    REGEX = "regex"


class MatchingRule(BaseModel):
    """Include/exclude pattern lists for one level of the hierarchy.

    Attributes:
        include: Patterns a name must match; empty means match everything.
        exclude: Patterns that reject a name; exclude always wins.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)


class MatchingConfig(BaseModel):
    """Scoping rules for databases, schemas and tables.

    Attributes:
        pattern_type: Pattern syntax (glob or regex).
        case_sensitive: Whether matching respects case.
        databases: Rule for database/catalog names.
        schemas: Rule for schema names.
        tables: Rule for table names.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    pattern_type: PatternType = PatternType.GLOB
    case_sensitive: bool = False
    databases: MatchingRule | None = None
    schemas: MatchingRule | None = None
    tables: MatchingRule | None = None

    @model_validator(mode="after")
    def validate_regex_patterns(self) -> "MatchingConfig":
        """Ensure every pattern compiles when pattern_type is regex."""
        if self.pattern_type != PatternType.REGEX:
            return self
        problems: list[str] = []
        for level in ("databases", "schemas", "tables"):
            rule: MatchingRule | None = getattr(self, level)
            if rule is None:
                continue
            for kind, patterns in (("include", rule.include), ("exclude", rule.exclude)):
                for i, pattern in enumerate(patterns):
                    try:
                        re.compile(pattern)
                    except re.error as e:
                        problems.append(
                            f"{level}.{kind}[{i}]: invalid regex pattern '{pattern}': {e}"
                        )
        if problems:
            msg = "; ".join(problems)
            raise ValueError(msg)
        return self
