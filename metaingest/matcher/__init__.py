"""Include/exclude pattern matching for scoping collection."""

from metaingest.config.schemas.matching import MatchingConfig, MatchingRule, PatternType
from metaingest.matcher.matcher import MatcherSet, RuleMatcher
from metaingest.matcher.patterns import GlobMatcher, RegexMatcher


__all__ = [
    "GlobMatcher",
    "MatcherSet",
    "MatchingConfig",
    "MatchingRule",
    "PatternType",
    "RegexMatcher",
    "RuleMatcher",
]
