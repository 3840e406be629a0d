"""
Search pipeline stages.

- matchers: literal and regular expression matchers over byte lines
- scanner: chunked line splitting of byte streams
- resolver: operands to sources, with recursive traversal
- engine: per-source state machine, context windows and binary handling
- aggregator: events to output records and the final outcome
"""

from .aggregator import ResultAggregator
from .engine import SearchEngine
from .matchers import ExpressionMatcher, LiteralMatcher, Matcher, compile_matcher
from .resolver import SourceResolver
from .scanner import LineScanner, scan

__all__ = [
    "ExpressionMatcher",
    "LineScanner",
    "LiteralMatcher",
    "Matcher",
    "ResultAggregator",
    "SearchEngine",
    "SourceResolver",
    "compile_matcher",
    "scan",
]
