"""
Core search functionality.

- config: search options and their validation
- types: data types flowing through the pipeline
- api: the PyGrep orchestrator
"""

from .api import PyGrep
from .config import SearchConfig
from .types import OutputRecord, SearchOutcome, SearchResult, SearchStats

__all__ = [
    "PyGrep",
    "SearchConfig",
    "OutputRecord",
    "SearchOutcome",
    "SearchResult",
    "SearchStats",
]
