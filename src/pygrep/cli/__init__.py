"""
Command-line interface implementation.

Maps grep-style options onto a SearchConfig and writes the resulting records
to standard output.
"""

from .main import main

__all__ = [
    "main",
]
