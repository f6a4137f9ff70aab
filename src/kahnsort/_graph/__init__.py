"""Graph module providing the topological sort.

This module contains:
- topological_sort: Kahn's algorithm over positional, mapped or computed edges
- CycleError / EdgeSourceError: the two ways a sort can fail
"""

from ._algorithms import CycleError, EdgeSource, EdgeSourceError, topological_sort

__all__ = ["CycleError", "EdgeSource", "EdgeSourceError", "topological_sort"]
