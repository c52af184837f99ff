"""
pyqt-searchtable: declarative search/table/dialog orchestration for PyQt6.

One list of field descriptors drives three UI surfaces: a search panel,
a data table and a create/edit dialog form. The package resolves that list
into per-surface schemas, derives default filter/sort/form state, and keeps
the surfaces synchronized behind a single imperative handle.

Architecture:
- Tier 1 (Core): Background execution, sorting and logging helpers
- Tier 2 (Protocols): Surface ABCs, the imperative handle, configuration
- Tier 3 (Forms): Field normalization, schema splitting, default state,
  SearchTableManager
- Tier 4 (Services): Selection coordination and query execution
- Tier 5 (Widgets): PyQt6 implementations of the surfaces

Key Features:
- Single source of truth for search, table and dialog fields
- Deterministic default sort order with explicit priority indexes
- Selection state that survives paging
- Last-issued-request-wins data loading
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
