"""
SchemaDocs Test Suite.

This package contains:
- unit/: Unit tests for pure components (fields, ids, serializers,
  settings) and the SQLite table wrapper
- integration/: Store-backed document flows on in-memory SQLite
"""
