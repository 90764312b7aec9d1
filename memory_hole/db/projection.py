"""
Result adaptation for named statements.

Every row returned by a named statement goes through ``ResultProjector``:
column values are decoded by their store type, then keys are renamed to
the application convention.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from memory_hole.db import types
from memory_hole.db.keys import kebab_keys


class ResultProjector:
    def __init__(self, resolver: Optional[types.TypeNameResolver] = None):
        self.resolver = resolver or types.TypeNameResolver()

    def column_types(self, db, result) -> List[Optional[str]]:
        cursor = getattr(result, "cursor", None)
        codes = types.type_codes(getattr(cursor, "description", None))
        if not codes:
            return [None] * len(result.keys())
        return self.resolver.resolve(db, codes)

    @staticmethod
    def project_row(columns: Sequence[str], type_names: Sequence[Optional[str]], row) -> Dict[str, Any]:
        decoded = {
            column: types.decode_value(type_name, value)
            for column, type_name, value in zip(columns, type_names, row)
        }
        return kebab_keys(decoded)

    def one(self, db, result) -> Optional[Dict[str, Any]]:
        """First row of ``result`` projected, or None when there is none."""
        type_names = self.column_types(db, result)
        columns = list(result.keys())
        row = result.first()
        if row is None:
            return None
        return self.project_row(columns, type_names, row)

    def many(self, db, result) -> List[Dict[str, Any]]:
        type_names = self.column_types(db, result)
        columns = list(result.keys())
        return [self.project_row(columns, type_names, row) for row in result.all()]
