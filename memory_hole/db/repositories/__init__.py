"""
Per-domain repository modules.

Every multi-statement operation here runs inside ``transaction(db)`` and
goes through the named statements in ``memory_hole.db.queries``.
"""
