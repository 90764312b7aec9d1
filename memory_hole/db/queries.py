"""
Named SQL statements.

Statements are defined in ``sql/*.sql``. Each one starts with a header::

    -- :name add-user-to-groups :affected
    -- :doc adds a user to every group in the list
    -- :param groups _int4
    INSERT INTO ...

``:one`` statements return a single projected row (or None), ``:many``
a list of projected rows and ``:affected`` the affected row count.
``:param`` lines declare the store type of a parameter so sequences can be
bound as native arrays instead of JSON.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.orm import Session

from memory_hole.db import types
from memory_hole.db.exceptions import MissingParameterError, QueryDefinitionError, QueryNotFoundError
from memory_hole.db.keys import to_param_name
from memory_hole.db.projection import ResultProjector

logger = logging.getLogger(__name__)

SQL_DIR = Path(__file__).with_name("sql")

RESULT_KINDS = ("one", "many", "affected")

_NAME_HEADER = re.compile(r"^--\s*:name\s+(?P<name>[\w\-?!<>*]+)\s+:(?P<result>\w+)\s*$")
_PARAM_HEADER = re.compile(r"^--\s*:param\s+(?P<param>[\w\-]+)\s+(?P<type>\w+)\s*$")
_DOC_HEADER = re.compile(r"^--\s*:doc\s?(?P<doc>.*)$")


@dataclass(frozen=True)
class NamedQuery:
    name: str
    sql: str
    result: str
    param_types: Mapping[str, str] = field(default_factory=dict)
    doc: str = ""

    @cached_property
    def bind_names(self) -> Tuple[str, ...]:
        """Bind parameter names in order of first use, as ``text()`` finds them."""
        return tuple(text(self.sql).compile().params)


def parse_sql(source: str, content: str) -> Iterable[NamedQuery]:
    """Split the contents of one statement file into named statements."""
    current = None
    body = []

    def _finish():
        if current is None:
            return None
        sql = "\n".join(body).strip()
        if not sql:
            raise QueryDefinitionError(source, current["line_no"], f"statement {current['name']!r} has no SQL")
        return NamedQuery(
            name=current["name"],
            sql=sql,
            result=current["result"],
            param_types=dict(current["params"]),
            doc=" ".join(current["doc"]).strip(),
        )

    for line_no, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if stripped.startswith("-- :name") or stripped.startswith("--:name"):
            match = _NAME_HEADER.match(stripped)
            if not match:
                raise QueryDefinitionError(source, line_no, f"malformed name header: {stripped!r}")
            if match.group("result") not in RESULT_KINDS:
                raise QueryDefinitionError(source, line_no, f"unknown result kind :{match.group('result')}")
            query = _finish()
            if query is not None:
                yield query
            current = {
                "name": match.group("name"),
                "result": match.group("result"),
                "params": {},
                "doc": [],
                "line_no": line_no,
            }
            body = []
            continue
        if current is None:
            if stripped and not stripped.startswith("--"):
                raise QueryDefinitionError(source, line_no, "SQL before the first :name header")
            continue
        if not body and stripped.startswith("--"):
            param = _PARAM_HEADER.match(stripped)
            if param:
                current["params"][to_param_name(param.group("param"))] = param.group("type")
                continue
            doc = _DOC_HEADER.match(stripped)
            if doc:
                current["doc"].append(doc.group("doc"))
                continue
            if stripped.startswith("-- :") or stripped.startswith("--:"):
                raise QueryDefinitionError(source, line_no, f"unknown header: {stripped!r}")
        body.append(line)

    query = _finish()
    if query is not None:
        yield query


def normalize_params(params: Optional[Mapping]) -> Dict[str, object]:
    if not params:
        return {}
    return {to_param_name(key) if isinstance(key, str) else key: value for key, value in params.items()}


class Queries:
    """Registry of named statements bound to a result projector.

    Statements can be run by name or through attribute access using the
    snake_case form of the name::

        queries.run(db, "groups-for-user", {"user-id": 3})
        queries.groups_for_user(db, {"user-id": 3})
    """

    def __init__(self, statements: Iterable[NamedQuery], projector: Optional[ResultProjector] = None):
        self._statements: Dict[str, NamedQuery] = {}
        for statement in statements:
            if statement.name in self._statements:
                raise QueryDefinitionError(statement.name, 0, "duplicate statement name")
            self._statements[statement.name] = statement
        self.projector = projector or ResultProjector()

    @classmethod
    def from_files(cls, paths: Iterable[Path], projector: Optional[ResultProjector] = None) -> "Queries":
        statements = []
        for path in paths:
            statements.extend(parse_sql(path.name, path.read_text(encoding="utf-8")))
        return cls(statements, projector)

    @classmethod
    def load_dir(cls, directory: Path = SQL_DIR, projector: Optional[ResultProjector] = None) -> "Queries":
        return cls.from_files(sorted(Path(directory).glob("*.sql")), projector)

    def __contains__(self, name: str) -> bool:
        return name in self._statements

    def names(self):
        return sorted(self._statements)

    def get(self, name: str) -> NamedQuery:
        try:
            return self._statements[name]
        except KeyError:
            raise QueryNotFoundError(name) from None

    def bind(self, query: NamedQuery, params: Optional[Mapping] = None):
        """Build the executable statement for ``query`` with ``params`` bound."""
        values = normalize_params(params)
        missing = [name for name in query.bind_names if name not in values]
        if missing:
            raise MissingParameterError(query.name, missing)
        bound = [
            types.encode_param(name, values[name], query.param_types.get(name))
            for name in query.bind_names
        ]
        statement = text(query.sql)
        if bound:
            statement = statement.bindparams(*bound)
        return statement

    def run(self, db: Session, name: str, params: Optional[Mapping] = None):
        query = self.get(name)
        statement = self.bind(query, params)
        logger.debug("Executing %s (:%s)", name, query.result)
        result = db.execute(statement)
        if query.result == "one":
            return self.projector.one(db, result)
        if query.result == "many":
            return self.projector.many(db, result)
        return result.rowcount

    def __getattr__(self, attr: str):
        if attr.startswith("_"):
            raise AttributeError(attr)
        name = attr.replace("_", "-")
        if name not in self._statements:
            raise AttributeError(f"No SQL statement named {name!r}")

        def _run(db: Session, params: Optional[Mapping] = None):
            return self.run(db, name, params)

        _run.__name__ = attr
        return _run


queries = Queries.load_dir()
