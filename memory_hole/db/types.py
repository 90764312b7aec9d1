"""Conversion between PostgreSQL column values and in-memory values.

Inbound, every column value is decoded according to the store type name of
its column (resolved from the cursor description). Outbound, parameter
values are wrapped in typed bind parameters: mappings always travel as
JSONB, sequences travel as native arrays when the statement declares an
array type for the parameter (``_int4``, ``_text``...) and as JSONB
otherwise.
"""
from __future__ import annotations

import csv
import enum
import json
import threading
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy import types as sa_types
from sqlalchemy.dialects import postgresql
from sqlalchemy.sql.elements import BindParameter
from sqlalchemy.types import UserDefinedType


class ColumnKind(enum.Enum):
    TEMPORAL = "temporal"
    RECORD = "record"
    JSON = "json"
    CITEXT = "citext"
    ARRAY = "array"
    OTHER = "other"


_TEMPORAL_TYPES = frozenset({"date", "timestamp", "timestamptz"})
_JSON_TYPES = frozenset({"json", "jsonb"})

# Built-in type OIDs from pg_type.h; anything else is looked up in pg_type
BUILTIN_TYPE_NAMES: Dict[int, str] = {
    16: "bool",
    17: "bytea",
    20: "int8",
    21: "int2",
    23: "int4",
    25: "text",
    114: "json",
    199: "_json",
    700: "float4",
    701: "float8",
    1000: "_bool",
    1005: "_int2",
    1007: "_int4",
    1009: "_text",
    1015: "_varchar",
    1016: "_int8",
    1043: "varchar",
    1082: "date",
    1114: "timestamp",
    1115: "_timestamp",
    1182: "_date",
    1184: "timestamptz",
    1185: "_timestamptz",
    1700: "numeric",
    2249: "record",
    2287: "_record",
    2950: "uuid",
    2951: "_uuid",
    3802: "jsonb",
    3807: "_jsonb",
}


class CIText(UserDefinedType):
    """PostgreSQL ``citext`` column type (requires the citext extension)."""

    cache_ok = True

    def get_col_spec(self, **kw):
        return "CITEXT"


def array_element_type(type_name: Optional[str]) -> Optional[str]:
    """Return ``X`` for an ``_X`` array type name, else None."""
    if type_name and len(type_name) > 1 and type_name[0] == "_":
        return type_name[1:]
    return None


def column_kind(type_name: Optional[str]) -> ColumnKind:
    if not type_name:
        return ColumnKind.OTHER
    if array_element_type(type_name):
        return ColumnKind.ARRAY
    if type_name in _TEMPORAL_TYPES:
        return ColumnKind.TEMPORAL
    if type_name == "record":
        return ColumnKind.RECORD
    if type_name in _JSON_TYPES:
        return ColumnKind.JSON
    if type_name == "citext":
        return ColumnKind.CITEXT
    return ColumnKind.OTHER


# --- temporal -------------------------------------------------------------

_EPOCH = datetime(1970, 1, 1)
_EPOCH_UTC = _EPOCH.replace(tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def to_epoch_millis(value: datetime) -> int:
    """Milliseconds since the epoch; naive values are measured naively."""
    if value.tzinfo is None:
        return (value - _EPOCH) // _MILLISECOND
    return (value - _EPOCH_UTC) // _MILLISECOND


def from_epoch_millis(millis: int, tz=None) -> datetime:
    if tz is None:
        return _EPOCH + millis * _MILLISECOND
    return (_EPOCH_UTC + millis * _MILLISECOND).astimezone(tz)


def to_datetime(value):
    """Canonical datetime for a date/timestamp column value."""
    if isinstance(value, datetime):
        return from_epoch_millis(to_epoch_millis(value), value.tzinfo)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return value


# --- composite records ---------------------------------------------------

def parse_record(value) -> Optional[List[str]]:
    """Split a ``(a,b,...)`` record literal into its text fields.

    Absent values give None and malformed ones an empty list.
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ["" if field is None else str(field) for field in value]
    if not isinstance(value, str):
        return []
    stripped = value.strip()
    if len(stripped) < 2 or stripped[0] != "(" or stripped[-1] != ")":
        return []
    inner = stripped[1:-1]
    if not inner:
        return []
    try:
        rows = list(csv.reader([inner], delimiter=",", quotechar='"', escapechar="\\"))
    except csv.Error:
        return []
    return rows[0] if rows else []


# --- json -----------------------------------------------------------------

def parse_json(value):
    """Parse a json/jsonb payload; invalid text raises ``json.JSONDecodeError``."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        value = bytes(value).decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value


# --- inbound dispatch -----------------------------------------------------

def decode_array(element_type: Optional[str], value) -> List[Any]:
    """Decode array elements; the driver has already split the array."""
    if not isinstance(value, (list, tuple)):
        return value
    # Records and json values may themselves arrive as sequences
    nests = column_kind(element_type) not in (ColumnKind.RECORD, ColumnKind.JSON)
    items = []
    for item in value:
        if nests and isinstance(item, (list, tuple)):
            decoded = decode_array(element_type, item)
        else:
            decoded = decode_value(element_type, item)
        if decoded is not None:
            items.append(decoded)
    return items


_DECODERS = {
    ColumnKind.TEMPORAL: lambda _type_name, value: to_datetime(value),
    ColumnKind.RECORD: lambda _type_name, value: parse_record(value),
    ColumnKind.JSON: lambda _type_name, value: parse_json(value),
    ColumnKind.CITEXT: lambda _type_name, value: str(value),
    ColumnKind.ARRAY: lambda type_name, value: decode_array(array_element_type(type_name), value),
}


def decode_value(type_name: Optional[str], value):
    """Convert one column value read from a column of store type ``type_name``."""
    if value is None:
        return None
    decoder = _DECODERS.get(column_kind(type_name))
    if decoder is None:
        return value
    return decoder(type_name, value)


# --- outbound -------------------------------------------------------------

_ARRAY_ELEMENT_TYPES = {
    "bool": sa_types.Boolean,
    "int2": sa_types.SmallInteger,
    "int4": sa_types.Integer,
    "int8": sa_types.BigInteger,
    "float4": sa_types.Float,
    "float8": sa_types.Float,
    "numeric": sa_types.Numeric,
    "text": sa_types.Text,
    "varchar": sa_types.String,
    "citext": sa_types.Text,
    "date": sa_types.Date,
    "timestamp": sa_types.DateTime,
    "timestamptz": lambda: sa_types.DateTime(timezone=True),
    "uuid": lambda: postgresql.UUID(as_uuid=False),
    "json": postgresql.JSON,
    "jsonb": postgresql.JSONB,
}

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def _array_type(element_type: str):
    factory = _ARRAY_ELEMENT_TYPES.get(element_type, sa_types.Text)
    return postgresql.ARRAY(factory())


def encode_param(name: str, value, declared_type: Optional[str] = None) -> BindParameter:
    """Bind ``value`` as parameter ``name`` in its store representation.

    ``declared_type`` is the store type name the statement declares for
    the parameter; it only matters for sequences.
    """
    if isinstance(value, datetime):
        bound = from_epoch_millis(to_epoch_millis(value), value.tzinfo)
        return bindparam(name, bound, type_=sa_types.DateTime(timezone=value.tzinfo is not None))
    if isinstance(value, Mapping):
        return bindparam(name, dict(value), type_=postgresql.JSONB)
    if isinstance(value, _SEQUENCE_TYPES):
        items = list(value)
        element_type = array_element_type(declared_type)
        if element_type:
            return bindparam(name, items, type_=_array_type(element_type))
        return bindparam(name, items, type_=postgresql.JSONB)
    return bindparam(name, value)


# --- store type names -----------------------------------------------------

class TypeNameResolver:
    """Map PostgreSQL type OIDs to type names.

    Built-in OIDs are known up front; others (extension types such as
    citext) are looked up in pg_type once per process.
    """

    _LOOKUP = text("SELECT oid, typname FROM pg_catalog.pg_type WHERE oid = ANY(CAST(:oids AS oid[]))").bindparams(
        bindparam("oids", type_=postgresql.ARRAY(sa_types.Integer))
    )

    def __init__(self, known: Optional[Dict[int, str]] = None):
        self._names: Dict[int, str] = dict(BUILTIN_TYPE_NAMES if known is None else known)
        self._lock = threading.Lock()

    def resolve(self, db, type_codes: Sequence[Any]) -> List[Optional[str]]:
        unknown = {code for code in type_codes if isinstance(code, int) and code not in self._names}
        if unknown and db.get_bind().dialect.name == "postgresql":
            rows = db.execute(self._LOOKUP, {"oids": sorted(unknown)}).all()
            with self._lock:
                for oid, typname in rows:
                    self._names[int(oid)] = typname
        return [self._names.get(code) if isinstance(code, int) else None for code in type_codes]


def type_codes(description: Optional[Iterable[Any]]) -> List[Any]:
    """Type codes from a DB-API cursor description."""
    if not description:
        return []
    return [column[1] for column in description]
