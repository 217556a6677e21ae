"""Raw SQL type text -> canonical :class:`DataType`.

The mapping is total.  Text that matches no known spelling resolves to
``TEXT`` with ``recognized=False`` so the converter can report it.  An
array of an unknown element type stays an ``ARRAY`` with the element text
as written, also with ``recognized=False``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from schema_engine.models.schema import DataType

# Vendor spellings (upper-cased, whitespace-collapsed) -> canonical type.
_TYPE_SYNONYMS: dict[str, DataType] = {
    "UUID": DataType.UUID,
    "UNIQUEIDENTIFIER": DataType.UUID,
    "GUID": DataType.UUID,
    "TEXT": DataType.TEXT,
    "STRING": DataType.TEXT,
    "TINYTEXT": DataType.TEXT,
    "MEDIUMTEXT": DataType.TEXT,
    "LONGTEXT": DataType.TEXT,
    "NTEXT": DataType.TEXT,
    "CLOB": DataType.TEXT,
    "CITEXT": DataType.TEXT,
    "VARCHAR": DataType.VARCHAR,
    "VARCHAR2": DataType.VARCHAR,
    "NVARCHAR": DataType.VARCHAR,
    "NVARCHAR2": DataType.VARCHAR,
    "CHARACTER VARYING": DataType.VARCHAR,
    "CHAR VARYING": DataType.VARCHAR,
    "CHAR": DataType.CHAR,
    "CHARACTER": DataType.CHAR,
    "NCHAR": DataType.CHAR,
    "BPCHAR": DataType.CHAR,
    "SMALLINT": DataType.SMALLINT,
    "INT2": DataType.SMALLINT,
    "TINYINT": DataType.SMALLINT,
    "INTEGER": DataType.INTEGER,
    "INT": DataType.INTEGER,
    "INT4": DataType.INTEGER,
    "MEDIUMINT": DataType.INTEGER,
    "BIGINT": DataType.BIGINT,
    "INT8": DataType.BIGINT,
    "SERIAL": DataType.SERIAL,
    "SERIAL4": DataType.SERIAL,
    "SMALLSERIAL": DataType.SERIAL,
    "SERIAL2": DataType.SERIAL,
    "BIGSERIAL": DataType.BIGSERIAL,
    "SERIAL8": DataType.BIGSERIAL,
    "DECIMAL": DataType.DECIMAL,
    "DEC": DataType.DECIMAL,
    "MONEY": DataType.DECIMAL,
    "NUMERIC": DataType.NUMERIC,
    "NUMBER": DataType.NUMERIC,
    "REAL": DataType.REAL,
    "FLOAT": DataType.REAL,
    "FLOAT4": DataType.REAL,
    "DOUBLE PRECISION": DataType.DOUBLE_PRECISION,
    "DOUBLE": DataType.DOUBLE_PRECISION,
    "FLOAT8": DataType.DOUBLE_PRECISION,
    "BOOLEAN": DataType.BOOLEAN,
    "BOOL": DataType.BOOLEAN,
    "DATE": DataType.DATE,
    "TIME": DataType.TIME,
    "TIMETZ": DataType.TIME,
    "TIME WITHOUT TIME ZONE": DataType.TIME,
    "TIME WITH TIME ZONE": DataType.TIME,
    "TIMESTAMP": DataType.TIMESTAMP,
    "TIMESTAMP WITHOUT TIME ZONE": DataType.TIMESTAMP,
    "DATETIME": DataType.TIMESTAMP,
    "DATETIME2": DataType.TIMESTAMP,
    "SMALLDATETIME": DataType.TIMESTAMP,
    "TIMESTAMPTZ": DataType.TIMESTAMPTZ,
    "TIMESTAMP WITH TIME ZONE": DataType.TIMESTAMPTZ,
    "DATETIMEOFFSET": DataType.TIMESTAMPTZ,
    "INTERVAL": DataType.INTERVAL,
    "JSON": DataType.JSON,
    "JSONB": DataType.JSONB,
    "ARRAY": DataType.ARRAY,
    "BYTEA": DataType.BYTEA,
    "BLOB": DataType.BYTEA,
    "TINYBLOB": DataType.BYTEA,
    "MEDIUMBLOB": DataType.BYTEA,
    "LONGBLOB": DataType.BYTEA,
    "BINARY": DataType.BYTEA,
    "VARBINARY": DataType.BYTEA,
    "IMAGE": DataType.BYTEA,
    "INET": DataType.INET,
    "CIDR": DataType.CIDR,
    "MACADDR": DataType.MACADDR,
    "MACADDR8": DataType.MACADDR,
    "TSVECTOR": DataType.TSVECTOR,
    "EMAIL": DataType.EMAIL,
    "ENUM": DataType.ENUM,
}

# Types whose parameter text survives normalization.
PARAMETERIZED_TYPES: frozenset[DataType] = frozenset(
    {
        DataType.VARCHAR,
        DataType.CHAR,
        DataType.DECIMAL,
        DataType.NUMERIC,
        DataType.TIME,
        DataType.TIMESTAMP,
        DataType.TIMESTAMPTZ,
        DataType.ENUM,
    }
)

_MAX_SYNONYM_WORDS = 4
_ARRAY_SUFFIX_RE = re.compile(r"(\s*\[\s*\d*\s*\])+$")


@dataclass(frozen=True)
class TypeResolution:
    """Outcome of normalizing one raw type string."""

    data_type: DataType
    parameters: str | None
    recognized: bool


def _split_parameters(text: str) -> tuple[str, str | None]:
    """Remove the first balanced ``(...)`` group from *text*.

    Returns the remaining text and the group's inner text (stripped), or
    ``None`` when there is no group.
    """
    open_at = text.find("(")
    if open_at == -1:
        return text, None
    depth = 0
    for i in range(open_at, len(text)):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                rest = text[:open_at] + " " + text[i + 1 :]
                return " ".join(rest.split()), text[open_at + 1 : i].strip()
    return " ".join(text[:open_at].split()), text[open_at + 1 :].strip()


def _lookup(base: str) -> DataType | None:
    """Match the longest known synonym at the start of *base*."""
    words = base.split()
    for n in range(min(_MAX_SYNONYM_WORDS, len(words)), 0, -1):
        data_type = _TYPE_SYNONYMS.get(" ".join(words[:n]))
        if data_type is not None:
            return data_type
    return None


def _format_type(data_type: DataType, parameters: str | None) -> str:
    if parameters and data_type in PARAMETERIZED_TYPES:
        return f"{data_type.value}({parameters})"
    return data_type.value


def normalize_type(raw: str) -> TypeResolution:
    """Resolve raw column type text to a canonical type.

    Parameters
    ----------
    raw:
        Type text as written in the DDL, e.g. ``"character varying(255)"``,
        ``"DECIMAL(10, 2)"``, ``"int[]"`` or ``"TIMESTAMP WITH TIME ZONE"``.

    Returns
    -------
    TypeResolution
        The canonical type, parameter text when the type accepts it (for
        ``ARRAY`` the element type), and whether the text was recognized.
    """
    text = " ".join(raw.split())
    if not text:
        return TypeResolution(DataType.TEXT, None, False)

    remainder, parameters = _split_parameters(text)
    base = remainder.upper()

    element: str | None = None
    is_array = False
    if _ARRAY_SUFFIX_RE.search(base):
        is_array = True
        element = _ARRAY_SUFFIX_RE.sub("", base).strip()
    elif base.endswith(" ARRAY"):
        is_array = True
        element = base[: -len(" ARRAY")].strip()
    elif base == "ARRAY":
        is_array = True

    if is_array:
        if not element:
            return TypeResolution(DataType.ARRAY, None, True)
        element_type = _lookup(element)
        if element_type is None:
            # Unknown element types are kept as written but still reported.
            element_text = f"{element}({parameters})" if parameters else element
            return TypeResolution(DataType.ARRAY, element_text, False)
        return TypeResolution(DataType.ARRAY, _format_type(element_type, parameters), True)

    data_type = _lookup(base)
    if data_type is None:
        return TypeResolution(DataType.TEXT, None, False)
    kept = parameters if parameters and data_type in PARAMETERIZED_TYPES else None
    return TypeResolution(data_type, kept, True)
