from dataclasses import dataclass

from app.processor.exceptions import SchemaMismatch

SUPPORTED_TYPES = frozenset({"string", "string[]"})


@dataclass(frozen=True)
class SchemaField:
    """One ``<type> <name>`` entry of a published schema layout."""

    type: str
    name: str


def parse_schema_layout(layout: str) -> tuple[SchemaField, ...]:
    """Split a layout such as ``"string a,string[] b"`` into fields.

    Raises:
        SchemaMismatch: if an entry is malformed or uses an unsupported type.
    """
    fields: list[SchemaField] = []
    for index, entry in enumerate(layout.split(",")):
        parts = entry.split()
        if len(parts) != 2:
            raise SchemaMismatch(f"Schema entry {index} is malformed: {entry.strip()!r}")
        field_type, name = parts
        if field_type not in SUPPORTED_TYPES:
            raise SchemaMismatch(
                f"Schema entry {index} has unsupported type {field_type!r}; "
                f"expected one of {sorted(SUPPORTED_TYPES)}"
            )
        fields.append(SchemaField(type=field_type, name=name))
    return tuple(fields)
