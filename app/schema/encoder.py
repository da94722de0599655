"""ABI encoding of event records against a published attestation schema."""

from collections.abc import Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_abi.packed import encode_packed
from eth_utils import keccak

from app.processor.exceptions import SchemaMismatch
from app.processor.models import EventRecord
from app.schema.models import SchemaField, parse_schema_layout

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Record attribute order and declared types the event schema must match.
EVENT_RECORD_LAYOUT: tuple[tuple[str, str], ...] = (
    ("event_name", "string"),
    ("event_description", "string"),
    ("occasion", "string"),
    ("location_coordinates", "string[]"),
    ("memory_description", "string"),
)

# The published schema spells this field "occassion".
FIELD_ALIASES: dict[str, str] = {"occassion": "occasion"}


def compute_schema_uid(
    layout: str,
    resolver: str = ZERO_ADDRESS,
    revocable: bool = True,
) -> str:
    """Derive the registry UID of a schema: keccak(packed(layout, resolver, revocable))."""
    packed = encode_packed(["string", "address", "bool"], [layout, resolver, revocable])
    return "0x" + keccak(packed).hex()


class SchemaEncoder:
    """Encodes EventRecords into the byte layout of one published schema.

    Encoding is a pure function of the record: the same record always yields
    the same bytes.
    """

    def __init__(
        self,
        layout: str,
        schema_uid: str,
        resolver: str = ZERO_ADDRESS,
        revocable: bool = True,
    ) -> None:
        self._layout = layout
        self._schema_uid = schema_uid
        self._fields = parse_schema_layout(layout)
        self._check_layout(self._fields)
        self._check_uid(layout, schema_uid, resolver, revocable)
        self._types = [f.type for f in self._fields]

    @property
    def schema_uid(self) -> str:
        return self._schema_uid

    @property
    def fields(self) -> tuple[SchemaField, ...]:
        return self._fields

    def encode(self, record: EventRecord, schema_id: str) -> bytes:
        """Encode ``record`` for ``schema_id``.

        Raises:
            SchemaMismatch: if ``schema_id`` is not this encoder's schema or a
                record value does not have its declared type.
        """
        if schema_id.lower() != self._schema_uid.lower():
            raise SchemaMismatch(
                f"Schema {schema_id} does not match encoder schema {self._schema_uid}"
            )
        values = [self._value_for(record, attr, field_type) for attr, field_type in EVENT_RECORD_LAYOUT]
        return encode(self._types, values)

    def decode(self, payload: bytes) -> EventRecord:
        """Recover record values from an encoded payload."""
        try:
            values = decode(self._types, payload)
        except DecodingError as exc:
            raise SchemaMismatch(f"Payload does not match schema layout: {exc}") from exc
        by_attr = dict(zip((attr for attr, _ in EVENT_RECORD_LAYOUT), values))
        return EventRecord(
            event_name=by_attr["event_name"],
            event_description=by_attr["event_description"],
            occasion=by_attr["occasion"],
            location_coordinates=tuple(by_attr["location_coordinates"]),
            memory_description=by_attr["memory_description"],
        )

    @staticmethod
    def _check_layout(fields: tuple[SchemaField, ...]) -> None:
        if len(fields) != len(EVENT_RECORD_LAYOUT):
            raise SchemaMismatch(
                f"Schema declares {len(fields)} fields, event records have "
                f"{len(EVENT_RECORD_LAYOUT)}"
            )
        for index, (schema_field, (attr, field_type)) in enumerate(
            zip(fields, EVENT_RECORD_LAYOUT)
        ):
            name = FIELD_ALIASES.get(schema_field.name, schema_field.name)
            if name != attr or schema_field.type != field_type:
                raise SchemaMismatch(
                    f"Schema field {index} is '{schema_field.type} {schema_field.name}', "
                    f"expected '{field_type} {attr}'"
                )

    @staticmethod
    def _check_uid(layout: str, schema_uid: str, resolver: str, revocable: bool) -> None:
        expected = compute_schema_uid(layout, resolver, revocable)
        if schema_uid.lower() != expected:
            raise SchemaMismatch(
                f"Schema UID {schema_uid} is not registered for this layout; expected {expected}"
            )

    @staticmethod
    def _value_for(record: EventRecord, attr: str, field_type: str) -> object:
        value = getattr(record, attr, None)
        if field_type == "string":
            if not isinstance(value, str):
                raise SchemaMismatch(f"Field '{attr}' must be a string")
            return value
        if isinstance(value, str) or not isinstance(value, Sequence):
            raise SchemaMismatch(f"Field '{attr}' must be a list of strings")
        if not all(isinstance(item, str) for item in value):
            raise SchemaMismatch(f"Field '{attr}' must be a list of strings")
        return list(value)
