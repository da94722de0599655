"""Line-oriented extraction of event fields from free-form model output.

Parsing is total: any input, including None, empty or unrelated prose,
yields a complete EventRecord. Fields missing from the text take their
configured defaults. Coordinates and memory description never come from
the text.
"""

from dataclasses import dataclass

from app.processor.models import EventRecord

EVENT_NAME_LABEL = "Event Name:"
EVENT_DESCRIPTION_LABEL = "Event Description:"
OCCASION_LABEL = "Occasion:"

_LABEL_FIELDS = (
    (EVENT_NAME_LABEL, "event_name"),
    (EVENT_DESCRIPTION_LABEL, "event_description"),
    (OCCASION_LABEL, "occasion"),
)


@dataclass(frozen=True)
class EventRecordDefaults:
    """Fallback values used when the text does not supply a field."""

    event_name: str = "Untitled Event"
    event_description: str = "No description available"
    occasion: str = "Unspecified"
    location_coordinates: tuple[str, str] = ("0", "0")
    memory_description: str = "Generated from automated analysis of the image"

    def __post_init__(self) -> None:
        for name in ("event_name", "event_description", "occasion", "memory_description"):
            if not getattr(self, name).strip():
                raise ValueError(f"Default {name} must not be blank")
        if len(self.location_coordinates) != 2 or not all(
            part.strip() for part in self.location_coordinates
        ):
            raise ValueError("Default location_coordinates must be two non-blank values")


def extract_labelled_fields(text: str | None) -> dict[str, str]:
    """Collect non-empty labelled values; a later line overrides an earlier one."""
    found: dict[str, str] = {}
    if not isinstance(text, str):
        return found
    for raw_line in text.splitlines():
        line = raw_line.strip()
        for label, field_name in _LABEL_FIELDS:
            if line.startswith(label):
                value = line[len(label):].strip()
                if value:
                    found[field_name] = value
                break
    return found


def parse_event_text(
    text: str | None,
    coordinates: tuple[str, str] | None = None,
    defaults: EventRecordDefaults | None = None,
) -> EventRecord:
    """Build an EventRecord from model output, defaulting every missing field."""
    defaults = defaults or EventRecordDefaults()
    found = extract_labelled_fields(text)
    return EventRecord(
        event_name=found.get("event_name", defaults.event_name),
        event_description=found.get("event_description", defaults.event_description),
        occasion=found.get("occasion", defaults.occasion),
        location_coordinates=_coordinates_or_default(coordinates, defaults),
        memory_description=defaults.memory_description,
    )


def _coordinates_or_default(
    coordinates: tuple[str, str] | None,
    defaults: EventRecordDefaults,
) -> tuple[str, str]:
    if coordinates is None or len(coordinates) != 2:
        return defaults.location_coordinates
    lat, lon = (str(part).strip() for part in coordinates)
    if not lat or not lon:
        return defaults.location_coordinates
    return (lat, lon)
