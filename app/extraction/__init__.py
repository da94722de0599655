from app.extraction.parser import EventRecordDefaults, parse_event_text

__all__ = ["EventRecordDefaults", "parse_event_text"]
