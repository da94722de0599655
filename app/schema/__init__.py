from app.schema.encoder import SchemaEncoder, compute_schema_uid
from app.schema.models import SchemaField, parse_schema_layout

__all__ = ["SchemaEncoder", "SchemaField", "compute_schema_uid", "parse_schema_layout"]
