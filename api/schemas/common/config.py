"""Base Pydantic model configurations"""

from pydantic import ConfigDict

# Request-side schemas: field order kept as declared
BASE_MODEL_CONFIG = ConfigDict(
    json_schema_serialization_defaults_required=True,
    populate_by_name=True,
    strict=False,
)

# Response schemas built from ORM rows
ORM_MODEL_CONFIG = ConfigDict(
    from_attributes=True,
    json_schema_serialization_defaults_required=True,
    populate_by_name=True,
)
