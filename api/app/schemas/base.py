"""
Shared schema base - the web client speaks camelCase JSON
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase field names; snake_case also accepted on input"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
