"""Shared pydantic base model.

Attributes are snake_case in Python; serialized names are camelCase so that
chart renderers and exporters receive the field names they already consume.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
