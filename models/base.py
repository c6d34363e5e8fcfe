from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Request bodies arrive camelCased; fields stay snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value
