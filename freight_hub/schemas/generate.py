from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


MAX_GENERATE_COUNT = 10_000
DEFAULT_GENERATE_COUNT = 1000

INVALID_COUNT = f"Invalid count. Must be a positive number between 1 and {MAX_GENERATE_COUNT}."


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def parse_count(value: Any, default: int = DEFAULT_GENERATE_COUNT) -> int:
    """Accept an int or an integer string in [1, MAX_GENERATE_COUNT]; anything else is ValueError."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(INVALID_COUNT)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or not 1 <= value <= MAX_GENERATE_COUNT:
        raise ValueError(INVALID_COUNT)
    return value


# counts stay untyped so malformed values get the dedicated 400 message
class GenerateRequest(_CamelModel):
    count: Any = None
    auto_post: bool = True


class GenerateAllRequest(_CamelModel):
    count: Any = None
    freight_count: Any = None
    vehicle_count: Any = None
    auto_post: bool = True
