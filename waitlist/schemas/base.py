"""
Shared request/response model plumbing.

Wire format is camelCase; Python attributes are snake_case.
"""
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def coerce_text(value: Any) -> str:
    """Trimmed string for identifiers; numbers are accepted, other types rejected."""
    if value is None:
        return ""
    if isinstance(value, bool):
        raise ValueError("expected a string")
    if isinstance(value, (str, int, float)):
        return str(value).strip()
    raise ValueError("expected a string")


def optional_text(value: Any) -> Optional[str]:
    """Trimmed string, or None for anything that is not a string."""
    if isinstance(value, str):
        return value.strip()
    return None


def optional_number(value: Any) -> Optional[float]:
    """Finite number, or None when the value cannot be read as one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def truthy(value: Any) -> bool:
    """
    Loose flag as browsers send it.

    null, false, 0, NaN and "" are False; anything else, including empty
    objects and arrays, is True.
    """
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, (dict, list)):
        return True
    return bool(value)
