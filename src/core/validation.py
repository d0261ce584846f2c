"""
Boundary validation helpers.

Inbound records arrive as plain dicts from the hosting service. They are
validated into pydantic models here so callers only ever see InvalidInputError.
"""

from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .exceptions import InvalidInputError

RecordT = TypeVar("RecordT", bound=BaseModel)


def coerce_record(model: Type[RecordT], data: Union[RecordT, Mapping[str, Any]]) -> RecordT:
    """
    Validate a dict (or pass through a model instance) as `model`.

    Raises:
        InvalidInputError: if data is missing or fails validation
    """
    if isinstance(data, model):
        return data
    if data is None:
        raise InvalidInputError(f"{model.__name__} is required")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid {model.__name__}: {exc}") from exc
