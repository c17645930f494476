"""Helpers shared by repository operations."""

from collections.abc import Mapping, Sized
from typing import Any, Union

from pydantic import BaseModel

# Inputs accepted by store/update/update_blank
AttributeInput = Union[Mapping[str, Any], BaseModel]


def is_blank(value: Any) -> bool:
    """Return True for None, whitespace-only strings and empty collections.

    Booleans and numbers are never blank, so ``False`` and ``0`` count as
    real values.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (bool, int, float)):
        return False
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def to_attribute_map(inputs: AttributeInput) -> dict[str, Any]:
    """Normalize a mapping or pydantic model into a plain attribute dict.

    Pydantic models contribute only the fields that were explicitly set, so a
    partial update schema never overwrites columns with its defaults.
    """
    if isinstance(inputs, BaseModel):
        return inputs.model_dump(exclude_unset=True)
    if isinstance(inputs, Mapping):
        return dict(inputs)
    raise TypeError(
        f"Expected a mapping or pydantic model, got {type(inputs).__name__}"
    )
