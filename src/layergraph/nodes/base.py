"""
Shared helpers for built-in node capabilities.
"""

from __future__ import annotations

from typing import Any

from layergraph.core.data_types import ImageData
from layergraph.core.errors import InvalidInputTypeError, MissingInputError


def require_image(inputs: list[Any], index: int = 0) -> ImageData:
    """
    Return inputs[index] as an image.

    Raises:
        MissingInputError: If fewer than index + 1 inputs are bound
        InvalidInputTypeError: If the input is not ImageData
    """
    if len(inputs) <= index:
        raise MissingInputError(f"Expected at least {index + 1} input(s), got {len(inputs)}")
    value = inputs[index]
    if not isinstance(value, ImageData):
        raise InvalidInputTypeError("ImageData", value)
    return value
