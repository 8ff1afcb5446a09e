"""
Base Pydantic schemas.

This module contains base schemas with common configurations
that other schemas can inherit from.
"""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base schema with common configuration.

    All other schemas should inherit from this class.
    """

    model_config = ConfigDict(from_attributes=True)


class FrozenSchema(BaseModel):
    """
    Immutable value object.

    Used for readings and computed aggregates, which are never modified
    once built.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)
