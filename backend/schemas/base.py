"""Base schemas with common configuration."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator, model_serializer

from backend.utils.datetime_helpers import ensure_utc


def serialize_datetime_utc(dt: datetime) -> str:
    """
    Serialize datetime to ISO 8601 with an explicit ``Z`` suffix.

    SQLite stores datetimes as naive strings, so naive values are treated as UTC.
    """
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


class BaseSchema(BaseModel):
    """Base schema with common configuration for all API payloads."""

    model_config = ConfigDict(
        from_attributes=True,
    )

    @field_validator("*", mode="after")
    @classmethod
    def attach_utc(cls, value):
        """Naive datetimes read from SQLite are UTC; make that explicit."""
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value

    @model_serializer(mode="wrap")
    def serialize_model(self, handler):
        """Serialize model values with custom datetime handling."""

        def _convert(value):
            if isinstance(value, datetime):
                return serialize_datetime_utc(value)
            if isinstance(value, list):
                return [_convert(item) for item in value]
            if isinstance(value, dict):
                return {key: _convert(item) for key, item in value.items()}
            return value

        data = handler(self)
        return {key: _convert(value) for key, value in data.items()}
