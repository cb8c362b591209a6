"""Base schema classes."""

from typing import TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

RecordT = TypeVar("RecordT", bound="BaseRecord")


class RecordDecodeError(Exception):
    """Raised when a stored row does not satisfy its record type."""

    def __init__(self, record_type: str, detail: str):
        super().__init__(f"Invalid {record_type} record: {detail}")
        self.record_type = record_type


class BaseRecord(BaseModel):
    """Immutable data-transfer record read from the store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @classmethod
    def decode(cls: type[RecordT], row: object) -> RecordT:
        """Validate an ORM row into this record type."""
        try:
            return cls.model_validate(row)
        except PydanticValidationError as exc:
            raise RecordDecodeError(cls.__name__, str(exc)) from exc
