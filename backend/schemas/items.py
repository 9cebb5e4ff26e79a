import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from db.item import STATUS_AVAILABLE, STATUS_CHECKED_OUT

ItemStatus = Literal[STATUS_AVAILABLE, STATUS_CHECKED_OUT]
CheckInOutAction = Literal["checkin", "checkout"]

ITEM_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


class CamelModel(BaseModel):
    """Accepts camelCase keys (itemId, serialNumber, ...) as well as field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _required(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("field is required")
    return v


def _nullable(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class ItemCreate(CamelModel):
    item_id: str = Field(max_length=50)
    item_name: str = Field(max_length=200)
    serial_number: Optional[str] = Field(default=None, max_length=100)

    @field_validator("item_id")
    @classmethod
    def _item_id(cls, v: str) -> str:
        v = _required(v)
        if not ITEM_ID_PATTERN.match(v):
            raise ValueError("Item ID can only contain letters, numbers, hyphens, and underscores")
        return v

    @field_validator("item_name")
    @classmethod
    def _item_name(cls, v: str) -> str:
        return _required(v)

    @field_validator("serial_number")
    @classmethod
    def _serial(cls, v: Optional[str]) -> Optional[str]:
        return _nullable(v)


class ItemUpdate(CamelModel):
    item_name: Optional[str] = Field(default=None, max_length=200)
    serial_number: Optional[str] = Field(default=None, max_length=100)

    @field_validator("item_name")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Item Name cannot be empty if provided")
        return v

    @field_validator("serial_number")
    @classmethod
    def _serial(cls, v: Optional[str]) -> Optional[str]:
        return _nullable(v)


class CheckInOutRequest(CamelModel):
    item_id: str = Field(max_length=50)
    serial_number: str = Field(max_length=100)
    action: CheckInOutAction
    user_id: Optional[str] = Field(default=None, max_length=50)

    @field_validator("item_id", "serial_number")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        return _required(v)

    @field_validator("user_id")
    @classmethod
    def _user(cls, v: Optional[str]) -> Optional[str]:
        return _nullable(v)
