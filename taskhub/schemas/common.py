"""Shared form schema behaviour"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

# Select values meaning "no selection"
EMPTY_CHOICES = frozenset({"", "none", "unassigned"})


def field_label(name: str) -> str:
    """Human label for a form field name"""
    if name.endswith("_id"):
        name = name[:-3]
    return name.replace("_", " ").capitalize()


class FormModel(BaseModel):
    """
    Base class for HTML form payloads.

    Strings are trimmed. Empty optional fields take their default (None for
    optional values); empty required fields fail with "<Label> is required".
    """

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def normalize_blank(cls, v: Any, info: ValidationInfo) -> Any:
        """Trim strings and map blanks to None"""
        if not isinstance(v, str):
            return v
        v = v.strip()
        is_choice = info.field_name.endswith("_id")
        if v == "" or (is_choice and v.lower() in EMPTY_CHOICES):
            field = cls.model_fields[info.field_name]
            if field.is_required():
                raise ValueError(f"{field_label(info.field_name)} is required")
            return field.get_default()
        return v

    def to_record(self) -> Dict[str, Any]:
        """Values ready for the backend client"""
        return self.model_dump(mode="json")

    @classmethod
    def initial(cls, row: Mapping[str, Any]) -> Dict[str, str]:
        """Form values (strings) for a stored row"""
        values = {}
        for name in cls.model_fields:
            value = row.get(name)
            if value is None:
                values[name] = ""
            elif isinstance(value, Enum):
                values[name] = value.value
            elif isinstance(value, datetime):
                values[name] = value.date().isoformat()
            elif isinstance(value, (date, UUID)):
                values[name] = str(value)
            else:
                values[name] = str(value)
        return values

    @classmethod
    def defaults(cls) -> Dict[str, str]:
        """Form values for an empty form"""
        return cls.initial({
            name: None if field.is_required() else field.get_default()
            for name, field in cls.model_fields.items()
        })


def validation_message(exc: ValidationError) -> str:
    """Flatten a pydantic ValidationError to one user-facing line"""
    messages = []
    for error in exc.errors():
        msg = error.get("msg", "")
        if msg.startswith("Value error, "):
            messages.append(msg[len("Value error, "):])
            continue
        loc = [str(part) for part in error.get("loc", ()) if isinstance(part, str)]
        if loc:
            messages.append(f"{field_label(loc[0])}: {msg}")
        else:
            messages.append(msg)
    return "; ".join(messages)
