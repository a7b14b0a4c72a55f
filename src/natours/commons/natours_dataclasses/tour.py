"""Tour schema module.

Validation rules, defaults and field types for tour documents. The DAO
stores plain dicts; these models are only used on the write path and to
cast filter values coming from the query string.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from slugify import slugify

from natours.commons.exceptions import TourValidationError

Number = Union[int, float]

DIFFICULTIES = ("easy", "medium", "difficult")

REQUIRED_FIELDS = {
    "name": "A tour must have a name",
    "duration": "A tour must have a duration",
    "maxGroupSize": "A tour must have a maxGroupSize",
    "difficulty": "A tour must have a difficulty",
    "price": "A tour must have a price",
    "summary": "A tour must have a summary",
    "imageCover": "A tour must have a imageCover",
}

DEFAULTS = {
    "ratingsAverage": 4.5,
    "ratingsQuantity": 0,
    "secretTour": False,
}

VERSION_KEY = "__v"

FIELD_TYPES = {
    "_id": ObjectId,
    "name": str,
    "slug": str,
    "duration": float,
    "maxGroupSize": float,
    "difficulty": str,
    "ratingsAverage": float,
    "ratingsQuantity": float,
    "price": float,
    "priceDiscount": float,
    "summary": str,
    "description": str,
    "imageCover": str,
    "images": str,
    "createdAt": datetime,
    "startDates": datetime,
    "secretTour": bool,
    VERSION_KEY: float,
}


def _utcnow():
    return datetime.now(timezone.utc)


class TourUpdate(BaseModel):
    """Partial tour payload. Every field is optional; constraints still apply."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    duration: Optional[Number] = None
    maxGroupSize: Optional[Number] = None
    difficulty: Optional[str] = None
    ratingsAverage: Optional[Number] = None
    ratingsQuantity: Optional[Number] = None
    price: Optional[Number] = None
    priceDiscount: Optional[Number] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    imageCover: Optional[str] = None
    images: Optional[List[str]] = None
    createdAt: Optional[datetime] = None
    startDates: Optional[List[datetime]] = None
    secretTour: Optional[bool] = None

    @field_validator("name", "summary", "description", mode="before")
    @classmethod
    def _trim(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("name")
    @classmethod
    def _name_length(cls, value):
        if value is None:
            return value
        if len(value) > 40:
            raise ValueError("A tour name must have at most 40 characters")
        if len(value) < 5:
            raise ValueError("A tour name must have at least 5 characters")
        return value

    @field_validator("difficulty")
    @classmethod
    def _difficulty_enum(cls, value):
        if value is not None and value not in DIFFICULTIES:
            raise ValueError("Difficulty is either easy, medium or difficult")
        return value

    @field_validator("ratingsAverage")
    @classmethod
    def _rating_bounds(cls, value):
        if value is None:
            return value
        if value < 1:
            raise ValueError("A rating must be above 1.0")
        if value > 5:
            raise ValueError("A rating must be below 5.0")
        return value

    def changes(self) -> Dict[str, Any]:
        """Return only the fields the client sent, with ``slug`` refreshed on rename.

        Required and defaulted fields cannot be cleared with ``null``.
        """
        data = self.model_dump(exclude_unset=True)
        cleared = [name for name, value in data.items() if value is None and (name in REQUIRED_FIELDS or name in DEFAULTS)]
        if cleared:
            raise TourValidationError(", ".join(REQUIRED_FIELDS.get(name, f"{name} cannot be null") for name in cleared))
        if data.get("name"):
            data["slug"] = slugify(data["name"])
        return data


class TourCreate(TourUpdate):
    """Full tour payload used on creation and to revalidate merged updates."""

    @model_validator(mode="after")
    def _check_document(self):
        missing = [message for field, message in REQUIRED_FIELDS.items() if getattr(self, field) is None]
        if missing:
            raise ValueError(", ".join(missing))
        if self.priceDiscount is not None and not self.priceDiscount < self.price:
            raise ValueError("The discount price cannot exceed the price of the tour.")
        for field, default in DEFAULTS.items():
            if getattr(self, field) is None:
                setattr(self, field, default)
        if self.createdAt is None:
            self.createdAt = _utcnow()
        return self

    def to_document(self) -> Dict[str, Any]:
        """Build the document to insert, including ``slug``."""
        doc = self.model_dump(exclude_none=True)
        doc["slug"] = slugify(self.name)
        return doc


def validation_message(exc) -> str:
    """Flatten a pydantic ``ValidationError`` into a single readable message."""
    messages = []
    for err in exc.errors():
        msg = err.get("msg", "")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid input data. " + ". ".join(messages)


def _cast_scalar(field: str, value: Any) -> Any:
    target = FIELD_TYPES.get(field)
    if target is None or not isinstance(value, str):
        return value
    if target is str:
        return value
    if target is float:
        try:
            number = float(value)
        except ValueError:
            raise TourValidationError(f'Cast to Number failed for value "{value}" at path "{field}"')
        return int(number) if number.is_integer() else number
    if target is bool:
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
        raise TourValidationError(f'Cast to Boolean failed for value "{value}" at path "{field}"')
    if target is datetime:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise TourValidationError(f'Cast to date failed for value "{value}" at path "{field}"')
    if target is ObjectId:
        return to_object_id(value)
    return value


def cast_filter_value(field: str, value: Any) -> Any:
    """Cast a raw query-string value (or a list of them) to the field's stored type."""
    if isinstance(value, (list, tuple)):
        return [_cast_scalar(field, v) for v in value]
    return _cast_scalar(field, value)


def to_object_id(value) -> ObjectId:
    """Convert a path or filter identifier to ``ObjectId``."""
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(value):
        raise TourValidationError(f"Invalid _id: {value}.")
    return ObjectId(value)
