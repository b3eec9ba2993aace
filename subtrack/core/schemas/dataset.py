"""
Pydantic models for the synchronized dataset.

Field aliases follow the camelCase wire format of the stored document. The
models are lenient so documents round-trip: unknown fields are kept, and the
server never validates against them.
"""

import random
import string
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_record_id(length: int = 9) -> str:
    """Short random base-36 identifier for a job or payment."""
    return "".join(random.choices(_ID_ALPHABET, k=length))


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def compute_hours(from_time: str, to_time: str) -> float:
    """
    Hours between two ``HH:MM`` times, rounded to 2 decimals.

    An end time earlier than the start wraps past midnight.

    Raises:
        ValueError: If either time is not in ``HH:MM`` form
    """
    diff = _minutes(to_time) - _minutes(from_time)
    if diff < 0:
        diff += 24 * 60
    return round(diff / 60, 2)


# Stored documents are written verbatim by the server and may come from older
# exports or CSV imports, so every field takes whatever scalar it was saved as.
Text = Optional[Union[str, int, float]]
Number = Optional[Union[int, float, str]]


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Text = Field(default_factory=new_record_id)
    date: Text = ""
    town: Text = ""


class Job(_Record):
    """One substitute assignment."""

    class_name: Text = Field("", alias="className")
    teacher: Text = ""
    school: Text = ""
    day_type: Number = Field(1.0, alias="dayType")
    from_time: Text = Field("08:00", alias="fromTime")
    to_time: Text = Field("15:00", alias="toTime")
    hours: Number = None

    @model_validator(mode="after")
    def fill_hours(self) -> "Job":
        if self.hours is None and isinstance(self.from_time, str) and isinstance(self.to_time, str):
            try:
                self.hours = compute_hours(self.from_time, self.to_time)
            except ValueError:
                pass
        return self


class Payment(_Record):
    amount: Number = 0.0


class Dataset(BaseModel):
    """The whole synchronized document: ``{"jobs": [...], "payments": [...]}``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    jobs: List[Job] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)

    @field_validator("jobs", "payments", mode="before")
    @classmethod
    def null_collection_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def empty(cls) -> "Dataset":
        return cls()

    def to_document(self) -> Dict[str, Any]:
        """Wire form with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


EMPTY_DOCUMENT: Dict[str, List[Any]] = {"jobs": [], "payments": []}
