from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

INSTALLMENT_DURATIONS = (2, 3, 4, 5, 6, 10, 12)
DEFAULT_INSTALLMENT_MONTHS = 6

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class BuyerProfile(BaseModel):
    """Buyer identity captured for an installment sale."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    full_name: NonBlank
    primary_phone: NonBlank
    secondary_phone: str | None = None
    birth_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    passport_series: str | None = Field(default=None, pattern=r"^[A-Z]{2}\d{7}$")

    # Data URL (``data:image/jpeg;base64,...``); never logged.
    photo: str | None = Field(default=None, repr=False)

    installment_duration_months: int | None = None
    start_date: str | None = None

    @field_validator("installment_duration_months")
    @classmethod
    def _known_duration(cls, value: int | None) -> int | None:
        if value is not None and value not in INSTALLMENT_DURATIONS:
            raise ValueError(f"installment duration must be one of {INSTALLMENT_DURATIONS}")
        return value

    def to_customer(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
