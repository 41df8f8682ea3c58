from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from datetime import datetime, timezone


class DateAvailability(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_availability: bool = Field(default=False, alias="hasAvailability")
    number_available_appointments: int = Field(default=0, alias="numberAvailableAppointments")
    sign_up_link: Optional[str] = Field(default=None, alias="signUpLink")

    @property
    def is_bookable(self) -> bool:
        return self.has_availability and self.number_available_appointments > 0


class ScrapeOutput(BaseModel):
    """One site's normalized result for one location."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    street: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    availability: Dict[str, DateAvailability] = Field(default_factory=dict)  # keyed by date string
    has_availability: bool = Field(default=False, alias="hasAvailability")
    total_availability: Optional[int] = Field(default=None, alias="totalAvailability")
    extra_data: Optional[Dict[str, Any]] = Field(default=None, alias="extraData")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    sign_up_link: Optional[str] = Field(default=None, alias="signUpLink")

    def key_fields(self) -> Dict[str, Optional[str]]:
        return {"name": self.name, "street": self.street, "city": self.city, "zip": self.zip}

    def bookable_dates(self) -> Dict[str, DateAvailability]:
        if not (self.has_availability and self.availability):
            return {}
        return {d: a for d, a in self.availability.items() if a.is_bookable}
