from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

RefId = Union[int, str]

LOCATIONS = "locations"
SCRAPER_RUNS = "scraperRuns"
APPOINTMENTS = "appointments"
COLLECTIONS = (LOCATIONS, SCRAPER_RUNS, APPOINTMENTS)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_row(self, ref_id: RefId) -> Dict[str, Any]:
        """Row as stored: `id` plus the camelCase columns."""
        return {"id": ref_id, **self.model_dump(by_alias=True, mode="json")}


# --- public.locations ---
# PK id is the location hash (bigint); address is jsonb.
class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None


class LocationRecord(_Record):
    name: str
    address: Address = Field(default_factory=Address)
    sign_up_link: Optional[str] = Field(default=None, alias="signUpLink")
    latitude: Optional[float] = None
    longitude: Optional[float] = None


# --- public."scraperRuns" ---
# PK id (uuid); FK "locationRef" -> locations(id)
class ScraperRunRecord(_Record):
    location_ref: int = Field(alias="locationRef")
    timestamp: datetime


# --- public.appointments ---
# PK id (uuid); FK "scraperRunRef" -> "scraperRuns"(id)
class AppointmentRecord(_Record):
    scraper_run_ref: str = Field(alias="scraperRunRef")
    date: str
    number_available: int = Field(alias="numberAvailable")
    sign_up_link: Optional[str] = Field(default=None, alias="signUpLink")
    extra_data: Optional[Dict[str, Any]] = Field(default=None, alias="extraData")
