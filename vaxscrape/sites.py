from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class StoreLocation(BaseModel):
    street: str
    city: str
    zip: str


class Site(BaseModel):
    name: str
    website: str
    response_url: Optional[str] = None  # network response the scraper waits on
    locations: List[StoreLocation] = Field(default_factory=list)


CVS = Site(
    name="CVS",
    website="https://www.cvs.com/immunizations/covid-19-vaccine",
    response_url="https://www.cvs.com/immunizations/covid-19-vaccine.vaccine-status.MA.json?vaccineinfo",
)

WALGREENS = Site(
    name="Walgreens",
    website="https://www.walgreens.com/findcare/vaccination/covid-19/",
    response_url="**/hcschedulersvc/svc/v1/immunizationLocations/timeslots",
    locations=[
        StoreLocation(street="372 POSSUM PARK RD", city="Newark", zip="19711"),
        StoreLocation(street="124 E MAIN ST", city="Newark", zip="19711"),
    ],
)

SITES: Dict[str, Site] = {site.name: site for site in (CVS, WALGREENS)}
