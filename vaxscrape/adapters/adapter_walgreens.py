# adapter_walgreens.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..fetcher import new_page
from ..schema import DateAvailability, ScrapeOutput
from ..sites import WALGREENS, Site, StoreLocation
from .base import SiteScraper, to_title_case

ZIP_INPUT_SELECTOR = "#inputLocation"
SEARCH_BUTTON_SELECTOR = "button#search"


def _same_street(a: Optional[str], b: str) -> bool:
    return " ".join((a or "").upper().split()) == " ".join(b.upper().split())


def find_store(payload: Dict[str, Any], store: StoreLocation) -> Optional[Dict[str, Any]]:
    """The entry of the timeslots response whose address line matches `store`."""
    for location in payload.get("locations") or []:
        if _same_street((location.get("address") or {}).get("line1"), store.street):
            return location
    return None


def parse_walgreens_payload(
    payload: Dict[str, Any],
    store: StoreLocation,
    site: Site = WALGREENS,
    timestamp: Optional[datetime] = None,
) -> ScrapeOutput:
    """
    Reads the timeslots response of a zip search for one store. Each slot
    listed under a date is one open appointment; a store missing from the
    response has no availability.
    """
    location = find_store(payload, store)

    availability: Dict[str, DateAvailability] = {}
    for day in (location or {}).get("appointmentAvailability") or []:
        slots = len(day.get("slots") or [])
        availability[day["date"]] = DateAvailability(
            has_availability=slots > 0,
            number_available_appointments=slots,
        )

    total = sum(a.number_available_appointments for a in availability.values())
    return ScrapeOutput(
        name=f"{site.name} ({to_title_case(store.city)})",
        street=store.street,
        city=store.city,
        zip=store.zip,
        availability=availability,
        has_availability=total > 0,
        total_availability=total,
        timestamp=timestamp or datetime.now(timezone.utc),
        sign_up_link=site.website,
    )


class WalgreensScraper(SiteScraper):
    site = WALGREENS

    async def fetch_store_payload(self, browser, store: StoreLocation) -> Dict[str, Any]:
        ctx, page = await new_page(browser)
        try:
            await page.goto(self.site.website, wait_until="domcontentloaded")
            await page.wait_for_selector(ZIP_INPUT_SELECTOR)
            await page.fill(ZIP_INPUT_SELECTOR, store.zip)
            async with page.expect_response(self.site.response_url) as response_info:
                await page.click(SEARCH_BUTTON_SELECTOR)
            response = await response_info.value
            payload = await response.json()
        finally:
            await ctx.close()
        self.logger.debug("%s %s: %d locations in response", self.site.name, store.zip, len(payload.get("locations") or []))
        return payload

    async def scrape(self, browser) -> List[ScrapeOutput]:
        outputs = []
        for store in self.site.locations:
            payload = await self.fetch_store_payload(browser, store)
            if find_store(payload, store) is None:
                self.logger.warning("%s: %s not in search results for %s", self.site.name, store.street, store.zip)
            outputs.append(parse_walgreens_payload(payload, store, self.site))
            self.logger.debug("%s %s: %s", self.site.name, store.street, outputs[-1].availability)
        return outputs
