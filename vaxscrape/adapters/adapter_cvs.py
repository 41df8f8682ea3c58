# adapter_cvs.py
import re
from datetime import datetime, timezone
from typing import Any, Dict, List
from zoneinfo import ZoneInfo

from ..fetcher import new_page
from ..schema import ScrapeOutput
from ..sites import CVS, Site
from .base import SiteScraper, to_title_case

MASS_LINK_SELECTOR = "a[data-modal='vaccineinfo-MA']"
EASTERN = ZoneInfo("America/New_York")


def _parse_total(value) -> int:
    # Leading integer only: "12abc" -> 12, "" -> 0.
    match = re.match(r"\s*-?\d+", "" if value is None else str(value))
    return int(match.group()) if match else 0


def parse_current_time(value: str) -> datetime:
    """
    CVS stamps its feed in US/Eastern wall-clock time without an offset.
    Returns an aware UTC datetime.
    """
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=EASTERN)
    return ts.astimezone(timezone.utc)


def parse_cvs_payload(payload: Dict[str, Any], site: Site = CVS) -> List[ScrapeOutput]:
    """
    Maps the Massachusetts status feed to one ScrapeOutput per city.

    The feed has no per-date slots, so `availability` stays empty and the
    city-level numbers go into `extraData`.
    """
    data = payload["responsePayloadData"]
    timestamp = parse_current_time(data["currentTime"])

    outputs: List[ScrapeOutput] = []
    for entry in data["data"]["MA"]:
        city = to_title_case(entry["city"])
        total = _parse_total(entry.get("totalAvailable"))
        outputs.append(
            ScrapeOutput(
                name=f"{site.name} ({city})",
                city=city,
                has_availability=total > 0,
                availability={},
                total_availability=total,
                timestamp=timestamp,
                sign_up_link=site.website,
                extra_data={**entry, "city": city},
            )
        )
    return outputs


class CVSScraper(SiteScraper):
    site = CVS

    async def fetch_payload(self, browser) -> Dict[str, Any]:
        ctx, page = await new_page(browser)
        try:
            await page.goto(self.site.website, wait_until="domcontentloaded")
            await page.wait_for_selector(MASS_LINK_SELECTOR)
            async with page.expect_response(self.site.response_url) as response_info:
                await page.click(MASS_LINK_SELECTOR)
            response = await response_info.value
            payload = await response.json()
        finally:
            await ctx.close()
        self.logger.debug("%s payload: %d bytes of MA data", self.site.name, len(str(payload)))
        return payload

    async def scrape(self, browser) -> List[ScrapeOutput]:
        return parse_cvs_payload(await self.fetch_payload(browser), self.site)
