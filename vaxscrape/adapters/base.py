from typing import List, Optional

from ..log import LogConfig
from ..schema import ScrapeOutput
from ..sites import Site


def to_title_case(text: str) -> str:
    # Only the first letter of each space-separated word; "O'NEIL" -> "O'neil".
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))


class SiteScraper:
    """A scraper for one site; subclasses implement `scrape`."""

    site: Site

    def __init__(self, site: Optional[Site] = None, log_config: Optional[LogConfig] = None) -> None:
        if site is not None:
            self.site = site
        self.log_config = log_config or LogConfig()
        self.logger = self.log_config.get_logger(f"adapters.{self.site.name.lower()}")

    async def scrape(self, browser) -> List[ScrapeOutput]:
        raise NotImplementedError

    async def get_available_appointments(self, browser) -> List[ScrapeOutput]:
        self.logger.info("%s starting.", self.site.name)
        outputs = await self.scrape(browser)
        self.logger.info("%s done: %d locations.", self.site.name, len(outputs))
        return outputs
