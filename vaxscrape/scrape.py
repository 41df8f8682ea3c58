import argparse
import asyncio
import sys
from typing import List, Optional, Sequence

from .adapters import ADAPTERS
from .config import get_settings
from .db_utils import VaxDB
from .fetcher import init_browser
from .log import LogConfig
from .supabase_client import get_supabase
from .write_scraped import ScrapeWriter, WriteResult


async def run_sites(site_names: Sequence[str], writer: ScrapeWriter, log_config: LogConfig) -> List[WriteResult]:
    logger = log_config.get_logger(__name__)
    logger.info("[INIT] Starting scrape run for %s", ", ".join(site_names))

    pw, browser = await init_browser()
    results: List[WriteResult] = []
    try:
        for name in site_names:
            scraper = ADAPTERS[name](log_config=log_config)
            outputs = await scraper.get_available_appointments(browser)
            results.extend(writer.write_scraped_data_batch(outputs))
    finally:
        logger.info("[SHUTDOWN] Closing browser...")
        await browser.close()
        await pw.stop()

    logger.info("[DONE] Scrape run finished: %d scraper runs written.", len(results))
    return results


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scrape vaccine appointment availability into Supabase.")
    parser.add_argument(
        "sites",
        nargs="*",
        help=f"Sites to scrape, any of {', '.join(sorted(ADAPTERS))} (default: all)",
    )
    args = parser.parse_args(argv)
    unknown = [s for s in args.sites if s not in ADAPTERS]
    if unknown:
        parser.error(f"unknown site(s): {', '.join(unknown)}")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    log_config = LogConfig(debug=settings.debug)
    log_config.configure()

    db = VaxDB(get_supabase(), log_config)
    writer = ScrapeWriter(db, log_config)
    asyncio.run(run_sites(args.sites or list(ADAPTERS), writer, log_config))
    return 0


if __name__ == "__main__":
    #   python -m vaxscrape.scrape               -> scrape every site
    #   python -m vaxscrape.scrape CVS           -> scrape only CVS
    sys.exit(main())
