from typing import Dict, Type

from .adapter_cvs import CVSScraper
from .adapter_walgreens import WalgreensScraper
from .base import SiteScraper

ADAPTERS: Dict[str, Type[SiteScraper]] = {
    "CVS": CVSScraper,
    "Walgreens": WalgreensScraper,
    # add more sites here...
}

__all__ = ["ADAPTERS", "CVSScraper", "SiteScraper", "WalgreensScraper"]
