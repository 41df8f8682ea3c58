from .db_utils import VaxDB
from .errors import NotFoundError
from .keys import generate_location_id, generate_location_ids
from .log import LogConfig
from .schema import ScrapeOutput
from .write_scraped import ScrapeWriter, WriteResult

__all__ = [
    "LogConfig",
    "NotFoundError",
    "ScrapeOutput",
    "ScrapeWriter",
    "VaxDB",
    "WriteResult",
    "generate_location_id",
    "generate_location_ids",
]
