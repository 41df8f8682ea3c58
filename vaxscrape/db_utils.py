"""
CRUD and index helpers over the Supabase tables (locations, scraperRuns, appointments).

Every call goes through `VaxDB._execute`, which logs the request and response at
DEBUG and re-raises store errors (postgrest APIError, network errors) unchanged.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set
from uuid import uuid4

from supabase import Client

from .errors import NotFoundError
from .log import LogConfig, dumps
from .models import (
    APPOINTMENTS,
    LOCATIONS,
    SCRAPER_RUNS,
    Address,
    AppointmentRecord,
    LocationRecord,
    RefId,
    ScraperRunRecord,
)

DEFAULT_PAGE_SIZE = 64

# Secondary indexes: name -> (child table, foreign-key column)
INDEXES = {
    "scraperRunsByLocation": (SCRAPER_RUNS, "locationRef"),
    "appointmentsByScraperRun": (APPOINTMENTS, "scraperRunRef"),
}


def _key(ref_id: RefId) -> str:
    # bigint ids come back as int, uuids as str; compare on text.
    return str(ref_id)


def location_row(ref_id: int, location: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Shape a flat location (name, street, city, zip, signUpLink, ...) into a row
    with a nested address.
    """
    record = LocationRecord(
        name=location["name"],
        address=Address(
            street=location.get("street"),
            city=location.get("city"),
            zip=location.get("zip"),
        ),
        sign_up_link=location.get("signUpLink", location.get("sign_up_link")),
        latitude=location.get("latitude"),
        longitude=location.get("longitude"),
    )
    return record.to_row(ref_id)


class VaxDB:
    def __init__(self, client: Client, log_config: Optional[LogConfig] = None) -> None:
        self.client = client
        self.log_config = log_config or LogConfig()
        self.logger = self.log_config.get_logger(__name__)

    def _execute(self, query, description: str) -> List[Dict[str, Any]]:
        self.logger.debug("trying query %s", description)
        try:
            response = query.execute()
        except Exception as exc:
            self.logger.error("for query %s, got error %s", description, exc)
            raise
        data = getattr(response, "data", None) or []
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug("successfully executed query %s, got res %s", description, dumps(data))
        return data

    def generate_id(self) -> str:
        return str(uuid4())

    # --- basic CRUD ---

    def retrieve_item_by_ref_id(self, collection: str, ref_id: RefId) -> Dict[str, Any]:
        rows = self._execute(
            self.client.table(collection).select("*").eq("id", ref_id),
            f"get {collection}/{ref_id}",
        )
        if not rows:
            self.logger.debug("no %s row for ref id %s", collection, ref_id)
            raise NotFoundError(collection, [ref_id])
        return rows[0]

    def retrieve_items_by_ref_ids(self, collection: str, ref_ids: Sequence[RefId]) -> List[Dict[str, Any]]:
        """Rows in the same order as `ref_ids`; fails if any id is missing."""
        if not ref_ids:
            return []
        rows = self._execute(
            self.client.table(collection).select("*").in_("id", list(ref_ids)),
            f"get {collection}/{list(ref_ids)}",
        )
        by_id = {_key(row["id"]): row for row in rows}
        missing = [ref_id for ref_id in ref_ids if _key(ref_id) not in by_id]
        if missing:
            raise NotFoundError(collection, missing)
        return [by_id[_key(ref_id)] for ref_id in ref_ids]

    def check_item_exists_by_ref_id(self, collection: str, ref_id: RefId) -> bool:
        rows = self._execute(
            self.client.table(collection).select("id").eq("id", ref_id),
            f"exists {collection}/{ref_id}",
        )
        return bool(rows)

    def check_items_exist_by_ref_ids(self, collection: str, ref_ids: Sequence[RefId]) -> List[bool]:
        if not ref_ids:
            return []
        rows = self._execute(
            self.client.table(collection).select("id").in_("id", list(ref_ids)),
            f"exists {collection}/{list(ref_ids)}",
        )
        found = {_key(row["id"]) for row in rows}
        return [_key(ref_id) in found for ref_id in ref_ids]

    def delete_item_by_ref_id(self, collection: str, ref_id: RefId) -> None:
        rows = self._execute(
            self.client.table(collection).delete().eq("id", ref_id),
            f"delete {collection}/{ref_id}",
        )
        if not rows:
            raise NotFoundError(collection, [ref_id])

    def delete_items_by_ref_ids(self, collection: str, ref_ids: Sequence[RefId]) -> None:
        if not ref_ids:
            return
        rows = self._execute(
            self.client.table(collection).delete().in_("id", list(ref_ids)),
            f"delete {collection}/{list(ref_ids)}",
        )
        deleted = {_key(row["id"]) for row in rows}
        missing = [ref_id for ref_id in ref_ids if _key(ref_id) not in deleted]
        if missing:
            raise NotFoundError(collection, missing)

    def list_items(self, collection: str, page_size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
        return self._execute(
            self.client.table(collection).select("*").limit(page_size),
            f"list {collection} (limit {page_size})",
        )

    def iter_items(self, collection: str, page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[Dict[str, Any]]:
        """Every row of `collection`, fetched page by page in id order."""
        start = 0
        while True:
            end = start + page_size - 1
            batch = self._execute(
                self.client.table(collection).select("*").order("id").range(start, end),
                f"list {collection} [{start}:{end}]",
            )
            yield from batch
            if len(batch) < page_size:
                break
            start += page_size

    # --- creates (not idempotent: a second create with the same id raises APIError 23505) ---

    def write_location_by_ref_id(
        self,
        ref_id: int,
        name: str,
        address: Mapping[str, Any],
        sign_up_link: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Dict[str, Any]:
        row = LocationRecord(
            name=name,
            address=Address(**address),
            sign_up_link=sign_up_link,
            latitude=latitude,
            longitude=longitude,
        ).to_row(ref_id)
        self._execute(self.client.table(LOCATIONS).insert(row), f"create {LOCATIONS}/{ref_id}")
        return row

    def write_locations_by_ref_ids(self, locations_with_ref_ids: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Insert flat locations that already carry a `refId`."""
        rows = [location_row(loc["refId"], loc) for loc in locations_with_ref_ids]
        if rows:
            self._execute(
                self.client.table(LOCATIONS).insert(rows),
                f"create {LOCATIONS}/{[row['id'] for row in rows]}",
            )
        return rows

    def ensure_locations(self, rows: Sequence[Mapping[str, Any]]) -> Set[int]:
        """
        Create-if-absent for location rows in one upsert. Existing rows are left
        untouched. Returns the ids that were newly created.
        """
        if not rows:
            return set()
        created = self._execute(
            self.client.table(LOCATIONS).upsert(list(rows), on_conflict="id", ignore_duplicates=True),
            f"ensure {LOCATIONS}/{[row['id'] for row in rows]}",
        )
        return {int(row["id"]) for row in created}

    def ensure_location(self, row: Mapping[str, Any]) -> bool:
        return int(row["id"]) in self.ensure_locations([row])

    def write_scraper_run_by_ref_id(self, ref_id: str, location_ref_id: int, timestamp) -> Dict[str, Any]:
        row = ScraperRunRecord(location_ref=location_ref_id, timestamp=timestamp).to_row(ref_id)
        self._execute(self.client.table(SCRAPER_RUNS).insert(row), f"create {SCRAPER_RUNS}/{ref_id}")
        return row

    def write_appointment_by_ref_id(
        self,
        ref_id: str,
        scraper_run_ref_id: str,
        date: str,
        number_available: int,
        sign_up_link: Optional[str] = None,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        row = AppointmentRecord(
            scraper_run_ref=scraper_run_ref_id,
            date=date,
            number_available=number_available,
            sign_up_link=sign_up_link,
            extra_data=extra_data,
        ).to_row(ref_id)
        self._execute(self.client.table(APPOINTMENTS).insert(row), f"create {APPOINTMENTS}/{ref_id}")
        return row

    # --- index queries (single page, no cursor) ---

    def query_index(
        self,
        index: str,
        parent_ref_id: RefId,
        page_size: int = DEFAULT_PAGE_SIZE,
        order_by: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Children of `parent_ref_id`. Without `order_by` rows come in index
        insertion order; with it, descending on that column.
        """
        collection, column = INDEXES[index]
        query = self.client.table(collection).select("*").eq(column, parent_ref_id)
        if order_by:
            query = query.order(order_by, desc=True)
        rows = self._execute(query.limit(page_size), f"match {index}/{parent_ref_id}")
        self.logger.debug("for %s %s got %d rows", index, parent_ref_id, len(rows))
        return rows

    def get_scraper_runs_by_location(self, location_ref_id: int, page_size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
        return self.query_index("scraperRunsByLocation", location_ref_id, page_size)

    def latest_scraper_run(self, location_ref_id: int) -> Optional[Dict[str, Any]]:
        rows = self.query_index("scraperRunsByLocation", location_ref_id, page_size=1, order_by="timestamp")
        return rows[0] if rows else None

    def get_appointments_by_scraper_run(self, scraper_run_ref_id: str, page_size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
        return self.query_index("appointmentsByScraperRun", scraper_run_ref_id, page_size)
