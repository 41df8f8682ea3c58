from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .db_utils import VaxDB, location_row
from .keys import generate_location_id, generate_location_ids
from .log import LogConfig
from .models import LOCATIONS
from .schema import ScrapeOutput


@dataclass
class WriteResult:
    location_ref_id: int
    location_created: bool
    scraper_run_ref_id: str
    appointment_ref_ids: List[str] = field(default_factory=list)


def _as_output(output: Union[ScrapeOutput, Mapping[str, Any]]) -> ScrapeOutput:
    if isinstance(output, ScrapeOutput):
        return output
    return ScrapeOutput.model_validate(output)


def _location_fields(output: ScrapeOutput) -> Dict[str, Any]:
    return {
        **output.key_fields(),
        "signUpLink": output.sign_up_link,
        "latitude": output.latitude,
        "longitude": output.longitude,
    }


class ScrapeWriter:
    """
    Writes scraper output to locations / scraperRuns / appointments.

    Writes are sequential with no rollback: a failure part way through leaves
    whatever was already written.
    """

    def __init__(self, db: VaxDB, log_config: Optional[LogConfig] = None) -> None:
        self.db = db
        self.log_config = log_config or db.log_config
        self.logger = self.log_config.get_logger(__name__)

    def _write_run(self, output: ScrapeOutput, location_ref_id: int) -> tuple[str, List[str]]:
        scraper_run_ref_id = self.db.generate_id()
        self.db.write_scraper_run_by_ref_id(scraper_run_ref_id, location_ref_id, output.timestamp)

        appointment_ref_ids: List[str] = []
        for date, date_availability in output.bookable_dates().items():
            appointment_ref_id = self.db.generate_id()
            self.db.write_appointment_by_ref_id(
                appointment_ref_id,
                scraper_run_ref_id,
                date=date,
                number_available=date_availability.number_available_appointments,
                sign_up_link=date_availability.sign_up_link or output.sign_up_link,
                extra_data=output.extra_data,
            )
            appointment_ref_ids.append(appointment_ref_id)
        return scraper_run_ref_id, appointment_ref_ids

    def write_scraped_data(self, output: Union[ScrapeOutput, Mapping[str, Any]]) -> WriteResult:
        """
        Write one scraper output: the location (only if new), a new scraper
        run, and one appointment per date with open slots.
        """
        output = _as_output(output)
        location_ref_id = generate_location_id(**output.key_fields())
        created = self.db.ensure_location(location_row(location_ref_id, _location_fields(output)))
        self.logger.debug("location %s created: %s", location_ref_id, created)

        scraper_run_ref_id, appointment_ref_ids = self._write_run(output, location_ref_id)
        self.logger.info(
            "wrote run %s for %s (%s): %d appointment dates",
            scraper_run_ref_id, output.name, location_ref_id, len(appointment_ref_ids),
        )
        return WriteResult(location_ref_id, created, scraper_run_ref_id, appointment_ref_ids)

    def write_scraped_data_batch(self, outputs: Iterable[Union[ScrapeOutput, Mapping[str, Any]]]) -> List[WriteResult]:
        """
        Batch form of `write_scraped_data`.

        Existence is checked once for every location; the absent ones are
        upserted together (create-if-absent), then each output gets its own run.
        """
        outputs = [_as_output(o) for o in outputs]
        if not outputs:
            return []

        ref_ids = generate_location_ids(o.key_fields() for o in outputs)
        exists = self.db.check_items_exist_by_ref_ids(LOCATIONS, ref_ids)
        self.logger.debug("locations %s exist: %s", ref_ids, exists)

        pending: Dict[int, Dict[str, Any]] = {}
        for ref_id, output, found in zip(ref_ids, outputs, exists):
            if not found and ref_id not in pending:
                pending[ref_id] = location_row(ref_id, _location_fields(output))
        created = self.db.ensure_locations(list(pending.values()))

        results: List[WriteResult] = []
        for ref_id, output in zip(ref_ids, outputs):
            scraper_run_ref_id, appointment_ref_ids = self._write_run(output, ref_id)
            # Only the first output for a new location reports it as created.
            location_created = ref_id in created
            created.discard(ref_id)
            results.append(WriteResult(ref_id, location_created, scraper_run_ref_id, appointment_ref_ids))

        self.logger.info(
            "wrote %d runs (%d new locations, %d appointment dates)",
            len(results),
            sum(r.location_created for r in results),
            sum(len(r.appointment_ref_ids) for r in results),
        )
        return results

    def get_appointments_for_all_locations(self) -> List[Dict[str, Any]]:
        """
        For every location, its most recent scraper run and that run's
        appointments. Locations never scraped come back with run None.
        """
        summary: List[Dict[str, Any]] = []
        for location in self.db.iter_items(LOCATIONS):
            latest = self.db.latest_scraper_run(location["id"])
            appointments = self.db.get_appointments_by_scraper_run(latest["id"]) if latest else []
            summary.append({"location": location, "scraperRun": latest, "appointments": appointments})
        return summary
