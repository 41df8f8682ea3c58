import logging
from uuid import uuid4

import pytest
from postgrest.exceptions import APIError

from vaxscrape.db_utils import location_row
from vaxscrape.errors import NotFoundError
from vaxscrape.keys import add_generated_ids_to_locations, generate_location_id
from vaxscrape.models import LOCATIONS, SCRAPER_RUNS


LOCATION = {
    "name": "RandomName-xyz",
    "address": {"street": "1 Main St", "city": "Newton", "zip": "02458"},
    "signUpLink": "www.google.com",
}


def _location_id(loc=LOCATION):
    return generate_location_id(loc["name"], loc["address"]["street"], loc["address"]["city"], loc["address"]["zip"])


def test_create_retrieve_delete_single_location(db):
    ref_id = _location_id()

    with pytest.raises(NotFoundError, match="instance not found"):
        db.retrieve_item_by_ref_id(LOCATIONS, ref_id)
    assert db.check_item_exists_by_ref_id(LOCATIONS, ref_id) is False

    db.write_location_by_ref_id(
        ref_id, LOCATION["name"], LOCATION["address"], sign_up_link=LOCATION["signUpLink"]
    )
    assert db.check_item_exists_by_ref_id(LOCATIONS, ref_id) is True

    row = db.retrieve_item_by_ref_id(LOCATIONS, ref_id)
    assert row == {"id": ref_id, **LOCATION, "latitude": None, "longitude": None}

    db.delete_item_by_ref_id(LOCATIONS, ref_id)
    with pytest.raises(NotFoundError):
        db.retrieve_item_by_ref_id(LOCATIONS, ref_id)


def test_create_is_not_idempotent(db):
    ref_id = _location_id()
    db.write_location_by_ref_id(ref_id, LOCATION["name"], LOCATION["address"])

    with pytest.raises(APIError) as exc_info:
        db.write_location_by_ref_id(ref_id, LOCATION["name"], LOCATION["address"])
    assert exc_info.value.code == "23505"


def test_store_errors_are_logged_and_reraised(db, fake_client, caplog):
    fake_client.fail(LOCATIONS, "select", ConnectionError("network down"))

    with caplog.at_level(logging.ERROR, logger="vaxscrape"):
        with pytest.raises(ConnectionError, match="network down"):
            db.check_item_exists_by_ref_id(LOCATIONS, 1)
    assert "network down" in caplog.text


def test_batch_locations_round_trip(db, fake_client):
    locations = [
        {"name": "RandomName-a", "street": "1 Main St", "city": "Newton", "zip": "02458", "signUpLink": "www.google.com"},
        {"name": "RandomName-b", "street": "2 Main St", "city": "Newton", "zip": "02458", "signUpLink": "www.google.com"},
    ]
    with_ids = add_generated_ids_to_locations(locations)
    ref_ids = [loc["refId"] for loc in with_ids]

    with pytest.raises(NotFoundError):
        db.retrieve_items_by_ref_ids(LOCATIONS, ref_ids)
    assert db.check_items_exist_by_ref_ids(LOCATIONS, ref_ids) == [False, False]

    db.write_locations_by_ref_ids(with_ids)
    assert fake_client.calls.count((LOCATIONS, "insert")) == 1
    assert db.check_items_exist_by_ref_ids(LOCATIONS, ref_ids) == [True, True]

    rows = db.retrieve_items_by_ref_ids(LOCATIONS, list(reversed(ref_ids)))
    assert [row["id"] for row in rows] == list(reversed(ref_ids))
    assert rows[1]["address"] == {"street": "1 Main St", "city": "Newton", "zip": "02458"}
    assert rows[1]["signUpLink"] == "www.google.com"

    db.delete_items_by_ref_ids(LOCATIONS, ref_ids)
    assert db.check_items_exist_by_ref_ids(LOCATIONS, ref_ids) == [False, False]


def test_batch_exists_preserves_order_with_mixed_results(db):
    present = _location_id()
    db.write_location_by_ref_id(present, LOCATION["name"], LOCATION["address"])

    assert db.check_items_exist_by_ref_ids(LOCATIONS, [7, present, 8]) == [False, True, False]
    assert db.check_items_exist_by_ref_ids(LOCATIONS, []) == []


def test_batch_retrieve_reports_missing_ids(db):
    present = _location_id()
    db.write_location_by_ref_id(present, LOCATION["name"], LOCATION["address"])

    with pytest.raises(NotFoundError) as exc_info:
        db.retrieve_items_by_ref_ids(LOCATIONS, [present, 12345])
    assert exc_info.value.ref_ids == [12345]


def test_delete_missing_raises_not_found(db):
    missing = str(uuid4())
    with pytest.raises(NotFoundError) as exc_info:
        db.delete_item_by_ref_id(SCRAPER_RUNS, missing)
    assert exc_info.value.ref_ids == [missing]


def test_ensure_location_creates_once(db, fake_client):
    row = location_row(_location_id(), {"name": LOCATION["name"], **LOCATION["address"]})

    assert db.ensure_location(row) is True
    assert db.ensure_location({**row, "name": "changed"}) is False
    assert db.retrieve_item_by_ref_id(LOCATIONS, row["id"])["name"] == LOCATION["name"]


def test_index_queries_return_children_of_parent(db):
    location_id = _location_id()
    db.write_location_by_ref_id(location_id, LOCATION["name"], LOCATION["address"])
    run_id = db.generate_id()
    other_run = db.generate_id()
    db.write_scraper_run_by_ref_id(run_id, location_id, "2021-03-16T13:15:27.318Z")
    db.write_scraper_run_by_ref_id(other_run, 99, "2021-03-16T13:15:27.318Z")
    appt_id = db.generate_id()
    db.write_appointment_by_ref_id(appt_id, run_id, "03/16/2021", 2, "link", {"k": "v"})

    runs = db.get_scraper_runs_by_location(location_id)
    assert [r["id"] for r in runs] == [run_id]
    assert runs[0]["locationRef"] == location_id
    assert runs[0]["timestamp"].startswith("2021-03-16T13:15:27.318")

    appointments = db.get_appointments_by_scraper_run(run_id)
    assert appointments == [{
        "id": appt_id,
        "scraperRunRef": run_id,
        "date": "03/16/2021",
        "numberAvailable": 2,
        "signUpLink": "link",
        "extraData": {"k": "v"},
    }]
    assert db.get_appointments_by_scraper_run(other_run) == []


def test_index_query_is_a_single_page(db):
    location_id = _location_id()
    for _ in range(5):
        db.write_scraper_run_by_ref_id(db.generate_id(), location_id, "2021-03-16T13:15:27Z")

    assert len(db.get_scraper_runs_by_location(location_id, page_size=3)) == 3


def test_generate_id_is_random(db):
    assert db.generate_id() != db.generate_id()
