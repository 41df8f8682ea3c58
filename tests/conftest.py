import copy
from typing import Any, Dict, List

import pytest
from postgrest.exceptions import APIError

from vaxscrape.db_utils import VaxDB
from vaxscrape.log import LogConfig
from vaxscrape.write_scraped import ScrapeWriter


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Just enough of the postgrest request builder for VaxDB."""

    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table = table
        self.rows: Dict[str, Dict[str, Any]] = client.tables.setdefault(table, {})
        self.op = None
        self.columns = "*"
        self.payload: List[Dict[str, Any]] = []
        self.ignore_duplicates = False
        self.filters = []
        self.max_rows = None
        self.offset = 0
        self.ordering = None

    def select(self, columns="*"):
        self.op, self.columns = "select", columns
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows if isinstance(rows, list) else [rows]
        return self

    def upsert(self, rows, on_conflict="id", ignore_duplicates=False):
        assert on_conflict == "id"
        self.op, self.payload = "upsert", rows if isinstance(rows, list) else [rows]
        self.ignore_duplicates = ignore_duplicates
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: str(row.get(column)) == str(value))
        return self

    def in_(self, column, values):
        wanted = {str(v) for v in values}
        self.filters.append(lambda row: str(row.get(column)) in wanted)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def range(self, start, end):
        self.offset, self.max_rows = start, end - start + 1
        return self

    def _matching(self):
        rows = [row for row in self.rows.values() if all(f(row) for f in self.filters)]
        if self.ordering:
            column, desc = self.ordering
            rows.sort(key=lambda row: row.get(column), reverse=desc)
        return rows

    def execute(self):
        self.client.calls.append((self.table, self.op))
        failure = self.client.failures.get((self.table, self.op))
        if failure is not None:
            raise failure

        if self.op == "select":
            matched = self._matching()[self.offset:]
            rows = matched if self.max_rows is None else matched[: self.max_rows]
            if self.columns != "*":
                cols = [c.strip() for c in self.columns.split(",")]
                rows = [{c: row.get(c) for c in cols} for row in rows]
            return FakeResponse(copy.deepcopy(rows))

        if self.op == "insert":
            for row in self.payload:
                if str(row["id"]) in self.rows:
                    raise APIError({
                        "code": "23505",
                        "message": f'duplicate key value violates unique constraint "{self.table}_pkey"',
                        "details": f"Key (id)=({row['id']}) already exists.",
                        "hint": None,
                    })
            for row in self.payload:
                self.rows[str(row["id"])] = copy.deepcopy(row)
            return FakeResponse(copy.deepcopy(self.payload))

        if self.op == "upsert":
            written = []
            for row in self.payload:
                if str(row["id"]) in self.rows and self.ignore_duplicates:
                    continue
                self.rows[str(row["id"])] = copy.deepcopy(row)
                written.append(copy.deepcopy(row))
            return FakeResponse(written)

        if self.op == "delete":
            removed = self._matching()
            for row in removed:
                del self.rows[str(row["id"])]
            return FakeResponse(removed)

        raise AssertionError(f"unsupported op {self.op}")


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls = []
        self.failures = {}

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return list(self.tables.get(name, {}).values())

    def fail(self, table, op, exc):
        self.failures[(table, op)] = exc


@pytest.fixture
def fake_client():
    return FakeSupabase()


@pytest.fixture
def log_config():
    return LogConfig(debug=True)


@pytest.fixture
def db(fake_client, log_config):
    return VaxDB(fake_client, log_config)


@pytest.fixture
def writer(db, log_config):
    return ScrapeWriter(db, log_config)


@pytest.fixture
def scraper_output():
    return {
        "name": "RandomName-abc123",
        "street": "2240 Iyannough Road",
        "city": "West Barnstable",
        "zip": "02668",
        "availability": {
            "03/16/2021": {
                "hasAvailability": True,
                "numberAvailableAppointments": 2,
                "signUpLink": "fake-signup-link-2",
            },
            "03/17/2021": {
                "hasAvailability": True,
                "numberAvailableAppointments": 1,
                "signUpLink": None,
            },
            "03/18/2021": {
                "hasAvailability": False,
                "numberAvailableAppointments": 0,
                "signUpLink": None,
            },
        },
        "hasAvailability": True,
        "extraData": {
            "Vaccinations offered": "Pfizer-BioNTech COVID-19 Vaccine",
            "Age groups served": "Adults",
            "Clinic Hours": "10:00 am - 03:00 pm",
        },
        "timestamp": "2021-03-16T13:15:27.318Z",
        "latitude": 41.6909399,
        "longitude": -70.3373802,
        "signUpLink": "fake-signup-link",
    }
