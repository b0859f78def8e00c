# =============================================================================
# HELPDESK API - PAGINATION & FILTER ENGINE TESTS
# =============================================================================

import math

import pytest

from helpdesk.auth.models import Actor, Role
from helpdesk.config import config
from helpdesk.services import data_entries
from helpdesk.services.pagination import (
    Query,
    normalize_page,
    build_pagination,
    paginate,
    ref_columns,
    expand_ref,
)


class TestPageParameters:
    """Coercion and bounds of page/limit."""

    @pytest.mark.unit
    def test_defaults(self):
        assert normalize_page() == (1, config.DEFAULT_PAGE_LIMIT)

    @pytest.mark.unit
    def test_custom_default_limit(self):
        assert normalize_page(None, None, default_limit=50) == (1, 50)

    @pytest.mark.unit
    def test_strings_coerced(self):
        assert normalize_page("3", "25") == (3, 25)

    @pytest.mark.unit
    def test_garbage_falls_back(self):
        assert normalize_page("abc", "xyz") == (1, config.DEFAULT_PAGE_LIMIT)

    @pytest.mark.unit
    def test_lower_bounds(self):
        assert normalize_page(0, 0) == (1, 1)
        assert normalize_page(-4, -10) == (1, 1)

    @pytest.mark.unit
    def test_limit_clamped(self):
        assert normalize_page(1, 10_000) == (1, config.MAX_PAGE_LIMIT)

    @pytest.mark.unit
    @pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 99, 100, 101])
    @pytest.mark.parametrize("limit", [1, 3, 10, 100])
    def test_pages_is_ceil(self, total, limit):
        pagination = build_pagination(1, limit, total)
        assert pagination == {
            "page": 1,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        }


class TestQuery:
    """WHERE clause accumulation."""

    @pytest.mark.unit
    def test_no_filters(self):
        query = Query("SELECT *", "tickets")
        assert query.where_sql == "1=1"
        assert query.params == []

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_exact_filter_ignored(self, value):
        query = Query("SELECT *", "tickets").exact("status", value)
        assert query.where_sql == "1=1"

    @pytest.mark.unit
    def test_exact_and_search(self):
        query = Query("SELECT *", "tickets t")
        query.exact("t.status", "open").search(["t.title", "t.description"], " Login ")

        assert query.where_sql.startswith("t.status = ? AND (LOWER(t.title) LIKE ?")
        assert query.params == ["open", "%login%", "%login%"]

    @pytest.mark.unit
    def test_search_escapes_wildcards(self):
        query = Query("SELECT *", "tickets").search(["title"], "100%_done")
        assert query.params == ["%100\\%\\_done%"]

    @pytest.mark.unit
    def test_reference_expansion(self):
        assert ref_columns("c", "customer").startswith("c.id AS customer__id, c.name AS customer__name")

        row = {"customer__id": 7, "customer__name": "Alice",
               "customer__email": "alice@acme-support.com", "customer__avatar": None}
        assert expand_ref(row, "customer") == {
            "id": 7, "name": "Alice", "email": "alice@acme-support.com", "avatar": None
        }
        assert expand_ref({"assignee__id": None}, "assignee") is None


@pytest.mark.integration
class TestPaginate:
    """paginate() against the database, through data entries."""

    @pytest.fixture
    def entries(self, db, customer, storage):
        actor = Actor(id=customer["id"], role=Role.CUSTOMER,
                      email=customer["email"], name=customer["name"])
        titles = ["Router temperature", "Disk usage", "Router uptime",
                  "Memory", "Latency 100%", "Packet loss", "Router load"]
        for i, title in enumerate(titles):
            data_entries.create_entry(db, actor, {"title": title, "value": i}, storage=storage)
        return titles

    @pytest.mark.parametrize("limit", [1, 2, 3, 7, 10])
    def test_items_bounded_by_limit(self, db, entries, limit):
        total_seen = 0
        page = 1
        while True:
            rows, pagination = paginate(db, Query("SELECT *", "data_entries"), page, limit)
            assert len(rows) <= limit
            assert pagination["total"] == len(entries)
            assert pagination["pages"] == math.ceil(len(entries) / limit)
            total_seen += len(rows)
            if page >= pagination["pages"]:
                break
            page += 1
        assert total_seen == len(entries)

    def test_page_past_the_end(self, db, entries):
        rows, pagination = paginate(db, Query("SELECT *", "data_entries"), 99, 5)
        assert rows == []
        assert pagination["page"] == 99

    def test_search_case_insensitive(self, db, entries):
        query = Query("SELECT *", "data_entries").search(["title"], "ROUTER")
        rows, pagination = paginate(db, query, 1, 10, order_by="id ASC")

        assert pagination["total"] == 3
        assert [r["title"] for r in rows] == ["Router temperature", "Router uptime", "Router load"]

    def test_percent_matched_literally(self, db, entries):
        query = Query("SELECT *", "data_entries").search(["title"], "%")
        rows, _ = paginate(db, query, 1, 10)

        assert [r["title"] for r in rows] == ["Latency 100%"]

    def test_empty_table(self, db):
        rows, pagination = paginate(db, Query("SELECT *", "data_entries"), 1, 10)
        assert rows == []
        assert pagination == {"page": 1, "limit": 10, "total": 0, "pages": 0}
