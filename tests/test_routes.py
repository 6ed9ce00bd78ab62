from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterator

import psycopg
import pytest
from fastapi import HTTPException

import familytree.routes.members as members_routes
import familytree.routes.tree as tree_routes
import familytree.source as source
from familytree.models import Member
from familytree.queries import fetch_members


@dataclass
class _FakeResult:
    rows: list[tuple[Any, ...]]

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self.rows)


class _FakeConn:
    def __init__(self, *, member_rows: list[tuple[Any, ...]]) -> None:
        self._member_rows = list(member_rows)
        self.queries: list[str] = []

    def execute(self, query: str, params: tuple[Any, ...] = ()) -> _FakeResult:
        q = " ".join((query or "").split()).lower()
        self.queries.append(q)
        if q.startswith("select id, name, dob") and "from members" in q:
            return _FakeResult(self._member_rows)
        raise AssertionError(f"Unexpected query: {query}")


def _row(pid: str, name: str, **kw: Any) -> tuple[Any, ...]:
    return (
        pid,
        name,
        kw.get("dob"),
        kw.get("anniversary"),
        kw.get("spouse_name"),
        kw.get("fathers_name"),
        kw.get("mothers_name"),
        kw.get("email"),
        None,
        None,
        kw.get("current_status"),
        None,
        None,
        None,
        None,
        None,
    )


_ROWS = [
    _row("1", "Ravi Kumar", dob=date(1950, 1, 1)),
    _row("2", "Sita Kumar", dob=date(1952, 3, 3), spouse_name="Ravi Kumar"),
    _row("3", "Amit Kumar", dob=date(1975, 6, 6), fathers_name="Ravi Kumar", mothers_name="Sita Kumar"),
    _row("4", "amit  kumar", email="amit@example.com"),
]


@pytest.fixture()
def fake_db(monkeypatch: pytest.MonkeyPatch) -> _FakeConn:
    conn = _FakeConn(member_rows=_ROWS)

    @contextmanager
    def _fake_db_conn() -> Iterator[_FakeConn]:
        yield conn

    monkeypatch.setattr(source, "db_conn", _fake_db_conn)
    monkeypatch.delenv("FAMILYTREE_MEMBERS_TABLE", raising=False)
    return conn


def test_fetch_members_maps_columns_and_dates(fake_db: _FakeConn) -> None:
    members = fetch_members(fake_db)
    assert [m.id for m in members] == ["1", "2", "3", "4"]
    assert members[0].dob == "1950-01-01"
    assert members[1].spouse_name == "Ravi Kumar"
    assert "order by created_at" in fake_db.queries[0]


def test_list_members_is_deduplicated(fake_db: _FakeConn) -> None:
    payload = members_routes.list_members(q=None)
    assert payload["total"] == 3
    amit = next(r for r in payload["results"] if r["id"] == "3")
    assert amit["email"] == "amit@example.com"


def test_list_members_search(fake_db: _FakeConn) -> None:
    payload = members_routes.list_members(q="sita")
    assert [r["id"] for r in payload["results"]] == ["2"]


def test_tree_endpoint_without_layout(fake_db: _FakeConn) -> None:
    payload = tree_routes.family_tree(layout=False)
    assert payload["total"] == 1
    root = payload["trees"][0]
    assert root["father"]["member"]["name"] == "Ravi Kumar"
    assert root["mother"]["member"]["name"] == "Sita Kumar"
    assert [c["father"]["member"]["id"] for c in root["children"]] == ["3"]
    assert "layout" not in payload


def test_tree_endpoint_with_layout(fake_db: _FakeConn) -> None:
    payload = tree_routes.family_tree(layout=True)
    assert len(payload["layout"]["nodes"]) == 1
    assert payload["layout"]["edges"]


def test_build_tree_accepts_camel_case_aliases() -> None:
    body = tree_routes.TreeBuildRequest.model_validate(
        {
            "members": [
                {"id": "1", "name": "Amit", "dob": "1990-01-01", "fathersName": "Unknown Dad"},
            ]
        }
    )
    payload = tree_routes.build_tree(body)
    root = payload["trees"][0]
    assert root["father"]["is_ghost"] is True
    assert root["father"]["member"]["name"] == "Unknown Dad"
    assert root["children"][0]["father"]["member"]["id"] == "1"


def test_database_errors_become_503(monkeypatch: pytest.MonkeyPatch) -> None:
    @contextmanager
    def _broken_db_conn() -> Iterator[_FakeConn]:
        raise psycopg.OperationalError("connection refused")
        yield  # pragma: no cover

    monkeypatch.setattr(source, "db_conn", _broken_db_conn)
    with pytest.raises(HTTPException) as exc:
        members_routes.list_members(q=None)
    assert exc.value.status_code == 503


def test_missing_database_url_becomes_503(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(HTTPException) as exc:
        tree_routes.family_tree(layout=False)
    assert exc.value.status_code == 503


def test_invalid_table_name_is_rejected(fake_db: _FakeConn, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAMILYTREE_MEMBERS_TABLE", "members; drop table x")
    with pytest.raises(HTTPException) as exc:
        members_routes.list_members(q=None)
    assert exc.value.status_code == 503


def test_build_tree_handles_long_camel_case_lineage() -> None:
    body = tree_routes.TreeBuildRequest.model_validate(
        {
            "members": [
                {"id": f"m{i}", "name": f"P{i}", **({"fathersName": f"P{i - 1}"} if i else {})}
                for i in range(5000)
            ],
            "layout": True,
            "shape": "flat",
        }
    )
    payload = tree_routes.build_tree(body)
    assert payload["roots"] == ["p0"]
    assert len(payload["nodes"]) == 5000
    assert len(payload["layout"]["nodes"]) == 5000


def test_build_tree_accepts_numeric_ids() -> None:
    body = tree_routes.TreeBuildRequest.model_validate(
        {"members": [{"id": 0, "name": "Ravi"}, {"id": 7, "name": "Amit", "fathersName": "Ravi"}]}
    )
    payload = tree_routes.build_tree(body)
    root = payload["trees"][0]
    assert root["father"]["member"]["id"] == "0"
    assert root["children"][0]["father"]["member"]["id"] == "7"


def test_list_members_sorting_and_short_query(fake_db: _FakeConn, monkeypatch: pytest.MonkeyPatch) -> None:
    by_name = members_routes.list_members(q=None, sort="name")
    assert [r["name"] for r in by_name["results"]] == ["Amit Kumar", "Ravi Kumar", "Sita Kumar"]

    one_char = members_routes.list_members(q="s", sort="name")
    assert [r["id"] for r in one_char["results"]] == ["2"]

    seen: list[str] = []

    def _by_id_desc(members: list[Member], by: str) -> list[Member]:
        seen.append(by)
        return sorted(members, key=lambda m: m.id, reverse=True)

    monkeypatch.setattr(members_routes, "sort_members", _by_id_desc)
    upcoming = members_routes.list_members(q=None, sort="upcoming")
    assert seen == ["upcoming"]
    assert [r["id"] for r in upcoming["results"]] == ["3", "2", "1"]
