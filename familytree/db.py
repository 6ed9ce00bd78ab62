from __future__ import annotations

import os
import re
from contextlib import contextmanager
from typing import Iterator

import psycopg

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


def get_members_table() -> str:
    """Name of the members table (``FAMILYTREE_MEMBERS_TABLE``, default ``members``)."""

    table = (os.environ.get("FAMILYTREE_MEMBERS_TABLE") or "members").strip()
    if not _IDENT_RE.match(table):
        raise RuntimeError(f"invalid FAMILYTREE_MEMBERS_TABLE: {table!r}")
    return table


@contextmanager
def db_conn() -> Iterator[psycopg.Connection]:
    """Yield a read connection to the members database."""
    with psycopg.connect(get_database_url()) as conn:
        yield conn
