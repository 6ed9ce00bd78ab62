from __future__ import annotations

import psycopg

from .db import get_members_table
from .models import Member

# Columns read from the members table, in SELECT order.
_MEMBER_COLUMNS = (
    "id",
    "name",
    "dob",
    "anniversary",
    "spouse_name",
    "fathers_name",
    "mothers_name",
    "email",
    "phone",
    "qualification",
    "current_status",
    "profile_photo",
    "linkedin",
    "whatsapp",
    "instagram",
    "timezone",
)


def fetch_members(conn: psycopg.Connection) -> list[Member]:
    """Fetch every registered member with identity and parentage fields.

    Rows come back in registration order so that deduplication keeps the
    earliest record.
    """

    rows = conn.execute(
        f"""
        SELECT {", ".join(_MEMBER_COLUMNS)}
        FROM {get_members_table()}
        ORDER BY created_at NULLS LAST, id
        """.strip()
    ).fetchall()

    return [Member.from_record(dict(zip(_MEMBER_COLUMNS, tuple(r)))) for r in rows]
