from __future__ import annotations

import logging

import psycopg
from fastapi import HTTPException

from .db import db_conn
from .models import Member
from .queries import fetch_members

log = logging.getLogger(__name__)


def _load_members() -> list[Member]:
    """Fetch the raw member list, mapping database trouble to a 503."""

    try:
        with db_conn() as conn:
            return fetch_members(conn)
    except psycopg.Error:
        log.exception("failed to fetch members")
        raise HTTPException(status_code=503, detail="member database unavailable")
    except RuntimeError as e:
        log.error("member database not configured: %s", e)
        raise HTTPException(status_code=503, detail="member database not configured")
