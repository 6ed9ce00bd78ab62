from __future__ import annotations

from datetime import date

import pytest

from familytree.models import Member


@pytest.fixture()
def fixed_today() -> date:
    # Keep tests deterministic.
    return date(2026, 1, 20)


@pytest.fixture()
def kumar_family() -> list[Member]:
    return [
        Member(id="1", name="Ravi Kumar", dob="1950-01-01"),
        Member(id="2", name="Sita Kumar", dob="1952-03-03", spouse_name="Ravi Kumar"),
        Member(
            id="3",
            name="Amit Kumar",
            dob="1975-06-06",
            fathers_name="Ravi Kumar",
            mothers_name="Sita Kumar",
        ),
    ]


@pytest.fixture()
def long_lineage() -> list[Member]:
    # Each generation names the previous one as father: 5000 levels deep.
    return [
        Member(id=str(i), name=f"P{i}", fathers_name=f"P{i - 1}" if i else None)
        for i in range(5000)
    ]
