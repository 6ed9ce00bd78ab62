from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..layout import layout_forest
from ..models import Member
from ..serialize import _forest_payload
from ..source import _load_members
from ..tree import build_family_tree

router = APIRouter()


class MemberIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    dob: Optional[str] = None
    anniversary: Optional[str] = None
    spouse_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("spouse_name", "spouseName"))
    fathers_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("fathers_name", "fathersName"))
    mothers_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("mothers_name", "mothersName"))

    @field_validator("id", mode="before")
    @classmethod
    def _numeric_id_to_str(cls, v: Any) -> Any:
        # Database-style integer ids arrive as JSON numbers.
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class TreeBuildRequest(BaseModel):
    members: list[MemberIn] = Field(default_factory=list, max_length=20_000)
    layout: bool = False
    shape: Literal["nested", "flat"] = "nested"


def _tree_payload(records: list[Member], *, with_layout: bool, shape: str) -> dict[str, Any]:
    forest = build_family_tree(records)
    return _forest_payload(forest, layout_forest(forest) if with_layout else None, shape=shape)


@router.get("/tree")
def family_tree(layout: bool = False, shape: Literal["nested", "flat"] = "nested") -> dict[str, Any]:
    """Family forest for all registered members.

    - layout=false: logical structure only (couple nodes with ghost flags)
    - layout=true: also node coordinates, connecting edges and canvas size
    - shape=flat: node lists linked by couple key instead of nested children,
      for lineages deeper than a JSON encoder will nest
    """

    return _tree_payload(_load_members(), with_layout=layout, shape=shape)


@router.post("/tree/build")
def build_tree(body: TreeBuildRequest) -> dict[str, Any]:
    """Build the forest from a posted member list, without touching the database."""

    records = [Member.from_record(m.model_dump()) for m in body.members]
    return _tree_payload(records, with_layout=body.layout, shape=body.shape)
