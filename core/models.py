"""
Project and snapshot records.

Attributes are snake_case in Python and camelCase on the wire
(``lastChecked``, ``projectId``, ``metaTitle`` ...).
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProjectType(str, Enum):
    ECOMMERCE = "E-COMMERCE"
    BLOG = "BLOG"
    GENERAL = "GENERAL"


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ProjectSnapshot(_Record):
    """One measurement of a project. Never mutated after creation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    timestamp: int
    score: int = Field(ge=0, le=100)
    rank: int = Field(ge=1)
    page: int = Field(ge=1)
    meta_title: str = ""
    meta_description: str = ""
    h1_tag: str = ""
    alt_texts: list[str] = Field(default_factory=list)
    top_keywords: list[str] = Field(default_factory=list)


class SnapshotCreate(ProjectSnapshot):
    """Body of ``POST /snapshots``: a snapshot plus the id of its owner."""

    project_id: str = Field(min_length=1)

    @classmethod
    def for_project(cls, project_id: str, snapshot: ProjectSnapshot) -> "SnapshotCreate":
        return cls(project_id=project_id, **snapshot.model_dump())

    def snapshot(self) -> ProjectSnapshot:
        return ProjectSnapshot(**self.model_dump(exclude={"project_id"}))


class ProjectUpsert(_Record):
    """Body of ``POST /projects``. History travels separately, one snapshot at a time."""

    id: str = Field(min_length=1)
    url: str
    name: str
    country: str = ""
    type: ProjectType = ProjectType.GENERAL
    last_checked: int = 0
    tracked_keywords: list[str] = Field(default_factory=list)


class Project(ProjectUpsert):
    history: list[ProjectSnapshot] = Field(default_factory=list)

    def upsert_body(self) -> ProjectUpsert:
        return ProjectUpsert(**self.model_dump(exclude={"history"}))

    def latest_snapshot(self) -> Optional[ProjectSnapshot]:
        return self.history[0] if self.history else None


def sort_history(snapshots: list[ProjectSnapshot]) -> list[ProjectSnapshot]:
    """Newest first; ties on timestamp broken by id so the order is total."""
    return sorted(snapshots, key=lambda s: (s.timestamp, s.id), reverse=True)


def sort_projects(projects: list[Project]) -> list[Project]:
    """Most recently checked first. Stable for equal ``last_checked``."""
    return sorted(projects, key=lambda p: p.last_checked, reverse=True)
