"""Data models for the Azure DevOps status report."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class RelationLink:
    """A link from one work item to another.

    ``kind`` is the display name Azure DevOps reports for the link
    (``"Parent"``, ``"Child"``, ``"Related"``...).
    """

    kind: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "url": self.url}


@dataclass(frozen=True)
class WorkItem:
    """A single Epic, User Story or Task as returned by the fetcher."""

    id: int
    title: str
    state: str
    work_item_type: str = ""
    assignee: str | None = None
    due_date: datetime | None = None
    relations: tuple[RelationLink, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "state": self.state,
            "type": self.work_item_type,
            "assignee": self.assignee,
            "dueDate": self.due_date.date().isoformat() if self.due_date else None,
        }


@dataclass
class StoryNode:
    """A User Story and the Tasks attached to it, keyed by task id."""

    item: WorkItem
    tasks: dict[int, WorkItem] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = self.item.to_dict()
        data["tasks"] = {str(k): t.to_dict() for k, t in self.tasks.items()}
        return data


@dataclass
class EpicNode:
    """An Epic and the User Stories attached to it, keyed by story id."""

    item: WorkItem
    user_stories: dict[int, StoryNode] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = self.item.to_dict()
        data["userStories"] = {
            str(k): s.to_dict() for k, s in self.user_stories.items()
        }
        return data


Hierarchy = dict[int, EpicNode]


class ReportVariant(str, enum.Enum):
    """Which slice of the backlog a report covers."""

    HIERARCHY = "hierarchy"  # Epics, User Stories and Tasks not yet closed
    ACTIVE_STORIES = "active-stories"  # active User Stories only


@dataclass(frozen=True)
class FetchStrategy:
    """What to query for a given report variant."""

    variant: ReportVariant
    work_item_types: tuple[str, ...]
    state_clause: str

    @property
    def is_hierarchical(self) -> bool:
        return self.variant is ReportVariant.HIERARCHY

    @classmethod
    def for_variant(cls, variant: ReportVariant | str) -> FetchStrategy:
        variant = ReportVariant(variant)
        if variant is ReportVariant.HIERARCHY:
            return cls(
                variant=variant,
                work_item_types=("Epic", "User Story", "Task"),
                state_clause="[System.State] <> 'Closed'",
            )
        return cls(
            variant=variant,
            work_item_types=("User Story",),
            state_clause="[System.State] = 'Active'",
        )
