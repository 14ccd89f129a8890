"""Rebuild the Epic -> User Story -> Task tree from flat work-item lists."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ado_status_report.core.data_models import EpicNode, Hierarchy, StoryNode, WorkItem

logger = logging.getLogger(__name__)

PARENT_KIND = "Parent"


def parent_id(item: WorkItem) -> int | None:
    """Return the id named by the item's first ``Parent`` relation.

    The id is the last path segment of the relation URL.  Returns ``None``
    when there is no parent link or the segment is not an integer.
    """
    link = next((r for r in item.relations if r.kind == PARENT_KIND), None)
    if link is None:
        return None
    segment = link.url.rstrip("/").rsplit("/", 1)[-1]
    try:
        return int(segment)
    except ValueError:
        logger.debug("Work item %s has a non-numeric parent URL %s", item.id, link.url)
        return None


def build_hierarchy(
    epics: Iterable[WorkItem],
    user_stories: Iterable[WorkItem],
    tasks: Iterable[WorkItem],
) -> Hierarchy:
    """Attach stories to their Epic and tasks to their story.

    Stories and tasks whose parent cannot be resolved are left out of the
    tree; nothing is promoted to the top level.
    """
    hierarchy: Hierarchy = {epic.id: EpicNode(item=epic) for epic in epics}

    for story in user_stories:
        epic_id = parent_id(story)
        if epic_id is None or epic_id not in hierarchy:
            logger.debug("Dropping user story %s (parent=%s)", story.id, epic_id)
            continue
        hierarchy[epic_id].user_stories[story.id] = StoryNode(item=story)

    for task in tasks:
        story_id = parent_id(task)
        if story_id is None:
            logger.debug("Dropping task %s (no parent)", task.id)
            continue
        # First Epic in insertion order that owns the story wins
        for epic in hierarchy.values():
            node = epic.user_stories.get(story_id)
            if node is not None:
                node.tasks[task.id] = task
                break
        else:
            logger.debug("Dropping task %s (parent=%s)", task.id, story_id)

    epic_count, story_count, task_count = count_nodes(hierarchy)
    logger.debug(
        "Built hierarchy: %d epics, %d user stories, %d tasks",
        epic_count, story_count, task_count,
    )
    return hierarchy


def count_nodes(hierarchy: Hierarchy) -> tuple[int, int, int]:
    """Return ``(epics, user_stories, tasks)`` counts for *hierarchy*."""
    stories = [s for e in hierarchy.values() for s in e.user_stories.values()]
    return len(hierarchy), len(stories), sum(len(s.tasks) for s in stories)


def hierarchy_to_dict(hierarchy: Hierarchy) -> dict[str, object]:
    """Plain-dict form of *hierarchy*, keyed by string ids, for JSON output."""
    return {str(k): node.to_dict() for k, node in hierarchy.items()}
