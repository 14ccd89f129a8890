"""Instruction templates for the status report completion."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date

from ado_status_report.core.data_models import Hierarchy, ReportVariant, WorkItem
from ado_status_report.core.hierarchy import hierarchy_to_dict

_HIERARCHY_TEMPLATE = """\
Generate a status report based on the following work item hierarchy:
{payload}

Today's date is {today}.

The report should include:
1. A summary of Epics, their associated User Stories, and Tasks
2. The total number of Epics, User Stories, and Tasks
3. Any potential risks or blockers based on due dates or unassigned items
4. Progress overview for each Epic

Format the report in markdown, using appropriate headers and bullet points to show the hierarchy."""

_ACTIVE_STORIES_TEMPLATE = """\
Generate a status report based on the following work items from the project:
{payload}

Today's date is {today}.

The report should include:
1. A summary of active user stories with their assignee name (no email) and due dates
2. The total number of active user stories
3. Any potential risks or blockers based on due dates or unassigned stories
4. Progress overview grouped by assignee

Format the report in markdown."""


def serialize(structure: Hierarchy | Sequence[WorkItem]) -> str:
    """Pretty JSON for either a hierarchy or a flat list of work items."""
    if isinstance(structure, dict):
        data: object = hierarchy_to_dict(structure)
    else:
        data = [item.to_dict() for item in structure]
    return json.dumps(data, indent=2, default=str)


def build_prompt(
    variant: ReportVariant,
    structure: Hierarchy | Sequence[WorkItem],
    today: date | None = None,
) -> str:
    template = (
        _HIERARCHY_TEMPLATE if variant is ReportVariant.HIERARCHY else _ACTIVE_STORIES_TEMPLATE
    )
    return template.format(
        payload=serialize(structure),
        today=(today or date.today()).isoformat(),
    )
