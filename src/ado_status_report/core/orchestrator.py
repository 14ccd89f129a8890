"""Fetch -> build -> summarize pipeline behind every status report."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from ado_status_report.core.data_models import FetchStrategy, Hierarchy, WorkItem
from ado_status_report.core.hierarchy import build_hierarchy, count_nodes
from ado_status_report.core.report_prompt import build_prompt

logger = logging.getLogger(__name__)

NO_WORK_ITEMS_MESSAGE = "No work items found. Please check your project setup and permissions."
FETCH_DETAILS_FAILED_MESSAGE = (
    "Failed to fetch work item details. Please check your permissions and API access."
)
SUMMARY_FAILED_MESSAGE = "Unable to generate status report."

FetchIds = Callable[[Sequence[str], str], Sequence[int]]
FetchDetails = Callable[[Sequence[int], bool], Sequence[WorkItem]]
Summarize = Callable[[str], str]

T = TypeVar("T")


class ReportOrchestrator:
    """Drive one report request through its collaborators.

    The collaborators are plain blocking callables; each call is awaited in a
    worker thread so the event loop stays free.  Every path through
    :meth:`run` ends in a string: the report or one of the fixed messages
    above.
    """

    def __init__(
        self,
        fetch_ids: FetchIds,
        fetch_details: FetchDetails,
        summarize: Summarize,
        strategy: FetchStrategy,
    ) -> None:
        self._fetch_ids = fetch_ids
        self._fetch_details = fetch_details
        self._summarize = summarize
        self._strategy = strategy

    @property
    def strategy(self) -> FetchStrategy:
        return self._strategy

    async def run(self) -> str:
        """Produce a report, or a sentinel message when a stage yields nothing."""
        types = self._strategy.work_item_types
        logger.info("Fetching work items (%s)", ", ".join(types))
        id_groups = await asyncio.gather(*(self._ids_for(t) for t in types))
        if not any(id_groups):
            logger.warning("No work items matched %s", self._strategy.variant.value)
            return NO_WORK_ITEMS_MESSAGE

        detail_groups = await asyncio.gather(*(self._details_for(ids) for ids in id_groups))
        if any(ids and not details for ids, details in zip(id_groups, detail_groups)):
            logger.warning("Work item details came back empty")
            return FETCH_DETAILS_FAILED_MESSAGE

        structure: Hierarchy | list[WorkItem]
        if self._strategy.is_hierarchical:
            logger.info("Building hierarchy...")
            epics, stories, tasks = detail_groups
            structure = build_hierarchy(epics, stories, tasks)
            logger.info(
                "Hierarchy has %d epics, %d user stories, %d tasks", *count_nodes(structure)
            )
        else:
            structure = [item for group in detail_groups for item in group]

        prompt = build_prompt(self._strategy.variant, structure)

        logger.info("Generating status report...")
        try:
            return await asyncio.to_thread(self._summarize, prompt)
        except Exception as exc:
            logger.error("Error generating status report: %s", exc)
            return SUMMARY_FAILED_MESSAGE

    # -- internals ------------------------------------------------------------

    async def _ids_for(self, work_item_type: str) -> list[int]:
        return await self._call_safely(
            self._fetch_ids, (work_item_type,), self._strategy.state_clause
        )

    async def _details_for(self, ids: Sequence[int]) -> list[WorkItem]:
        if not ids:
            return []
        return await self._call_safely(
            self._fetch_details, list(ids), self._strategy.is_hierarchical
        )

    @staticmethod
    async def _call_safely(func: Callable[..., Sequence[T]], *args: Any) -> list[T]:
        """Await *func* in a thread; a raised error counts as an empty result."""
        try:
            return list(await asyncio.to_thread(func, *args))
        except Exception as exc:
            logger.error("%s failed: %s", getattr(func, "__name__", func), exc)
            return []
