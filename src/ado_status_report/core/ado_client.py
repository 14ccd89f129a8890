"""Azure DevOps REST client for work-item queries."""

from __future__ import annotations

import base64
import logging
import time
from collections.abc import Sequence
from datetime import datetime
from typing import Any
from urllib.parse import quote

import requests

from ado_status_report.core.data_models import RelationLink, WorkItem
from ado_status_report.services.config_manager import Settings

logger = logging.getLogger(__name__)

_BATCH_SIZE = 200  # Azure DevOps limit for GET wit/workitems?ids=
_MAX_RETRIES = 4
_BACKOFF_BASE = 1.0  # seconds

_FIELDS = (
    "System.Id",
    "System.Title",
    "System.State",
    "System.WorkItemType",
    "System.AssignedTo",
    "Microsoft.VSTS.Scheduling.DueDate",
)


class AdoClient:
    """Thin wrapper around the WIQL and work-item batch endpoints.

    Transport errors are logged and reported as empty results; callers never
    see a ``requests`` exception.
    """

    def __init__(
        self,
        settings: Settings,
        personal_access_token: str,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._base_url = (
            f"https://dev.azure.com/{quote(settings.organization)}"
            f"/{quote(settings.project)}/_apis/"
        )
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Content-Type": "application/json",
                "Authorization": f"Basic {self._encode_pat(personal_access_token)}",
            }
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    # -- queries --------------------------------------------------------------

    def fetch_ids(self, work_item_types: Sequence[str], state_clause: str = "") -> list[int]:
        """Return the ids of work items of the given type(s)."""
        wiql = self.build_wiql(work_item_types, state_clause)
        url = f"{self._base_url}wit/wiql"
        logger.debug("Executing WIQL: %s", wiql)
        try:
            resp = self._request("POST", url, json={"query": wiql})
            payload = resp.json()
            ids = [int(item["id"]) for item in payload.get("workItems", []) if "id" in item]
        except (requests.RequestException, ValueError, TypeError, AttributeError) as exc:
            logger.error("Error fetching %s: %s", ", ".join(work_item_types), exc)
            return []

        logger.info("Found %d %s item(s)", len(ids), "/".join(work_item_types))
        return ids

    def fetch_details(self, ids: Sequence[int], expand_relations: bool = True) -> list[WorkItem]:
        """Return full records for *ids*, in batches of 200.

        Any failed batch makes the whole call return ``[]`` so the caller
        never reasons over a partial list.  Records that cannot be parsed
        are skipped with a warning.
        """
        if not ids:
            return []
        url = f"{self._base_url}wit/workitems"
        items: list[WorkItem] = []
        for start in range(0, len(ids), _BATCH_SIZE):
            batch = ids[start:start + _BATCH_SIZE]
            params: dict[str, str] = {"ids": ",".join(str(i) for i in batch)}
            if expand_relations:
                # $expand and fields cannot be combined on this endpoint
                params["$expand"] = "relations"
            else:
                params["fields"] = ",".join(_FIELDS)
            try:
                resp = self._request("GET", url, params=params)
                raw_items = resp.json().get("value", [])
            except (requests.RequestException, ValueError, AttributeError) as exc:
                logger.error("Error fetching work item details: %s", exc)
                return []
            for raw in raw_items:
                try:
                    items.append(self.parse_work_item(raw))
                except (ValueError, TypeError, AttributeError) as exc:
                    logger.warning("Skipping malformed work item %r: %s", raw, exc)

        logger.info("Fetched details for %d/%d work item(s)", len(items), len(ids))
        return items

    @staticmethod
    def build_wiql(work_item_types: Sequence[str], state_clause: str = "") -> str:
        """Build a WIQL query selecting *work_item_types*, optionally filtered."""
        escaped = [t.replace("'", "''") for t in work_item_types]
        if len(escaped) == 1:
            type_clause = f"[System.WorkItemType] = '{escaped[0]}'"
        else:
            type_clause = "[System.WorkItemType] IN (" + ", ".join(f"'{t}'" for t in escaped) + ")"
        where = type_clause if not state_clause else f"{type_clause} AND {state_clause}"
        return (
            "Select [System.Id], [System.Title], [System.State], [System.AssignedTo], "
            "[Microsoft.VSTS.Scheduling.DueDate] From WorkItems "
            f"Where {where}"
        )

    # -- parsing --------------------------------------------------------------

    @classmethod
    def parse_work_item(cls, raw: dict[str, Any]) -> WorkItem:
        fields = raw.get("fields", {}) or {}
        raw_id = raw.get("id", fields.get("System.Id"))
        if raw_id is None:
            raise ValueError("work item has no id")
        return WorkItem(
            id=int(raw_id),
            title=str(fields.get("System.Title", "")),
            state=str(fields.get("System.State", "")),
            work_item_type=str(fields.get("System.WorkItemType", "")),
            assignee=cls._name(fields.get("System.AssignedTo")),
            due_date=cls._parse_dt(fields.get("Microsoft.VSTS.Scheduling.DueDate")),
            relations=tuple(
                RelationLink(
                    kind=str((rel.get("attributes") or {}).get("name") or rel.get("rel", "")),
                    url=str(rel.get("url", "")),
                )
                for rel in raw.get("relations") or []
            ),
        )

    # -- internals ------------------------------------------------------------

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Send a request with exponential backoff on 429."""
        params = dict(kwargs.pop("params", None) or {})
        params["api-version"] = self._settings.api_version
        for attempt in range(_MAX_RETRIES):
            resp = self._session.request(
                method, url, params=params, timeout=self._settings.request_timeout, **kwargs
            )
            if resp.status_code == 429 and attempt < _MAX_RETRIES - 1:
                delay = _BACKOFF_BASE * (2**attempt)
                logger.warning("Rate limited, retrying in %.1fs", delay)
                time.sleep(delay)
                continue
            resp.raise_for_status()
            return resp

        raise requests.HTTPError("retries exhausted")  # unreachable

    @staticmethod
    def _encode_pat(token: str) -> str:
        return base64.b64encode(f":{token}".encode()).decode("ascii")

    @staticmethod
    def _name(obj: Any) -> str | None:
        """Display name of an identity reference, without the e-mail."""
        if obj is None:
            return None
        if isinstance(obj, str):
            # Older API versions return "Jane Doe <jane@contoso.com>"
            return obj.split("<", 1)[0].strip() or obj
        if isinstance(obj, dict):
            return obj.get("displayName") or obj.get("uniqueName") or None
        return None

    @staticmethod
    def _parse_dt(value: Any) -> datetime | None:
        if value is None:
            return None
        from dateutil.parser import parse as dt_parse

        try:
            return dt_parse(str(value))
        except (ValueError, TypeError, OverflowError):
            return None
