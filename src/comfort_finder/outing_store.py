"""Outing persistence: a Notion database when configured, a local JSON file otherwise.

Both stores recompute ``total_comfort`` on every save; neither keeps any
state beyond what it reads from its backing store.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from notion_client import Client as NotionClient
from notion_client import APIResponseError
from pydantic import ValidationError

from comfort_finder.config import Config
from comfort_finder.models import Outing
from comfort_finder.outings import build_outing

logger = logging.getLogger(__name__)

# Notion caps a single rich_text item at 2000 characters
_RICH_TEXT_LIMIT = 2000


class LocalOutingStore:
    """Outings in a JSON file, newest first."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def list(self) -> list[Outing]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text())
            return [Outing.model_validate(o) for o in raw]
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error("Could not read outings from %s: %s", self.path, e)
            return []

    def get(self, outing_id: str) -> Outing | None:
        return next((o for o in self.list() if o.id == outing_id), None)

    def save(self, data: Outing | dict) -> Outing:
        outing = build_outing(data)
        outings = self.list()
        index = next((i for i, o in enumerate(outings) if o.id == outing.id), None)
        if index is not None:
            outing.created_at = outings[index].created_at or outing.created_at
            outings[index] = outing
        else:
            outings.insert(0, outing)
        self._write(outings)
        return outing

    def delete(self, outing_id: str) -> bool:
        outings = self.list()
        remaining = [o for o in outings if o.id != outing_id]
        if len(remaining) == len(outings):
            return False
        self._write(remaining)
        return True

    def _write(self, outings: list[Outing]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps([o.model_dump(mode="json", by_alias=True) for o in outings], indent=2))


class NotionOutingStore:
    """Outings as pages in a Notion database.

    Expected properties: Name (title), Outing ID (rich_text), Date (date),
    Total Comfort (number), Stops (rich_text holding the stops as JSON).
    """

    def __init__(self, notion: NotionClient, database_id: str):
        self.notion = notion
        self.database_id = database_id

    def list(self) -> list[Outing]:
        try:
            results = self.notion.databases.query(
                database_id=self.database_id,
                sorts=[{"timestamp": "created_time", "direction": "descending"}],
            )
        except APIResponseError as e:
            logger.error("Error fetching outings: %s", e)
            return []
        return [o for o in (_page_to_outing(p) for p in results.get("results", [])) if o]

    def get(self, outing_id: str) -> Outing | None:
        try:
            page = self._find_page(outing_id)
        except APIResponseError as e:
            logger.error("Error looking up outing %s: %s", outing_id, e)
            return None
        return _page_to_outing(page) if page else None

    def save(self, data: Outing | dict) -> Outing | None:
        outing = build_outing(data)
        properties = _outing_to_notion_properties(outing)
        try:
            existing = self._find_page(outing.id)
            if existing:
                self.notion.pages.update(page_id=existing["id"], properties=properties)
            else:
                self.notion.pages.create(parent={"database_id": self.database_id}, properties=properties)
        except APIResponseError as e:
            logger.error("Error saving outing '%s': %s", outing.name, e)
            return None
        logger.info("Saved outing '%s' (comfort %d)", outing.name, outing.total_comfort)
        return outing

    def delete(self, outing_id: str) -> bool:
        try:
            page = self._find_page(outing_id)
            if not page:
                return False
            self.notion.pages.update(page_id=page["id"], archived=True)
        except APIResponseError as e:
            logger.error("Error deleting outing %s: %s", outing_id, e)
            return False
        return True

    def _find_page(self, outing_id: str) -> dict | None:
        """Lookup errors propagate; ``None`` means no page has this outing id."""
        results = self.notion.databases.query(
            database_id=self.database_id,
            filter={"property": "Outing ID", "rich_text": {"equals": outing_id}},
        )
        return results["results"][0] if results.get("results") else None


def _outing_to_notion_properties(outing: Outing) -> dict:
    stops_json = json.dumps([s.model_dump(mode="json", by_alias=True, exclude_none=True) for s in outing.stops])
    chunks = [stops_json[i:i + _RICH_TEXT_LIMIT] for i in range(0, len(stops_json), _RICH_TEXT_LIMIT)]
    return {
        "Name": {"title": [{"text": {"content": outing.name}}]},
        "Outing ID": {"rich_text": [{"text": {"content": outing.id}}]},
        "Date": {"date": {"start": outing.date}},
        "Total Comfort": {"number": outing.total_comfort},
        "Stops": {"rich_text": [{"text": {"content": chunk}} for chunk in chunks]},
    }


def _page_to_outing(page: dict) -> Outing | None:
    """Convert a Notion page back into an Outing."""
    props = page.get("properties", {})

    def text(prop_name: str) -> str:
        prop = props.get(prop_name, {})
        items = prop.get(prop.get("type", ""), []) if prop.get("type") in ("title", "rich_text") else []
        return "".join(item.get("plain_text", "") for item in items)

    try:
        stops_raw = text("Stops")
        date_prop = props.get("Date", {}).get("date") or {}
        return Outing(
            id=text("Outing ID") or page.get("id", ""),
            name=text("Name") or "My Outing",
            date=date_prop.get("start", ""),
            stops=json.loads(stops_raw) if stops_raw else [],
            total_comfort=props.get("Total Comfort", {}).get("number") or 0,
            created_at=page.get("created_time"),
            updated_at=page.get("last_edited_time"),
        )
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Skipping unreadable outing page %s: %s", page.get("id"), e)
        return None


def get_outing_store(config: Config) -> LocalOutingStore | NotionOutingStore:
    if config.notion_enabled:
        return NotionOutingStore(NotionClient(auth=config.notion_api_key), config.notion_outings_database_id)
    return LocalOutingStore(config.outings_path)
