"""MongoDB store of notified updates, plus the seen-check and persist nodes."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from langchain_core.runnables import RunnableConfig
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from .config import DB_NAME, MONGO_URL
from .errors import StoreError
from .models import Update
from .state import AntennaState

logger = logging.getLogger(__name__)

UPDATES_COLLECTION = "terminal_updates"

_client = None
_db = None


def get_db():
    global _client, _db
    if _db is None:
        _client = AsyncIOMotorClient(MONGO_URL)
        _db = _client[DB_NAME]
    return _db


class UpdateStore:
    """Append-only record of updates that have already been notified.

    Identity is the exact ``body`` string; a unique index keeps at most one
    document per body and inserts never overwrite an existing one.
    """

    def __init__(self, collection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        try:
            await self.collection.create_index("body", unique=True)
        except PyMongoError as e:
            raise StoreError(f"creating body index failed: {e}") from e

    async def find(self, body: str) -> Optional[Update]:
        try:
            doc = await self.collection.find_one({"body": body}, {"_id": 0, "title": 1, "body": 1})
        except PyMongoError as e:
            raise StoreError(f"lookup failed: {e}") from e
        if doc is None:
            return None
        return Update(title=doc.get("title", ""), body=doc["body"])

    async def insert(self, update: Update, run_id: str = "") -> None:
        try:
            await self.collection.update_one(
                {"body": update.body},
                {"$setOnInsert": {
                    "title": update.title,
                    "notified_at": datetime.now(timezone.utc).isoformat(),
                    "run_id": run_id,
                }},
                upsert=True,
            )
        except PyMongoError as e:
            raise StoreError(f"insert failed for '{update.body[:60]}': {e}") from e

    async def recent(self, limit: int = 50) -> List[Dict]:
        # to_list(0) would mean "no limit"
        limit = max(1, limit)
        try:
            return await self.collection.find(
                {}, {"_id": 0}
            ).sort("notified_at", -1).to_list(limit)
        except PyMongoError as e:
            raise StoreError(f"listing updates failed: {e}") from e


def get_store() -> UpdateStore:
    return UpdateStore(get_db()[UPDATES_COLLECTION])


async def check_seen(state: AntennaState, config: RunnableConfig) -> Dict:
    """Look every extracted update up concurrently; keep the unseen ones oldest first."""
    store = config["configurable"]["store"]
    chronological = list(reversed(state.get("updates", [])))

    # All lookups are joined before any failure is acted upon.
    results = await asyncio.gather(
        *[store.find(u.body) for u in chronological], return_exceptions=True
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result

    novel = []
    batch_bodies = set()
    for update, existing in zip(chronological, results):
        if existing is not None or update.body in batch_bodies:
            continue
        batch_bodies.add(update.body)
        novel.append(update)

    logger.info(f"{len(novel)} of {len(chronological)} updates are new")
    return {
        "novel": novel,
        "stats": {**state.get("stats", {}), "novel": len(novel)},
    }


async def persist_sent(state: AntennaState, config: RunnableConfig) -> Dict:
    """Record delivered updates. Failures are warnings: the messages already went out."""
    sent = state.get("sent", [])
    stats = {**state.get("stats", {})}
    if not sent:
        return {"stats": {**stats, "persisted": 0}}

    store = config["configurable"]["store"]
    run_id = state.get("run_id", "")
    results = await asyncio.gather(
        *[store.insert(u, run_id) for u in sent], return_exceptions=True
    )

    errors = list(state.get("errors", []))
    persisted = 0
    for update, result in zip(sent, results):
        if isinstance(result, BaseException):
            logger.warning(f"Could not record '{update}' as notified: {result}")
            errors.append(f"persist: {result}")
        else:
            persisted += 1

    logger.info(f"Recorded {persisted}/{len(sent)} delivered updates")
    return {"stats": {**stats, "persisted": persisted}, "errors": errors}
