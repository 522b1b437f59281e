from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection

from ..core.config import get_settings


_client: MongoClient | None = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        settings = get_settings()
        _client = MongoClient(settings.mongo_uri, tz_aware=True)
    return _client


def get_db():
    settings = get_settings()
    return get_client()[settings.mongo_db]


def connected_accounts_collection() -> Collection:
    return get_db()["connected_accounts"]


def executions_collection() -> Collection:
    """Collection holding one record per action execution attempt."""
    return get_db()["executions"]


def ensure_indexes() -> None:
    accounts = connected_accounts_collection()
    execs = executions_collection()

    # Credential resolution: newest active connection per entity and app
    accounts.create_index(
        [("entity_id", ASCENDING), ("app", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)]
    )
    accounts.create_index([("created_at", DESCENDING)])

    execs.create_index([("entity_id", ASCENDING), ("timestamp", DESCENDING)])
    execs.create_index([("action", ASCENDING), ("timestamp", DESCENDING)])
    execs.create_index([("timestamp", DESCENDING)])
