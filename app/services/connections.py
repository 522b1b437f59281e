"""Connected-account storage.

A connected account links an entity to one authenticated application session
and carries the credentials used when executing that application's actions.
``MongoConnectionStore`` is the production store; ``InMemoryConnectionStore``
backs tests and local development.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Protocol
import logging
import uuid

from pymongo import ReturnDocument

from ..schemas.common import AuthScheme, ConnectedAccount, ConnectionStatus, DEFAULT_ENTITY_ID, normalize_entity_id


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return f"ca_{uuid.uuid4().hex}"


def _recency_key(account: ConnectedAccount) -> tuple[datetime, str]:
    # Newest first; equal timestamps fall back to the greater id
    return (account.created_at, account.id)


class ConnectionStore(Protocol):
    def create(
        self,
        app: str,
        credentials: dict[str, Any],
        *,
        entity_id: str = DEFAULT_ENTITY_ID,
        auth_scheme: AuthScheme = AuthScheme.oauth2,
        status: ConnectionStatus = ConnectionStatus.active,
        created_at: Optional[datetime] = None,
    ) -> ConnectedAccount: ...

    def get(self, connected_account_id: str) -> ConnectedAccount | None: ...

    def list(
        self,
        *,
        entity_id: Optional[str] = None,
        app: Optional[str] = None,
        status: Optional[ConnectionStatus] = None,
    ) -> list[ConnectedAccount]: ...

    def latest_active(self, entity_id: str, app: str) -> ConnectedAccount | None: ...

    def set_status(self, connected_account_id: str, status: ConnectionStatus) -> ConnectedAccount | None: ...

    def delete(self, connected_account_id: str) -> bool: ...


class InMemoryConnectionStore:
    """Dict-backed store. Not shared between processes."""

    def __init__(self) -> None:
        self._accounts: dict[str, ConnectedAccount] = {}

    def create(
        self,
        app: str,
        credentials: dict[str, Any],
        *,
        entity_id: str = DEFAULT_ENTITY_ID,
        auth_scheme: AuthScheme = AuthScheme.oauth2,
        status: ConnectionStatus = ConnectionStatus.active,
        created_at: Optional[datetime] = None,
    ) -> ConnectedAccount:
        account = ConnectedAccount(
            id=_new_id(),
            entity_id=normalize_entity_id(entity_id),
            app=app.lower(),
            status=status,
            auth_scheme=auth_scheme,
            credentials=dict(credentials),
            created_at=created_at or _now(),
        )
        self._accounts[account.id] = account
        return account

    def get(self, connected_account_id: str) -> ConnectedAccount | None:
        return self._accounts.get(connected_account_id)

    def list(
        self,
        *,
        entity_id: Optional[str] = None,
        app: Optional[str] = None,
        status: Optional[ConnectionStatus] = None,
    ) -> list[ConnectedAccount]:
        results = []
        for account in self._accounts.values():
            if entity_id is not None and account.entity_id != normalize_entity_id(entity_id):
                continue
            if app is not None and account.app != app.lower():
                continue
            if status is not None and account.status != status:
                continue
            results.append(account)
        return sorted(results, key=_recency_key, reverse=True)

    def latest_active(self, entity_id: str, app: str) -> ConnectedAccount | None:
        matches = self.list(entity_id=entity_id, app=app, status=ConnectionStatus.active)
        return matches[0] if matches else None

    def set_status(self, connected_account_id: str, status: ConnectionStatus) -> ConnectedAccount | None:
        account = self._accounts.get(connected_account_id)
        if account is None:
            return None
        updated = account.model_copy(update={"status": status, "updated_at": _now()})
        self._accounts[connected_account_id] = updated
        return updated

    def delete(self, connected_account_id: str) -> bool:
        return self._accounts.pop(connected_account_id, None) is not None


class MongoConnectionStore:
    """Connected accounts kept in the ``connected_accounts`` collection.

    Documents use the account id as ``_id``.
    """

    def __init__(self, collection=None) -> None:
        if collection is None:
            from ..db.mongo import connected_accounts_collection
            collection = connected_accounts_collection()
        self.collection = collection
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _to_account(doc: dict[str, Any] | None) -> ConnectedAccount | None:
        if not doc:
            return None
        data = dict(doc)
        data["id"] = data.pop("_id")
        return ConnectedAccount.model_validate(data)

    def create(
        self,
        app: str,
        credentials: dict[str, Any],
        *,
        entity_id: str = DEFAULT_ENTITY_ID,
        auth_scheme: AuthScheme = AuthScheme.oauth2,
        status: ConnectionStatus = ConnectionStatus.active,
        created_at: Optional[datetime] = None,
    ) -> ConnectedAccount:
        account_id = _new_id()
        doc = {
            "_id": account_id,
            "entity_id": normalize_entity_id(entity_id),
            "app": app.lower(),
            "status": status.value,
            "auth_scheme": auth_scheme.value,
            "credentials": dict(credentials),
            "created_at": created_at or _now(),
            "updated_at": None,
        }
        self.collection.insert_one(doc)
        self.logger.info("Created connection %s (entity=%s app=%s)", account_id, doc["entity_id"], doc["app"])
        return self._to_account(doc)

    def get(self, connected_account_id: str) -> ConnectedAccount | None:
        return self._to_account(self.collection.find_one({"_id": connected_account_id}))

    def list(
        self,
        *,
        entity_id: Optional[str] = None,
        app: Optional[str] = None,
        status: Optional[ConnectionStatus] = None,
    ) -> list[ConnectedAccount]:
        query: dict[str, Any] = {}
        if entity_id is not None:
            query["entity_id"] = normalize_entity_id(entity_id)
        if app is not None:
            query["app"] = app.lower()
        if status is not None:
            query["status"] = status.value
        cursor = self.collection.find(query).sort([("created_at", -1), ("_id", -1)])
        return [self._to_account(doc) for doc in cursor]

    def latest_active(self, entity_id: str, app: str) -> ConnectedAccount | None:
        doc = self.collection.find_one(
            {"entity_id": normalize_entity_id(entity_id), "app": app.lower(), "status": ConnectionStatus.active.value},
            sort=[("created_at", -1), ("_id", -1)],
        )
        return self._to_account(doc)

    def set_status(self, connected_account_id: str, status: ConnectionStatus) -> ConnectedAccount | None:
        doc = self.collection.find_one_and_update(
            {"_id": connected_account_id},
            {"$set": {"status": status.value, "updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_account(doc)

    def delete(self, connected_account_id: str) -> bool:
        return self.collection.delete_one({"_id": connected_account_id}).deleted_count == 1
