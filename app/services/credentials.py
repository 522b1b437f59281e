"""Credential resolution for action execution.

Rules, in order:

1. A missing ``entity_id`` means the shared ``"default"`` entity.
2. An explicit ``connected_account_id`` picks that stored connection directly.
   It must exist, be ACTIVE and belong to the action's app; the entity is not
   checked.
3. Otherwise the most recently created ACTIVE connection for the entity and
   app is used. Equal ``created_at`` values are ordered by the greater id.

Any failure raises an ``ExecutionError`` subclass so the executor can report
it as a structured result.
"""

from __future__ import annotations

from typing import Optional
import logging

from ..core.errors import ConnectionNotFoundError, NoActiveConnectionError
from ..schemas.common import ConnectedAccount, normalize_entity_id
from .connections import ConnectionStore


resolve_entity_id = normalize_entity_id


class CredentialResolver:
    def __init__(self, store: ConnectionStore) -> None:
        self.store = store
        self.logger = logging.getLogger(__name__)

    def resolve(
        self,
        app: str,
        entity_id: Optional[str] = None,
        connected_account_id: Optional[str] = None,
    ) -> ConnectedAccount:
        entity = resolve_entity_id(entity_id)
        app = app.lower()

        if connected_account_id:
            account = self.store.get(connected_account_id)
            if account is None:
                raise ConnectionNotFoundError(connected_account_id)
            if account.app != app:
                raise NoActiveConnectionError(
                    entity, app, f"connected account {account.id} belongs to '{account.app}'"
                )
            if not account.is_active():
                raise NoActiveConnectionError(
                    entity, app, f"connected account {account.id} is {account.status.value}"
                )
            self.logger.debug("Using explicit connection %s for %s", account.id, app)
            return account

        account = self.store.latest_active(entity, app)
        if account is None:
            raise NoActiveConnectionError(entity, app)
        self.logger.debug("Selected connection %s for entity=%s app=%s", account.id, entity, app)
        return account
