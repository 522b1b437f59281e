from fastapi import APIRouter, Depends, HTTPException, Response

from ..core.security import require_api_key
from ..schemas.common import ConnectedAccountOut, ConnectionCreate, ConnectionStatus
from ..services.connections import ConnectionStore
from .dependencies import get_connection_store


connections_router = APIRouter(
    prefix="/connected_accounts",
    tags=["connected_accounts"],
    dependencies=[Depends(require_api_key)],
)


def _not_found(connected_account_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Connected account '{connected_account_id}' not found")


@connections_router.post("", response_model=ConnectedAccountOut, status_code=201)
def create_connection(
    payload: ConnectionCreate,
    store: ConnectionStore = Depends(get_connection_store),
) -> ConnectedAccountOut:
    account = store.create(
        payload.app,
        payload.credentials,
        entity_id=payload.entity_id,
        auth_scheme=payload.auth_scheme,
        status=payload.status,
    )
    return ConnectedAccountOut.from_account(account)


@connections_router.get("", response_model=list[ConnectedAccountOut])
def list_connections(
    entity_id: str | None = None,
    app: str | None = None,
    status: ConnectionStatus | None = None,
    store: ConnectionStore = Depends(get_connection_store),
) -> list[ConnectedAccountOut]:
    accounts = store.list(entity_id=entity_id, app=app, status=status)
    return [ConnectedAccountOut.from_account(a) for a in accounts]


@connections_router.get("/{connected_account_id}", response_model=ConnectedAccountOut)
def get_connection(
    connected_account_id: str,
    store: ConnectionStore = Depends(get_connection_store),
) -> ConnectedAccountOut:
    account = store.get(connected_account_id)
    if account is None:
        raise _not_found(connected_account_id)
    return ConnectedAccountOut.from_account(account)


@connections_router.post("/{connected_account_id}/disable", response_model=ConnectedAccountOut)
def disable_connection(
    connected_account_id: str,
    store: ConnectionStore = Depends(get_connection_store),
) -> ConnectedAccountOut:
    account = store.set_status(connected_account_id, ConnectionStatus.inactive)
    if account is None:
        raise _not_found(connected_account_id)
    return ConnectedAccountOut.from_account(account)


@connections_router.post("/{connected_account_id}/enable", response_model=ConnectedAccountOut)
def enable_connection(
    connected_account_id: str,
    store: ConnectionStore = Depends(get_connection_store),
) -> ConnectedAccountOut:
    account = store.set_status(connected_account_id, ConnectionStatus.active)
    if account is None:
        raise _not_found(connected_account_id)
    return ConnectedAccountOut.from_account(account)


@connections_router.delete("/{connected_account_id}", status_code=204)
def delete_connection(
    connected_account_id: str,
    store: ConnectionStore = Depends(get_connection_store),
) -> Response:
    if not store.delete(connected_account_id):
        raise _not_found(connected_account_id)
    return Response(status_code=204)
