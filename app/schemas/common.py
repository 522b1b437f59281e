from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


DEFAULT_ENTITY_ID = "default"


def normalize_entity_id(entity_id: Optional[str]) -> str:
    """Blank or missing entity ids mean the shared default entity."""
    value = (entity_id or "").strip()
    return value or DEFAULT_ENTITY_ID


class ConnectionStatus(str, Enum):
    active = "ACTIVE"
    initiated = "INITIATED"
    inactive = "INACTIVE"
    expired = "EXPIRED"
    failed = "FAILED"


class AuthScheme(str, Enum):
    oauth2 = "OAUTH2"
    api_key = "API_KEY"
    bearer_token = "BEARER_TOKEN"
    no_auth = "NO_AUTH"


class ActionRequest(BaseModel):
    action: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    entity_id: Optional[str] = None
    connected_account_id: Optional[str] = None


class ExecuteActionBody(BaseModel):
    """Request body of the execute endpoint; the action comes from the path."""

    params: dict[str, Any] = Field(default_factory=dict)
    entity_id: Optional[str] = None
    connected_account_id: Optional[str] = None


class ActionResponse(BaseModel):
    successful: bool
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_outcome(self) -> "ActionResponse":
        if self.successful and self.data is None:
            raise ValueError("successful response requires data")
        if not self.successful and not self.error:
            raise ValueError("failed response requires error")
        return self

    @classmethod
    def success(cls, data: dict[str, Any] | None = None) -> "ActionResponse":
        return cls(successful=True, data=data or {})

    @classmethod
    def failure(cls, error: str) -> "ActionResponse":
        return cls(successful=False, error=error or "Unknown error")


class ActionSummary(BaseModel):
    name: str
    app: str
    description: str
    parameters: dict[str, Any]
    requires_auth: bool = True


class ConnectedAccount(BaseModel):
    id: str
    entity_id: str = DEFAULT_ENTITY_ID
    app: str
    status: ConnectionStatus = ConnectionStatus.active
    auth_scheme: AuthScheme = AuthScheme.oauth2
    credentials: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: Optional[datetime] = None

    def is_active(self) -> bool:
        return self.status == ConnectionStatus.active


class ConnectedAccountOut(BaseModel):
    """Public view of a connected account. Credentials are never exposed."""

    id: str
    entity_id: str
    app: str
    status: ConnectionStatus
    auth_scheme: AuthScheme
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account: ConnectedAccount) -> "ConnectedAccountOut":
        return cls(**account.model_dump(exclude={"credentials"}))


class ConnectionCreate(BaseModel):
    entity_id: str = DEFAULT_ENTITY_ID
    app: str = Field(min_length=1)
    auth_scheme: AuthScheme = AuthScheme.oauth2
    credentials: dict[str, Any] = Field(default_factory=dict)
    status: ConnectionStatus = ConnectionStatus.active


class ExecutionRecord(BaseModel):
    action: str
    app: str
    entity_id: str
    connected_account_id: Optional[str] = None
    successful: bool
    error: Optional[str] = None
    timestamp: datetime


class AgentRunRequest(BaseModel):
    prompt: str = Field(min_length=1)
    actions: list[str] = Field(default_factory=list)
    apps: list[str] = Field(default_factory=list)
    entity_id: str = DEFAULT_ENTITY_ID
    connected_account_id: Optional[str] = None
    max_steps: int = Field(default=8, ge=1, le=25)


class AgentRunResult(BaseModel):
    reply: str
    tool_results: list[dict[str, Any]] = Field(default_factory=list)
