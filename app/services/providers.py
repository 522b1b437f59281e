"""Provider handlers that talk to the third-party applications.

Each handler receives a ``ProviderContext`` (HTTP client, base URL and the
credentials of the resolved connected account) plus the validated params
model of its action, and returns the ``data`` mapping of a successful
response. Failures reported by the application raise ``ProviderError``;
network failures raise ``ActionTransportError``.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Annotated, Any, Optional
from urllib.parse import quote
import logging

import httpx
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from ..core.errors import ActionTransportError, ProviderError


logger = logging.getLogger(__name__)

GITHUB_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}

TOKEN_KEYS = ("access_token", "api_key", "token")


@dataclass
class ProviderContext:
    action: str
    app: str
    http: httpx.Client
    base_url: str
    credentials: dict[str, Any] = field(default_factory=dict)

    def bearer_headers(self) -> dict[str, str]:
        for key in TOKEN_KEYS:
            token = self.credentials.get(key)
            if token:
                return {"Authorization": f"Bearer {token}"}
        raise ProviderError(self.app, "connected account has no access token")

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = self.base_url.rstrip("/") + path
        logger.debug("%s %s (%s)", method, url, self.action)
        try:
            resp = self.http.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise ActionTransportError(self.action, str(e)) from e
        if resp.status_code >= 400:
            raise ProviderError(self.app, _error_message(resp), resp.status_code)
        return resp


def _error_message(resp: httpx.Response) -> str:
    """Pull a readable message out of an error response."""
    message = ""
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            message = str(err.get("message") or "")
        elif err:
            message = str(err)
        message = message or str(body.get("message") or "")
    if not message:
        message = (resp.text or "").strip()[:200] or resp.reason_phrase

    if resp.status_code in (401, 403):
        return f"missing permissions ({message})"
    return message


class _Params(BaseModel):
    model_config = ConfigDict(extra="forbid")


def _not_dot_segment(value: str) -> str:
    if set(value) == {"."}:
        raise ValueError("must not be a relative path segment")
    return value


# One path segment of a GitHub URL: account or repository name
GithubName = Annotated[str, Field(pattern=r"^[A-Za-z0-9_.-]+$"), AfterValidator(_not_dot_segment)]


def _segment(value: str) -> str:
    return quote(value, safe="")


# ========================================
# GitHub
# ========================================

class GithubCreateIssueParams(_Params):
    owner: GithubName = Field(description="The account owner of the repository.")
    repo: GithubName = Field(description="The name of the repository without the .git extension.")
    title: str = Field(description="The title of the issue.")
    body: Optional[str] = Field(default=None, description="The contents of the issue.")
    labels: list[str] = Field(default_factory=list, description="Labels to associate with this issue.")
    assignees: list[str] = Field(default_factory=list, description="Logins for users to assign to this issue.")


class GithubRepositoryParams(_Params):
    owner: GithubName = Field(description="The account owner of the repository.")
    repo: GithubName = Field(description="The name of the repository without the .git extension.")


class NoParams(_Params):
    pass


def github_create_an_issue(ctx: ProviderContext, params: GithubCreateIssueParams) -> dict[str, Any]:
    payload: dict[str, Any] = {"title": params.title}
    if params.body is not None:
        payload["body"] = params.body
    if params.labels:
        payload["labels"] = params.labels
    if params.assignees:
        payload["assignees"] = params.assignees

    resp = ctx.request(
        "POST",
        f"/repos/{_segment(params.owner)}/{_segment(params.repo)}/issues",
        json=payload,
        headers={**GITHUB_HEADERS, **ctx.bearer_headers()},
    )
    issue = resp.json()
    return {
        "id": issue.get("id"),
        "number": issue.get("number"),
        "html_url": issue.get("html_url"),
        "title": issue.get("title"),
        "state": issue.get("state"),
    }


def github_star_repository(ctx: ProviderContext, params: GithubRepositoryParams) -> dict[str, Any]:
    ctx.request(
        "PUT",
        f"/user/starred/{_segment(params.owner)}/{_segment(params.repo)}",
        headers={**GITHUB_HEADERS, **ctx.bearer_headers()},
    )
    return {"starred": True, "repository": f"{params.owner}/{params.repo}"}


def github_get_authenticated_user(ctx: ProviderContext, params: NoParams) -> dict[str, Any]:
    resp = ctx.request("GET", "/user", headers={**GITHUB_HEADERS, **ctx.bearer_headers()})
    user = resp.json()
    return {
        "login": user.get("login"),
        "id": user.get("id"),
        "name": user.get("name"),
        "html_url": user.get("html_url"),
    }


# ========================================
# Gmail
# ========================================

class GmailSendEmailParams(_Params):
    recipient_email: str = Field(description="Email address of the recipient.")
    subject: str = Field(description="Subject line of the email.")
    body: str = Field(description="Email content, plain text or HTML.")
    cc: list[str] = Field(default_factory=list, description="Addresses to copy.")
    is_html: bool = Field(default=False, description="Send the body as text/html.")
    user_id: str = Field(default="me", description="Gmail user id; 'me' is the authenticated user.")


def _build_raw_message(params: GmailSendEmailParams) -> str:
    msg = EmailMessage()
    msg["To"] = params.recipient_email
    msg["Subject"] = params.subject
    if params.cc:
        msg["Cc"] = ", ".join(params.cc)
    if params.is_html:
        msg.set_content(params.body, subtype="html")
    else:
        msg.set_content(params.body)
    return base64.urlsafe_b64encode(msg.as_bytes()).decode("ascii")


def gmail_send_email(ctx: ProviderContext, params: GmailSendEmailParams) -> dict[str, Any]:
    resp = ctx.request(
        "POST",
        f"/gmail/v1/users/{params.user_id}/messages/send",
        json={"raw": _build_raw_message(params)},
        headers=ctx.bearer_headers(),
    )
    sent = resp.json()
    return {"id": sent.get("id"), "thread_id": sent.get("threadId"), "label_ids": sent.get("labelIds") or []}


# ========================================
# Slack
# ========================================

class SlackSendMessageParams(_Params):
    channel: str = Field(description="Channel id or name to post to.")
    text: str = Field(description="Message text.")


def slack_send_message(ctx: ProviderContext, params: SlackSendMessageParams) -> dict[str, Any]:
    resp = ctx.request(
        "POST",
        "/chat.postMessage",
        json={"channel": params.channel, "text": params.text},
        headers=ctx.bearer_headers(),
    )
    body = resp.json()
    # Slack reports failures with HTTP 200 and ok=false
    if not body.get("ok"):
        raise ProviderError(ctx.app, str(body.get("error") or "unknown_error"))
    return {"channel": body.get("channel"), "ts": body.get("ts")}


# ========================================
# Hacker News (no auth)
# ========================================

class HackernewsFrontpageParams(_Params):
    limit: int = Field(default=10, ge=1, le=50, description="Number of stories to return.")


def hackernews_get_frontpage(ctx: ProviderContext, params: HackernewsFrontpageParams) -> dict[str, Any]:
    resp = ctx.request("GET", "/search", params={"tags": "front_page", "hitsPerPage": params.limit})
    hits = resp.json().get("hits") or []
    stories = [
        {
            "title": h.get("title"),
            "url": h.get("url"),
            "points": h.get("points"),
            "author": h.get("author"),
            "object_id": h.get("objectID"),
        }
        for h in hits[: params.limit]
    ]
    return {"stories": stories}
