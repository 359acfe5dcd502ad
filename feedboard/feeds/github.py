"""GitHub notifications for the authenticated user."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

GITHUB_API = "https://api.github.com"
GITHUB_WEB = "https://github.com"


@dataclass
class GithubNotification:
    id: str
    title: str
    kind: str
    repo: str
    reason: str
    unread: bool
    updated_at: str
    url: str = ""


def web_url(api_url: Optional[str], repo: str = "") -> str:
    """Turn a notification subject's API URL into the page a browser can show.

    Subjects without one (such as some discussions) fall back to the repository.
    """
    if api_url and api_url.startswith(f"{GITHUB_API}/repos/"):
        path = api_url[len(f"{GITHUB_API}/repos/") :]
        return f"{GITHUB_WEB}/" + path.replace("/pulls/", "/pull/")
    return f"{GITHUB_WEB}/{repo}" if repo else ""


def fetch_notifications(
    session: requests.Session, token: str, limit: int = 20, timeout: float = 10
) -> list[GithubNotification]:
    response = session.get(
        f"{GITHUB_API}/notifications",
        headers={
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        },
        params={"per_page": limit},
        timeout=timeout,
    )
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, list):
        raise ValueError("notifications payload is not a JSON array")

    notifications = []
    for n in data[:limit]:
        subject = n.get("subject") or {}
        notifications.append(
            GithubNotification(
                id=str(n.get("id", "")),
                title=subject.get("title", ""),
                kind=subject.get("type", ""),
                repo=(n.get("repository") or {}).get("full_name", ""),
                reason=n.get("reason", ""),
                unread=bool(n.get("unread", False)),
                updated_at=n.get("updated_at", ""),
                url=web_url(subject.get("url"), (n.get("repository") or {}).get("full_name", "")),
            )
        )
    return notifications
