from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from gitlore.crawlers.github.client import GitHubClient

WEEK_SECONDS = 604800
FIRST_WEEK = 1704067200


def weekly_payload(weeks: int = 52, *, per_week: Callable[[int], int] = lambda i: i % 3) -> list[dict[str, Any]]:
    payload = []
    for i in range(weeks):
        total = per_week(i)
        payload.append({"total": total, "w": FIRST_WEEK + i * WEEK_SECONDS, "days": [total, 0, 0, 0, 0, 0, 0]})
    return payload


def repo_payload(full_name: str, **overrides: Any) -> dict[str, Any]:
    owner, name = full_name.split("/", 1)
    payload: dict[str, Any] = {
        "name": name,
        "full_name": full_name,
        "description": f"{name} description",
        "private": False,
        "fork": False,
        "archived": False,
        "disabled": False,
        "language": "Python",
        "size": 2048,
        "stargazers_count": 3,
        "watchers_count": 3,
        "forks_count": 1,
        "open_issues_count": 0,
        "default_branch": "main",
        "created_at": "2020-01-01T00:00:00Z",
        "updated_at": "2024-05-01T12:00:00Z",
        "pushed_at": "2024-05-01T11:00:00Z",
        "html_url": f"https://github.com/{full_name}",
        "homepage": None,
        "topics": ["cli"],
        "owner": {"login": owner, "type": "User"},
        "license": {"key": "mit", "name": "MIT License", "spdx_id": "MIT"},
    }
    payload.update(overrides)
    return payload


def commit_payload(message: str = "Initial commit", date: str = "2024-05-01T10:00:00Z") -> list[dict[str, Any]]:
    return [{"sha": "abc123", "commit": {"author": {"date": date}, "message": message}}]


class FakeGitHubAPI:
    """Routes MockTransport requests to canned (status, payload) answers.

    A route maps a URL path to one answer or to a list of answers consumed
    in order; the last answer repeats once the list is exhausted.
    """

    def __init__(self, repos: list[dict[str, Any]] | None = None) -> None:
        self.repos = repos or []
        self.routes: dict[str, list[tuple[int, Any]]] = {}
        self.calls: list[str] = []

    def route(self, path: str, *answers: tuple[int, Any]) -> "FakeGitHubAPI":
        self.routes[path] = list(answers)
        return self

    def calls_to(self, path: str) -> int:
        return sum(1 for call in self.calls if call == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)

        if path == "/user/repos":
            page = int(request.url.params.get("page", "1"))
            per_page = int(request.url.params.get("per_page", "100"))
            start = (page - 1) * per_page
            return httpx.Response(200, json=self.repos[start : start + per_page])

        answers = self.routes.get(path)
        if not answers:
            return httpx.Response(404, json={"message": "Not Found"})

        status, payload = answers.pop(0) if len(answers) > 1 else answers[0]
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)

    def client(self, token: str = "test-token") -> GitHubClient:
        return GitHubClient(token=token, transport=httpx.MockTransport(self.handler))


class SleepRecorder:
    """Stands in for asyncio.sleep without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_api() -> FakeGitHubAPI:
    return FakeGitHubAPI()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()
