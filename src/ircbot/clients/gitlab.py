"""GitLab REST v4 lookups: project id by namespace/name, issue by iid."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from cachetools import TTLCache
from loguru import logger

from ircbot.clients.http import JsonClient, json_path
from ircbot.config import Config
from ircbot.core.errors import UpstreamError

SOURCE = "gitlab"


class GitlabClient:
    """Reads ``gitlab.uri`` and ``gitlab.api_key`` from config on every call."""

    def __init__(self, http: JsonClient, config: Config, *, project_ttl: int = 3600) -> None:
        self._http = http
        self._config = config
        self._projects: TTLCache[tuple[str, str], int] = TTLCache(maxsize=256, ttl=float(project_ttl))

    @property
    def configured(self) -> bool:
        return bool(self._config.gitlab_uri and self._config.gitlab_api_key)

    def _headers(self) -> dict[str, str]:
        return {"PRIVATE-TOKEN": self._config.gitlab_api_key}

    def _url(self, path: str) -> str:
        return f"{self._config.gitlab_uri}/api/v4/{path}"

    async def get_project_id(self, namespace: str, project: str) -> int | None:
        """Resolve ``namespace/project`` to its numeric id. None if unknown."""
        key = (namespace, project)
        try:
            return self._projects[key]
        except KeyError:
            pass
        full_path = quote(f"{namespace}/{project}", safe="")
        data = await self._http.get_json(
            self._url(f"projects/{full_path}"),
            source=SOURCE,
            headers=self._headers(),
            allow_missing=True,
        )
        if data is None:
            logger.debug("GitLab project {}/{} not found", namespace, project)
            return None
        project_id = int(json_path(data, "id", source=SOURCE))
        self._projects[key] = project_id
        return project_id

    async def get_issue(self, project_id: int, issue_id: int) -> dict[str, Any] | None:
        """Fetch one issue by its project-local id. None if it does not exist."""
        data = await self._http.get_json(
            self._url(f"projects/{project_id}/issues/{issue_id}"),
            source=SOURCE,
            headers=self._headers(),
            allow_missing=True,
        )
        if data is not None and not isinstance(data, dict):
            raise UpstreamError("GitLab issue payload is not an object", source=SOURCE, code="bad_payload")
        return data
