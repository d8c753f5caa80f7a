"""Nobl9 REST client.

Authenticates with the OAuth2 client-credentials grant and maps HTTP failures
onto the bot error taxonomy so the recovery policy can classify them.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Generator
from urllib.parse import quote

import httpx

from projectbot.backend.base import NameCheck, Project
from projectbot.config.credentials import Credentials
from projectbot.errors import (
    BotError,
    ConfigurationError,
    ConflictError,
    InternalError,
    OperationTimeoutError,
    ValidationError,
    kind_for_status,
)
from projectbot.observability.logging import get_logger

logger = get_logger(__name__)

__all__ = ["Nobl9Client", "ClientCredentialsAuth"]

# Refresh tokens slightly before they expire.
_TOKEN_EXPIRY_MARGIN_S = 30.0


class ClientCredentialsAuth(httpx.Auth):
    """httpx auth flow for the OAuth2 client-credentials grant.

    The token is fetched lazily, cached until shortly before expiry and
    refreshed once when the API answers 401.
    """

    requires_response_body = True

    def __init__(self, client_id: str, client_secret: str, token_url: str, scope: str = "api"):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.scope = scope
        self._lock = threading.Lock()
        self._token: str | None = None
        self._expires_at = 0.0

    def _token_valid(self) -> bool:
        with self._lock:
            return self._token is not None and time.monotonic() < self._expires_at

    def _build_token_request(self) -> httpx.Request:
        return httpx.Request(
            "POST",
            self.token_url,
            data={"grant_type": "client_credentials", "scope": self.scope},
            auth=(self.client_id, self.client_secret),
        )

    def _update_token(self, response: httpx.Response) -> None:
        if response.status_code != 200:
            raise ConfigurationError(
                f"Nobl9 authentication failed with status {response.status_code}"
            )
        try:
            payload = response.json()
            token = str(payload["access_token"])
        except (ValueError, KeyError) as exc:
            raise InternalError("malformed token response", cause=exc) from exc
        expires_in = float(payload.get("expires_in") or 3600)
        with self._lock:
            self._token = token
            self._expires_at = time.monotonic() + max(0.0, expires_in - _TOKEN_EXPIRY_MARGIN_S)
        logger.debug("oauth_token_refreshed", expires_in=expires_in)

    def _apply(self, request: httpx.Request) -> None:
        with self._lock:
            request.headers["Authorization"] = f"Bearer {self._token}"

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if not self._token_valid():
            token_response = yield self._build_token_request()
            self._update_token(token_response)

        self._apply(request)
        response = yield request

        if response.status_code == 401:
            token_response = yield self._build_token_request()
            self._update_token(token_response)
            self._apply(request)
            yield request


def _segment(value: str) -> str:
    return quote(value, safe="")


class Nobl9Client:
    """Synchronous client implementing the :class:`ProjectBackend` contract."""

    def __init__(
        self,
        credentials: Credentials,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        credentials.require_complete()
        self.base_url = credentials.url.rstrip("/")
        self.organization = credentials.organization
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            auth=ClientCredentialsAuth(
                credentials.client_id,
                credentials.client_secret,
                f"{self.base_url}/oauth/token",
            ),
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Nobl9Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _org_path(self, *segments: str) -> str:
        parts = "/".join(_segment(s) for s in segments)
        return f"/api/v1/orgs/{_segment(self.organization)}/{parts}"

    def _send(self, method: str, path: str, json: Any = None) -> httpx.Response:
        try:
            return self._client.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            raise OperationTimeoutError(f"{method} {path} timed out", cause=exc) from exc
        except httpx.TransportError as exc:
            raise InternalError(f"{method} {path} failed", cause=exc) from exc

    @staticmethod
    def _check_status(
        response: httpx.Response, method: str, path: str, expected: tuple[int, ...]
    ) -> None:
        if response.status_code not in expected:
            kind = kind_for_status(response.status_code)
            detail = response.text.strip()[:200]
            message = f"{method} {path} returned {response.status_code}"
            if detail:
                message = f"{message}: {detail}"
            raise BotError(message, kind=kind)

    def _request(
        self,
        method: str,
        path: str,
        *,
        expected: tuple[int, ...] = (200,),
        json: Any = None,
    ) -> httpx.Response:
        response = self._send(method, path, json=json)
        self._check_status(response, method, path, expected)
        return response

    def _get_optional(self, path: str) -> httpx.Response | None:
        """GET ``path``; None when the resource does not exist."""
        response = self._send("GET", path)
        if response.status_code == 404:
            return None
        self._check_status(response, "GET", path, (200,))
        return response

    def get_project(self, name: str) -> Project | None:
        response = self._get_optional(self._org_path("projects", name))
        if response is None:
            return None
        return Project.from_dict(response.json())

    def validate_project_name(self, name: str) -> NameCheck:
        project = self.get_project(name)
        if project is None:
            return NameCheck(available=True)
        return NameCheck(available=False, current_owner=project.owner)

    def create_project(self, name: str, description: str) -> Project:
        response = self._request(
            "POST",
            self._org_path("projects"),
            expected=(200, 201),
            json={"name": name, "description": description},
        )
        logger.info("project_created", project=name)
        try:
            return Project.from_dict(response.json())
        except ValueError:
            return Project(name=name, description=description)

    def list_projects(self) -> list[Project]:
        response = self._request("GET", self._org_path("projects"))
        payload = response.json()
        items = payload.get("projects", []) if isinstance(payload, dict) else payload
        return [Project.from_dict(item) for item in items or []]

    def validate_user(self, email: str) -> bool:
        response = self._get_optional(self._org_path("users", email))
        return response is not None

    def get_user_roles(self, project: str, email: str) -> list[str]:
        path = self._org_path("projects", project, "users", email, "roles")
        response = self._get_optional(path)
        if response is None:
            return []
        payload = response.json()
        if isinstance(payload, dict):
            payload = payload.get("roles", [])
        return [str(role) for role in payload or []]

    def redundant_roles(self, project: str, email: str, roles: list[str]) -> list[str]:
        """Return the subset of ``roles`` the user already holds in ``project``."""
        existing = set(self.get_user_roles(project, email))
        return [role for role in roles if role in existing]

    def assign_roles(self, project: str, assignments: dict[str, list[str]]) -> None:
        for email, roles in assignments.items():
            if not self.validate_user(email):
                raise ValidationError(f"user {email} does not exist")
            redundant = self.redundant_roles(project, email, roles)
            if redundant:
                raise ConflictError(
                    f"redundant roles found for user {email}: {', '.join(redundant)}"
                )
            self._request(
                "PUT",
                self._org_path("projects", project, "users", email, "roles"),
                expected=(200, 201, 204),
                json=roles,
            )
            logger.info("roles_assigned", project=project, user=email, roles=roles)
