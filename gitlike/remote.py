"""
Remote Snapshot Transport

Exchanges whole repository snapshots with a remote:
- http: GET <url>/pull and POST <url>/push with a JSON body
- file: read/write a snapshot file at the remote's path

Basic-auth credentials come from TODO_CLI_USERNAME / TODO_CLI_PASSWORD.
Every failure surfaces as NetworkError so callers can abort cleanly.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import httpx

from gitlike.config import DEFAULT_HTTP_TIMEOUT
from gitlike.exceptions import NetworkError, StorageError, ValidationError
from gitlike.models import Remote, RemoteType, Repository
from gitlike.storage import RepositoryStorage

logger = logging.getLogger(__name__)


class RemoteService:
    """
    Push and pull snapshots to HTTP or file remotes.

    An httpx.Client can be injected for testing; otherwise one is created
    per request with the configured timeout.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        credentials: tuple[str, str] | None = None,
        client: httpx.Client | None = None,
    ):
        """
        Initialize the transport.

        Args:
            timeout: Seconds before an HTTP request is abandoned
            credentials: Optional (username, password) for basic auth
            client: Pre-built httpx client (tests use MockTransport)
        """
        self.timeout = timeout
        self.credentials = credentials
        self._client = client

    def pull(self, remote: Remote) -> Repository:
        """Fetch the remote's full snapshot."""
        if remote.type == RemoteType.HTTP:
            return self._pull_http(remote)
        if remote.type == RemoteType.FILE:
            return self._pull_file(remote)
        raise _unsupported(remote)

    def push(self, remote: Remote, repo: Repository) -> None:
        """Replace the remote's snapshot with ours."""
        if remote.type == RemoteType.HTTP:
            self._push_http(remote, repo)
        elif remote.type == RemoteType.FILE:
            self._push_file(remote, repo)
        else:
            raise _unsupported(remote)

    # HTTP transport

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, translating transport failures into NetworkError."""
        auth = httpx.BasicAuth(*self.credentials) if self.credentials else None
        try:
            if self._client is not None:
                response = self._client.request(method, url, auth=auth, **kwargs)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.request(method, url, auth=auth, **kwargs)
        except httpx.TimeoutException:
            raise NetworkError(
                f"Request to {url} timed out after {self.timeout}s",
                {"url": url},
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to reach remote: {e}", {"url": url})

        if response.status_code != 200:
            raise NetworkError(
                f"Server error: {response.text.strip() or response.reason_phrase}",
                {"url": url, "status_code": response.status_code},
            )
        return response

    def _pull_http(self, remote: Remote) -> Repository:
        url = f"{remote.url.rstrip('/')}/pull"
        logger.info(f"Pulling snapshot from {url}")
        response = self._request("GET", url)
        try:
            return Repository.from_dict(response.json())
        except (AttributeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise NetworkError(
                "Failed to decode repository from remote",
                {"url": url, "error": str(e)},
            )

    def _push_http(self, remote: Remote, repo: Repository) -> None:
        url = f"{remote.url.rstrip('/')}/push"
        logger.info(f"Pushing snapshot to {url}")
        self._request("POST", url, json=repo.to_dict())

    # File transport

    def _pull_file(self, remote: Remote) -> Repository:
        path = Path(remote.url).expanduser()
        if not path.exists():
            raise NetworkError(f"Failed to read file: {path} does not exist", {"path": str(path)})
        try:
            return RepositoryStorage(path).load()
        except StorageError as e:
            raise NetworkError(f"Failed to read remote snapshot: {e.message}", e.details)

    def _push_file(self, remote: Remote, repo: Repository) -> None:
        path = Path(remote.url).expanduser()
        try:
            RepositoryStorage(path).save(repo)
        except StorageError as e:
            raise NetworkError(f"Failed to write remote snapshot: {e.message}", e.details)


def _unsupported(remote: Remote) -> ValidationError:
    return ValidationError(
        f"Unsupported remote type: {remote.type_name}",
        {"remote": remote.name, "allowed": [t.value for t in RemoteType]},
    )
