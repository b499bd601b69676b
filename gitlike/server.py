"""
GitLike Remote Server

The endpoint HTTP remotes talk to. It keeps a single snapshot on disk and
never merges; clients merge after pulling.

Endpoints:
- POST /push: replace the stored snapshot with the JSON body
- GET /pull: the stored snapshot, or an empty repository before the first push
- GET /status: branch and commit counts, current branch, last sync
- GET /: a short HTML page listing the endpoints

Concurrent pushes are last-write-wins; each save is atomic.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from flask import Flask, Response, jsonify, request

from gitlike.exceptions import StorageError
from gitlike.logging import OperationLogEntry, now_iso, operation_logger
from gitlike.models import Repository, format_datetime
from gitlike.storage import RepositoryStorage

logger = logging.getLogger(__name__)

INDEX_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>GitLike Server</title>
</head>
<body>
    <h1>GitLike Remote Server</h1>
    <p>Endpoints:</p>
    <ul>
        <li><a href="/status">GET /status</a> - Repository status</li>
        <li>POST /push - Push repository</li>
        <li>GET /pull - Pull repository</li>
    </ul>
</body>
</html>
"""


def create_app(storage: RepositoryStorage) -> Flask:
    """
    Build the Flask app serving one snapshot.

    Args:
        storage: Where the pushed snapshot is kept

    Usage:
        app = create_app(RepositoryStorage(config.server_repo_path))
        app.run(port=8080)
    """
    app = Flask(__name__)

    def load_snapshot() -> Repository:
        # Before the first push there is nothing to load; don't write a default
        if not storage.exists():
            return Repository()
        return storage.load()

    @app.post("/push")
    def push() -> Response:
        start = time.monotonic()
        data = request.get_json(force=True, silent=True)
        try:
            if data is None:
                raise ValueError("body is not JSON")
            repo = Repository.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            _log_operation("server.push", start, error=f"{type(e).__name__}: {e}")
            logger.warning(f"Rejected push: {type(e).__name__}: {e}")
            return _text("Failed to parse repository", 400)

        try:
            storage.save(repo)
        except StorageError as e:
            _log_operation("server.push", start, error=e.message)
            logger.error(f"Failed to save pushed repository: {e}")
            return _text("Failed to save repository", 500)

        counts = {"branches": len(repo.branches), "commits": len(repo.commits)}
        _log_operation("server.push", start, **counts)
        logger.info(f"Received push: {counts['branches']} branches, {counts['commits']} commits")
        return _text("Push successful")

    @app.get("/pull")
    def pull() -> Response:
        start = time.monotonic()
        try:
            repo = load_snapshot()
        except StorageError as e:
            _log_operation("server.pull", start, error=e.message)
            logger.error(f"Failed to load repository: {e}")
            return _text("Failed to load repository", 500)

        _log_operation("server.pull", start, branches=len(repo.branches), commits=len(repo.commits))
        logger.info(f"Served pull: {len(repo.branches)} branches, {len(repo.commits)} commits")
        return jsonify(repo.to_dict())

    @app.get("/status")
    def status() -> Response:
        try:
            repo = load_snapshot()
        except StorageError as e:
            logger.error(f"Failed to load repository: {e}")
            return _text("Failed to load repository", 500)

        return jsonify(
            {
                "branches": len(repo.branches),
                "commits": len(repo.commits),
                "current_branch": repo.current_branch,
                "last_sync": format_datetime(repo.last_sync),
            }
        )

    @app.get("/")
    def index() -> Response:
        return Response(INDEX_HTML, mimetype="text/html")

    return app


def serve(storage: RepositoryStorage, host: str, port: int) -> None:
    """Run the server until interrupted."""
    logger.info(f"GitLike server on {host}:{port}, snapshot at {storage.path}")
    create_app(storage).run(host=host, port=port)


def _text(body: str, status: int = 200) -> Response:
    return Response(body, status=status, mimetype="text/plain")


def _log_operation(operation: str, start: float, error: str | None = None, **details: Any) -> None:
    entry = OperationLogEntry(
        timestamp=now_iso(),
        operation=operation,
        success=error is None,
        error=error,
        details=details,
        duration_ms=int((time.monotonic() - start) * 1000),
    )
    operation_logger.info(entry.to_json())
