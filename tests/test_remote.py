"""Tests for the remote snapshot transport."""

import base64
import json

import httpx
import pytest

from conftest import make_repo, make_todo
from gitlike.exceptions import NetworkError, ValidationError
from gitlike.models import Remote, RemoteType, Repository
from gitlike.remote import RemoteService


def mock_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestHttpTransport:
    """Tests for the HTTP transport."""

    def test_pull(self):
        """Test GET <url>/pull decodes the snapshot."""
        snapshot = make_repo(("main", [make_todo(1)]), ("feature", []))
        seen = []

        def handler(request):
            seen.append((request.method, str(request.url)))
            return httpx.Response(200, json=snapshot.to_dict())

        service = RemoteService(client=mock_client(handler))
        pulled = service.pull(Remote(name="origin", url="http://todo.example/"))

        assert seen == [("GET", "http://todo.example/pull")]
        assert pulled == snapshot

    def test_push(self):
        """Test POST <url>/push sends the full snapshot as JSON."""
        repo = make_repo(("main", [make_todo(1)]))
        bodies = []

        def handler(request):
            assert request.method == "POST"
            assert request.url.path == "/push"
            assert request.headers["content-type"] == "application/json"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, text="ok")

        RemoteService(client=mock_client(handler)).push(Remote(name="origin", url="http://todo.example"), repo)

        assert Repository.from_dict(bodies[0]) == repo

    def test_basic_auth(self):
        """Test credentials are sent as basic auth."""
        expected = "Basic " + base64.b64encode(b"alice:s3cret").decode()

        def handler(request):
            assert request.headers["authorization"] == expected
            return httpx.Response(200, json=Repository.create_default().to_dict())

        service = RemoteService(credentials=("alice", "s3cret"), client=mock_client(handler))
        service.pull(Remote(name="origin", url="http://todo.example"))

    def test_no_auth_without_credentials(self):
        """Test no Authorization header by default."""

        def handler(request):
            assert "authorization" not in request.headers
            return httpx.Response(200, json=Repository.create_default().to_dict())

        RemoteService(client=mock_client(handler)).pull(Remote(name="origin", url="http://todo.example"))

    def test_server_error(self):
        """Test non-200 responses raise NetworkError with the body."""

        def handler(request):
            return httpx.Response(500, text="database offline")

        with pytest.raises(NetworkError) as exc_info:
            RemoteService(client=mock_client(handler)).pull(Remote(name="origin", url="http://todo.example"))

        assert "database offline" in exc_info.value.message
        assert exc_info.value.details["status_code"] == 500

    def test_undecodable_body(self):
        """Test a non-repository body raises NetworkError."""

        def handler(request):
            return httpx.Response(200, text="<html>hello</html>")

        with pytest.raises(NetworkError) as exc_info:
            RemoteService(client=mock_client(handler)).pull(Remote(name="origin", url="http://todo.example"))
        assert "decode" in exc_info.value.message

    def test_timeout(self):
        """Test timeouts raise NetworkError."""

        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        service = RemoteService(timeout=0.5, client=mock_client(handler))
        with pytest.raises(NetworkError) as exc_info:
            service.pull(Remote(name="origin", url="http://todo.example"))
        assert "timed out" in exc_info.value.message

    def test_connection_error(self):
        """Test unreachable servers raise NetworkError."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(NetworkError):
            RemoteService(client=mock_client(handler)).push(
                Remote(name="origin", url="http://todo.example"), Repository.create_default()
            )


class TestFileTransport:
    """Tests for the file transport."""

    def test_push_then_pull(self, tmp_path):
        """Test a pushed snapshot pulls back equal."""
        remote = Remote(name="shared", url=str(tmp_path / "shared" / "repo.json"), type=RemoteType.FILE)
        repo = make_repo(("main", [make_todo(1), make_todo(2)]))
        service = RemoteService()

        service.push(remote, repo)

        assert service.pull(remote) == repo

    def test_pull_missing_file(self, tmp_path):
        """Test pulling a missing file is a NetworkError and creates nothing."""
        path = tmp_path / "missing.json"
        remote = Remote(name="shared", url=str(path), type=RemoteType.FILE)

        with pytest.raises(NetworkError):
            RemoteService().pull(remote)
        assert not path.exists()

    def test_pull_corrupt_file(self, tmp_path):
        """Test a corrupt remote file is a NetworkError."""
        path = tmp_path / "bad.json"
        path.write_text("{nope")
        remote = Remote(name="shared", url=str(path), type=RemoteType.FILE)

        with pytest.raises(NetworkError):
            RemoteService().pull(remote)


class TestDecodeFailures:
    """Tests for remote bodies that are JSON but not a repository."""

    @pytest.mark.parametrize(
        "body",
        [
            {"branches": [], "git_integration": "yes"},
            {"branches": [{"name": "main", "created_at": 1705314600}]},
            {"commits": ["abc123"]},
        ],
    )
    def test_wrong_typed_fields(self, body):
        """Wrong-typed nested fields raise NetworkError."""

        def handler(request):
            return httpx.Response(200, json=body)

        with pytest.raises(NetworkError) as exc_info:
            RemoteService(client=mock_client(handler)).pull(Remote(name="origin", url="http://todo.example"))

        assert "decode" in exc_info.value.message
        assert exc_info.value.details["url"] == "http://todo.example/pull"


class TestUnsupportedType:
    """Tests for remotes whose type has no transport."""

    def test_pull_rejects_unknown_type(self):
        """A remote loaded with an unknown type cannot be pulled."""
        remote = Remote.from_dict({"name": "legacy", "url": "git@example.com:todos.git", "type": "git"})

        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(ValidationError) as exc_info:
            RemoteService(client=mock_client(handler)).pull(remote)

        assert "git" in exc_info.value.message
        assert exc_info.value.details["allowed"] == ["http", "file"]

    def test_push_rejects_unknown_type(self, tmp_path):
        """A remote loaded with an unknown type cannot be pushed to."""
        remote = Remote(name="legacy", url=str(tmp_path / "x.json"), type="git")

        with pytest.raises(ValidationError):
            RemoteService().push(remote, Repository.create_default())
        assert not (tmp_path / "x.json").exists()
