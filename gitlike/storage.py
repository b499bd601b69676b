"""
GitLike Storage - Persistence Gateway

Loads and saves the whole Repository as a single indented JSON snapshot.

Concurrency:
- One process loads, mutates and saves once per command
- Two commands racing on the same snapshot are last-save-wins; there is
  no lock, so run one gitlike command at a time per data directory

Durability:
- Saves write a temp file beside the snapshot and os.replace() it over
  the old one, so a crash mid-write never leaves a truncated snapshot
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from gitlike.config import DEFAULT_DATA_DIR, REPO_FILE
from gitlike.exceptions import StorageError
from gitlike.models import DEFAULT_BRANCH, Repository

logger = logging.getLogger(__name__)


class RepositoryStorage:
    """
    File-backed store for the repository snapshot.

    Usage:
        storage = RepositoryStorage(config.repo_path)
        repo = storage.load()
        ...
        storage.save(repo)
    """

    def __init__(self, path: Path | str | None = None, default_branch: str = DEFAULT_BRANCH):
        """
        Initialize storage.

        Args:
            path: Snapshot file. If None, uses ~/.tododata/repository.json.
            default_branch: Name of the single branch in a fresh repository.
        """
        self.path = Path(path) if path else DEFAULT_DATA_DIR / REPO_FILE
        self.default_branch = default_branch

    def exists(self) -> bool:
        """Check whether a snapshot has been written."""
        return self.path.exists()

    def load(self) -> Repository:
        """
        Load the repository, creating and persisting a default one first time.

        Raises:
            StorageError: If the snapshot exists but cannot be read or parsed
        """
        if not self.path.exists():
            repo = Repository.create_default(self.default_branch)
            self.save(repo)
            logger.info(f"Initialized new repository at {self.path}")
            return repo

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise StorageError(
                f"Failed to read repository: {self.path}",
                {"error": str(e)},
            )

        try:
            data = json.loads(raw.decode("utf-8"))
            return Repository.from_dict(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(
                f"Failed to parse repository: {self.path}",
                {"error": str(e)},
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StorageError(
                f"Invalid repository data in {self.path}",
                {"error": f"{type(e).__name__}: {e}"},
            )

    def save(self, repo: Repository) -> None:
        """
        Atomically overwrite the snapshot.

        Raises:
            StorageError: On any I/O failure
        """
        payload = json.dumps(repo.to_dict(), indent=2)

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                dir=self.path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise StorageError(
                f"Failed to write repository: {self.path}",
                {"error": str(e)},
            )
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug(f"Could not remove temp file {tmp_name}")

        logger.debug(f"Saved repository to {self.path}")
