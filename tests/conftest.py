"""Shared pytest fixtures for gitlib tests."""

import pytest
import tempfile
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path

from gitlib.core.objects import BlobString, ByOid, Known, Signature
from gitlib.operations.tree import create_tree
from memory_backend import MemoryRepository, MemoryFactory


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def repo():
    """Create an empty in-memory repository."""
    return MemoryRepository()


@pytest.fixture
def other_repo():
    """Second repository sharing the same id scheme."""
    return MemoryRepository()


@pytest.fixture
def factory():
    return MemoryFactory()


@pytest.fixture
def signature():
    """Fixed signature, two hours east of UTC."""
    when = datetime(2024, 5, 1, 12, 30, tzinfo=timezone(timedelta(hours=2)))
    return Signature("Test User", "test@example.com", when)


@pytest.fixture
def blobs(repo):
    """A few stored blobs, by name."""
    return {
        'hello': repo.create_blob(BlobString(b"Hello, World!\n")),
        'readme': repo.create_blob(BlobString(b"# gitlib\n")),
        'script': repo.create_blob(BlobString(b"#!/bin/sh\necho hi\n")),
    }


@pytest.fixture
def sample_tree(repo, blobs):
    """Persisted tree: README.md, src/hello.txt, src/bin/run.sh."""
    def fill(scope):
        scope.put_blob('README.md', blobs['readme'])
        scope.put_blob('src/hello.txt', blobs['hello'])
        scope.put_blob('src/bin/run.sh', blobs['script'])

    return create_tree(repo, fill).resolve(repo)


def make_commit(repo, tree, signature, log="Test commit", parents=(), ref_name=None):
    """
    Helper function to create a commit in a repository.

    Args:
        repo: Repository to commit into
        tree: Tree object for the snapshot
        signature: Author and committer
        log: Commit message
        parents: Parent commits
        ref_name: Reference to move to the new commit

    Returns:
        Commit: The created commit
    """
    return repo.create_commit(
        [ByOid(parent.oid) for parent in parents],
        Known(tree),
        signature,
        signature,
        log,
        ref_name,
    )


@pytest.fixture
def history(repo, sample_tree, signature):
    """
    Linear history of three commits on refs/heads/main.

    Returns:
        List of commits, oldest first
    """
    first = make_commit(repo, sample_tree, signature, "First commit", ref_name='refs/heads/main')

    def add_notes(scope):
        scope.put_blob('docs/notes.txt', repo.create_blob(BlobString(b"notes\n")))

    tree2 = create_tree(repo, add_notes).resolve(repo)
    second = make_commit(repo, tree2, signature, "Second commit", [first], 'refs/heads/main')
    third = make_commit(repo, sample_tree, signature, "Third commit", [second], 'refs/heads/main')
    return [first, second, third]
