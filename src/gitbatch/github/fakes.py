"""In-memory fake of the Git Data API for testing.

Dict-backed object store with real merge-by-path tree semantics and
non-force ref updates. No httpx, no I/O.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from gitbatch.errors import RemoteError
from gitbatch.github.schemas import GitCommit, GitRef, GitTree, TreeEntry


def _sha(*parts: str) -> str:
    digest = hashlib.sha1(usedforsecurity=False)
    for part in parts:
        digest.update(part.encode("utf-8"))
        digest.update(b"\x00")
    return digest.hexdigest()


@dataclass
class _Commit:
    sha: str
    tree: str
    message: str
    parents: list[str]


@dataclass
class FakeRepository:
    """One repository: trees are path -> content snapshots."""

    trees: dict[str, dict[str, str]] = field(
        default_factory=lambda: dict[str, dict[str, str]]()
    )
    commits: dict[str, _Commit] = field(
        default_factory=lambda: dict[str, _Commit]()
    )
    refs: dict[str, str] = field(default_factory=lambda: dict[str, str]())


class FakeGitDataClient:
    """Dict-backed GitDataClient.

    ``fail_on`` injects failures: maps an operation name
    (``get_ref``, ``get_commit``, ``create_tree``, ``create_commit``,
    ``update_ref``) to a set of call numbers (1-based, per operation)
    that raise RemoteError with ``fail_status``.
    """

    def __init__(self) -> None:
        self.repos: dict[tuple[str, str], FakeRepository] = {}
        self.calls: list[str] = []
        self.fail_on: dict[str, set[int]] = {}
        self.fail_status = 500
        self._call_counts: dict[str, int] = {}
        self.closed = False

    # ── Test setup ─────────────────────────────────────

    def seed(
        self,
        owner: str,
        repo: str,
        branch: str = "main",
        files: dict[str, str] | None = None,
    ) -> str:
        """Create a repository with one commit on ``branch``."""
        store = self.repos.setdefault((owner, repo), FakeRepository())
        snapshot = dict(files or {})
        tree_sha = _sha("tree", *sorted(f"{k}={v}" for k, v in snapshot.items()))
        store.trees[tree_sha] = snapshot
        commit_sha = _sha("commit", tree_sha, "initial")
        store.commits[commit_sha] = _Commit(commit_sha, tree_sha, "initial", [])
        store.refs[f"refs/heads/{branch}"] = commit_sha
        return commit_sha

    def fail(self, operation: str, *call_numbers: int) -> None:
        self.fail_on.setdefault(operation, set()).update(call_numbers)

    def files_at(self, owner: str, repo: str, branch: str = "main") -> dict[str, str]:
        store = self._repo(owner, repo)
        commit = store.commits[store.refs[f"refs/heads/{branch}"]]
        return dict(store.trees[commit.tree])

    def commit_message(self, owner: str, repo: str, sha: str) -> str:
        return self._repo(owner, repo).commits[sha].message

    def move_branch(self, owner: str, repo: str, branch: str, sha: str) -> None:
        """Simulate a concurrent writer advancing the branch."""
        self._repo(owner, repo).refs[f"refs/heads/{branch}"] = sha

    async def aclose(self) -> None:
        self.closed = True

    async def __aenter__(self) -> FakeGitDataClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ── GitDataClient ──────────────────────────────────

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        count = self._call_counts.get(operation, 0) + 1
        self._call_counts[operation] = count
        if count in self.fail_on.get(operation, set()):
            raise RemoteError(
                f"injected {operation} failure", self.fail_status
            )

    def _repo(self, owner: str, repo: str) -> FakeRepository:
        store = self.repos.get((owner, repo))
        if store is None:
            raise RemoteError("Not Found", 404)
        return store

    async def get_ref(self, owner: str, repo: str, ref: str) -> GitRef:
        self._record("get_ref")
        store = self._repo(owner, repo)
        sha = store.refs.get(ref)
        if sha is None:
            raise RemoteError("Not Found", 404)
        return GitRef(ref=ref, sha=sha)

    async def get_commit(
        self, owner: str, repo: str, sha: str
    ) -> GitCommit:
        self._record("get_commit")
        commit = self._repo(owner, repo).commits.get(sha)
        if commit is None:
            raise RemoteError("Not Found", 404)
        return GitCommit(sha=commit.sha, tree_sha=commit.tree)

    async def create_tree(
        self,
        owner: str,
        repo: str,
        base_tree: str,
        entries: list[TreeEntry],
    ) -> GitTree:
        self._record("create_tree")
        store = self._repo(owner, repo)
        base = store.trees.get(base_tree)
        if base is None:
            raise RemoteError("Invalid tree info", 422)
        snapshot = dict(base)
        for entry in entries:
            if entry.is_deletion:
                snapshot.pop(entry.path, None)
            else:
                snapshot[entry.path] = entry.content or ""
        tree_sha = _sha("tree", *sorted(f"{k}={v}" for k, v in snapshot.items()))
        store.trees[tree_sha] = snapshot
        return GitTree(sha=tree_sha)

    async def create_commit(
        self,
        owner: str,
        repo: str,
        message: str,
        tree: str,
        parents: list[str],
    ) -> GitCommit:
        self._record("create_commit")
        store = self._repo(owner, repo)
        if tree not in store.trees:
            raise RemoteError("Tree not found", 422)
        sha = _sha("commit", tree, message, *parents)
        store.commits[sha] = _Commit(sha, tree, message, list(parents))
        return GitCommit(sha=sha, tree_sha=tree)

    async def update_ref(
        self,
        owner: str,
        repo: str,
        ref: str,
        sha: str,
        *,
        force: bool = False,
    ) -> GitRef:
        self._record("update_ref")
        store = self._repo(owner, repo)
        current = store.refs.get(ref)
        if current is None:
            raise RemoteError("Reference does not exist", 422)
        if not force and current not in store.commits[sha].parents:
            raise RemoteError("Update is not a fast forward", 422)
        store.refs[ref] = sha
        return GitRef(ref=ref, sha=sha)
