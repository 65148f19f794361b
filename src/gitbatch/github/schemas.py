"""Pydantic models for the GitHub Git Data API payloads we use."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from gitbatch.constants import BLOB_FILE_MODE, BLOB_TYPE


class GitRef(BaseModel):
    """A reference and the object it points to."""

    ref: str
    sha: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GitRef:
        return cls(ref=data["ref"], sha=data["object"]["sha"])


class GitCommit(BaseModel):
    sha: str
    tree_sha: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GitCommit:
        return cls(sha=data["sha"], tree_sha=data["tree"]["sha"])


class GitTree(BaseModel):
    sha: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GitTree:
        return cls(sha=data["sha"])


class TreeEntry(BaseModel):
    """One path in a new tree, merged into the base tree by path.

    ``content`` None marks a deletion: the API removes the path when
    the entry is sent with an explicit ``"sha": null``.
    """

    path: str
    mode: str = BLOB_FILE_MODE
    type: str = BLOB_TYPE
    content: str | None = None

    @property
    def is_deletion(self) -> bool:
        return self.content is None

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "path": self.path,
            "mode": self.mode,
            "type": self.type,
        }
        if self.content is None:
            payload["sha"] = None
        else:
            payload["content"] = self.content
        return payload
