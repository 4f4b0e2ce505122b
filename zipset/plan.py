"""
Build plans.

A build plan is a JSON document describing an overlay, so that a set of
changes can be kept in a file and applied from the command line:

    {
      "base": "app.zip",
      "operations": [
        {"op": "add", "path": "lib/inner.zip!config.json", "file": "config.json"},
        {"op": "add", "path": "VERSION", "text": "1.2.0"},
        {"op": "mkdir", "path": "logs/"},
        {"op": "remove", "path": "debug.log"}
      ]
    }

Relative ``base`` and ``file`` paths are resolved against the directory
holding the plan.
"""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .archive_set import ArchiveSet
from .errors import PlanError


# =============================================================================
# Pydantic Models
# =============================================================================


class AddOperation(BaseModel):
    """Add a file, text or base64 payload at a path."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    op: Literal["add"]
    path: str
    file: str | None = None
    text: str | None = None
    data: str | None = Field(default=None, alias="base64")

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "AddOperation":
        given = [v for v in (self.file, self.text, self.data) if v is not None]
        if len(given) != 1:
            raise ValueError("add needs exactly one of 'file', 'text', 'base64'")
        return self

    def payload(self, root: Path | None) -> bytes | Path:
        """The value to add: bytes for inline content, a Path for files."""
        if self.file is not None:
            return _resolve(self.file, root)
        if self.text is not None:
            return self.text.encode("utf-8")
        try:
            return base64.b64decode(self.data or "", validate=True)
        except binascii.Error as e:
            raise PlanError(f"Invalid base64 payload for {self.path}: {e}") from e


class MkdirOperation(BaseModel):
    """Add an empty directory."""

    model_config = ConfigDict(extra="forbid")

    op: Literal["mkdir"]
    path: str


class RemoveOperation(BaseModel):
    """Exclude an entry."""

    model_config = ConfigDict(extra="forbid")

    op: Literal["remove"]
    path: str


Operation = Annotated[
    Union[AddOperation, MkdirOperation, RemoveOperation],
    Field(discriminator="op"),
]


class BuildPlan(BaseModel):
    """A base archive plus the operations to apply on top of it."""

    model_config = ConfigDict(extra="forbid")

    base: str | None = None
    operations: list[Operation] = Field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "BuildPlan":
        """
        Parse a plan from JSON text.

        Raises:
            PlanError: If the document is not a valid plan
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise PlanError(f"Invalid build plan: {e}") from e

    @classmethod
    def load(cls, path: str | Path) -> tuple["BuildPlan", Path]:
        """
        Read a plan file.

        Returns:
            The plan and the directory relative paths resolve against
        """
        plan_path = Path(path)
        plan = cls.parse(plan_path.read_text(encoding="utf-8"))
        return plan, plan_path.resolve().parent

    def apply(self, archive: ArchiveSet, root: Path | None = None) -> ArchiveSet:
        """Apply the operations to an existing overlay, in order."""
        for operation in self.operations:
            match operation:
                case AddOperation():
                    archive.add(operation.path, operation.payload(root))
                case MkdirOperation(path=path):
                    archive.add_directory(path)
                case RemoveOperation(path=path):
                    archive.remove(path)
        return archive

    def to_archive_set(
        self,
        root: Path | None = None,
        *,
        base: str | Path | None = None,
    ) -> ArchiveSet:
        """
        Create an overlay with the plan's operations applied.

        Args:
            root: Directory relative paths resolve against
            base: Base archive to use instead of the plan's own
        """
        if base is None and self.base:
            base = _resolve(self.base, root)
        return self.apply(ArchiveSet(base), root)


def _resolve(path: str, root: Path | None) -> Path:
    resolved = Path(path)
    if root is not None and not resolved.is_absolute():
        resolved = root / resolved
    return resolved
