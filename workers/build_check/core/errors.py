"""Typed checker errors with stable, machine-readable codes."""
from __future__ import annotations

from collections.abc import Mapping
from enum import Enum, unique
from pathlib import Path


@unique
class ErrorCode(str, Enum):
    INVALID_PATH = "E_INVALID_PATH"
    CONFIG_NOT_FOUND = "E_CONFIG_NOT_FOUND"
    ARTIFACT_NOT_FOUND = "E_ARTIFACT_NOT_FOUND"
    EXTERNAL_TOOL = "E_EXTERNAL_TOOL"


class BuildCheckError(Exception):
    """Base error carrying a code, the offending path, and context."""

    code: str
    path: Path
    context: dict[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        path: str | Path,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.path = Path(path)
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        for k, v in self.context.items():
            if v:
                parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "message": str(self),
            "path": str(self.path),
            "context": dict(self.context),
        }


class InvalidPathError(BuildCheckError):
    """An existing ``-L`` search path could not be canonicalized."""

    def __init__(self, path: str | Path, reason: str = "") -> None:
        super().__init__(
            f"Cannot canonicalize search path: {path}",
            code=ErrorCode.INVALID_PATH,
            path=path,
            context={"reason": reason},
        )


class ConfigNotFoundError(BuildCheckError):
    """Makefile.conf could not be opened."""

    def __init__(self, path: str | Path, reason: str = "") -> None:
        super().__init__(
            f"Makefile.conf not found: {path}",
            code=ErrorCode.CONFIG_NOT_FOUND,
            path=path,
            context={"reason": reason},
        )


class ArtifactNotFoundError(BuildCheckError):
    def __init__(self, path: str | Path) -> None:
        super().__init__(
            f"Library not found: {path}",
            code=ErrorCode.ARTIFACT_NOT_FOUND,
            path=path,
        )


class ExternalToolError(BuildCheckError):
    """An inspection command did not produce usable output."""

    def __init__(
        self,
        path: str | Path,
        command: str,
        reason: str,
        returncode: int | None = None,
    ) -> None:
        super().__init__(
            f"Inspection command failed on {path}: {reason}",
            code=ErrorCode.EXTERNAL_TOOL,
            path=path,
            context={
                "command": command,
                "returncode": "" if returncode is None else str(returncode),
            },
        )
        self.command = command
        self.returncode = returncode
