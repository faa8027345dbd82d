"""Error kinds raised while resolving and running a search.

Every error is recoverable at the tool boundary: the server turns it into an
error payload via ``to_dict()`` instead of failing the request.
"""

from typing import Any, Optional


class RipgrepError(Exception):
    """Base class for search errors reported back to the caller."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "error_type": type(self).__name__,
            "status": "error",
        }


class InvalidSearchRequest(RipgrepError):
    pass


class RootNotFound(RipgrepError):
    def __init__(self, name: str, available: list[Optional[str]]):
        self.name = name
        self.available = list(available)
        names = ", ".join(n if n else "<unnamed>" for n in self.available)
        super().__init__(f"Root '{name}' not found. Available roots: {names}")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["root_name"] = self.name
        payload["available_roots"] = self.available
        return payload


class NoSearchPaths(RipgrepError):
    def __init__(self):
        super().__init__(
            "No search paths available. The client has not provided any roots. "
            "Use refresh_roots tool or provide a specific path."
        )


class PathNotFound(RipgrepError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Search path validation failed for '{path}': path does not exist")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["path"] = self.path
        return payload


class PathOutsideRoots(RipgrepError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Search path validation failed for '{path}': "
            "path is not within any allowed root"
        )

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["path"] = self.path
        return payload


class EngineLaunchFailure(RipgrepError):
    def __init__(self, engine: str, reason: str):
        self.engine = engine
        self.reason = reason
        super().__init__(f"Search failed: could not execute '{engine}': {reason}")


class EngineFailure(RipgrepError):
    def __init__(self, returncode: int, stderr: str):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Search failed: ripgrep exited with code {returncode}: {stderr.strip()}")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["returncode"] = self.returncode
        payload["stderr"] = self.stderr
        return payload
