"""Turn the scope fields of a search request into checked target paths."""

import logging
import os

from .errors import NoSearchPaths, PathNotFound, PathOutsideRoots
from .models import ResolvedPath, SearchRequest
from .roots import RootRegistry

logger = logging.getLogger(__name__)


class ScopeResolver:
    """Resolve ``path`` > ``root_name`` > all roots, then validate each path.

    Validation order per candidate: existence first, then the root boundary.
    The boundary only applies while the registry holds at least one root.
    """

    def __init__(self, registry: RootRegistry):
        self.registry = registry

    async def resolve(self, request: SearchRequest) -> list[str]:
        if not self.registry.current():
            await self.registry.refresh()

        if request.path:
            candidates = [request.path]
        elif request.root_name:
            candidates = [self.registry.resolve_by_name(request.root_name).path]
        elif self.registry.current():
            candidates = [root.path for root in self.registry.current()]
        else:
            raise NoSearchPaths()

        for candidate in candidates:
            self.validate(candidate)
        return candidates

    def validate(self, candidate: str) -> None:
        if not os.access(candidate, os.F_OK):
            raise PathNotFound(candidate)
        if self.registry.current() and not self.registry.is_within_any_root(candidate):
            logger.warning(f"Rejected search path outside roots: {candidate}")
            raise PathOutsideRoots(candidate)

    def describe(self, paths: list[str]) -> list[ResolvedPath]:
        described = []
        for path in paths:
            root = self.registry.root_for_path(path)
            described.append(ResolvedPath(path=path, root_name=root.name if root else None))
        return described
