'''
# Copyright 2025 Rowel Atienza. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

Client-granted filesystem roots.

The registry keeps the last root list the authority (the connected MCP client)
handed out and answers the two questions a search needs: which root does a
name refer to, and does a path fall inside any root at all.
'''

import logging
import os
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, Field

from .errors import RootNotFound

logger = logging.getLogger(__name__)

FILE_SCHEME = "file"


class Root(BaseModel):
    """A top-level directory the client allows the server to search."""

    uri: str = Field(description="file:// URI of the root directory")
    name: Optional[str] = Field(default=None, description="Human readable label")

    @property
    def path(self) -> str:
        # file:///srv and file://localhost/srv both name /srv
        parsed = urlparse(self.uri)
        if parsed.scheme == FILE_SCHEME:
            return unquote(parsed.path)
        return self.uri


class RootAuthority(Protocol):
    async def list_roots(self) -> list[Root]:
        ...


def canonical_path(path: str) -> str:
    """Absolute path with '.', '..' and trailing separators collapsed.

    Symlinks are not resolved.
    """
    return os.path.abspath(path)


def is_subpath(candidate: str, base: str) -> bool:
    """True if ``candidate`` is ``base`` or lies below it, component-wise."""
    candidate = canonical_path(candidate)
    base = canonical_path(base)
    try:
        return os.path.commonpath([candidate, base]) == base
    except ValueError:
        return False


class RootRegistry:
    """Current set of authorised roots.

    The set is only ever replaced as a whole, so a search running while a
    refresh completes sees either the old list or the new one.
    """

    def __init__(self, authority: Optional[RootAuthority] = None):
        self._authority = authority
        self._roots: list[Root] = []

    def bind(self, authority: RootAuthority) -> None:
        self._authority = authority

    @property
    def authority(self) -> Optional[RootAuthority]:
        return self._authority

    def current(self) -> list[Root]:
        return list(self._roots)

    def __len__(self) -> int:
        return len(self._roots)

    async def refresh(self) -> list[Root]:
        """Replace the root set with the authority's answer.

        Any failure leaves the registry empty and is only logged.
        """
        roots: list[Root] = []
        if self._authority is None:
            logger.warning("Cannot refresh roots: no client session available")
        else:
            try:
                roots = list(await self._authority.list_roots())
            except Exception as e:
                logger.error(f"Failed to get roots from client: {e}")
                roots = []
        self._roots = roots
        logger.info(f"Available roots: {len(roots)}")
        for root in roots:
            logger.info(f"  - {root.name or 'Unnamed'}: {root.uri}")
        return list(roots)

    def is_within_any_root(self, path: str) -> bool:
        # An empty registry answers False; callers decide whether that means
        # "unconstrained".
        return self.root_for_path(path) is not None

    def root_for_path(self, path: str) -> Optional[Root]:
        for root in self._roots:
            if is_subpath(path, root.path):
                return root
        return None

    def resolve_by_name(self, name: str) -> Root:
        for root in self._roots:
            if root.name == name:
                return root
        raise RootNotFound(name, [root.name for root in self._roots])
