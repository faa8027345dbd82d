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

Ripgrep MCP Server

Search file contents with ripgrep across the roots the MCP client grants,
or across an explicit path.

Requires:
    pip install fastmcp
    ripgrep (`rg`) on PATH, or set RIPGREP_PATH / options['rg_path']

Tools:
1. ripgrep_search - Search for a regex pattern in client roots or a given path
2. refresh_roots - Re-read the list of roots from the client

The server also listens for `notifications/roots/list_changed` and refreshes
its roots when the client reports a change.
'''

import logging
import os
import weakref
from typing import Annotated, Any, Optional

from fastmcp import Context, FastMCP
from mcp import types as mcp_types
from pydantic import Field, ValidationError

from .errors import InvalidSearchRequest, RipgrepError
from .models import (
    DEFAULT_MAX_MATCHED_FILES,
    DEFAULT_MAX_RESULTS,
    SearchRequest,
    SearchResult,
)
from .roots import Root, RootRegistry
from .scope import ScopeResolver
from .search import DEFAULT_ENGINE, SearchInvoker

logging.basicConfig(level=logging.ERROR, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-ripgrep"
DEFAULT_TRANSPORT = os.getenv("RIPGREP_MCP_TRANSPORT", "stdio")


class SessionAuthority:
    """Root authority backed by the connected client's session (``roots/list``)."""

    def __init__(self, session: Any):
        self._session = session

    async def list_roots(self) -> list[Root]:
        result = await self._session.list_roots()
        return [Root(uri=str(root.uri), name=root.name) for root in (result.roots or [])]


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "request"
        problems.append(f"{field}: {item.get('msg')}")
    return "Invalid search request: " + "; ".join(problems)


async def search(registry: RootRegistry, invoker: SearchInvoker, **params) -> dict[str, Any]:
    """Resolve, validate and run one search. Errors come back as payloads."""
    try:
        request = SearchRequest(**params)
    except ValidationError as e:
        return InvalidSearchRequest(_describe_validation_error(e)).to_dict()

    resolver = ScopeResolver(registry)
    try:
        paths = await resolver.resolve(request)
        matches = await invoker.search(request, paths)
    except RipgrepError as e:
        logger.error(f"ripgrep_search failed: {e}")
        return e.to_dict()

    result = SearchResult(
        pattern=request.pattern,
        resolved_paths=resolver.describe(paths),
        matches=matches,
        total_matches=len(matches),
        available_root_count=len(registry),
    )
    return result.to_payload()


async def refresh_roots(registry: RootRegistry) -> dict[str, Any]:
    return roots_payload(await registry.refresh())


def roots_payload(roots: list[Root]) -> dict[str, Any]:
    return {
        "message": "Roots refreshed successfully",
        "available_roots": [
            {"uri": root.uri, "name": root.name, "path": root.path} for root in roots
        ],
        "total_roots": len(roots),
        "status": "success",
    }


class SessionRegistries:
    """One RootRegistry per connected client session.

    Registries are held weakly by session, so a closed session takes its
    roots with it and one client never searches another client's roots.
    """

    def __init__(self):
        self._registries: "weakref.WeakKeyDictionary[Any, RootRegistry]" = weakref.WeakKeyDictionary()

    def get(self, session: Any) -> Optional[RootRegistry]:
        return self._registries.get(session)

    def all(self) -> list[RootRegistry]:
        return list(self._registries.values())

    async def acquire(self, session: Any) -> RootRegistry:
        """Registry for ``session``; the first call fetches the session's roots."""
        registry = self._registries.get(session)
        if registry is None:
            registry = RootRegistry(SessionAuthority(session))
            self._registries[session] = registry
            logger.info("New client session, requesting roots")
            await registry.refresh()
        return registry

    async def refresh_all(self) -> None:
        for registry in self.all():
            await registry.refresh()


def _register_roots_changed_handler(mcp: FastMCP, registries: SessionRegistries) -> None:
    # The notification carries no session, so every live session re-reads
    # its own roots.
    async def handle_roots_changed(_notification) -> None:
        logger.info("Roots changed, refreshing...")
        await registries.refresh_all()

    low_level = getattr(mcp, "_mcp_server", None)
    handlers = getattr(low_level, "notification_handlers", None)
    if not isinstance(handlers, dict):
        logger.warning("Low-level MCP server unavailable; roots change notifications are ignored")
        return
    handlers[mcp_types.RootsListChangedNotification] = handle_roots_changed


def build_server(
    registries: Optional[SessionRegistries] = None,
    invoker: Optional[SearchInvoker] = None,
) -> FastMCP:
    """Create a server with per-session root registries and one search invoker."""
    registries = registries if registries is not None else SessionRegistries()
    invoker = invoker if invoker is not None else SearchInvoker()

    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(
        name="ripgrep_search",
        title="Ripgrep Search",
        description="""Search for patterns using ripgrep across client-provided roots or a specified path.

IMPORTANT - Required parameters:
- pattern: The pattern to search for (regex supported, passed to ripgrep as-is)

Optional parameters:
- path: Specific path to search. Must be inside a client root when the client provides roots.
- root_name: Name of a single root to search. Ignored when path is given.
- case_sensitive: Whether the search is case sensitive (default: false)
- context_lines: Number of context lines around each match (default: 0)
- max_results: Maximum number of results (default: 1000)
- max_matched_files: Maximum number of matched files (default: 100)

Without path or root_name, all roots provided by the client are searched.

Returns JSON: {pattern, search_paths, results, total_matches, available_roots, status}
Each entry of results is a ripgrep JSON "match" record."""
    )
    async def ripgrep_search(
        ctx: Context,
        pattern: Annotated[Optional[str], Field(description="The pattern to search for (regex supported)")] = None,
        max_results: Annotated[int, Field(description="Maximum number of results to return")] = DEFAULT_MAX_RESULTS,
        max_matched_files: Annotated[int, Field(description="Maximum number of matched files to return")] = DEFAULT_MAX_MATCHED_FILES,
        path: Annotated[Optional[str], Field(description="Optional specific path to search (defaults to all available roots)")] = None,
        root_name: Annotated[Optional[str], Field(description="Optional name of specific root to search in")] = None,
        case_sensitive: Annotated[bool, Field(description="Whether the search should be case sensitive")] = False,
        context_lines: Annotated[int, Field(description="Number of context lines to include around matches")] = 0,
    ) -> dict[str, Any]:
        registry = await registries.acquire(ctx.session)
        return await search(
            registry,
            invoker,
            pattern=pattern,
            max_results=max_results,
            max_matched_files=max_matched_files,
            path=path,
            root_name=root_name,
            case_sensitive=case_sensitive,
            context_lines=context_lines,
        )

    @mcp.tool(
        name="refresh_roots",
        title="Refresh Roots",
        description="""Refresh the list of available roots from the client.

Returns JSON: {message, available_roots, total_roots, status}
Each root includes: {uri, name, path}"""
    )
    async def refresh_roots_tool(ctx: Context) -> dict[str, Any]:
        registry = registries.get(ctx.session)
        if registry is None:
            registry = await registries.acquire(ctx.session)
            return roots_payload(registry.current())
        return await refresh_roots(registry)

    _register_roots_changed_handler(mcp, registries)
    return mcp


# =============================================================================
# SERVER ENTRY POINT
# =============================================================================

def run(
    transport: str = DEFAULT_TRANSPORT,
    host: str = "0.0.0.0",
    port: int = 18220,
    path: str = "/ripgrep",
    options: dict = {}
) -> None:
    """Run the MCP server."""
    # Without verbose the root logger (--log-level) decides.
    package_logger = logging.getLogger(__package__)
    if options.get('verbose'):
        package_logger.setLevel(logging.INFO)
    else:
        package_logger.setLevel(logging.NOTSET)

    invoker = SearchInvoker(
        engine=options.get('rg_path', DEFAULT_ENGINE),
        base_args=options.get('base_args'),
    )
    mcp = build_server(invoker=invoker)

    logger.info(f"Starting Ripgrep MCP Server using {transport} transport")
    logger.info(f"Search engine: {invoker.engine} {' '.join(invoker.base_args)}")
    logger.info("Available tools: ripgrep_search, refresh_roots")

    if transport == "stdio":
        mcp.run(transport="stdio")
        return

    logger.info(f"Listening at {host}:{port}{path}")
    quiet = not options.get('verbose')
    if quiet:
        import uvicorn.config
        uvicorn.config.LOGGING_CONFIG["loggers"]["uvicorn.access"]["level"] = "WARNING"
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("uvicorn.error").setLevel(logging.WARNING)

    mcp.run(transport=transport, host=host, port=port, path=path,
            uvicorn_config={"access_log": False, "log_level": "warning"} if quiet else {})


if __name__ == "__main__":
    run()
