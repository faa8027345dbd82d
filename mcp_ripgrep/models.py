"""Request and result types for ripgrep searches."""

from typing import Any, Optional

from pydantic import BaseModel, Field

DEFAULT_MAX_RESULTS = 1000
DEFAULT_MAX_MATCHED_FILES = 100

# One parsed JSON line from the engine, passed through untouched.
MatchRecord = dict[str, Any]


class SearchRequest(BaseModel):
    pattern: str = Field(min_length=1, description="Regex pattern handed to the engine verbatim")
    path: Optional[str] = Field(default=None, description="Explicit path to search")
    root_name: Optional[str] = Field(default=None, description="Name of a single root to search")
    case_sensitive: bool = False
    context_lines: int = Field(default=0, ge=0)
    # 0 leaves the corresponding limit flag off the command line.
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=0)
    max_matched_files: int = Field(default=DEFAULT_MAX_MATCHED_FILES, ge=0)


class ResolvedPath(BaseModel):
    path: str
    root_name: Optional[str] = None


class SearchResult(BaseModel):
    pattern: str
    resolved_paths: list[ResolvedPath]
    matches: list[MatchRecord]
    total_matches: int
    available_root_count: int

    def to_payload(self) -> dict[str, Any]:
        """Tool response shape."""
        return {
            "pattern": self.pattern,
            "search_paths": [p.model_dump() for p in self.resolved_paths],
            "results": self.matches,
            "total_matches": self.total_matches,
            "available_roots": self.available_root_count,
            "status": "success",
        }
