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

Run the external search engine and adapt its JSON-lines output.

The engine is started once per search, without a shell, so the pattern and
paths reach it verbatim. Its whole output is buffered before parsing.
'''

import asyncio
import json
import logging
import os
from typing import Iterable, Iterator, Optional, Sequence

from .errors import EngineFailure, EngineLaunchFailure
from .models import MatchRecord, SearchRequest

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = os.getenv("RIPGREP_PATH", "rg")
DEFAULT_BASE_ARGS = ("--json", "--no-heading")

# 0 = matches found, 1 = no matches
SUCCESS_CODES = (0, 1)


def iter_records(lines: Iterable[str]) -> Iterator[dict]:
    """Yield each line that parses as a JSON object; skip everything else."""
    for line in lines:
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except ValueError:
            continue
        if isinstance(record, dict):
            yield record


def iter_match_records(output: str) -> Iterator[MatchRecord]:
    """Yield only ``type == "match"`` records, in emission order."""
    for record in iter_records(output.splitlines()):
        if record.get("type") == "match":
            yield record


class SearchInvoker:
    def __init__(self, engine: str = DEFAULT_ENGINE, base_args: Optional[Sequence[str]] = None):
        self.engine = engine
        self.base_args = list(DEFAULT_BASE_ARGS if base_args is None else base_args)

    def build_args(self, request: SearchRequest, paths: Sequence[str]) -> list[str]:
        args = list(self.base_args)
        if not request.case_sensitive:
            args.append("--ignore-case")
        if request.context_lines > 0:
            args.append(f"--context={request.context_lines}")
        if request.max_results > 0:
            args.append(f"--max-results={request.max_results}")
        if request.max_matched_files > 0:
            args.append(f"--max-matched-files={request.max_matched_files}")
        args.append(request.pattern)
        args.extend(paths)
        return args

    async def execute(self, args: Sequence[str]) -> list[MatchRecord]:
        logger.debug(f"Running {self.engine} {' '.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                self.engine,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise EngineLaunchFailure(self.engine, str(e)) from e

        stdout, stderr = await process.communicate()
        returncode = process.returncode
        logger.debug(f"{self.engine} exited with code {returncode}")

        if returncode not in SUCCESS_CODES:
            raise EngineFailure(returncode, stderr.decode("utf-8", errors="replace"))

        return list(iter_match_records(stdout.decode("utf-8", errors="replace")))

    async def search(self, request: SearchRequest, paths: Sequence[str]) -> list[MatchRecord]:
        return await self.execute(self.build_args(request, paths))
