"""Recursive find over a resolved base path.

The walk is sequential, depth-first and pre-order: a matching directory
is emitted before its matching descendants. Directories are entered at
most once (keyed by real path), so link cycles terminate. Any failure
below the base path skips that node; only a missing or unreadable base
path, or the deadline, fails the whole call.
"""

import logging
import os
import stat
import time
from typing import Iterator, List, Optional, Set, Tuple

from . import fs_ops
from .config import ServerConfig
from .criteria import CriterionEvaluator
from .errors import ErrorCode, ToolError
from .models import EntryInfo, EntryType, EntryTypeFilter, FindParameters

logger = logging.getLogger(__name__)


class FindEngine:
    def __init__(self, config: ServerConfig, evaluator: Optional[CriterionEvaluator] = None):
        self.config = config
        self.evaluator = evaluator or CriterionEvaluator(config)

    def find(self, params: FindParameters) -> List[EntryInfo]:
        """Return the entries under params.base_path matching every criterion."""
        base_path = params.base_path
        deadline = self._deadline()

        base_stats = fs_ops.get_stats(base_path)

        if not stat.S_ISDIR(base_stats.st_mode):
            if params.recursive is True:
                # A file has nothing to recurse into
                return []
            entry = fs_ops.create_entry_info(base_path)
            return [entry] if self._accepts(entry, params) else []

        if params.recursive is False:
            results = self._find_in_directory(base_path, params, deadline)
        else:
            results = self._walk(base_path, params, self.config.effective_max_depth, deadline)

        unique = list({entry.path: entry for entry in results}.values())
        logger.debug(f"find under {base_path} matched {len(unique)} entries")
        return unique

    def _find_in_directory(
        self, dir_path: str, params: FindParameters, deadline: Optional[float]
    ) -> List[EntryInfo]:
        """Non-recursive fast path: immediate children only."""
        results = []
        for entry in self._children(dir_path, deadline):
            if self._accepts(entry, params):
                results.append(entry)
        return results

    def _walk(
        self,
        base_path: str,
        params: FindParameters,
        max_depth: float,
        deadline: Optional[float],
    ) -> List[EntryInfo]:
        results: List[EntryInfo] = []
        visited: Set[str] = set()

        # Each frame holds a directory's pending children and their depth
        stack: List[Tuple[Iterator[EntryInfo], int]] = []
        children = self._enter(base_path, visited, deadline)
        if children is not None:
            stack.append((children, 0))

        while stack:
            children, depth = stack[-1]
            entry = next(children, None)
            if entry is None:
                stack.pop()
                continue

            if self._accepts(entry, params):
                results.append(entry)

            if entry.type is EntryType.DIRECTORY and depth + 1 <= max_depth:
                sub_children = self._enter(entry.path, visited, deadline)
                if sub_children is not None:
                    stack.append((sub_children, depth + 1))

        return results

    def _enter(
        self, dir_path: str, visited: Set[str], deadline: Optional[float]
    ) -> Optional[Iterator[EntryInfo]]:
        key = os.path.realpath(dir_path)
        if key in visited or dir_path in visited:
            logger.debug(f"Skipping already visited directory {dir_path}")
            return None
        visited.add(key)
        visited.add(dir_path)
        return self._children(dir_path, deadline)

    def _children(self, dir_path: str, deadline: Optional[float]) -> Iterator[EntryInfo]:
        self._check_deadline(deadline, dir_path)
        try:
            names = fs_ops.list_directory(dir_path)
        except ToolError as e:
            logger.warning(f"Cannot list directory {dir_path} during find: {e.message}")
            return

        for name in names:
            self._check_deadline(deadline, dir_path)
            child_path = os.path.join(dir_path, name)
            try:
                yield fs_ops.create_entry_info(child_path, fs_ops.get_lstats(child_path), name)
            except (ToolError, OSError) as e:
                logger.warning(f"Error processing path {child_path} during find: {e}")

    def _accepts(self, entry: EntryInfo, params: FindParameters) -> bool:
        if params.entry_type_filter is not EntryTypeFilter.ANY:
            if entry.type.value != params.entry_type_filter.value:
                return False
        return self.evaluator.matches_all(entry, params.match_criteria)

    def _deadline(self) -> Optional[float]:
        if self.config.find_timeout_ms <= 0:
            return None
        return time.monotonic() + self.config.find_timeout_ms / 1000

    def _check_deadline(self, deadline: Optional[float], current_path: str) -> None:
        if deadline is not None and time.monotonic() > deadline:
            logger.warning(f"find exceeded {self.config.find_timeout_ms} ms while at {current_path}")
            raise ToolError(
                ErrorCode.ERR_OPERATION_TIMEOUT,
                f"Find operation exceeded the server time limit of {self.config.find_timeout_ms} ms.",
            )
