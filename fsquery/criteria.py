"""Criterion evaluation for the find tool.

A criterion never raises: a bad regex, an unreadable file or an
unparseable date makes that criterion not match the entry, and the
reason is logged. One malformed criterion therefore cannot abort a
whole traversal.
"""

import fnmatch
import logging
import math
import os
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence

from .config import ServerConfig
from .errors import ToolError
from .fs_ops import read_file_as_text
from .mime import is_searchable_text, looks_like_text
from .models import (
    DATE_ATTRIBUTES,
    STRING_ATTRIBUTES,
    ContentPatternCriterion,
    DateOperator,
    EntryInfo,
    EntryType,
    MatchCriterion,
    MetadataAttribute,
    MetadataFilterCriterion,
    NamePatternCriterion,
    NumericOperator,
    StringOperator,
)

logger = logging.getLogger(__name__)

_BRACE_GROUP = re.compile(r"\{([^{}]*,[^{}]*)\}")
_LAST_MS_OF_DAY = timedelta(days=1) - timedelta(milliseconds=1)
_FRACTION = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")


def expand_braces(pattern: str) -> List[str]:
    """Expand shell-style alternatives: '*.{py,txt}' -> ['*.py', '*.txt']"""
    match = _BRACE_GROUP.search(pattern)
    if not match:
        return [pattern]
    expanded = []
    for alternative in match.group(1).split(","):
        expanded.extend(expand_braces(pattern[:match.start()] + alternative + pattern[match.end():]))
    return expanded


def matches_glob(name: str, pattern: str) -> bool:
    # fnmatch lets '*' and '?' match a leading dot, so hidden names are not special
    return any(fnmatch.fnmatchcase(name, p) for p in expand_braces(pattern))


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware UTC datetime, or None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        # fromisoformat before 3.11 accepts only 3 or 6 fractional digits
        text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_day(value: Any) -> Optional[date]:
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def matches_string(
    value: Optional[str],
    operator: Any,
    criterion_value: Any,
    case_sensitive: bool = False,
) -> bool:
    if value is None or criterion_value is None:
        return False
    if not isinstance(operator, StringOperator):
        return False

    criterion_value = str(criterion_value)
    if operator is StringOperator.MATCHES_REGEX:
        try:
            regex = re.compile(criterion_value, 0 if case_sensitive else re.IGNORECASE)
        except re.error as e:
            logger.warning(f"Invalid regex in find criteria: {criterion_value!r} ({e})")
            return False
        return regex.search(value) is not None

    val = value if case_sensitive else value.lower()
    crit = criterion_value if case_sensitive else criterion_value.lower()
    if operator is StringOperator.EQUALS:
        return val == crit
    if operator is StringOperator.NOT_EQUALS:
        return val != crit
    if operator is StringOperator.CONTAINS:
        return crit in val
    if operator is StringOperator.STARTS_WITH:
        return val.startswith(crit)
    if operator is StringOperator.ENDS_WITH:
        return val.endswith(crit)
    return False


def matches_numeric(value: Optional[int], operator: Any, criterion_value: Any) -> bool:
    if not isinstance(operator, NumericOperator):
        return False

    # A null criterion value asks whether the attribute is defined at all
    if criterion_value is None:
        if operator is NumericOperator.EQ:
            return value is None
        if operator is NumericOperator.NEQ:
            return value is not None
        return False

    if value is None or isinstance(criterion_value, bool):
        return False
    try:
        number = float(criterion_value)
    except (TypeError, ValueError):
        logger.debug(f"Non-numeric value in size criterion: {criterion_value!r}")
        return False
    if math.isnan(number):
        return False

    if operator is NumericOperator.EQ:
        return value == number
    if operator is NumericOperator.NEQ:
        return value != number
    if operator is NumericOperator.GT:
        return value > number
    if operator is NumericOperator.GTE:
        return value >= number
    if operator is NumericOperator.LT:
        return value < number
    if operator is NumericOperator.LTE:
        return value <= number
    return False


def matches_date(value_iso: Optional[str], operator: Any, criterion_value: Any) -> bool:
    if value_iso is None or not isinstance(operator, DateOperator):
        return False

    value_dt = parse_iso_datetime(value_iso)
    if value_dt is None:
        logger.warning(f"Invalid date on entry: {value_iso!r}")
        return False

    if operator is DateOperator.ON_DATE:
        day = _parse_day(criterion_value)
        if day is None:
            crit_dt = parse_iso_datetime(criterion_value)
            if crit_dt is None:
                logger.warning(f"Invalid date format in find criteria: {criterion_value!r}")
                return False
            day = crit_dt.date()
        day_start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
        return day_start <= value_dt <= day_start + _LAST_MS_OF_DAY

    crit_dt = parse_iso_datetime(criterion_value)
    if crit_dt is None:
        logger.warning(f"Invalid date format in find criteria: {criterion_value!r}")
        return False
    if operator is DateOperator.BEFORE:
        return value_dt < crit_dt
    if operator is DateOperator.AFTER:
        return value_dt > crit_dt
    return False


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


class CriterionEvaluator:
    """Decides whether one entry satisfies one criterion."""

    def __init__(self, config: ServerConfig):
        self.max_read_bytes = config.max_file_read_bytes_find

    def matches_all(self, entry: EntryInfo, criteria: Sequence[MatchCriterion]) -> bool:
        return all(self.matches(entry, criterion) for criterion in criteria)

    def matches(self, entry: EntryInfo, criterion: MatchCriterion) -> bool:
        try:
            if isinstance(criterion, NamePatternCriterion):
                return matches_glob(entry.name, criterion.pattern)
            if isinstance(criterion, ContentPatternCriterion):
                return self._matches_content(entry, criterion)
            if isinstance(criterion, MetadataFilterCriterion):
                return self._matches_metadata(entry, criterion)
            logger.warning(f"Unsupported criterion type: {type(criterion).__name__}")
            return False
        except Exception as e:
            logger.warning(f"Criterion evaluation failed for {entry.path}: {e}")
            return False

    def _matches_content(self, entry: EntryInfo, criterion: ContentPatternCriterion) -> bool:
        if entry.type is not EntryType.FILE:
            return False

        if criterion.file_types_to_search:
            allowed = {_normalize_extension(e) for e in criterion.file_types_to_search}
            ext = os.path.splitext(entry.name)[1].lower()
            if ext not in allowed:
                return False
            if not looks_like_text(entry.mime_type):
                logger.debug(f"Skipping content search for {entry.path} (MIME: {entry.mime_type})")
                return False
        elif not is_searchable_text(entry.mime_type):
            logger.debug(f"Skipping content search for presumed binary file {entry.path} (MIME: {entry.mime_type})")
            return False

        try:
            content = read_file_as_text(entry.path, self.max_read_bytes)
        except ToolError as e:
            logger.warning(f"Could not read/search content of {entry.path}: {e.message}")
            return False

        case_sensitive = criterion.case_sensitive is True
        if criterion.is_regex:
            try:
                regex = re.compile(criterion.pattern, 0 if case_sensitive else re.IGNORECASE)
            except re.error as e:
                logger.warning(f"Invalid regex in content criterion: {criterion.pattern!r} ({e})")
                return False
            return regex.search(content) is not None

        if case_sensitive:
            return criterion.pattern in content
        return criterion.pattern.casefold() in content.casefold()

    def _matches_metadata(self, entry: EntryInfo, criterion: MetadataFilterCriterion) -> bool:
        attr = criterion.attribute
        if attr in STRING_ATTRIBUTES:
            if attr is MetadataAttribute.NAME:
                value = entry.name
            elif attr is MetadataAttribute.ENTRY_TYPE:
                value = entry.type.value
            else:
                value = entry.mime_type
            return matches_string(value, criterion.operator, criterion.value, criterion.case_sensitive is True)

        if attr is MetadataAttribute.SIZE_BYTES:
            return matches_numeric(entry.size_bytes, criterion.operator, criterion.value)

        if attr in DATE_ATTRIBUTES:
            value = entry.created_at if attr is MetadataAttribute.CREATED_AT else entry.modified_at
            return matches_date(value, criterion.operator, criterion.value)

        return False
