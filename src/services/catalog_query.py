"""Search, filter and sort over a built sound catalog."""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from src.models.api_models import Sound
from src.models.internal_models import CatalogQuery

logger = logging.getLogger(__name__)

_DATE_FORMATS = ("%Y/%m/%d", "%d.%m.%Y", "%B %d, %Y", "%b %d, %Y", "%d %B %Y")


class NoSoundsFoundError(Exception):
    """Raised when a catalog query leaves no sounds."""
    pass


def parse_publish_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a publish date string into a naive UTC datetime.

    ISO 8601 is tried first, then a few common written formats. Returns None
    when the value cannot be parsed.
    """
    if not value:
        return None

    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is not None and parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _matches_search(sound: Sound, term: str) -> bool:
    term = term.lower()
    return (
        term in sound.name.lower()
        or any(term in tag.lower() for tag in sound.metadata.tags)
        or term in sound.metadata.author.lower()
    )


def _date_range_predicate(start: Optional[str], end: Optional[str]) -> Callable[[Sound], bool]:
    start_date = parse_publish_date(start) if start else None
    end_date = parse_publish_date(end) if end else None
    # A bound that was supplied but cannot be parsed matches nothing
    unparseable = (start and start_date is None) or (end and end_date is None)

    def predicate(sound: Sound) -> bool:
        if unparseable:
            return False
        published = parse_publish_date(sound.metadata.publishDate)
        if published is None:
            return False
        if start_date is not None and published < start_date:
            return False
        if end_date is not None and published > end_date:
            return False
        return True

    return predicate


def _apply_filter(sounds: List[Sound], query: CatalogQuery) -> List[Sound]:
    kind = (query.filter or "").lower()

    if kind == "author" and query.author:
        author = query.author.lower()
        return [sound for sound in sounds if sound.metadata.author.lower() == author]

    if kind == "tag" and query.tag:
        tag = query.tag.lower()
        return [
            sound for sound in sounds
            if any(t.lower() == tag for t in sound.metadata.tags)
        ]

    if kind == "date" and (query.start_date or query.end_date):
        predicate = _date_range_predicate(query.start_date, query.end_date)
        return [sound for sound in sounds if predicate(sound)]

    if kind and kind not in ("author", "tag", "date"):
        logger.info(f"Ignoring unknown catalog filter: {query.filter}")
    return sounds


def _sort_by_publish_date(sounds: List[Sound], direction: str) -> List[Sound]:
    dated = []
    undated = []
    for sound in sounds:
        published = parse_publish_date(sound.metadata.publishDate)
        if published is None:
            undated.append(sound)
        else:
            dated.append((published, sound))

    descending = direction.lower() != "asc"
    dated.sort(key=lambda item: item[0], reverse=descending)
    return [sound for _, sound in dated] + undated


def apply_query(sounds: List[Sound], query: CatalogQuery) -> List[Sound]:
    """
    Apply search, then filter, then sort to a catalog.

    Args:
        sounds: Catalog produced by the catalog builder
        query: Search term, filter kind with its parameters, sort direction

    Returns:
        The matching sounds; the input list is never modified

    Raises:
        NoSoundsFoundError: If nothing matches
    """
    result = list(sounds)

    if query.search:
        result = [sound for sound in result if _matches_search(sound, query.search)]

    if query.filter:
        result = _apply_filter(result, query)

    if query.sort:
        result = _sort_by_publish_date(result, query.sort)

    if not result:
        raise NoSoundsFoundError("No sounds found")
    return result
