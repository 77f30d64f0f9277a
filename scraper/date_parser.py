"""Permissive date parsing for scraped event listings."""
import logging
import re
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from dateutil import parser as dateparser

logger = logging.getLogger(__name__)

_DOTTED_DATE = re.compile(r'\d{1,2}\.\d{1,2}\.\d{4}')

_MONTHS = {
    name: index
    for index, name in enumerate(
        ['january', 'february', 'march', 'april', 'may', 'june', 'july',
         'august', 'september', 'october', 'november', 'december'],
        start=1
    )
}


def _month_number(name: str) -> int:
    name = name.lower()
    for full_name, number in _MONTHS.items():
        if len(name) >= 3 and full_name.startswith(name):
            return number
    raise ValueError(f"Unknown month name: {name}")


# Ordered fallbacks; the first pattern that matches wins.
_FALLBACK_PATTERNS: List[Tuple[re.Pattern, Callable[[re.Match], datetime]]] = [
    # MM/DD/YYYY
    (re.compile(r'(\d{1,2})/(\d{1,2})/(\d{4})'),
     lambda m: datetime(int(m.group(3)), int(m.group(1)), int(m.group(2)))),
    # DD.MM.YYYY
    (re.compile(r'(\d{1,2})\.(\d{1,2})\.(\d{4})'),
     lambda m: datetime(int(m.group(3)), int(m.group(2)), int(m.group(1)))),
    # YYYY-MM-DD
    (re.compile(r'(\d{4})-(\d{1,2})-(\d{1,2})'),
     lambda m: datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)))),
    # Month DD, YYYY
    (re.compile(r'([A-Za-z]+) (\d{1,2}),? (\d{4})'),
     lambda m: datetime(int(m.group(3)), _month_number(m.group(1)), int(m.group(2)))),
]


def parse_date(date_text: Optional[str]) -> Optional[datetime]:
    """
    Parse a date string found in scraped content.

    A full parse is attempted first. Dotted dates are read day-first and
    slashed dates month-first. Timezone-aware values keep their wall time and
    drop the offset. When the full parse fails, explicit patterns are tried
    in order: MM/DD/YYYY, DD.MM.YYYY, YYYY-MM-DD, "Month DD, YYYY".

    Args:
        date_text: Raw date text

    Returns:
        Naive datetime or None if no interpretation succeeds
    """
    if not date_text or not date_text.strip():
        return None

    date_text = date_text.strip()

    try:
        parsed = dateparser.parse(
            date_text,
            dayfirst=bool(_DOTTED_DATE.search(date_text))
        )
        if parsed.tzinfo is not None:
            parsed = parsed.replace(tzinfo=None)
        return parsed
    except (ValueError, OverflowError) as e:
        logger.debug(f"Full parse failed for '{date_text}': {e}")

    for pattern, build in _FALLBACK_PATTERNS:
        match = pattern.search(date_text)
        if match:
            try:
                return build(match)
            except ValueError as e:
                logger.debug(f"Pattern {pattern.pattern} matched '{date_text}' but failed: {e}")
                return None

    return None
