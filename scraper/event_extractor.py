"""Heuristic extraction of event records from arbitrary HTML pages."""
import json
import logging
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from processor.models import RawEvent
from scraper.date_parser import parse_date

logger = logging.getLogger(__name__)

# Common container patterns for event listings, tried in order.
EVENT_CONTAINER_SELECTORS = [
    'div[class*="event"]',
    'div[class*="calendar-item"]',
    'article[class*="event"]',
    'div[id*="event"]',
    'li[class*="event"]',
    'div[class*="tribe-events"]',
    'div[class*="schedule"]',
    'div[class*="meetup"]',
    'div[itemtype*="Event"]',
    'div[class*="session"]',
    'div[class*="workshop"]',
    'div[class*="conference"]',
    'div[class*="webinar"]',
]

TITLE_SELECTOR = 'h1, h2, h3, h4, div[class*="title"], span[class*="title"]'
DESCRIPTION_SELECTOR = 'div[class*="desc"], div[class*="description"], p'
DATE_SELECTOR = 'time, div[class*="date"], span[class*="date"]'
LOCATION_SELECTOR = 'div[class*="location"], span[class*="location"], address'
LINK_SELECTOR = 'a[class*="more"], a[class*="link"], a[class*="url"]'

JSON_LD_EVENT_TYPES = ('Event', 'events')

Candidate = Union[Tag, Dict[str, Any]]


class HtmlEventExtractor:
    """Locates event-like fragments in a page and normalizes them."""

    def __init__(self, source_url: str, source_type: str = 'website'):
        """
        Initialize the extractor.

        Args:
            source_url: URL the page was fetched from, used to resolve
                relative links
            source_type: Source kind recorded on extracted events
        """
        self.source_url = source_url
        self.source_type = source_type
        parsed = urlparse(source_url)
        self.base_url = f"{parsed.scheme}://{parsed.netloc}"

    def extract_events(self, html_content: str) -> List[RawEvent]:
        """
        Extract every valid event found in the page.

        Args:
            html_content: Page body

        Returns:
            List of RawEvent objects
        """
        soup = BeautifulSoup(html_content, 'html.parser')
        events = []

        for candidate in self.find_event_candidates(soup):
            try:
                if isinstance(candidate, dict):
                    event = self.extract_structured_event(candidate)
                else:
                    event = self.extract_element_event(candidate)
            except (TypeError, ValueError, AttributeError, KeyError) as e:
                logger.warning(f"Failed to parse event candidate: {e}")
                continue

            if event:
                events.append(event)

        logger.info(f"Extracted {len(events)} events from {self.source_url}")
        return events

    def find_event_candidates(self, soup: BeautifulSoup) -> List[Candidate]:
        """
        Locate candidate event fragments.

        Every match of every container selector is kept. JSON-LD blocks are
        only consulted when no container matched.

        Args:
            soup: Parsed document

        Returns:
            List of DOM elements or decoded JSON-LD objects
        """
        candidates: List[Candidate] = []

        for selector in EVENT_CONTAINER_SELECTORS:
            candidates.extend(soup.select(selector))

        if candidates:
            return candidates

        for script in soup.find_all('script', attrs={'type': 'application/ld+json'}):
            try:
                data = json.loads(script.string or script.get_text())
            except ValueError as e:
                logger.debug(f"Skipping malformed JSON-LD block: {e}")
                continue

            items = data if isinstance(data, list) else [data]
            for item in items:
                if isinstance(item, dict) and item.get('@type') in JSON_LD_EVENT_TYPES:
                    candidates.append(item)

        return candidates

    def extract_element_event(self, element: Tag) -> Optional[RawEvent]:
        """
        Extract an event from a DOM fragment.

        Args:
            element: Candidate container element

        Returns:
            RawEvent or None if title or start date cannot be resolved
        """
        title = self._select_text(element, TITLE_SELECTOR)
        description = self._select_text(element, DESCRIPTION_SELECTOR)
        location = self._select_text(element, LOCATION_SELECTOR)

        start_date = None
        date_text = self._select_text(element, DATE_SELECTOR)
        if date_text:
            start_date = parse_date(date_text)

        url = ''
        link = element.select_one(LINK_SELECTOR)
        if link is not None and link.get('href'):
            url = self.resolve_url(link['href'])

        image = ''
        img = element.find('img')
        if img is not None and img.get('src'):
            image = self.resolve_url(img['src'])

        if not title or start_date is None:
            return None

        return RawEvent(
            title=title,
            description=description,
            start_date=start_date,
            location=location,
            url=url,
            image=image,
            source_type=self.source_type,
            source_url=self.source_url
        )

    def extract_structured_event(self, data: Dict[str, Any]) -> Optional[RawEvent]:
        """
        Map a JSON-LD Event object to a RawEvent.

        Args:
            data: Decoded JSON-LD object

        Returns:
            RawEvent or None if name or start date cannot be resolved
        """
        title = str(data.get('name') or '').strip()
        start_date = parse_date(str(data.get('startDate') or ''))
        if not title or start_date is None:
            return None

        image = data.get('image') or ''
        if isinstance(image, list):
            image = image[0] if image else ''
        if isinstance(image, dict):
            image = image.get('url', '')

        organizer = data.get('organizer')
        organizer_name = ''
        if isinstance(organizer, dict):
            organizer_name = organizer.get('name') or ''

        return RawEvent(
            title=title,
            description=str(data.get('description') or ''),
            start_date=start_date,
            end_date=parse_date(str(data.get('endDate') or '')),
            location=self._structured_location(data.get('location')),
            organizer=organizer_name,
            url=str(data.get('url') or ''),
            image=str(image),
            source_type=self.source_type,
            source_url=self.source_url
        )

    def resolve_url(self, href: str) -> str:
        """Make a relative link absolute against the source scheme and host."""
        href = href.strip()
        if href.startswith('http'):
            return href
        return f"{self.base_url}/{href.lstrip('/')}"

    @staticmethod
    def _select_text(element: Tag, selector: str) -> str:
        match = element.select_one(selector)
        if match is None:
            return ''
        return match.get_text().strip()

    @staticmethod
    def _structured_location(location: Any) -> str:
        if not location:
            return ''
        if isinstance(location, str):
            return location
        if not isinstance(location, dict):
            return ''

        parts = [location.get('name') or '']
        address = location.get('address')
        if isinstance(address, dict):
            parts.extend(
                str(value) for key, value in address.items()
                if not key.startswith('@') and value
            )
        elif isinstance(address, str) and address:
            parts.append(address)

        return ', '.join(part for part in parts if part)
