"""Source type registry and multi-source fetch orchestration."""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from processor.models import RawEvent, SourceConfig, SourceStatus
from scraper.base import EventSource, FetchOptions, SourceFetchError
from scraper.meetup_source import MeetupSource
from scraper.website_source import WebsiteSource

logger = logging.getLogger(__name__)

MIN_EVENTS_PER_SOURCE = 5
TEST_FETCH_LIMIT = 5

SourceFactory = Callable[[SourceConfig, FetchOptions], EventSource]


@dataclass
class SourceType:
    """Registered source kind."""
    label: str
    factory: SourceFactory


# Process-wide table of source kinds, populated at import time.
SOURCE_TYPES: Dict[str, SourceType] = {}


def register_source_type(kind: str, label: str, factory: SourceFactory) -> None:
    """
    Register a source kind.

    External code registers additional kinds here before the first fetch.

    Args:
        kind: Source type identifier stored on SourceConfig records
        label: Human-readable name
        factory: Callable building an adapter from (config, options)
    """
    SOURCE_TYPES[kind] = SourceType(label=label, factory=factory)
    logger.debug(f"Registered source type: {label} ({kind})")


def get_source_types() -> Dict[str, SourceType]:
    return dict(SOURCE_TYPES)


register_source_type('meetup', 'Meetup.com', MeetupSource)
register_source_type('website', 'Website', WebsiteSource)


class SourceManager:
    """Instantiates adapters for configured sources and aggregates their events."""

    def __init__(self, source_store, options: FetchOptions = None, registry: Dict[str, SourceType] = None):
        """
        Initialize the manager.

        Args:
            source_store: Store exposing ``get_active_sources``,
                ``get_source`` and ``update_last_check``
            options: HTTP options handed to every adapter
            registry: Source type table; the process-wide one by default
        """
        self.source_store = source_store
        self.options = options or FetchOptions()
        self.registry = SOURCE_TYPES if registry is None else registry

    def create_source_instance(self, source: SourceConfig) -> Optional[EventSource]:
        """
        Build the adapter for a source.

        Returns:
            Adapter instance, or None for unknown kinds or failing factories
        """
        source_type = self.registry.get(source.source_type)
        if source_type is None:
            logger.error(f"Failed to create source instance: unknown source type \"{source.source_type}\"")
            return None

        try:
            instance = source_type.factory(source, self.options)
        except Exception as e:
            logger.error(f"Failed to create source instance for \"{source.name}\": {e}",
                         extra={'error_type': type(e).__name__})
            return None

        logger.debug(f"Created source instance for \"{source.name}\" ({source.source_type})")
        return instance

    def fetch_all_events(self, limit: int = 50) -> List[RawEvent]:
        """
        Fetch events from every active source.

        Each source gets ``max(5, limit // source_count)`` events. A source
        that raises contributes nothing and keeps its previous checkpoint;
        the remaining sources are still fetched. The aggregate is cut to
        ``limit`` in source order then event order.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of RawEvent objects tagged with their SourceConfig
        """
        all_events: List[RawEvent] = []
        sources = self.source_store.get_active_sources()

        if not sources:
            logger.info('No active sources found to fetch events from')
            return all_events

        events_per_source = max(MIN_EVENTS_PER_SOURCE, limit // len(sources))
        logger.debug(f"Fetching up to {events_per_source} events per source")

        for source in sources:
            events = self._fetch_from_source(source, events_per_source)
            if events is None:
                continue
            all_events.extend(events)

        if len(all_events) > limit:
            all_events = all_events[:limit]
            logger.debug(f"Limited events to {limit} as requested")

        logger.info(f"Fetched a total of {len(all_events)} events from all sources")
        return all_events

    def get_events_from_source(self, source_id: str, limit: int = 10) -> List[RawEvent]:
        """Fetch events from a single configured source."""
        source = self.source_store.get_source(source_id)
        if source is None:
            logger.error(f"Cannot get events: source ID {source_id} not found")
            return []
        if source.status == SourceStatus.DELETED:
            logger.error(f"Cannot get events: source ID {source_id} is deleted")
            return []

        return self._fetch_from_source(source, limit) or []

    def test_source(self, source_type: str, url: str) -> dict:
        """
        Try a source definition without saving it.

        Returns:
            Dict with the event count and the first event, if any

        Raises:
            ValueError: If the source type is not registered
            SourceFetchError: If the fetch fails
        """
        source = SourceConfig(source_id='', name='Test Source', source_type=source_type, url=url)
        instance = self.create_source_instance(source)
        if instance is None:
            raise ValueError('Invalid source type.')

        logger.info(f"Testing source connection: {url}")
        try:
            events = instance.fetch_events(TEST_FETCH_LIMIT)
        except SourceFetchError as e:
            logger.error(f"Source test failed: {e}")
            raise

        logger.info(f"Source test successful: found {len(events)} events")
        return {
            'count': len(events),
            'sample': events[0] if events else None
        }

    def _fetch_from_source(self, source: SourceConfig, limit: int) -> Optional[List[RawEvent]]:
        """
        Fetch from one source inside a fault boundary.

        Returns:
            Events, or None when the adapter could not be built or raised
        """
        logger.info(f"Fetching events from source: {source.name} ({source.source_type})")

        instance = self.create_source_instance(source)
        if instance is None:
            return None

        try:
            events = instance.fetch_events(limit)
        except Exception as e:
            logger.error(
                f"Error fetching events from {source.name}: {e}",
                extra={'source_id': source.source_id, 'error_type': type(e).__name__}
            )
            return None

        logger.info(f"Fetched {len(events)} events from {source.name}")

        for event in events:
            event.source = source

        self.source_store.update_last_check(source.source_id)
        return events
