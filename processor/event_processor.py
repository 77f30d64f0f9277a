"""Event processor for normalizing raw events into persisted records."""
import hashlib
import logging
import time
from datetime import datetime, timedelta
from difflib import SequenceMatcher
from typing import List

from processor.models import PersistedEvent, RawEvent

logger = logging.getLogger(__name__)


class EventProcessor:
    """Builds persisted event records and decides when stored ones change."""

    DEFAULT_DURATION = timedelta(hours=2)
    DESCRIPTION_SIMILARITY_THRESHOLD = 90

    def build_persisted_event(
        self,
        event: RawEvent,
        score: int,
        status: str,
        categories: List[str] = None
    ) -> PersistedEvent:
        """
        Convert a raw event into the record written to the event store.

        Args:
            event: Raw event with a start date
            score: Relevance score to record
            status: Target publication status
            categories: Category names detected for the event

        Returns:
            PersistedEvent object

        Raises:
            ValueError: If the event has no start date
        """
        if event.start_date is None:
            raise ValueError(f"Event '{event.title}' has no start date")

        end_date = event.end_date or event.start_date + self.DEFAULT_DURATION
        source = event.source

        return PersistedEvent(
            event_id=self.generate_event_id(event),
            title=event.title,
            description=event.description,
            start_date=event.start_date,
            end_date=end_date,
            event_date=event.start_date.strftime('%Y-%m-%d'),
            location=event.location,
            organizer=event.organizer,
            url=event.url,
            image=event.image,
            external_id=event.external_id,
            source_id=source.source_id if source else '',
            source_type=event.source_type or (source.source_type if source else ''),
            source_name=source.name if source else '',
            relevance_score=score,
            status=status,
            categories=list(categories or []),
            imported_at=int(time.time())
        )

    def generate_event_id(self, event: RawEvent) -> str:
        """
        Generate the identity of an event.

        The canonical URL identifies an event when present; otherwise the
        normalized title and start date do.

        Args:
            event: Raw event

        Returns:
            Event ID (SHA256 hash)
        """
        if event.url:
            composite = f"url|{event.url}"
        else:
            start = event.start_date.strftime('%Y-%m-%d') if event.start_date else ''
            composite = f"title|{self.normalize_title(event.title)}|{start}"

        return hashlib.sha256(composite.encode('utf-8')).hexdigest()

    @staticmethod
    def normalize_title(title: str) -> str:
        return ' '.join(title.split()).lower()

    def description_similarity(self, old: str, new: str) -> float:
        """Percentage similarity of two descriptions."""
        if not old and not new:
            return 100.0
        return SequenceMatcher(None, old or '', new or '').ratio() * 100

    def changed_fields(self, existing: dict, event: RawEvent) -> dict:
        """
        Work out which stored fields an incoming event should replace.

        The title is replaced whenever it differs. The description is only
        replaced when the incoming one is non-empty and less than 90%
        similar to the stored one.

        Args:
            existing: Stored event attributes
            event: Incoming raw event resolved to the same identity

        Returns:
            Mapping of field name to new value; empty when nothing changed
        """
        changes = {}

        if existing.get('title') != event.title:
            changes['title'] = event.title

        if event.description:
            similarity = self.description_similarity(existing.get('description', ''), event.description)
            if similarity < self.DESCRIPTION_SIMILARITY_THRESHOLD:
                changes['description'] = event.description

        return changes

    @staticmethod
    def format_datetime(value: datetime) -> str:
        return value.strftime('%Y-%m-%d %H:%M:%S')
