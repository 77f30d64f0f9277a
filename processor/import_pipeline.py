"""Import run: fetch, filter, dedup, enrich and persist events."""
import logging
import time
from typing import List, Optional

from processor.event_processor import EventProcessor
from processor.models import ImportSummary, RawEvent, ScoredEvent
from processor.relevance import legacy_relevance_score

logger = logging.getLogger(__name__)

AUTO_PUBLISH_MIN_SCORE = 80
PUBLISH_STATUS = 'publish'


class ImportPipeline:
    """Sequences one import run over all active sources."""

    def __init__(self, settings, source_manager, event_filter, event_store, ai_manager=None, processor=None):
        """
        Initialize the pipeline.

        Args:
            settings: ImportSettings snapshot
            source_manager: SourceManager used to fetch events
            event_filter: EventFilter used for blacklist, dedup and tagging
            event_store: Store exposing ``create``, ``update`` and ``get_event``
            ai_manager: Optional AIManager for enrichment
            processor: EventProcessor building stored records
        """
        self.settings = settings
        self.source_manager = source_manager
        self.event_filter = event_filter
        self.event_store = event_store
        self.ai_manager = ai_manager
        self.processor = processor or EventProcessor()

    def run(self) -> ImportSummary:
        """
        Run one import.

        Never raises: an unexpected error ends the run with
        ``success=False`` and the counts reached so far.

        Returns:
            ImportSummary of the run
        """
        summary = ImportSummary()
        start_time = time.time()
        logger.info('Starting import process')

        try:
            events = self.source_manager.fetch_all_events(self.settings.max_events_per_import)
            summary.fetched = len(events)
            logger.info(f"Fetched {len(events)} events from all sources")

            for event in events:
                self._import_event(event, summary)

        except Exception as e:
            summary.success = False
            summary.errors.append(f"Import failed: {e}")
            logger.error(
                f"Import process failed: {e}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )

        logger.info(
            f"Import process completed. Imported: {summary.imported}, "
            f"Updated: {summary.updated}, Skipped: {summary.skipped}",
            extra={
                'duration_seconds': round(time.time() - start_time, 2),
                'fetched': summary.fetched,
                'imported': summary.imported,
                'updated': summary.updated,
                'skipped': summary.skipped,
                'success': summary.success
            }
        )
        return summary

    def evaluate(self, limit: int = None) -> List[ScoredEvent]:
        """
        Fetch and score events without persisting anything.

        Args:
            limit: Maximum number of events; the configured maximum by default

        Returns:
            List of ScoredEvent objects in fetch order
        """
        limit = limit or self.settings.max_events_per_import
        events = self.source_manager.fetch_all_events(limit)
        return [ScoredEvent(event=event, result=self.event_filter.filter_event(event)) for event in events]

    def _import_event(self, event: RawEvent, summary: ImportSummary) -> None:
        if self.event_filter.is_blacklisted(event):
            logger.info(f"Skipped event \"{event.title}\" due to blacklisted keyword")
            summary.skip('blacklisted')
            return

        relevance_score = legacy_relevance_score(event)
        if relevance_score < self.settings.min_relevance_score:
            logger.info(f"Skipped event \"{event.title}\" due to low relevance score ({relevance_score})")
            summary.skip('low_score')
            return

        existing_id = self._find_existing(event)
        if existing_id:
            self._update_existing(existing_id, event, relevance_score, summary)
            return

        if event.start_date is None:
            logger.info(f"Skipped event \"{event.title}\" without a start date")
            summary.skip('missing_start_date')
            return

        status = self.settings.default_status
        if self.settings.auto_publish and relevance_score >= AUTO_PUBLISH_MIN_SCORE:
            status = PUBLISH_STATUS

        if self.settings.use_ai_for_descriptions and event.description:
            event.description = self._enhance_description(event.description, event.title)

        try:
            record = self.processor.build_persisted_event(
                event,
                score=relevance_score,
                status=status,
                categories=self.event_filter.detect_categories(event)
            )
            event_id = self.event_store.create(record)
        except Exception as e:
            logger.error(f"Failed to import event \"{event.title}\": {e}",
                         extra={'error_type': type(e).__name__})
            summary.errors.append(f"{event.title}: {e}")
            summary.skip('persist_failed')
            return

        if not event_id:
            # Identity was stored between the lookup and the conditional put
            self._update_existing(record.event_id, event, relevance_score, summary)
            return

        summary.imported += 1

        if self.settings.use_ai_for_seo:
            self._save_seo_meta(event_id, event)

        logger.info(
            f"Imported event \"{event.title}\" with ID {event_id} "
            f"(Relevance: {relevance_score}, Status: {status})",
            extra={
                'event_id': event_id,
                'title': event.title,
                'relevance_score': relevance_score,
                'status': status,
                'source_id': event.source.source_id if event.source else '',
                'url': event.url
            }
        )

    def _find_existing(self, event: RawEvent) -> Optional[str]:
        """
        Resolve an event to a stored identity.

        The exact URL and title lookups come first. Events whose title only
        differs in case or spacing share the same computed identity, so that
        key is checked last.
        """
        existing_id = self.event_filter.event_exists(event)
        if existing_id:
            return existing_id

        if not event.url and event.start_date is None:
            return None

        event_id = self.processor.generate_event_id(event)
        if self.event_store.get_event(event_id):
            return event_id
        return None

    def _update_existing(self, event_id: str, event: RawEvent, score: int, summary: ImportSummary) -> None:
        """Refresh a stored event resolved to the same identity instead of inserting."""
        imported_at = int(time.time())

        try:
            existing = self.event_store.get_event(event_id) or {}
            changes = self.processor.changed_fields(existing, event)

            if changes:
                if 'description' in changes and self.settings.use_ai_for_descriptions:
                    changes['description'] = self._enhance_description(changes['description'], event.title)
                changes['relevance_score'] = score

            changes['imported_at'] = imported_at
            updated = self.event_store.update(event_id, changes)
        except Exception as e:
            logger.error(f"Failed to update event \"{event.title}\": {e}",
                         extra={'error_type': type(e).__name__})
            summary.errors.append(f"{event.title}: {e}")
            summary.skip('update_failed')
            return

        if not updated:
            summary.skip('update_failed')
            return

        summary.updated += 1
        logger.info(
            f"Event \"{event.title}\" already exists as {event_id}",
            extra={'event_id': event_id, 'changed_fields': sorted(changes)}
        )

    def _enhance_description(self, description: str, title: str) -> str:
        if self.ai_manager is None:
            return description

        try:
            enhanced = self.ai_manager.enhance_description(description, title)
        except Exception as e:
            logger.error(f"Description enhancement failed for \"{title}\": {e}")
            return description

        return enhanced or description

    def _save_seo_meta(self, event_id: str, event: RawEvent) -> None:
        if self.ai_manager is None:
            return

        try:
            seo_meta = self.ai_manager.generate_seo_meta(event.title, event.description)
            if seo_meta:
                self.event_store.update(event_id, {
                    'seo_title': seo_meta.title,
                    'seo_description': seo_meta.description
                })
                logger.info(f"SEO meta saved for event ID {event_id}")
        except Exception as e:
            logger.error(f"SEO generation failed for \"{event.title}\": {e}")
