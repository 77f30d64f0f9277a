"""Filtering and duplicate detection for incoming events."""
import logging
from typing import List, Optional

from processor.models import FilterResult, RawEvent
from processor.relevance import RelevanceScorer, event_content

logger = logging.getLogger(__name__)


class EventFilter:
    """Applies keyword rules, the score threshold and identity lookups."""

    def __init__(self, settings, scorer: RelevanceScorer, event_store=None):
        """
        Initialize the filter.

        Args:
            settings: ImportSettings snapshot
            scorer: Per-category relevance scorer
            event_store: Store exposing ``find_by_url`` and
                ``find_by_title_and_date``
        """
        self.settings = settings
        self.scorer = scorer
        self.event_store = event_store

    def filter_event(self, event: RawEvent) -> FilterResult:
        """
        Decide whether an event qualifies for import.

        The required-keyword and blacklist rules can only turn a passing
        verdict into a failing one.

        Args:
            event: Event to evaluate

        Returns:
            FilterResult with pass flag, score and reason
        """
        if not event.title:
            return FilterResult(passed=False, score=0, reason='Missing title')

        if event.start_date is None:
            return FilterResult(passed=False, score=0, reason='Missing start date')

        score = self.scorer.score(event)
        min_score = self.settings.min_relevance_score

        if score >= min_score:
            result = FilterResult(passed=True, score=score)
        else:
            result = FilterResult(
                passed=False,
                score=score,
                reason=f"Low relevance score: {score} (minimum: {min_score})"
            )

        if self.settings.required_keywords and not self.has_required_keyword(event):
            result.passed = False
            result.reason = 'Missing required keyword'

        keyword = self.blacklisted_keyword(event)
        if keyword:
            result.passed = False
            result.reason = f"Contains blacklisted keyword: {keyword}"
            logger.info(f"Event \"{event.title}\" rejected due to blacklisted keyword: {keyword}")

        if result.passed:
            logger.info(f"Event \"{event.title}\" passed filtering with score: {score}")
        else:
            logger.info(f"Event \"{event.title}\" failed filtering: {result.reason}")

        return result

    def blacklisted_keyword(self, event: RawEvent) -> Optional[str]:
        """First blacklisted keyword found in title or description."""
        content = event_content(event)
        for keyword in self.settings.blacklist_keywords:
            if keyword.lower() in content:
                return keyword
        return None

    def is_blacklisted(self, event: RawEvent) -> bool:
        return self.blacklisted_keyword(event) is not None

    def has_required_keyword(self, event: RawEvent) -> bool:
        content = event_content(event)
        return any(keyword.lower() in content for keyword in self.settings.required_keywords)

    def detect_categories(self, event: RawEvent) -> List[str]:
        return self.scorer.category_map.detect_categories(event_content(event))

    def event_exists(self, event: RawEvent) -> Optional[str]:
        """
        Resolve an event to a stored identity.

        Looks up the canonical URL first, then the exact title on the same
        calendar day.

        Args:
            event: Incoming event

        Returns:
            Stored event ID, or None when the event is new
        """
        if event.url:
            event_id = self.event_store.find_by_url(event.url)
            if event_id:
                return event_id

        if event.title and event.start_date is not None:
            event_id = self.event_store.find_by_title_and_date(
                event.title,
                event.start_date.strftime('%Y-%m-%d')
            )
            if event_id:
                return event_id

        return None
