"""Data models for the event import pipeline."""
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class SourceStatus(str, Enum):
    """Lifecycle status of a configured source."""
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    DELETED = 'deleted'


@dataclass
class SourceConfig:
    """Configured external origin of event listings."""
    source_id: str
    name: str
    source_type: str
    url: str
    status: SourceStatus = SourceStatus.ACTIVE
    last_check: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass
class RawEvent:
    """Unvalidated event produced by a source adapter."""
    title: str
    description: str = ''
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: str = ''
    organizer: str = ''
    url: str = ''
    image: str = ''
    external_id: str = ''
    source_type: str = ''
    source_url: str = ''
    source: Optional[SourceConfig] = None


@dataclass
class FilterResult:
    """Verdict of the filter engine for one event."""
    passed: bool
    score: int
    reason: str = ''


@dataclass
class ScoredEvent:
    """Raw event paired with its filter verdict."""
    event: RawEvent
    result: FilterResult


@dataclass
class SeoMeta:
    """SEO title and description generated for an event."""
    title: str
    description: str


@dataclass
class PersistedEvent:
    """Event record as stored in the event store."""
    event_id: str
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    event_date: str
    location: str
    organizer: str
    url: str
    image: str
    external_id: str
    source_id: str
    source_type: str
    source_name: str
    relevance_score: int
    status: str
    categories: List[str]
    imported_at: int
    seo_title: str = ''
    seo_description: str = ''


@dataclass
class ImportSummary:
    """Counters accumulated over one pipeline run."""
    fetched: int = 0
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    skip_reasons: Counter = field(default_factory=Counter)
    errors: List[str] = field(default_factory=list)
    success: bool = True

    def skip(self, reason: str) -> None:
        self.skipped += 1
        self.skip_reasons[reason] += 1

    def to_dict(self) -> dict:
        return {
            'count': self.fetched,
            'filtered': self.skipped,
            'created': self.imported,
            'updated': self.updated,
            'skip_reasons': dict(self.skip_reasons),
            'errors': list(self.errors),
            'success': self.success
        }
