"""Capability contract shared by all event source adapters."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from processor.models import RawEvent, SourceConfig

DEFAULT_USER_AGENT = 'Mozilla/5.0 (compatible; Sacramento Tech Events/1.0; +https://sacitcentral.com)'


class SourceFetchError(Exception):
    """Recoverable transport or HTTP failure while fetching a source."""


@dataclass
class FetchOptions:
    """HTTP options applied to every source request."""
    timeout: int = 30
    verify_ssl: bool = True
    user_agent: str = DEFAULT_USER_AGENT


class EventSource(ABC):
    """Adapter that fetches and normalizes events from one source."""

    def __init__(self, config: SourceConfig, options: FetchOptions = None):
        self.config = config
        self.options = options or FetchOptions()

    def name(self) -> str:
        return self.config.name

    def kind(self) -> str:
        return self.config.source_type

    @abstractmethod
    def fetch_events(self, limit: int = 10) -> List[RawEvent]:
        """
        Fetch up to ``limit`` events from the source.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of RawEvent objects
        """
