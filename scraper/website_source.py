"""Generic website scraper source adapter."""
import logging
from typing import List

import requests

from processor.models import RawEvent
from scraper.base import EventSource, SourceFetchError
from scraper.event_extractor import HtmlEventExtractor

logger = logging.getLogger(__name__)


class WebsiteSource(EventSource):
    """Scrapes events from an arbitrary HTML page."""

    def fetch_events(self, limit: int = 10) -> List[RawEvent]:
        """
        Fetch the configured page and extract events from it.

        Args:
            limit: Accepted for interface compatibility; the page yields
                whatever it contains and the orchestrator caps the total

        Returns:
            List of RawEvent objects

        Raises:
            SourceFetchError: If the URL is missing, the request fails or
                the response status is not 200
        """
        if not self.config.url:
            raise SourceFetchError('Source URL is required.')

        logger.info(f"Fetching website source '{self.config.name}': {self.config.url}")
        html_content = self._fetch_html()

        extractor = HtmlEventExtractor(self.config.url, source_type=self.kind())
        return extractor.extract_events(html_content)

    def _fetch_html(self) -> str:
        """
        Fetch the page body.

        Returns:
            HTML content as string

        Raises:
            SourceFetchError: On transport errors or a non-200 status
        """
        try:
            response = requests.get(
                self.config.url,
                timeout=self.options.timeout,
                verify=self.options.verify_ssl,
                headers={'User-Agent': self.options.user_agent}
            )
        except requests.RequestException as e:
            raise SourceFetchError(str(e)) from e

        if response.status_code != 200:
            raise SourceFetchError(
                f"Error fetching website content. Response code: {response.status_code}"
            )

        return response.text
