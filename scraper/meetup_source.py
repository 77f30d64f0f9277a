"""Meetup-style JSON API source adapter."""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import requests

from processor.models import RawEvent
from scraper.base import EventSource

logger = logging.getLogger(__name__)


class MeetupSource(EventSource):
    """Fetches upcoming events from a Meetup-style events endpoint."""

    USER_AGENT = 'Sacramento Tech Events Plugin/1.0.0'
    FIELDS = 'description,featured_photo,group_key_photo,plain_text_description'

    def fetch_events(self, limit: int = 10) -> List[RawEvent]:
        """
        Fetch upcoming events from the API.

        Failures never propagate: a malformed item is skipped, and on a
        request failure whatever was collected so far is returned.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of RawEvent objects
        """
        events = []

        try:
            params = {
                'page': limit,
                'fields': self.FIELDS,
                'status': 'upcoming'
            }
            response = requests.get(
                self.config.url,
                params=params,
                timeout=self.options.timeout,
                verify=self.options.verify_ssl,
                headers={'User-Agent': self.USER_AGENT}
            )

            if response.status_code != 200:
                raise ValueError(f"Received {response.status_code} response from API")

            data = response.json()
            if not isinstance(data, list):
                raise ValueError('Invalid response from Meetup API')

            for item in data:
                try:
                    event = self._parse_item(item)
                except (TypeError, ValueError, AttributeError, KeyError, OverflowError, OSError) as e:
                    logger.warning(f"Skipping malformed item from Meetup source '{self.config.name}': {e}")
                    continue

                if event is None:
                    continue

                events.append(event)
                if len(events) >= limit:
                    break

            return events

        except (requests.RequestException, ValueError, TypeError, AttributeError) as e:
            logger.error(
                f"Error fetching events from Meetup source '{self.config.name}': {e}",
                extra={'error_type': type(e).__name__}
            )
            return events

    def _parse_item(self, item: dict) -> Optional[RawEvent]:
        """
        Convert one API item to a RawEvent.

        Args:
            item: Decoded JSON object for one event

        Returns:
            RawEvent or None when name or time is missing
        """
        if not item.get('name') or not item.get('time'):
            return None

        start_date = self._to_datetime(item['time'], item.get('utc_offset'))
        end_date = start_date
        if item.get('duration'):
            end_date = start_date + timedelta(milliseconds=int(item['duration']))

        group = item.get('group') or {}

        return RawEvent(
            title=item['name'],
            description=item.get('description') or '',
            start_date=start_date,
            end_date=end_date,
            location=self._build_location(item.get('venue') or {}),
            organizer=group.get('name') or '',
            url=item.get('link') or '',
            image=self._pick_image(item, group),
            external_id=str(item['id']) if item.get('id') is not None else '',
            source_type=self.kind(),
            source_url=self.config.url
        )

    @staticmethod
    def _to_datetime(epoch_ms, utc_offset_ms=None) -> datetime:
        """Convert epoch milliseconds to a naive local wall time."""
        moment = datetime.fromtimestamp(int(epoch_ms) / 1000, tz=timezone.utc)
        if utc_offset_ms:
            moment = moment + timedelta(milliseconds=int(utc_offset_ms))
        return moment.replace(tzinfo=None)

    @staticmethod
    def _build_location(venue: dict) -> str:
        parts = [venue.get('name'), venue.get('address_1'), venue.get('city')]
        return ', '.join(part for part in parts if part)

    @staticmethod
    def _pick_image(item: dict, group: dict) -> str:
        featured = item.get('featured_photo') or {}
        if featured.get('photo_link'):
            return featured['photo_link']

        key_photo = group.get('key_photo') or {}
        return key_photo.get('photo_link') or ''
