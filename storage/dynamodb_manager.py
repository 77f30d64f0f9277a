"""DynamoDB event store for imported events."""
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from processor.models import PersistedEvent

logger = logging.getLogger(__name__)


class DynamoDBEventStore:
    """
    Event store with identity lookups.

    The table is keyed by ``event_id``. Two global secondary indexes back the
    identity lookups: ``url-index`` (hash ``url``) and ``title-date-index``
    (hash ``title``, range ``event_date``). Events without a URL omit the
    attribute so the URL index stays sparse.
    """

    URL_INDEX = 'url-index'
    TITLE_DATE_INDEX = 'title-date-index'

    def __init__(self, table_name: str, dynamodb=None):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
            dynamodb: Optional boto3 DynamoDB resource
        """
        self.table_name = table_name
        self.dynamodb = dynamodb or boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBEventStore for table: {table_name}")

    def find_by_url(self, url: str) -> Optional[str]:
        """
        Find a stored event by exact canonical URL.

        Returns:
            Event ID or None
        """
        if not url:
            return None

        response = self.table.query(
            IndexName=self.URL_INDEX,
            KeyConditionExpression=Key('url').eq(url),
            Limit=1
        )
        items = response.get('Items', [])
        return items[0]['event_id'] if items else None

    def find_by_title_and_date(self, title: str, event_date: str) -> Optional[str]:
        """
        Find a stored event by exact title on the same calendar day.

        Args:
            title: Event title
            event_date: Day in YYYY-MM-DD format

        Returns:
            Event ID or None
        """
        if not title or not event_date:
            return None

        response = self.table.query(
            IndexName=self.TITLE_DATE_INDEX,
            KeyConditionExpression=Key('title').eq(title) & Key('event_date').eq(event_date),
            Limit=1
        )
        items = response.get('Items', [])
        return items[0]['event_id'] if items else None

    def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        """Read the stored attributes of one event."""
        response = self.table.get_item(Key={'event_id': event_id})
        item = response.get('Item')
        if not item:
            return None
        return {key: self._from_dynamodb(value) for key, value in item.items()}

    def create(self, event: PersistedEvent) -> Optional[str]:
        """
        Insert a new event unless its identity is already stored.

        Returns:
            Event ID, or None when an event with the same identity exists

        Raises:
            ClientError: On any other DynamoDB failure
        """
        try:
            self.table.put_item(
                Item=self._persisted_event_to_item(event),
                ConditionExpression='attribute_not_exists(event_id)'
            )
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
                logger.warning(f"Event '{event.title}' already stored as {event.event_id}")
                return None
            logger.error(f"Error creating event '{event.title}': {e}")
            raise

        logger.info(f"Event created: {event.title} (ID: {event.event_id})")
        return event.event_id

    def update(self, event_id: str, fields: Dict[str, Any]) -> bool:
        """
        Update fields of an existing event in place.

        Returns:
            True on success, False if the event does not exist or the write
            fails
        """
        if not fields:
            return True

        names = {}
        values = {}
        assignments = []
        for index, (name, value) in enumerate(fields.items()):
            names[f"#f{index}"] = name
            values[f":v{index}"] = value
            assignments.append(f"#f{index} = :v{index}")

        try:
            self.table.update_item(
                Key={'event_id': event_id},
                UpdateExpression='SET ' + ', '.join(assignments),
                ConditionExpression='attribute_exists(event_id)',
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values
            )
        except ClientError as e:
            logger.error(f"Error updating event {event_id}: {e}")
            return False

        logger.info(f"Event updated: {event_id}")
        return True

    def _persisted_event_to_item(self, event: PersistedEvent) -> dict:
        """
        Convert PersistedEvent object to DynamoDB item.

        Args:
            event: PersistedEvent object

        Returns:
            DynamoDB item dictionary
        """
        item = {
            'event_id': event.event_id,
            'title': event.title,
            'description': event.description,
            'start_date': event.start_date.strftime('%Y-%m-%d %H:%M:%S'),
            'end_date': event.end_date.strftime('%Y-%m-%d %H:%M:%S'),
            'event_date': event.event_date,
            'location': event.location,
            'organizer': event.organizer,
            'image': event.image,
            'external_id': event.external_id,
            'source_id': event.source_id,
            'source_type': event.source_type,
            'source_name': event.source_name,
            'relevance_score': event.relevance_score,
            'status': event.status,
            'categories': event.categories,
            'imported_at': event.imported_at,
            'seo_title': event.seo_title,
            'seo_description': event.seo_description
        }

        # Index key attributes must be omitted rather than empty
        if event.url:
            item['url'] = event.url

        return item

    @staticmethod
    def _from_dynamodb(value: Any) -> Any:
        if isinstance(value, Decimal):
            return int(value) if value == value.to_integral_value() else float(value)
        return value
