"""DynamoDB storage for configured event sources."""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from processor.models import SourceConfig, SourceStatus

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = [
    {'name': 'Sacramento JS', 'type': 'website', 'url': 'https://www.meetup.com/Sacramento-JavaScript-Meetup/'},
    {'name': 'Sac.NET', 'type': 'website', 'url': 'https://www.meetup.com/sac-net/'},
    {'name': 'SacPy', 'type': 'website', 'url': 'https://www.meetup.com/sacpython/'},
    {'name': 'UC Davis Tech Events', 'type': 'website', 'url': 'https://cs.ucdavis.edu/events'},
    {
        'name': 'Sacramento State Tech Events',
        'type': 'website',
        'url': 'https://www.csus.edu/college/engineering-computer-science/student-success/news-events.html'
    },
]


class SourceStore:
    """Persists SourceConfig records. Deletion is a status change only."""

    def __init__(self, table_name: str, dynamodb=None):
        """
        Initialize table reference.

        Args:
            table_name: Name of the sources table (hash key ``source_id``)
            dynamodb: Optional boto3 DynamoDB resource
        """
        self.table_name = table_name
        self.dynamodb = dynamodb or boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)

    def add_source(self, name: str, source_type: str, url: str) -> str:
        """
        Add a new active source.

        Returns:
            Generated source ID
        """
        source_id = uuid.uuid4().hex
        now = datetime.now().isoformat(timespec='seconds')

        self.table.put_item(Item={
            'source_id': source_id,
            'source_name': name,
            'source_type': source_type,
            'source_url': url,
            'status': SourceStatus.ACTIVE.value,
            'last_check': now,
            'created_at': now
        })

        logger.info(f"Added new source: {name} (ID: {source_id}, Type: {source_type})")
        return source_id

    def update_source(self, source_id: str, name: str, source_type: str, url: str) -> bool:
        """Update the editable fields of a source."""
        try:
            self.table.update_item(
                Key={'source_id': source_id},
                UpdateExpression='SET source_name = :n, source_type = :t, source_url = :u',
                ConditionExpression='attribute_exists(source_id)',
                ExpressionAttributeValues={':n': name, ':t': source_type, ':u': url}
            )
        except ClientError as e:
            logger.error(f"Failed to update source ID {source_id}: {e}")
            return False

        logger.info(f"Updated source ID {source_id}: {name}")
        return True

    def delete_source(self, source_id: str) -> bool:
        """Soft-delete a source by marking it deleted."""
        return self.set_status(source_id, SourceStatus.DELETED)

    def set_status(self, source_id: str, status: SourceStatus) -> bool:
        try:
            self.table.update_item(
                Key={'source_id': source_id},
                UpdateExpression='SET #s = :s',
                ConditionExpression='attribute_exists(source_id)',
                ExpressionAttributeNames={'#s': 'status'},
                ExpressionAttributeValues={':s': status.value}
            )
        except ClientError as e:
            logger.error(f"Failed to set status of source ID {source_id}: {e}")
            return False

        logger.info(f"Source ID {source_id} is now {status.value}")
        return True

    def get_source(self, source_id: str) -> Optional[SourceConfig]:
        response = self.table.get_item(Key={'source_id': source_id})
        item = response.get('Item')
        if not item:
            logger.warning(f"Source not found with ID: {source_id}")
            return None
        return self._item_to_source(item)

    def get_active_sources(self) -> List[SourceConfig]:
        """All active sources ordered by name."""
        sources = self._scan(Attr('status').eq(SourceStatus.ACTIVE.value))
        logger.debug(f"Retrieved {len(sources)} active sources")
        return sources

    def get_all_sources(self) -> List[SourceConfig]:
        """All sources not marked deleted, ordered by name."""
        return self._scan(Attr('status').ne(SourceStatus.DELETED.value))

    def update_last_check(self, source_id: str, when: datetime = None) -> bool:
        """Record the checkpoint timestamp for a source."""
        when = when or datetime.now()
        try:
            self.table.update_item(
                Key={'source_id': source_id},
                UpdateExpression='SET last_check = :c',
                ConditionExpression='attribute_exists(source_id)',
                ExpressionAttributeValues={':c': when.isoformat(timespec='seconds')}
            )
        except ClientError as e:
            logger.error(f"Failed to update last check time for source ID {source_id}: {e}")
            return False

        logger.debug(f"Updated last check time for source ID {source_id}")
        return True

    def seed_default_sources(self) -> int:
        """
        Add the default sources when the table holds none.

        Returns:
            Number of sources added
        """
        if self.table.scan(Limit=1).get('Items'):
            return 0

        for source in DEFAULT_SOURCES:
            self.add_source(source['name'], source['type'], source['url'])
        return len(DEFAULT_SOURCES)

    def _scan(self, filter_expression) -> List[SourceConfig]:
        response = self.table.scan(FilterExpression=filter_expression)
        items = response.get('Items', [])

        while 'LastEvaluatedKey' in response:
            response = self.table.scan(
                FilterExpression=filter_expression,
                ExclusiveStartKey=response['LastEvaluatedKey']
            )
            items.extend(response.get('Items', []))

        sources = [self._item_to_source(item) for item in items]
        return sorted(sources, key=lambda source: source.name)

    @staticmethod
    def _item_to_source(item: dict) -> SourceConfig:
        last_check = item.get('last_check')
        created_at = item.get('created_at')
        return SourceConfig(
            source_id=item['source_id'],
            name=item['source_name'],
            source_type=item['source_type'],
            url=item['source_url'],
            status=SourceStatus(item.get('status', SourceStatus.ACTIVE.value)),
            last_check=datetime.fromisoformat(last_check) if last_check else None,
            created_at=datetime.fromisoformat(created_at) if created_at else None
        )
