"""Unit tests for the DynamoDB event store."""
from datetime import datetime
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from processor.event_processor import EventProcessor
from processor.models import RawEvent
from storage.dynamodb_manager import DynamoDBEventStore


@pytest.fixture
def event_store(dynamodb):
    """Create DynamoDBEventStore instance with mock table."""
    return DynamoDBEventStore('test-tech-events', dynamodb=dynamodb)


def _record(title='Sacramento Python Meetup', url='https://www.meetup.com/sacpython/events/1001/'):
    event = RawEvent(
        title=title,
        description='Django and Flask',
        start_date=datetime(2030, 3, 15, 18, 0),
        location='Midtown Sacramento',
        url=url
    )
    return EventProcessor().build_persisted_event(event, score=70, status='draft', categories=['Languages'])


def test_create_and_get_event(event_store):
    """Test a created event can be read back."""
    record = _record()

    assert event_store.create(record) == record.event_id

    stored = event_store.get_event(record.event_id)
    assert stored['title'] == 'Sacramento Python Meetup'
    assert stored['start_date'] == '2030-03-15 18:00:00'
    assert stored['end_date'] == '2030-03-15 20:00:00'
    assert stored['event_date'] == '2030-03-15'
    assert stored['relevance_score'] == 70
    assert isinstance(stored['relevance_score'], int)
    assert stored['categories'] == ['Languages']


def test_create_duplicate_returns_none(event_store):
    """Test an existing identity is never inserted twice."""
    record = _record()
    event_store.create(record)

    assert event_store.create(record) is None

    items = event_store.table.scan()['Items']
    assert len(items) == 1


def test_create_propagates_other_errors():
    """Test unexpected DynamoDB errors are raised."""
    dynamodb = Mock()
    dynamodb.Table.return_value.put_item.side_effect = ClientError(
        {'Error': {'Code': 'ProvisionedThroughputExceededException', 'Message': 'slow down'}},
        'PutItem'
    )
    store = DynamoDBEventStore('any-table', dynamodb=dynamodb)

    with pytest.raises(ClientError):
        store.create(_record())


def test_find_by_url(event_store):
    """Test lookup by canonical URL."""
    record = _record()
    event_store.create(record)

    assert event_store.find_by_url(record.url) == record.event_id
    assert event_store.find_by_url('https://example.com/other') is None
    assert event_store.find_by_url('') is None


def test_find_by_title_and_date(event_store):
    """Test lookup by exact title on the same day."""
    record = _record()
    event_store.create(record)

    assert event_store.find_by_title_and_date('Sacramento Python Meetup', '2030-03-15') == record.event_id
    assert event_store.find_by_title_and_date('Sacramento Python Meetup', '2030-03-16') is None
    assert event_store.find_by_title_and_date('sacramento python meetup', '2030-03-15') is None


def test_event_without_url_omits_attribute(event_store):
    """Test URL-less events are stored without a url attribute."""
    record = _record(title='Data Night', url='')
    event_store.create(record)

    item = event_store.table.get_item(Key={'event_id': record.event_id})['Item']
    assert 'url' not in item
    assert event_store.find_by_title_and_date('Data Night', '2030-03-15') == record.event_id


def test_update_existing_event(event_store):
    """Test fields are updated in place."""
    record = _record()
    event_store.create(record)

    updated = event_store.update(record.event_id, {
        'description': 'Now with FastAPI',
        'seo_title': 'Python Meetup Sacramento'
    })

    assert updated is True
    stored = event_store.get_event(record.event_id)
    assert stored['description'] == 'Now with FastAPI'
    assert stored['seo_title'] == 'Python Meetup Sacramento'
    assert stored['title'] == 'Sacramento Python Meetup'


def test_update_missing_event(event_store):
    """Test updating an unknown event reports failure without creating it."""
    assert event_store.update('missing', {'title': 'Ghost'}) is False
    assert event_store.get_event('missing') is None


def test_update_nothing(event_store):
    """Test an empty update is a no-op."""
    assert event_store.update('missing', {}) is True
