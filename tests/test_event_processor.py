"""Unit tests for EventProcessor."""
from datetime import datetime

import pytest

from processor.event_processor import EventProcessor
from processor.models import RawEvent, SourceConfig


@pytest.fixture
def processor():
    """Create EventProcessor instance."""
    return EventProcessor()


@pytest.fixture
def raw_event():
    """A scraped event with a source."""
    return RawEvent(
        title='Sacramento Python Meetup',
        description='Django and Flask',
        start_date=datetime(2030, 3, 15, 18, 0),
        location='Midtown Sacramento',
        organizer='SacPy',
        url='https://www.meetup.com/sacpython/events/1001/',
        image='https://img.example.com/1001.jpg',
        external_id='1001',
        source_type='website',
        source=SourceConfig(source_id='src-1', name='SacPy', source_type='website', url='https://x.example')
    )


class TestBuildPersistedEvent:
    """Test cases for build_persisted_event."""

    def test_fields_are_copied(self, processor, raw_event):
        """Test the stored record mirrors the raw event and source."""
        record = processor.build_persisted_event(raw_event, score=70, status='draft', categories=['Languages'])

        assert record.event_id == processor.generate_event_id(raw_event)
        assert record.title == 'Sacramento Python Meetup'
        assert record.event_date == '2030-03-15'
        assert record.location == 'Midtown Sacramento'
        assert record.organizer == 'SacPy'
        assert record.external_id == '1001'
        assert record.source_id == 'src-1'
        assert record.source_name == 'SacPy'
        assert record.source_type == 'website'
        assert record.relevance_score == 70
        assert record.status == 'draft'
        assert record.categories == ['Languages']
        assert record.imported_at > 0

    def test_end_defaults_to_two_hours(self, processor, raw_event):
        """Test a missing end date defaults to start plus two hours."""
        record = processor.build_persisted_event(raw_event, score=70, status='draft')

        assert record.end_date == datetime(2030, 3, 15, 20, 0)

    def test_end_kept_when_present(self, processor, raw_event):
        """Test an explicit end date is preserved."""
        raw_event.end_date = datetime(2030, 3, 15, 21, 30)

        record = processor.build_persisted_event(raw_event, score=70, status='draft')

        assert record.end_date == datetime(2030, 3, 15, 21, 30)

    def test_missing_start_raises(self, processor, raw_event):
        """Test events without a start date cannot be stored."""
        raw_event.start_date = None

        with pytest.raises(ValueError):
            processor.build_persisted_event(raw_event, score=70, status='draft')


class TestGenerateEventId:
    """Test cases for event identity."""

    def test_url_identifies_event(self, processor, raw_event):
        """Test events with the same URL share an ID regardless of title."""
        renamed = RawEvent(title='Renamed', url=raw_event.url, start_date=datetime(2031, 1, 1))

        assert processor.generate_event_id(raw_event) == processor.generate_event_id(renamed)

    def test_title_and_date_without_url(self, processor):
        """Test whitespace and case do not change a URL-less identity."""
        first = RawEvent(title='  Python   Night ', start_date=datetime(2030, 3, 15, 18, 0))
        second = RawEvent(title='python night', start_date=datetime(2030, 3, 15, 19, 30))
        other_day = RawEvent(title='python night', start_date=datetime(2030, 3, 16, 18, 0))

        assert processor.generate_event_id(first) == processor.generate_event_id(second)
        assert processor.generate_event_id(first) != processor.generate_event_id(other_day)

    def test_id_is_sha256(self, processor, raw_event):
        """Test the ID is a hex SHA256 digest."""
        event_id = processor.generate_event_id(raw_event)

        assert len(event_id) == 64
        assert all(c in '0123456789abcdef' for c in event_id)


class TestChangedFields:
    """Test cases for changed_fields."""

    def test_unchanged(self, processor, raw_event):
        """Test identical content produces no changes."""
        existing = {'title': raw_event.title, 'description': raw_event.description}

        assert processor.changed_fields(existing, raw_event) == {}

    def test_title_change(self, processor, raw_event):
        """Test a different title is replaced."""
        existing = {'title': 'Old title', 'description': raw_event.description}

        assert processor.changed_fields(existing, raw_event) == {'title': raw_event.title}

    def test_small_description_edit_ignored(self, processor, raw_event):
        """Test descriptions at least 90% similar are kept."""
        raw_event.description = 'Monthly meetup about Django and Flask web frameworks.'
        existing = {'title': raw_event.title, 'description': 'Monthly meetup about Django and Flask web frameworks'}

        assert processor.changed_fields(existing, raw_event) == {}

    def test_rewritten_description_replaced(self, processor, raw_event):
        """Test substantially different descriptions are replaced."""
        raw_event.description = 'Lightning talks on async Python and type hints'
        existing = {'title': raw_event.title, 'description': 'Django and Flask'}

        assert processor.changed_fields(existing, raw_event) == {'description': raw_event.description}

    def test_empty_description_never_replaces(self, processor, raw_event):
        """Test an empty incoming description keeps the stored one."""
        raw_event.description = ''
        existing = {'title': raw_event.title, 'description': 'Django and Flask'}

        assert processor.changed_fields(existing, raw_event) == {}


def test_description_similarity(processor):
    """Test similarity is a percentage."""
    assert processor.description_similarity('abc', 'abc') == 100.0
    assert processor.description_similarity('', '') == 100.0
    assert processor.description_similarity('abc', 'xyz') == 0.0


def test_format_datetime(processor):
    """Test the stored datetime format."""
    assert processor.format_datetime(datetime(2030, 3, 15, 18, 5, 9)) == '2030-03-15 18:05:09'
