"""Shared fixtures for the test suite."""
import os
from datetime import datetime

import boto3
import pytest
from moto import mock_aws

from processor.models import RawEvent, SourceConfig

EVENTS_TABLE = 'test-tech-events'
SOURCES_TABLE = 'test-tech-events-sources'
SETTINGS_TABLE = 'test-tech-events-settings'


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Mocked AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


def create_events_table(dynamodb):
    """Create the events table with its identity indexes."""
    return dynamodb.create_table(
        TableName=EVENTS_TABLE,
        KeySchema=[
            {'AttributeName': 'event_id', 'KeyType': 'HASH'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'event_id', 'AttributeType': 'S'},
            {'AttributeName': 'url', 'AttributeType': 'S'},
            {'AttributeName': 'title', 'AttributeType': 'S'},
            {'AttributeName': 'event_date', 'AttributeType': 'S'}
        ],
        GlobalSecondaryIndexes=[
            {
                'IndexName': 'url-index',
                'KeySchema': [
                    {'AttributeName': 'url', 'KeyType': 'HASH'}
                ],
                'Projection': {'ProjectionType': 'ALL'}
            },
            {
                'IndexName': 'title-date-index',
                'KeySchema': [
                    {'AttributeName': 'title', 'KeyType': 'HASH'},
                    {'AttributeName': 'event_date', 'KeyType': 'RANGE'}
                ],
                'Projection': {'ProjectionType': 'ALL'}
            }
        ],
        BillingMode='PAY_PER_REQUEST'
    )


def create_simple_table(dynamodb, table_name, hash_key):
    return dynamodb.create_table(
        TableName=table_name,
        KeySchema=[{'AttributeName': hash_key, 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': hash_key, 'AttributeType': 'S'}],
        BillingMode='PAY_PER_REQUEST'
    )


@pytest.fixture
def dynamodb():
    """Mock DynamoDB resource with the events, sources and settings tables."""
    with mock_aws():
        resource = boto3.resource('dynamodb', region_name='us-east-1')
        create_events_table(resource)
        create_simple_table(resource, SOURCES_TABLE, 'source_id')
        create_simple_table(resource, SETTINGS_TABLE, 'setting_key')
        yield resource


@pytest.fixture
def source_config():
    """A website source configuration."""
    return SourceConfig(
        source_id='source-1',
        name='SacPy',
        source_type='website',
        url='https://www.meetup.com/sacpython/'
    )


@pytest.fixture
def python_meetup(source_config):
    """A typical local tech meetup event."""
    return RawEvent(
        title='Sacramento Python Meetup',
        description='Monthly meetup covering Python and Django',
        start_date=datetime(2030, 3, 15, 18, 0),
        location='Downtown Sacramento',
        url='https://www.meetup.com/sacpython/events/1001/',
        source_type='website',
        source_url=source_config.url,
        source=source_config
    )
