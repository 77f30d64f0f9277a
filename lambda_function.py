"""AWS Lambda handler for the tech events import."""
import json
import logging
import os
import time
from typing import Any, Dict

from enrichment.ai_manager import AIManager
from processor.event_filter import EventFilter
from processor.event_processor import EventProcessor
from processor.import_pipeline import ImportPipeline
from processor.relevance import CategoryMap, RelevanceScorer
from scheduler.import_scheduler import ImportScheduler
from scraper.base import FetchOptions
from scraper.source_registry import SourceManager
from storage.dynamodb_manager import DynamoDBEventStore
from storage.settings_store import ImportSettings, SettingsStore
from storage.source_store import SourceStore

# Attributes every LogRecord has; anything else came in through ``extra``.
_RESERVED_LOG_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON, including ``extra`` fields."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in vars(record).items():
            if key not in _RESERVED_LOG_ATTRS and not key.startswith('_'):
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def build_pipeline(settings_store, source_store, event_store, api_key: str = '') -> ImportPipeline:
    """
    Wire the import pipeline from its stores.

    Args:
        settings_store: Key-value settings store
        source_store: Source configuration store
        event_store: Event store
        api_key: Fallback AI API key when none is configured

    Returns:
        Ready-to-run ImportPipeline
    """
    settings = ImportSettings.from_store(settings_store)
    options = FetchOptions(
        timeout=settings.request_timeout,
        verify_ssl=not settings.disable_ssl_verify
    )

    scorer = RelevanceScorer(CategoryMap.from_store(settings_store))
    event_filter = EventFilter(settings, scorer, event_store)

    return ImportPipeline(
        settings=settings,
        source_manager=SourceManager(source_store, options),
        event_filter=event_filter,
        event_store=event_store,
        ai_manager=AIManager.from_settings(settings_store, api_key=api_key),
        processor=EventProcessor()
    )


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {'statusCode': status_code, 'body': json.dumps(body, default=str)}


def _error_response(message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    return _response(500, {
        'message': message,
        'error': str(error),
        'error_type': type(error).__name__,
        'duration_seconds': round(time.time() - start_time, 2)
    })


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for the tech events import.

    Supported actions (``event['action']``): ``import`` (default, also used
    by scheduled invocations), ``reschedule``, ``seed_sources`` and
    ``test_source``.

    Args:
        event: EventBridge event payload or action request
        context: Lambda context object

    Returns:
        Response dict with statusCode and body
    """
    # Read configuration from environment variables
    settings_table = os.environ.get('SETTINGS_TABLE', 'tech-events-settings')
    sources_table = os.environ.get('SOURCES_TABLE', 'tech-events-sources')
    events_table = os.environ.get('EVENTS_TABLE', 'tech-events')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    action = (event or {}).get('action', 'import')
    start_time = time.time()
    logger.info(
        'Lambda execution started',
        extra={'action': action, 'events_table': events_table, 'sources_table': sources_table}
    )

    try:
        settings_store = SettingsStore(settings_table)
        source_store = SourceStore(sources_table)

        if action == 'seed_sources':
            added = source_store.seed_default_sources()
            return _response(200, {'message': 'Default sources seeded', 'added': added})

        if action == 'reschedule':
            return _handle_reschedule(event, settings_store, logger)

        if action == 'test_source':
            settings = ImportSettings.from_store(settings_store)
            manager = SourceManager(source_store, FetchOptions(
                timeout=settings.request_timeout,
                verify_ssl=not settings.disable_ssl_verify
            ))
            result = manager.test_source(event.get('source_type', ''), event.get('url', ''))
            return _response(200, {'message': 'Source test successful', 'events_found': result['count'],
                                   'sample': result['sample'].title if result['sample'] else None})

        if action != 'import':
            return _response(400, {'message': f"Unknown action: {action}"})

        pipeline = build_pipeline(
            settings_store,
            source_store,
            DynamoDBEventStore(events_table),
            api_key=os.environ.get('OPENAI_API_KEY', '')
        )
        summary = pipeline.run()

    except Exception as e:
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={'duration_seconds': round(time.time() - start_time, 2), 'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Lambda execution failed', e, start_time)

    duration = time.time() - start_time
    body = {
        'message': 'Import completed successfully' if summary.success else 'Import did not complete',
        'statistics': summary.to_dict(),
        'duration_seconds': round(duration, 2)
    }

    logger.info(
        'Lambda execution completed',
        extra={'duration_seconds': round(duration, 2), 'success': summary.success}
    )
    return _response(200 if summary.success else 500, body)


def _handle_reschedule(event: Dict[str, Any], settings_store, logger) -> Dict[str, Any]:
    """Persist a new frequency and move the EventBridge rule to it."""
    new_frequency = event.get('frequency', '')
    old_frequency = settings_store.get('schedule_frequency', 'daily')

    scheduler = ImportScheduler(
        rule_name=os.environ.get('IMPORT_RULE_NAME', 'tech-events-import'),
        function_arn=os.environ.get('IMPORT_FUNCTION_ARN', '')
    )
    changed = scheduler.reschedule(old_frequency, new_frequency)
    if changed:
        settings_store.set('schedule_frequency', new_frequency)

    logger.info(f"Schedule is {new_frequency}", extra={'changed': changed})
    return _response(200, {'message': 'Schedule updated' if changed else 'Schedule unchanged',
                           'frequency': new_frequency})
