"""Key-value configuration store backed by DynamoDB."""
import json
import logging
from dataclasses import dataclass
from typing import Any, List

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION_PROMPT = (
    'Enhance the following tech event description with more technical context and '
    'relevance for IT professionals in Sacramento. Make it sound professional but engaging:'
)
DEFAULT_SEO_PROMPT = (
    'Create an SEO-optimized title and meta description for a Sacramento tech event '
    'targeting IT professionals. The event is about:'
)

DEFAULT_AI_TIMEOUT = 45

DEFAULT_SETTINGS = {
    'schedule_frequency': 'daily',
    'max_events_per_import': 50,
    'min_relevance_score': 50,
    'default_status': 'draft',
    'auto_publish': False,
    'blacklist_keywords': '',
    'required_keywords': '',
    'request_timeout': 30,
    'disable_ssl_verify': False,
    'ai_provider': 'openai',
    'ai_api_key': '',
    'ai_model': '',
    'ai_request_timeout': DEFAULT_AI_TIMEOUT,
    'use_ai_for_descriptions': True,
    'use_ai_for_seo': True,
    'ai_description_prompt': DEFAULT_DESCRIPTION_PROMPT,
    'ai_seo_prompt': DEFAULT_SEO_PROMPT,
}

VALID_STATUSES = ('draft', 'pending', 'publish')


def split_keywords(value: Any) -> List[str]:
    """
    Split a newline-delimited keyword setting.

    Entries are trimmed and empty lines ignored. Lists are accepted as-is.
    """
    if not value:
        return []
    if isinstance(value, str):
        value = value.split('\n')
    return [str(keyword).strip() for keyword in value if str(keyword).strip()]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


class SettingsStore:
    """Key-value settings persisted as JSON documents in DynamoDB."""

    def __init__(self, table_name: str, dynamodb=None):
        """
        Initialize table reference.

        Args:
            table_name: Name of the settings table (hash key ``setting_key``)
            dynamodb: Optional boto3 DynamoDB resource
        """
        self.table_name = table_name
        self.dynamodb = dynamodb or boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read a setting.

        Args:
            key: Setting name
            default: Returned when the key is absent; falls back to the
                built-in default when not given

        Returns:
            Stored value, or the default
        """
        if default is None:
            default = DEFAULT_SETTINGS.get(key)

        try:
            response = self.table.get_item(Key={'setting_key': key})
        except ClientError as e:
            logger.error(f"Error reading setting '{key}': {e}")
            raise

        item = response.get('Item')
        if not item:
            return default

        try:
            return json.loads(item['value'])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable value for setting '{key}': {e}")
            return default

    def set(self, key: str, value: Any) -> bool:
        """Write a setting. Returns False when the write fails."""
        try:
            self.table.put_item(Item={'setting_key': key, 'value': json.dumps(value)})
        except (ClientError, TypeError) as e:
            logger.error(f"Failed to update setting '{key}': {e}")
            return False

        logger.debug(f"Updated setting '{key}'")
        return True


@dataclass
class ImportSettings:
    """Typed snapshot of the settings one import run reads."""
    max_events_per_import: int = 50
    min_relevance_score: int = 50
    default_status: str = 'draft'
    auto_publish: bool = False
    blacklist_keywords: List[str] = None
    required_keywords: List[str] = None
    request_timeout: int = 30
    disable_ssl_verify: bool = False
    use_ai_for_descriptions: bool = True
    use_ai_for_seo: bool = True

    def __post_init__(self):
        self.blacklist_keywords = self.blacklist_keywords or []
        self.required_keywords = self.required_keywords or []

    @classmethod
    def from_store(cls, store) -> 'ImportSettings':
        """Build a snapshot from any object exposing ``get(key, default)``."""
        default_status = store.get('default_status', 'draft')
        if default_status not in VALID_STATUSES:
            logger.warning(f"Unknown default status '{default_status}', using draft")
            default_status = 'draft'

        return cls(
            max_events_per_import=int(store.get('max_events_per_import', 50)),
            min_relevance_score=max(0, min(100, int(store.get('min_relevance_score', 50)))),
            default_status=default_status,
            auto_publish=_as_bool(store.get('auto_publish', False)),
            blacklist_keywords=split_keywords(store.get('blacklist_keywords', '')),
            required_keywords=split_keywords(store.get('required_keywords', '')),
            request_timeout=int(store.get('request_timeout', 30)),
            disable_ssl_verify=_as_bool(store.get('disable_ssl_verify', False)),
            use_ai_for_descriptions=_as_bool(store.get('use_ai_for_descriptions', True)),
            use_ai_for_seo=_as_bool(store.get('use_ai_for_seo', True))
        )
