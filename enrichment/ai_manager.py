"""Language-model enrichment of event descriptions and SEO metadata."""
import logging
import re
from typing import Optional

from anthropic import Anthropic
from openai import OpenAI

from processor.models import SeoMeta
from storage.settings_store import DEFAULT_AI_TIMEOUT, DEFAULT_DESCRIPTION_PROMPT, DEFAULT_SEO_PROMPT

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    'You are a helpful assistant specializing in creating high-quality content '
    'for tech events in Sacramento.'
)

DEFAULT_MODELS = {
    'openai': 'gpt-3.5-turbo',
    'anthropic': 'claude-3-haiku-20240307',
}

SEO_FORMAT_INSTRUCTIONS = (
    'Return only the title and description in this format: Title: [SEO title]\n'
    'Description: [SEO description]. The title should be under 60 characters and '
    'the description under 155 characters.'
)

_SEO_TITLE = re.compile(r'Title: (.+)')
_SEO_DESCRIPTION = re.compile(r'Description: (.+)', re.DOTALL)


class AIManager:
    """Text generation with fallback: every failure yields None."""

    PROVIDERS = ('openai', 'anthropic', 'disabled')

    def __init__(
        self,
        provider: str = 'openai',
        api_key: str = '',
        model: str = '',
        timeout: int = DEFAULT_AI_TIMEOUT,
        description_prompt: str = DEFAULT_DESCRIPTION_PROMPT,
        seo_prompt: str = DEFAULT_SEO_PROMPT,
        temperature: float = 0.7,
        max_tokens: int = 500,
        client=None
    ):
        """
        Initialize the manager.

        Args:
            provider: 'openai', 'anthropic' or 'disabled'
            api_key: Provider API key
            model: Model name; a provider default is used when empty
            timeout: Request timeout in seconds
            description_prompt: Instruction prefixed to description rewrites
            seo_prompt: Instruction prefixed to SEO metadata requests
            temperature: Sampling temperature
            max_tokens: Completion token limit
            client: Pre-built SDK client, mainly for tests
        """
        if provider not in self.PROVIDERS:
            logger.warning(f"Unknown AI provider '{provider}', disabling AI features")
            provider = 'disabled'

        self.provider = provider
        self.api_key = api_key
        self.model = model or DEFAULT_MODELS.get(provider, '')
        self.timeout = timeout
        self.description_prompt = description_prompt or DEFAULT_DESCRIPTION_PROMPT
        self.seo_prompt = seo_prompt or DEFAULT_SEO_PROMPT
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client

    @classmethod
    def from_settings(cls, store, api_key: str = '') -> 'AIManager':
        """Build a manager from the settings store; ``api_key`` is the fallback key."""
        return cls(
            provider=store.get('ai_provider', 'openai'),
            api_key=store.get('ai_api_key', '') or api_key,
            model=store.get('ai_model', ''),
            timeout=int(store.get('ai_request_timeout', DEFAULT_AI_TIMEOUT)),
            description_prompt=store.get('ai_description_prompt', DEFAULT_DESCRIPTION_PROMPT),
            seo_prompt=store.get('ai_seo_prompt', DEFAULT_SEO_PROMPT)
        )

    def is_available(self) -> bool:
        return self.provider != 'disabled' and (bool(self.api_key) or self._client is not None)

    def enhance_description(self, description: str, title: str) -> Optional[str]:
        """
        Rewrite an event description.

        Args:
            description: Original description
            title: Event title

        Returns:
            Enhanced description, or None on any failure
        """
        if not self.is_available():
            logger.warning('AI enhancement failed: API key not available')
            return None

        prompt = f"{self.description_prompt}\n\nEvent title: {title}\n\n{description}"

        try:
            content = self._complete(prompt)
        except Exception as e:
            logger.error(f"AI description enhancement failed for '{title}': {e}",
                         extra={'error_type': type(e).__name__})
            return None

        if not content or not content.strip():
            logger.error('Failed to parse AI response for description enhancement')
            return None

        logger.info(f"Description enhanced successfully for event: {title}")
        return content.strip()

    def generate_seo_meta(self, title: str, description: str) -> Optional[SeoMeta]:
        """
        Generate an SEO title and meta description.

        Args:
            title: Event title
            description: Event description, truncated to 1000 characters

        Returns:
            SeoMeta, or None on any failure
        """
        if not self.is_available():
            logger.warning('SEO generation failed: API key not available')
            return None

        truncated = description[:1000] + ('...' if len(description) > 1000 else '')
        prompt = (
            f"{self.seo_prompt}\n\nTitle: '{title}'\nDescription: '{truncated}'\n\n"
            f"{SEO_FORMAT_INSTRUCTIONS}"
        )

        try:
            content = self._complete(prompt)
        except Exception as e:
            logger.error(f"AI SEO generation failed for '{title}': {e}",
                         extra={'error_type': type(e).__name__})
            return None

        seo_meta = self.parse_seo_response(content or '')
        if seo_meta is None:
            logger.error('Failed to parse AI response for SEO generation')
            return None

        logger.info(f"SEO meta generated successfully for event: {title}")
        return seo_meta

    @staticmethod
    def parse_seo_response(content: str) -> Optional[SeoMeta]:
        """Parse 'Title: ...' and 'Description: ...' lines from a completion."""
        title_match = _SEO_TITLE.search(content)
        description_match = _SEO_DESCRIPTION.search(content)
        if not title_match or not description_match:
            return None

        seo_title = title_match.group(1).strip()
        seo_description = description_match.group(1).strip()
        if not seo_title or not seo_description:
            return None

        return SeoMeta(title=seo_title, description=seo_description)

    def _complete(self, prompt: str) -> str:
        """Send a single-turn prompt to the configured provider."""
        client = self._get_client()
        logger.debug(f"Making {self.provider} API request")

        if self.provider == 'anthropic':
            response = client.messages.create(
                model=self.model,
                system=SYSTEM_PROMPT,
                messages=[{'role': 'user', 'content': prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
            return response.content[0].text

        response = client.chat.completions.create(
            model=self.model,
            messages=[
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {'role': 'user', 'content': prompt}
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )
        return response.choices[0].message.content

    def _get_client(self):
        if self._client is not None:
            return self._client

        if self.provider == 'anthropic':
            self._client = Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        else:
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)

        return self._client
