"""
AI Content Service
Claude completions for SEO posts, with retries on transient API failures.
"""
import time
import logging
from typing import Optional, Dict, Any
from functools import wraps

import anthropic

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Base exception for AI service errors"""
    pass


class AIServiceUnavailable(AIServiceError):
    """Raised when AI service is not configured or unavailable"""
    pass


class AIServiceTimeout(AIServiceError):
    """Raised when AI service times out"""
    pass


class AIServiceRateLimited(AIServiceError):
    """Raised when the API asks us to slow down, or is temporarily overloaded"""
    pass


TRANSIENT_ERRORS = (AIServiceTimeout, AIServiceRateLimited)


def retry_on_failure(max_attempts=3, delay=2, backoff=2, retry_on=(Exception,)):
    """
    Decorator to retry function on failure with exponential backoff

    Args:
        max_attempts: Maximum number of retry attempts
        delay: Initial delay between retries (seconds)
        backoff: Multiplier for delay on each retry
        retry_on: Exception types that trigger a retry
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            current_delay = delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except retry_on as e:
                    if attempt == max_attempts:
                        logger.error(f"All {max_attempts} attempts failed for {func.__name__}: {e}")
                        raise
                    logger.warning(f"Attempt {attempt}/{max_attempts} failed for {func.__name__}: {e}, "
                                   f"retrying in {current_delay}s")
                    time.sleep(current_delay)
                    current_delay *= backoff

        return wrapper
    return decorator


class AIService:
    """
    Thin wrapper over the Anthropic client used by the SEO module.

    Without ANTHROPIC_API_KEY the service exists but is_available() is False
    and generate_text() raises AIServiceUnavailable.
    """

    def __init__(self, config):
        self.config = config
        self.anthropic_client = None

        self._create_with_retry = retry_on_failure(
            max_attempts=config.get('AI_RETRY_ATTEMPTS', 3),
            delay=config.get('AI_RETRY_DELAY', 2),
            backoff=config.get('AI_RETRY_BACKOFF', 2),
            retry_on=TRANSIENT_ERRORS
        )(self._create_message)

        if config.get('ANTHROPIC_API_KEY'):
            try:
                self.anthropic_client = anthropic.Anthropic(
                    api_key=config['ANTHROPIC_API_KEY'],
                    timeout=config.get('AI_TIMEOUT', 60),
                    max_retries=0
                )
                logger.info("Anthropic Claude client initialized")
            except Exception as e:
                logger.error(f"Failed to initialize Anthropic client: {e}")

    def _create_message(self, params: Dict[str, Any]):
        try:
            return self.anthropic_client.messages.create(**params)
        except anthropic.APITimeoutError as e:
            raise AIServiceTimeout(f"Claude API timed out: {e}")
        except (anthropic.RateLimitError, anthropic.InternalServerError, anthropic.APIConnectionError) as e:
            raise AIServiceRateLimited(f"Claude API temporarily unavailable: {e}")
        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            raise AIServiceError(f"Claude API error: {e}")

    def generate_text(self, prompt: str, system: Optional[str] = None, max_tokens: Optional[int] = None) -> str:
        """
        Single-turn completion returning the concatenated text blocks.

        Raises:
            AIServiceUnavailable: No API key configured
            AIServiceError: API failure after retries, or an empty reply
        """
        if not self.anthropic_client:
            raise AIServiceUnavailable("Anthropic Claude is not configured")

        model_config = self.config['AI_MODELS']['claude']
        params = {
            'model': model_config['model'],
            'max_tokens': max_tokens or model_config['max_tokens'],
            'temperature': model_config['temperature'],
            'messages': [{'role': 'user', 'content': prompt}],
        }
        if system:
            params['system'] = system

        logger.info(f"Calling Claude API: model={params['model']}, max_tokens={params['max_tokens']}")
        response = self._create_with_retry(params)

        text = ''.join(
            block.text for block in response.content if getattr(block, 'type', None) == 'text'
        ).strip()
        if not text:
            raise AIServiceError(f"Claude returned no text (stop_reason={response.stop_reason})")
        return text

    def is_available(self, service: str = 'claude') -> bool:
        return service == 'claude' and self.anthropic_client is not None
