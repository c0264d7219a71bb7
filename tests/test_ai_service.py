"""
Tests for the AI content service
"""
import httpx
import pytest
import anthropic
from types import SimpleNamespace
from unittest.mock import Mock

from ai_service import (
    AIService, AIServiceError, AIServiceUnavailable, AIServiceTimeout, AIServiceRateLimited, retry_on_failure
)

REQUEST = httpx.Request('POST', 'https://api.anthropic.com/v1/messages')


def make_config(**overrides):
    config = {
        'ANTHROPIC_API_KEY': None,
        'AI_MODELS': {'claude': {'model': 'claude-sonnet-4-20250514', 'max_tokens': 1024, 'temperature': 0.7}},
        'AI_RETRY_ATTEMPTS': 3,
        'AI_RETRY_DELAY': 0,
    }
    config.update(overrides)
    return config


def reply(*texts, stop_reason='end_turn'):
    blocks = [SimpleNamespace(type='text', text=t) for t in texts]
    return SimpleNamespace(content=blocks, stop_reason=stop_reason)


def status_error(cls, status):
    return cls(f'HTTP {status}', response=httpx.Response(status, request=REQUEST), body=None)


@pytest.fixture
def service():
    svc = AIService(make_config())
    svc.anthropic_client = Mock()
    return svc


@pytest.mark.unit
class TestAvailability:
    """Tests for configuration checks"""

    def test_unconfigured(self):
        """Test no key means unavailable"""
        svc = AIService(make_config())
        assert svc.is_available() is False
        with pytest.raises(AIServiceUnavailable):
            svc.generate_text('Write a post')

    def test_configured(self):
        """Test a key creates the client"""
        svc = AIService(make_config(ANTHROPIC_API_KEY='test-anthropic-key'))
        assert svc.is_available('claude') is True
        assert svc.is_available('gpt') is False


@pytest.mark.unit
class TestGenerateText:
    """Tests for completions"""

    def test_joins_text_blocks(self, service):
        """Test text blocks are joined and trimmed"""
        service.anthropic_client.messages.create.return_value = reply('New kitchen ', 'fitted today! ')
        assert service.generate_text('Write a post', system='Be brief', max_tokens=200) == 'New kitchen fitted today!'

        params = service.anthropic_client.messages.create.call_args.kwargs
        assert params['model'] == 'claude-sonnet-4-20250514'
        assert params['max_tokens'] == 200
        assert params['system'] == 'Be brief'
        assert params['messages'] == [{'role': 'user', 'content': 'Write a post'}]

    def test_empty_reply(self, service):
        """Test an empty reply is an error"""
        service.anthropic_client.messages.create.return_value = reply('  ', stop_reason='max_tokens')
        with pytest.raises(AIServiceError, match='max_tokens'):
            service.generate_text('Write a post')

    def test_rate_limit_retried(self, service):
        """Test transient failures are retried"""
        service.anthropic_client.messages.create.side_effect = [
            status_error(anthropic.RateLimitError, 429),
            anthropic.APITimeoutError(request=REQUEST),
            reply('Third time lucky'),
        ]
        assert service.generate_text('Write a post') == 'Third time lucky'
        assert service.anthropic_client.messages.create.call_count == 3

    def test_retries_exhausted(self, service):
        """Test the last transient failure is raised"""
        service.anthropic_client.messages.create.side_effect = anthropic.APITimeoutError(request=REQUEST)
        with pytest.raises(AIServiceTimeout):
            service.generate_text('Write a post')
        assert service.anthropic_client.messages.create.call_count == 3

    def test_bad_request_not_retried(self, service):
        """Test client errors fail straight away"""
        service.anthropic_client.messages.create.side_effect = status_error(anthropic.BadRequestError, 400)
        with pytest.raises(AIServiceError) as exc_info:
            service.generate_text('Write a post')
        assert not isinstance(exc_info.value, AIServiceRateLimited)
        assert service.anthropic_client.messages.create.call_count == 1


@pytest.mark.unit
class TestRetryDecorator:
    """Tests for retry_on_failure"""

    def test_only_listed_errors_retried(self):
        """Test other exceptions propagate on the first attempt"""
        calls = []

        @retry_on_failure(max_attempts=3, delay=0, retry_on=(AIServiceTimeout,))
        def flaky():
            calls.append(1)
            raise ValueError('bad input')

        with pytest.raises(ValueError):
            flaky()
        assert len(calls) == 1
