import asyncio
from types import SimpleNamespace

import pytest

from resume_ai.errors import ServiceTimeoutError
from resume_ai.extractor import ResponseTextExtractor
from resume_ai.llm import GeminiClient, GroqClient, with_timeout


class FakeGeminiModel:
    def __init__(self, delay=0):
        self.delay = delay
        self.requests = []

    async def generate_content_async(self, prompt, generation_config=None):
        self.requests.append({'prompt': prompt, 'generation_config': generation_config})
        await asyncio.sleep(self.delay)
        return SimpleNamespace(text='{"score": 80}')


class FakeCompletions:
    def __init__(self):
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content='{"score": 70}'))])


def test_gemini_structured_request():
    model = FakeGeminiModel()
    client = GeminiClient(api_key='unused', temperature=0.1, max_output_tokens=512, model=model)

    response = asyncio.run(client.generate("Analyze", structured=True))

    assert response.text == '{"score": 80}'
    config = model.requests[0]['generation_config']
    assert config['response_mime_type'] == 'application/json'
    assert config['temperature'] == 0.1
    assert config['max_output_tokens'] == 512


def test_gemini_text_request():
    model = FakeGeminiModel()
    client = GeminiClient(api_key='unused', model=model)
    asyncio.run(client.generate("Analyze"))
    assert 'response_mime_type' not in model.requests[0]['generation_config']


def test_gemini_timeout():
    client = GeminiClient(api_key='unused', request_timeout=0.01, model=FakeGeminiModel(delay=1))
    with pytest.raises(ServiceTimeoutError) as exc_info:
        asyncio.run(client.generate("Analyze"))
    assert exc_info.value.timeout == 0.01


def test_groq_request_and_extraction():
    completions = FakeCompletions()
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    client = GroqClient(api_key='unused', model_name='llama-3.1-8b-instant', client=fake)

    response = asyncio.run(client.generate("Analyze", structured=True))

    request = completions.requests[0]
    assert request['model'] == 'llama-3.1-8b-instant'
    assert request['messages'] == [{'role': 'user', 'content': 'Analyze'}]
    assert request['response_format'] == {'type': 'json_object'}
    assert ResponseTextExtractor().extract(response) == '{"score": 70}'


def test_groq_text_request_has_no_response_format():
    completions = FakeCompletions()
    client = GroqClient(api_key='unused', client=SimpleNamespace(chat=SimpleNamespace(completions=completions)))
    asyncio.run(client.generate("Analyze"))
    assert 'response_format' not in completions.requests[0]


def test_with_timeout_disabled():
    async def answer():
        return 42
    assert asyncio.run(with_timeout(answer(), None)) == 42
