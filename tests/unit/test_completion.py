"""
Unit tests for completion backends and the cost-recording completion service.
"""
import pytest
from types import SimpleNamespace

from ai_dev_team.core.backends import (
    AnthropicBackend, BackendRegistry, MockBackend, OpenAIBackend, create_backend_registry,
)
from ai_dev_team.core.completion import CompletionBackend, CompletionService, estimate_tokens
from ai_dev_team.core.enums import MessageRole
from ai_dev_team.core.exceptions import CompletionBackendError, ValidationError
from ai_dev_team.core.models import (
    Completion, CompletionMessage, CompletionOptions, StreamChunk, TokenUsage,
)


MESSAGES = [
    CompletionMessage(MessageRole.SYSTEM, "You are a Frontend Developer"),
    CompletionMessage(MessageRole.USER, "Build the UI"),
]


class FakeAnthropicStream:
    def __init__(self, texts, usage):
        self.text_stream = iter(texts)
        self._usage = usage

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def get_final_message(self):
        return SimpleNamespace(usage=self._usage)


class FakeAnthropicMessages:
    def __init__(self):
        self.requests = []

    def create(self, **request):
        self.requests.append(request)
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text="Hello "), SimpleNamespace(type="text", text="Claude")],
            usage=SimpleNamespace(input_tokens=1000, output_tokens=2000),
        )

    def stream(self, **request):
        self.requests.append(request)
        return FakeAnthropicStream(["Hel", "lo"], SimpleNamespace(input_tokens=10, output_tokens=20))


class FakeOpenAICompletions:
    def __init__(self):
        self.requests = []

    def create(self, stream=False, **request):
        self.requests.append(dict(request, stream=stream))
        if stream:
            return iter([
                SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content="Hi"))], usage=None),
                SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=" GPT"))], usage=None),
                SimpleNamespace(choices=[], usage=SimpleNamespace(prompt_tokens=5, completion_tokens=7)),
            ])
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Hi GPT"))],
            usage=SimpleNamespace(prompt_tokens=1_000_000, completion_tokens=0),
        )


class ExplodingBackend(CompletionBackend):
    name = "exploding"
    default_model = "boom"

    def complete(self, messages, options):
        raise TimeoutError("upstream timed out")

    def stream(self, messages, options):
        yield StreamChunk(text="partial ")
        raise ConnectionError("connection reset")

    def estimate_cost(self, prompt_tokens, completion_tokens, model=None):
        return 0.0


class SilentBackend(ExplodingBackend):
    """Streams text but never reports usage."""
    name = "silent"

    def stream(self, messages, options):
        yield StreamChunk(text="abcdefgh")
        yield StreamChunk(text="", is_complete=True)

    def estimate_cost(self, prompt_tokens, completion_tokens, model=None):
        return float(prompt_tokens + completion_tokens)


class TestAnthropicBackend:

    def test_complete_sends_system_separately(self):
        client = SimpleNamespace(messages=FakeAnthropicMessages())
        backend = AnthropicBackend(client=client)

        completion = backend.complete(MESSAGES, CompletionOptions(temperature=0.3, max_tokens=100))

        request = client.messages.requests[0]
        assert request["system"] == "You are a Frontend Developer"
        assert request["messages"] == [{"role": "user", "content": "Build the UI"}]
        assert request["model"] == "claude-3-5-sonnet-20241022"
        assert request["temperature"] == 0.3
        assert completion.text == "Hello Claude"
        assert completion.usage == TokenUsage(1000, 2000)

    def test_stream_ends_with_usage(self):
        backend = AnthropicBackend(client=SimpleNamespace(messages=FakeAnthropicMessages()))

        chunks = list(backend.stream(MESSAGES, CompletionOptions()))

        assert [c.text for c in chunks] == ["Hel", "lo", ""]
        assert chunks[-1].is_complete
        assert chunks[-1].usage == TokenUsage(10, 20)

    def test_pricing(self):
        backend = AnthropicBackend(client=object())

        assert backend.estimate_cost(1_000_000, 1_000_000) == pytest.approx(18.0)
        assert backend.estimate_cost(1_000_000, 0, "claude-3-opus-20240229") == pytest.approx(15.0)
        assert backend.estimate_cost(0, 1_000_000, "claude-3-haiku-20240307") == pytest.approx(1.25)

    def test_model_override(self):
        backend = AnthropicBackend(model="claude-3-haiku-20240307", client=object())

        assert backend.default_model == "claude-3-haiku-20240307"


class TestOpenAIBackend:

    def test_complete(self):
        completions = FakeOpenAICompletions()
        backend = OpenAIBackend(client=SimpleNamespace(chat=SimpleNamespace(completions=completions)))

        completion = backend.complete(MESSAGES, CompletionOptions())

        assert completion.text == "Hi GPT"
        assert completion.model == "gpt-4-turbo-preview"
        assert completions.requests[0]["messages"][0] == {"role": "system", "content": "You are a Frontend Developer"}

    def test_stream_requests_usage(self):
        completions = FakeOpenAICompletions()
        backend = OpenAIBackend(client=SimpleNamespace(chat=SimpleNamespace(completions=completions)))

        chunks = list(backend.stream(MESSAGES, CompletionOptions()))

        assert "".join(c.text for c in chunks) == "Hi GPT"
        assert chunks[-1].usage == TokenUsage(5, 7)
        assert completions.requests[0]["stream_options"] == {"include_usage": True}

    def test_pricing(self):
        backend = OpenAIBackend(client=object())

        assert backend.estimate_cost(1_000_000, 1_000_000) == pytest.approx(40.0)
        assert backend.estimate_cost(1_000_000, 0, "gpt-4o") == pytest.approx(5.0)


class TestMockBackend:

    def test_picks_response_by_role(self):
        backend = MockBackend()

        text = backend.complete(MESSAGES, CompletionOptions()).text

        assert "React" in text
        assert len(backend.requests) == 1

    def test_unknown_role_echoes(self):
        messages = [CompletionMessage(MessageRole.SYSTEM, "You are a poet"),
                    CompletionMessage(MessageRole.USER, "Write")]

        assert MockBackend().complete(messages, CompletionOptions()).text == "Mock response for: Write"

    def test_stream_splits_on_spaces(self):
        backend = MockBackend(responses={"frontend-developer": "a b c"})

        chunks = list(backend.stream(MESSAGES, CompletionOptions()))

        assert [c.text for c in chunks] == ["a ", "b ", "c", ""]
        assert chunks[-1].is_complete


class TestCompletionService:
    """One ledger entry per call; backend failures wrapped."""

    def test_complete_records_one_entry(self, cost_tracker):
        service = CompletionService(MockBackend(cost_per_call=0.05), cost_tracker)

        completion = service.complete(MESSAGES, CompletionOptions(), purpose="frontend-developer")

        assert completion.cost == 0.05
        assert len(cost_tracker.entries) == 1
        entry = cost_tracker.entries[0]
        assert (entry.provider, entry.model, entry.purpose) == ("mock", "mock-model", "frontend-developer")
        assert (entry.prompt_tokens, entry.completion_tokens) == (100, 50)

    def test_stream_records_once_after_terminal_chunk(self, cost_tracker):
        service = CompletionService(MockBackend(cost_per_call=0.02), cost_tracker)

        stream = service.stream(MESSAGES, CompletionOptions(), purpose="ui")
        assert cost_tracker.entries == ()

        text = "".join(stream)

        assert text == stream.text
        assert "React" in text
        assert stream.finished and stream.cost == 0.02
        assert len(cost_tracker.entries) == 1

    def test_stream_estimates_missing_usage(self, cost_tracker):
        service = CompletionService(SilentBackend(), cost_tracker)

        stream = service.stream(MESSAGES, CompletionOptions())
        list(stream)

        prompt_tokens = estimate_tokens("You are a Frontend Developer") + estimate_tokens("Build the UI")
        assert stream.usage == TokenUsage(prompt_tokens, 2)
        assert cost_tracker.entries[0].completion_tokens == 2

    def test_complete_failure_wrapped(self, cost_tracker):
        service = CompletionService(ExplodingBackend(), cost_tracker)

        with pytest.raises(CompletionBackendError) as exc_info:
            service.complete(MESSAGES, CompletionOptions(), purpose="product-manager")

        assert exc_info.value.provider == "exploding"
        assert isinstance(exc_info.value.__cause__, TimeoutError)
        assert cost_tracker.entries == ()

    def test_stream_failure_wrapped_and_not_recorded(self, cost_tracker):
        service = CompletionService(ExplodingBackend(), cost_tracker)
        stream = service.stream(MESSAGES, CompletionOptions())

        with pytest.raises(CompletionBackendError, match="connection reset"):
            list(stream)
        assert stream.text == "partial "
        assert not stream.finished
        assert cost_tracker.entries == ()

    def test_backend_error_not_double_wrapped(self, cost_tracker):
        class Rejecting(ExplodingBackend):
            def complete(self, messages, options):
                raise CompletionBackendError("quota", provider="exploding")

        with pytest.raises(CompletionBackendError) as exc_info:
            CompletionService(Rejecting(), cost_tracker).complete(MESSAGES, CompletionOptions())

        assert exc_info.value.message == "quota"


class TestBackendRegistry:

    def test_first_registered_is_default(self):
        registry = BackendRegistry()
        registry.register(MockBackend())

        assert registry.default == "mock"
        assert registry.get().name == "mock"

    def test_unknown_default_rejected(self):
        with pytest.raises(ValidationError):
            BackendRegistry().set_default("claude")

    def test_get_missing_backend(self):
        with pytest.raises(CompletionBackendError):
            BackendRegistry().get("openai")

    def test_factory_without_keys_uses_mock(self):
        registry = create_backend_registry()

        assert registry.list() == ["mock"]
        assert registry.default == "mock"

    def test_factory_falls_back_with_warning(self):
        with pytest.warns(UserWarning, match="not configured"):
            registry = create_backend_registry(provider="anthropic")

        assert registry.default == "mock"


def test_estimate_tokens():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcde") == 2
