"""
Completion backends: Anthropic, OpenAI and an offline mock, plus a registry
that picks one by name.

The SDK clients are created lazily so that only the provider actually in use
needs credentials. Tests inject fake clients through the `client` argument.
"""

import json
import os
import warnings
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .completion import CompletionBackend
from .enums import MessageRole
from .exceptions import CompletionBackendError, ValidationError
from .models import (
    Completion, CompletionMessage, CompletionOptions, StreamChunk, TokenUsage,
)


# USD per million tokens: (input, output)
ANTHROPIC_PRICING: Dict[str, Tuple[float, float]] = {
    "claude-3-opus-20240229": (15.0, 75.0),
    "claude-3-5-sonnet-20241022": (3.0, 15.0),
    "claude-3-haiku-20240307": (0.25, 1.25),
}

OPENAI_PRICING: Dict[str, Tuple[float, float]] = {
    "gpt-4-turbo-preview": (10.0, 30.0),
    "gpt-4-turbo": (10.0, 30.0),
    "gpt-4o": (5.0, 15.0),
}


def price(pricing: Dict[str, Tuple[float, float]], default_model: str,
          prompt_tokens: int, completion_tokens: int, model: Optional[str]) -> float:
    input_rate, output_rate = pricing.get(model or default_model, pricing[default_model])
    return (prompt_tokens / 1_000_000) * input_rate + (completion_tokens / 1_000_000) * output_rate


def split_system(messages: List[CompletionMessage]) -> Tuple[str, List[Dict[str, str]]]:
    """Separate the system message from the conversation turns"""
    system = "\n\n".join(m.content for m in messages if m.role == MessageRole.SYSTEM)
    conversation = [m.to_dict() for m in messages if m.role != MessageRole.SYSTEM]
    return system, conversation


class AnthropicBackend(CompletionBackend):
    """Claude models through the anthropic SDK"""

    name = "anthropic"
    default_model = "claude-3-5-sonnet-20241022"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 client: Any = None):
        if model:
            self.default_model = model
        if client is None:
            import anthropic
            client = anthropic.Anthropic(api_key=api_key or os.getenv("ANTHROPIC_API_KEY"))
        self.client = client

    def _request(self, messages: List[CompletionMessage], options: CompletionOptions) -> Dict[str, Any]:
        system, conversation = split_system(messages)
        request: Dict[str, Any] = {
            "model": options.model or self.default_model,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "messages": conversation,
        }
        if system:
            request["system"] = system
        return request

    def complete(self, messages: List[CompletionMessage], options: CompletionOptions) -> Completion:
        request = self._request(messages, options)
        response = self.client.messages.create(**request)
        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return Completion(
            text=text,
            usage=TokenUsage(response.usage.input_tokens, response.usage.output_tokens),
            model=request["model"],
        )

    def stream(self, messages: List[CompletionMessage], options: CompletionOptions) -> Iterator[StreamChunk]:
        request = self._request(messages, options)
        with self.client.messages.stream(**request) as stream:
            for text in stream.text_stream:
                yield StreamChunk(text=text)
            final = stream.get_final_message()
        yield StreamChunk(
            text="",
            is_complete=True,
            usage=TokenUsage(final.usage.input_tokens, final.usage.output_tokens),
        )

    def estimate_cost(self, prompt_tokens: int, completion_tokens: int,
                      model: Optional[str] = None) -> float:
        return price(ANTHROPIC_PRICING, "claude-3-5-sonnet-20241022",
                     prompt_tokens, completion_tokens, model)


class OpenAIBackend(CompletionBackend):
    """GPT models through the openai SDK (v1 client)"""

    name = "openai"
    default_model = "gpt-4-turbo-preview"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 base_url: Optional[str] = None, client: Any = None):
        if model:
            self.default_model = model
        if client is None:
            import openai
            kwargs: Dict[str, Any] = {"api_key": api_key or os.getenv("OPENAI_API_KEY")}
            if base_url:
                kwargs["base_url"] = base_url
            client = openai.OpenAI(**kwargs)
        self.client = client

    def _request(self, messages: List[CompletionMessage], options: CompletionOptions) -> Dict[str, Any]:
        return {
            "model": options.model or self.default_model,
            "messages": [m.to_dict() for m in messages],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }

    def complete(self, messages: List[CompletionMessage], options: CompletionOptions) -> Completion:
        request = self._request(messages, options)
        response = self.client.chat.completions.create(**request)
        usage = response.usage
        return Completion(
            text=response.choices[0].message.content or "",
            usage=TokenUsage(
                usage.prompt_tokens if usage else 0,
                usage.completion_tokens if usage else 0,
            ),
            model=request["model"],
        )

    def stream(self, messages: List[CompletionMessage], options: CompletionOptions) -> Iterator[StreamChunk]:
        request = self._request(messages, options)
        response = self.client.chat.completions.create(
            stream=True,
            stream_options={"include_usage": True},
            **request
        )
        usage: Optional[TokenUsage] = None
        for chunk in response:
            if chunk.choices:
                content = chunk.choices[0].delta.content
                if content:
                    yield StreamChunk(text=content)
            if getattr(chunk, "usage", None):
                usage = TokenUsage(chunk.usage.prompt_tokens, chunk.usage.completion_tokens)
        yield StreamChunk(text="", is_complete=True, usage=usage)

    def estimate_cost(self, prompt_tokens: int, completion_tokens: int,
                      model: Optional[str] = None) -> float:
        return price(OPENAI_PRICING, "gpt-4-turbo-preview",
                     prompt_tokens, completion_tokens, model)


MOCK_RESPONSES: Dict[str, str] = {
    "product-manager": json.dumps({
        "title": "Mock App Requirements",
        "overview": "A modern web application built with Next.js",
        "features": [
            {"name": "User authentication", "priority": "must-have"},
            {"name": "CRUD operations", "priority": "must-have"},
            {"name": "Responsive design", "priority": "nice-to-have"},
        ],
        "technical_requirements": {
            "frontend": "Next.js with TypeScript",
            "styling": "Tailwind CSS",
            "database": "PostgreSQL",
            "deployment": "Vercel",
        },
        "mvp_scope": ["User authentication", "CRUD operations"],
    }, indent=2),
    "frontend-developer": """// Mock React Component
import React from 'react';

export default function AppComponent() {
  return (
    <div className="container mx-auto p-4">
      <h1 className="text-3xl font-bold">Mock App</h1>
      <p>This is a mock response for testing</p>
    </div>
  );
}""",
    "backend-developer": """// Mock API Route
export async function GET(request: Request) {
  return Response.json({ message: "Mock API response", data: [] });
}""",
    "stripe-expert": """// Mock Stripe checkout route
import Stripe from 'stripe';
const stripe = new Stripe(process.env.STRIPE_SECRET_KEY!);""",
}

# Role name (as it appears in the system prompt) -> response key
MOCK_ROLE_KEYWORDS: List[Tuple[str, str]] = [
    ("product manager", "product-manager"),
    ("frontend developer", "frontend-developer"),
    ("backend developer", "backend-developer"),
    ("stripe", "stripe-expert"),
]


class MockBackend(CompletionBackend):
    """
    Offline backend returning canned responses.

    The response is chosen from the role named in the system prompt; unknown
    roles get an echo of the last message. Every request is kept in
    `requests` for inspection.
    """

    name = "mock"
    default_model = "mock-model"

    def __init__(self, responses: Optional[Dict[str, str]] = None,
                 cost_per_call: float = 0.0,
                 usage: TokenUsage = TokenUsage(100, 50)):
        self.responses = dict(MOCK_RESPONSES)
        if responses:
            self.responses.update(responses)
        self.cost_per_call = cost_per_call
        self.usage = usage
        self.requests: List[Tuple[List[CompletionMessage], CompletionOptions]] = []

    def _response_for(self, messages: List[CompletionMessage]) -> str:
        system, _ = split_system(messages)
        lowered = system.lower()
        for keyword, key in MOCK_ROLE_KEYWORDS:
            if keyword in lowered and key in self.responses:
                return self.responses[key]
        last = messages[-1].content if messages else ""
        return f"Mock response for: {last}"

    def complete(self, messages: List[CompletionMessage], options: CompletionOptions) -> Completion:
        self.requests.append((list(messages), options))
        return Completion(
            text=self._response_for(messages),
            usage=self.usage,
            model=options.model or self.default_model,
        )

    def stream(self, messages: List[CompletionMessage], options: CompletionOptions) -> Iterator[StreamChunk]:
        self.requests.append((list(messages), options))
        words = self._response_for(messages).split(" ")
        for index, word in enumerate(words):
            yield StreamChunk(text=word if index == len(words) - 1 else word + " ")
        yield StreamChunk(text="", is_complete=True, usage=self.usage)

    def estimate_cost(self, prompt_tokens: int, completion_tokens: int,
                      model: Optional[str] = None) -> float:
        return self.cost_per_call


class BackendRegistry:
    """Named completion backends with a default"""

    def __init__(self):
        self._backends: Dict[str, CompletionBackend] = {}
        self._default: Optional[str] = None

    def register(self, backend: CompletionBackend, name: Optional[str] = None) -> None:
        name = name or backend.name
        self._backends[name] = backend
        if self._default is None:
            self._default = name

    def set_default(self, name: str) -> None:
        if name not in self._backends:
            raise ValidationError(f"Unknown completion backend: {name}", field="provider", value=name)
        self._default = name

    def get(self, name: Optional[str] = None) -> CompletionBackend:
        key = name or self._default
        if key is None or key not in self._backends:
            raise CompletionBackendError(
                f"Completion backend not available: {key}",
                provider=key,
                role_id=None,
            )
        return self._backends[key]

    def list(self) -> List[str]:
        return sorted(self._backends)

    @property
    def default(self) -> Optional[str]:
        return self._default


def create_backend_registry(provider: Optional[str] = None, model: Optional[str] = None,
                            anthropic_api_key: Optional[str] = None,
                            openai_api_key: Optional[str] = None,
                            openai_base_url: Optional[str] = None) -> BackendRegistry:
    """
    Registry with the mock backend plus every SDK backend that has a key.

    The default is `provider` when given, otherwise anthropic, then openai,
    then mock, depending on which keys are available. `model` applies to the
    default backend only. An SDK backend that cannot be created is skipped
    with a warning.
    """
    if provider is None:
        provider = "anthropic" if anthropic_api_key else "openai" if openai_api_key else "mock"

    registry = BackendRegistry()
    registry.register(MockBackend())

    if anthropic_api_key:
        try:
            registry.register(AnthropicBackend(
                api_key=anthropic_api_key,
                model=model if provider == "anthropic" else None,
            ))
        except Exception as e:
            warnings.warn(f"Failed to create Anthropic backend: {e}")
    if openai_api_key:
        try:
            registry.register(OpenAIBackend(
                api_key=openai_api_key,
                model=model if provider == "openai" else None,
                base_url=openai_base_url,
            ))
        except Exception as e:
            warnings.warn(f"Failed to create OpenAI backend: {e}")

    if provider not in registry.list():
        warnings.warn(f"Completion backend '{provider}' is not configured; using mock")
        provider = "mock"
    registry.set_default(provider)
    return registry
