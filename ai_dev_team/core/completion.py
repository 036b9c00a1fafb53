"""
Completion backend contract and the service that records what each call costs.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Iterator, List, Optional

from .cost_tracker import CostTracker
from .exceptions import CompletionBackendError
from .models import (
    Completion, CompletionMessage, CompletionOptions, StreamChunk, TokenUsage,
)


def estimate_tokens(text: str) -> int:
    """Rough token count: about four characters per token"""
    return math.ceil(len(text) / 4)


class CompletionBackend(ABC):
    """
    A provider of text completions.

    `complete` returns the whole response; `stream` yields text chunks and
    ends with a chunk whose `is_complete` is True.
    """

    name: str = "backend"
    default_model: str = ""

    @abstractmethod
    def complete(self, messages: List[CompletionMessage],
                 options: CompletionOptions) -> Completion:
        pass

    @abstractmethod
    def stream(self, messages: List[CompletionMessage],
               options: CompletionOptions) -> Iterator[StreamChunk]:
        pass

    @abstractmethod
    def estimate_cost(self, prompt_tokens: int, completion_tokens: int,
                      model: Optional[str] = None) -> float:
        pass


class CompletionStream:
    """
    Text chunks of one streamed completion, in delivery order.

    Iterate once to consume the stream. After the terminal chunk `text`,
    `usage` and `cost` describe the whole call.
    """

    def __init__(self, service: 'CompletionService', messages: List[CompletionMessage],
                 options: CompletionOptions, purpose: str):
        self._service = service
        self._messages = messages
        self._options = options
        self._purpose = purpose
        self._chunks: List[str] = []
        self.usage: Optional[TokenUsage] = None
        self.cost: Optional[float] = None

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    @property
    def finished(self) -> bool:
        return self.cost is not None

    def __iter__(self) -> Iterator[str]:
        backend = self._service.backend
        usage: Optional[TokenUsage] = None
        try:
            for chunk in backend.stream(self._messages, self._options):
                if chunk.text:
                    self._chunks.append(chunk.text)
                    yield chunk.text
                if chunk.is_complete:
                    usage = chunk.usage
                    break
        except CompletionBackendError:
            raise
        except Exception as e:
            raise CompletionBackendError(
                f"{backend.name} streaming failed: {e}",
                provider=backend.name,
                role_id=self._purpose,
            ) from e

        if usage is None:
            usage = TokenUsage(
                prompt_tokens=sum(estimate_tokens(m.content) for m in self._messages),
                completion_tokens=estimate_tokens(self.text),
            )
        self.usage = usage
        model = self._options.model or backend.default_model
        self.cost = self._service.record(model, usage, self._purpose)


class CompletionService:
    """
    Sends completion requests to a backend and records one CostEntry per call.

    This is the only writer to the cost ledger; entries are tagged with the
    caller's purpose (the role id). Backend exceptions are wrapped in
    CompletionBackendError. There are no retries and no timeouts.
    """

    def __init__(self, backend: CompletionBackend, cost_tracker: CostTracker):
        self.backend = backend
        self.cost_tracker = cost_tracker

    def complete(self, messages: List[CompletionMessage], options: CompletionOptions,
                 purpose: str = "general") -> Completion:
        """Whole-response completion; the returned Completion carries its cost"""
        try:
            completion = self.backend.complete(messages, options)
        except CompletionBackendError:
            raise
        except Exception as e:
            raise CompletionBackendError(
                f"{self.backend.name} completion failed: {e}",
                provider=self.backend.name,
                role_id=purpose,
            ) from e

        cost = self.record(completion.model, completion.usage, purpose)
        return replace(completion, cost=cost)

    def stream(self, messages: List[CompletionMessage], options: CompletionOptions,
               purpose: str = "general") -> CompletionStream:
        return CompletionStream(self, messages, options, purpose)

    def record(self, model: str, usage: TokenUsage, purpose: str) -> float:
        cost = self.backend.estimate_cost(usage.prompt_tokens, usage.completion_tokens, model)
        self.cost_tracker.track(
            self.backend.name,
            model,
            usage.prompt_tokens,
            usage.completion_tokens,
            cost,
            purpose,
        )
        return cost
