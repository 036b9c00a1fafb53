"""
Role invoker: turns a role execution into a completion request.
"""

import json
from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING

from .completion import CompletionService
from .enums import MessageRole
from .llm_stream_handler import LLMStreamHandler
from .models import CompletionMessage, CompletionOptions, RoleResult

if TYPE_CHECKING:
    from .roles import PromptRole


CONTEXT_VALUE_LIMIT = 1000


def format_user_message(input: Any, context: Optional[Dict[str, Any]] = None) -> str:
    """
    Render step input plus prior-step context as the user message.

    Text input is used verbatim. Structured input is listed key by key as
    JSON. When the context is non-empty it is appended: short strings in
    full, anything else as a type marker.
    """
    if isinstance(input, str):
        message = input
    elif isinstance(input, dict):
        parts = ["Please process the following:", ""]
        for key, value in input.items():
            parts.append(f"{key}:\n{json.dumps(value, indent=2, default=str)}\n")
        message = "\n".join(parts)
    else:
        message = json.dumps(input, indent=2, default=str)

    if context:
        parts = [message, "", "Context from previous steps:"]
        for key, value in context.items():
            if isinstance(value, str) and len(value) < CONTEXT_VALUE_LIMIT:
                parts.append(f"\n{key}:\n{value}")
            else:
                parts.append(f"\n{key}: [{type(value).__name__}]")
        message = "\n".join(parts)

    return message


class RoleInvoker(ABC):
    """Executes a PromptRole against some completion source"""

    @abstractmethod
    def invoke(self, role: 'PromptRole', input: Any, context: Dict[str, Any]) -> RoleResult:
        pass


class LLMRoleInvoker(RoleInvoker):
    """
    Sends one system + user exchange per role execution.

    In streaming mode chunks are concatenated in delivery order before the
    role's parser runs. The RoleResult carries the cost of this call only.

    `stream` is the default mode and is never changed after construction. A
    run selects its own mode with `streaming()`; the override lives in a
    context variable, so each thread or task sees only the mode it set.
    """

    def __init__(self, service: CompletionService, stream: bool = False,
                 stream_handler: Optional[LLMStreamHandler] = None,
                 model: Optional[str] = None):
        self.service = service
        self.stream = stream
        self.stream_handler = stream_handler or LLMStreamHandler()
        self.model = model
        self._stream_override: ContextVar[Optional[bool]] = ContextVar(
            f"stream_override_{id(self)}", default=None
        )

    @contextmanager
    def streaming(self, enabled: bool = True) -> Iterator[None]:
        """Use `enabled` as the mode for calls made by the current run"""
        token = self._stream_override.set(enabled)
        try:
            yield
        finally:
            self._stream_override.reset(token)

    def is_streaming(self) -> bool:
        override = self._stream_override.get()
        return self.stream if override is None else override

    def build_messages(self, role: 'PromptRole', input: Any,
                       context: Dict[str, Any]) -> List[CompletionMessage]:
        return [
            CompletionMessage(MessageRole.SYSTEM, role.system_prompt()),
            CompletionMessage(MessageRole.USER, format_user_message(input, role.relevant_context(context))),
        ]

    def invoke(self, role: 'PromptRole', input: Any, context: Dict[str, Any]) -> RoleResult:
        messages = self.build_messages(role, input, context)
        options = CompletionOptions(
            temperature=role.temperature,
            max_tokens=role.max_tokens,
            model=self.model,
        )

        if self.is_streaming():
            stream = self.service.stream(messages, options, purpose=role.id)
            text = self.stream_handler.handle_stream(stream, role_name=role.name)
            cost = stream.cost or 0.0
        else:
            completion = self.service.complete(messages, options, purpose=role.id)
            text = completion.text
            cost = completion.cost

        return RoleResult(output=role.parse_output(text), cost=cost, raw=text)
