"""
LLM stream handler: accumulates streamed chunks and optionally echoes them.
"""

import re
from typing import Iterable, Optional

from .stream_writer import StreamWriter


class LLMStreamHandler:
    """Accumulates streamed completion text in delivery order"""

    def __init__(self, stream_writer: Optional[StreamWriter] = None, echo: bool = False,
                 role_name: Optional[str] = None):
        """
        Args:
            stream_writer: Where echoed chunks go (defaults to stdout)
            echo: Whether to write chunks as they arrive
            role_name: Optional label printed before the echoed response
        """
        self.stream_writer = stream_writer or StreamWriter()
        self.echo = echo
        self.role_name = role_name
        self.full_response = ""

    def handle_chunk(self, chunk: str) -> None:
        self.full_response += chunk
        if self.echo:
            display_chunk = self._clean_chunk(chunk)
            if display_chunk:
                self.stream_writer.write(display_chunk, flush=True)

    def handle_stream(self, stream: Iterable[str], role_name: Optional[str] = None) -> str:
        """
        Consume a whole stream and return the concatenated text.

        The returned text holds only this stream's chunks, even when other
        streams share the handler. Errors raised by the stream propagate to
        the caller.
        """
        self.reset()
        label = role_name or self.role_name
        if self.echo and label:
            self.stream_writer.writeline(f"[{label}]")

        chunks = []
        for chunk in stream:
            chunks.append(chunk)
            self.handle_chunk(chunk)

        if self.echo:
            self.stream_writer.writeline("", flush=True)
        return "".join(chunks)

    def _clean_chunk(self, chunk: str) -> str:
        """Strip control characters other than newlines and tabs"""
        return re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F]', '', chunk)

    def get_full_response(self) -> str:
        return self.full_response

    def reset(self) -> None:
        self.full_response = ""
