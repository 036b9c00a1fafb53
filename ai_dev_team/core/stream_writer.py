"""
Console sink for streamed completion text.
"""

import sys
from typing import Optional, TextIO


class StreamWriter:
    """Writes text to an output stream, flushing after every write"""

    def __init__(self, output_stream: Optional[TextIO] = None):
        """
        Args:
            output_stream: Output stream (defaults to sys.stdout)
        """
        self.output_stream = output_stream or sys.stdout

    def write(self, text: str, flush: bool = True) -> None:
        self.output_stream.write(text)
        if flush:
            self.output_stream.flush()

    def writeline(self, line: str = "", flush: bool = True) -> None:
        self.write(line + '\n', flush=flush)

    def flush(self) -> None:
        self.output_stream.flush()
