"""
Directive scanner for agent-mode model output.

The model embeds two kinds of directives in its free-text reply:

    <<<FILE: index.html>>>
    <html></html>
    <<<END>>>

    <<<OPERATION: /mkdir public>>>

:class:`ActionParser` walks the text once, left to right, and returns the
recognized directives as actions together with the remaining prose. Anything
that does not match the grammar exactly is kept as plain text; the parser
never raises on malformed input.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pydantic import ValidationError

from dual_terminal.actions.models import Action, FileWrite, Operation

log = logging.getLogger(__name__)

MARKER_OPEN = "<<<"
MARKER_CLOSE = ">>>"
FILE_OPEN = "<<<FILE:"
FILE_END = "<<<END>>>"
OPERATION_OPEN = "<<<OPERATION:"
THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"


@dataclass
class ParseResult:
    """Output of :meth:`ActionParser.parse`.

    Attributes:
        cleaned_text: Input with every recognized directive removed.
        batch: Extracted actions in scan order.
    """

    cleaned_text: str
    batch: List[Action] = field(default_factory=list)

    @property
    def file_writes(self) -> List[FileWrite]:
        return [a for a in self.batch if isinstance(a, FileWrite)]

    @property
    def operations(self) -> List[Operation]:
        return [a for a in self.batch if isinstance(a, Operation)]


def extract_reasoning(text: str) -> Tuple[str, List[str]]:
    """Split ``<think>...</think>`` blocks out of a model reply.

    Returns:
        Tuple of the text without complete reasoning blocks and the trimmed
        bodies of those blocks, in order. An unterminated ``<think>`` is left
        in place.
    """
    parts: List[str] = []
    thoughts: List[str] = []
    pos = 0
    while True:
        start = text.find(THINK_OPEN, pos)
        if start == -1:
            break
        end = text.find(THINK_CLOSE, start + len(THINK_OPEN))
        if end == -1:
            break
        parts.append(text[pos:start])
        thoughts.append(text[start + len(THINK_OPEN) : end].strip())
        pos = end + len(THINK_CLOSE)
    parts.append(text[pos:])
    return "".join(parts), thoughts


class ActionParser:
    """Single-pass scanner extracting file-write and operation directives."""

    def parse(self, text: str) -> ParseResult:
        """Scan ``text`` and return the cleaned prose plus the action batch.

        Args:
            text: Raw model output (reasoning blocks already removed).

        Returns:
            ParseResult: cleaned text and actions in the order they were found.
        """
        out: List[str] = []
        batch: List[Action] = []
        pos = 0
        length = len(text)

        while pos < length:
            idx = text.find(MARKER_OPEN, pos)
            if idx == -1:
                out.append(text[pos:])
                break
            out.append(text[pos:idx])

            matched = self._match_file(text, idx)
            if matched is None:
                matched = self._match_operation(text, idx)
            if matched is None:
                # Not a directive: keep one character and rescan from the next.
                out.append(text[idx])
                pos = idx + 1
                continue

            action, end = matched
            if action is not None:
                batch.append(action)
            if self._needs_separator(out, text, end):
                out.append("\n")
            pos = end

        if batch:
            log.debug("Extracted %d action(s) from model output", len(batch))
        return ParseResult(cleaned_text="".join(out), batch=batch)

    def _read_header(self, text: str, start: int) -> Optional[Tuple[str, int]]:
        """Read a single-line header body up to the next ``>>>``."""
        close = text.find(MARKER_CLOSE, start)
        if close == -1:
            return None
        body = text[start:close]
        if "\n" in body or "\r" in body:
            return None
        return body, close + len(MARKER_CLOSE)

    def _match_file(
        self, text: str, idx: int
    ) -> Optional[Tuple[Optional[Action], int]]:
        if not text.startswith(FILE_OPEN, idx):
            return None
        header = self._read_header(text, idx + len(FILE_OPEN))
        if header is None:
            return None
        name, body_start = header
        if not name.strip():
            return None
        end = text.find(FILE_END, body_start)
        if end == -1:
            # Unterminated: leave the header visible.
            return None
        content = text[body_start:end].strip()
        return FileWrite(name=name, content=content), end + len(FILE_END)

    def _match_operation(
        self, text: str, idx: int
    ) -> Optional[Tuple[Optional[Action], int]]:
        if not text.startswith(OPERATION_OPEN, idx):
            return None
        header = self._read_header(text, idx + len(OPERATION_OPEN))
        if header is None:
            return None
        command, end = header
        try:
            return Operation(command=command), end
        except ValidationError:
            log.debug("Dropping empty operation directive at offset %d", idx)
            return None, end

    @staticmethod
    def _needs_separator(out: List[str], text: str, end: int) -> bool:
        """Whether removing a directive could splice a new marker together.

        Markers never span lines, so a line break between the two sides is
        only needed when the left side's current line holds a ``<``.
        """
        if end >= len(text) or text[end] in "\r\n":
            return False
        tail = "".join(out)
        last_line = tail.rsplit("\n", 1)[-1]
        return "<" in last_line
