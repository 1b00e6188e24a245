# chatcore/ndjson.py

"""
Newline-delimited JSON framing for streamed provider bodies.

Ollama streams `/api/chat` answers as one JSON object per line over a
chunked HTTP body. Network reads do not respect line boundaries, so the
decoder is an explicit state machine:

    accumulate bytes → split on "\\n" → parse complete lines → keep the remainder

It knows nothing about HTTP and is fed whatever the transport yields.
"""

import codecs
import json
import logging
from typing import Any, Dict, List

from chatcore.exceptions import MalformedStreamFragment

logger = logging.getLogger("chatcore.ndjson")


class NDJSONDecoder:
    """
    Incremental decoder turning arbitrary byte/str chunks into JSON objects.

    Multi-byte UTF-8 sequences split across reads are reassembled. Blank
    lines are ignored. A line that is not a JSON object is logged as a
    `MalformedStreamFragment` and skipped; decoding continues.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.skipped = 0

    def feed(self, chunk: bytes | str) -> List[Dict[str, Any]]:
        """
        Add one network read and return every object completed by it.
        """
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk

        *lines, self._buffer = self._buffer.split("\n")
        return self._parse_lines(lines)

    def flush(self) -> List[Dict[str, Any]]:
        """
        Parse whatever is left once the body is exhausted (a final line with
        no trailing newline).
        """
        tail = self._buffer + self._utf8.decode(b"", final=True)
        self._buffer = ""
        return self._parse_lines([tail])

    def _parse_lines(self, lines: List[str]) -> List[Dict[str, Any]]:
        objects = []
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as e:
                self._skip(MalformedStreamFragment(line, e.msg))
                continue
            if not isinstance(obj, dict):
                self._skip(MalformedStreamFragment(line, "not a JSON object"))
                continue
            objects.append(obj)
        return objects

    def _skip(self, err: MalformedStreamFragment) -> None:
        self.skipped += 1
        logger.warning(err.detail)
