# trace.py
# Per-run record of every prompt sent and every response received.
#
# One TraceRecorder per AgentLoop run, never shared between runs. Flushing
# hands the ordered entries to a TraceSink as JSON lines and clears the
# buffer. A sink failure is logged, never raised: the answer already exists.

import hashlib
import logging
import os
import re
from typing import Protocol

from react_agent.models import TraceEntry, TraceRole

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class TraceSink(Protocol):
    def write(self, query_id: str, lines: list[str]) -> None: ...


class JsonlTraceSink:
    """
    Appends each flushed trace to <directory>/<query_id>.jsonl.

    Ids that are not already safe file names get a short hash of the raw id
    appended, so distinct ids never share a file.
    """

    def __init__(self, directory: str) -> None:
        self._directory = directory

    def path_for(self, query_id: str) -> str:
        filename = _UNSAFE_CHARS.sub("_", query_id).strip("._") or "trace"
        if filename != query_id:
            digest = hashlib.sha256(query_id.encode("utf-8")).hexdigest()[:8]
            filename = f"{filename}-{digest}"
        return os.path.join(self._directory, f"{filename}.jsonl")

    def write(self, query_id: str, lines: list[str]) -> None:
        if not lines:
            return
        os.makedirs(self._directory, exist_ok=True)
        with open(self.path_for(query_id), "a", encoding="utf-8") as fh:
            fh.write("\n".join(lines))
            fh.write("\n")


class MemoryTraceSink:
    """Keeps flushed traces in a dict keyed by query id."""

    def __init__(self) -> None:
        self.traces: dict[str, list[str]] = {}

    def write(self, query_id: str, lines: list[str]) -> None:
        self.traces.setdefault(query_id, []).extend(lines)


class TraceRecorder:
    def __init__(self, sink: TraceSink | None = None) -> None:
        self._sink = sink
        self._entries: list[TraceEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[TraceEntry]:
        """Shallow copy of the buffered entries in chronological order."""
        return list(self._entries)

    def record(self, entry: TraceEntry) -> None:
        self._entries.append(entry)

    def record_prompt(self, content: str) -> None:
        self.record(TraceEntry(role=TraceRole.PROMPT, content=content))

    def record_response(self, content: str) -> None:
        self.record(TraceEntry(role=TraceRole.RESPONSE, content=content))

    def flush(self, query_id: str) -> bool:
        """
        Persist the buffered entries under `query_id`, then clear the buffer.

        Returns False when there is no sink or the sink raised. The buffer is
        cleared either way.
        """
        lines = [entry.to_json() for entry in self._entries]
        self._entries.clear()

        if self._sink is None:
            return False

        try:
            self._sink.write(query_id, lines)
        except Exception as exc:
            logger.warning("Failed to persist trace %s: %s", query_id, exc)
            return False

        logger.debug("Flushed %d trace entries for %s", len(lines), query_id)
        return True
