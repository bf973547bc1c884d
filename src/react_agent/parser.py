# parser.py
# Free-text model output → typed Decision.
#
# Two shapes are recognised: a "Final Answer:" block and an
# "Action:/Action Input:" block. Anything else becomes a fallback final
# answer so the user always gets a reply. No I/O beyond a warning log.

import logging
import re

from react_agent.models import Decision, FinalAnswer, ToolInvocation

logger = logging.getLogger(__name__)

FINAL_ANSWER_MARKER = "Final Answer:"

# Tool name is a single line; the input runs to the end of the text.
_ACTION_RE = re.compile(r"Action: ([^\n]*)\nAction Input: ")
_OBSERVATION_RE = re.compile(r"\nObservation:")


def _strip_quotes(value: str) -> str:
    """Remove one leading and one trailing double-quote, if present."""
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def _last_action(text: str) -> tuple[str, str] | None:
    matches = list(_ACTION_RE.finditer(text))
    if not matches:
        return None

    last = matches[-1]
    tool_input = text[last.end():]

    # An action already followed by its observation is scratchpad history,
    # not a pending request.
    if _OBSERVATION_RE.search(tool_input):
        return None

    return last.group(1).strip(), _strip_quotes(tool_input.strip())


class OutputParser:
    """
    Converts raw model text into a Decision.

    Pure and deterministic: the same text always yields an equal Decision.
    Never raises: unparseable text is returned as a fallback FinalAnswer.
    """

    def parse(self, text: str) -> Decision:
        if FINAL_ANSWER_MARKER in text:
            # Last occurrence wins so a Thought that quotes the marker
            # cannot end the run early.
            output = text.rsplit(FINAL_ANSWER_MARKER, 1)[1].strip()
            return FinalAnswer(output=output, log=text)

        action = _last_action(text)
        if action is not None:
            tool, tool_input = action
            return ToolInvocation(tool=tool, tool_input=tool_input, log=text)

        logger.warning("Could not parse model output, using it as the final answer: %r", text[:200])
        return FinalAnswer(output=text, log=text, fallback=True)


_default_parser = OutputParser()


def parse_output(text: str) -> Decision:
    return _default_parser.parse(text)
