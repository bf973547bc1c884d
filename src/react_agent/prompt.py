# prompt.py
# Renders the single text prompt sent to the model on every iteration.
#
# The tool-usage block below is one half of a contract; parser.py is the
# other. Change the labels in one place and the other must follow.

from collections.abc import Sequence

from pydantic import BaseModel

from react_agent.models import AgentStep, ConversationMessage, ToolSpec
from react_agent.trace import TraceRecorder

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

PREFIX = """\
Answer the following questions as best you can. You have access to the following tools:
"""

HISTORY_HEADER = "Here is the chat history: \n"

TOOL_INSTRUCTIONS = """\
Use the following format in your response.:
Thought: you should always think about what to do
Action: the action to take, should be one of [{tool_names}]
Action Input: the input to the action
Observation: the result of the action
... (this Thought/Action/Action Input/Observation can repeat N times)
Thought: I now know the final answer
Final Answer: the final answer to the original input question

"""

SUFFIX = """\
Begin!

Question: {input}
"""


class PromptTemplate(BaseModel):
    """The fixed text blocks that surround the dynamic parts of a prompt."""

    prefix: str = PREFIX
    history_header: str = HISTORY_HEADER
    tool_instructions: str = TOOL_INSTRUCTIONS
    suffix: str = SUFFIX


DEFAULT_TEMPLATE = PromptTemplate()


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def format_tools(tools: Sequence[ToolSpec]) -> str:
    catalogue = "".join(f"\n{tool.name}: {tool.description}" for tool in tools)
    return catalogue + "\n\n"


def format_history(history: Sequence[ConversationMessage]) -> str:
    """
    Render history as `role: content` lines.

    The most recent entry is dropped: callers append the question being asked
    before querying, and it must not be echoed back into its own prompt.
    Works on a slice; the caller's sequence is left untouched.
    """
    earlier = list(history[:-1])
    return "\n".join(f"{message.role.value}: {message.content}" for message in earlier) + "\n"


def format_scratchpad(steps: Sequence[AgentStep]) -> str:
    return "".join(
        f"Action: {step.action.tool}\n"
        f"Action Input: {step.action.tool_input}\n"
        f"Observation: {step.observation}\n"
        for step in steps
    )


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build(
    template: PromptTemplate,
    history: Sequence[ConversationMessage],
    scratchpad: Sequence[AgentStep],
    user_input: str,
    tools: Sequence[ToolSpec],
    recorder: TraceRecorder | None = None,
) -> str:
    """
    Assemble the prompt in fixed order: prefix, tool catalogue, chat history,
    tool-usage format, question, scratchpad.

    Records the rendered text as a prompt trace entry when `recorder` is given.
    """
    tool_names = ", ".join(tool.name for tool in tools)
    prompt = "".join(
        [
            template.prefix,
            format_tools(tools),
            template.history_header,
            format_history(history),
            template.tool_instructions.replace("{tool_names}", tool_names),
            template.suffix.replace("{input}", user_input),
            format_scratchpad(scratchpad),
        ]
    )

    if recorder is not None:
        recorder.record_prompt(prompt)

    return prompt
