from react_agent.models import AgentStep, ConversationMessage, Role, ToolInvocation, ToolSpec, TraceRole
from react_agent.prompt import (
    DEFAULT_TEMPLATE,
    PromptTemplate,
    build,
    format_history,
    format_scratchpad,
    format_tools,
)
from react_agent.trace import TraceRecorder


async def _noop(tool_input: str) -> str:
    return tool_input


TOOLS = [
    ToolSpec(name="search", description="look things up", invoke=_noop),
    ToolSpec(name="calculator", description="do math", invoke=_noop),
]

HISTORY = [
    ConversationMessage(role=Role.USER, content="hi"),
    ConversationMessage(role=Role.AGENT, content="hello"),
    ConversationMessage(role=Role.USER, content="what is 3+4?"),
]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_format_tools_registration_order():
    assert format_tools(TOOLS) == "\nsearch: look things up\ncalculator: do math\n\n"

def test_format_history_drops_latest_entry():
    rendered = format_history(HISTORY)
    assert rendered == "user: hi\nagent: hello\n"
    assert "what is 3+4?" not in rendered

def test_format_history_leaves_caller_list_untouched():
    history = list(HISTORY)
    format_history(history)
    assert history == HISTORY

def test_format_history_empty():
    assert format_history([]) == "\n"

def test_format_scratchpad():
    steps = [
        AgentStep(action=ToolInvocation(tool="search", tool_input="x"), observation="found x"),
        AgentStep(action=ToolInvocation(tool="calculator", tool_input="1+1"), observation="2"),
    ]
    assert format_scratchpad(steps) == (
        "Action: search\nAction Input: x\nObservation: found x\n"
        "Action: calculator\nAction Input: 1+1\nObservation: 2\n"
    )

# ---------------------------------------------------------------------------
# build()
# ---------------------------------------------------------------------------

def test_build_section_order():
    steps = [AgentStep(action=ToolInvocation(tool="search", tool_input="x"), observation="found x")]
    prompt = build(DEFAULT_TEMPLATE, HISTORY, steps, "what is 3+4?", TOOLS)

    positions = [
        prompt.index("You have access to the following tools"),
        prompt.index("search: look things up"),
        prompt.index("Here is the chat history"),
        prompt.index("agent: hello"),
        prompt.index("Use the following format"),
        prompt.index("Question: what is 3+4?"),
        prompt.index("Observation: found x"),
    ]
    assert positions == sorted(positions)
    assert prompt.endswith("Observation: found x\n")

def test_build_substitutes_tool_names():
    prompt = build(DEFAULT_TEMPLATE, [], [], "q", TOOLS)
    assert "should be one of [search, calculator]" in prompt
    assert "{tool_names}" not in prompt
    assert "{input}" not in prompt

def test_build_does_not_echo_current_question_from_history():
    prompt = build(DEFAULT_TEMPLATE, HISTORY, [], "what is 3+4?", TOOLS)
    assert prompt.count("what is 3+4?") == 1

def test_build_custom_template():
    template = PromptTemplate(prefix="P\n", history_header="H\n", tool_instructions="T[{tool_names}]\n", suffix="Q {input}\n")
    prompt = build(template, [], [], "why", TOOLS)
    assert prompt == "P\n\nsearch: look things up\ncalculator: do math\n\nH\n\nT[search, calculator]\nQ why\n"

def test_build_records_prompt_trace():
    recorder = TraceRecorder()
    prompt = build(DEFAULT_TEMPLATE, [], [], "q", TOOLS, recorder)
    assert len(recorder) == 1
    entry = recorder.entries[0]
    assert entry.role is TraceRole.PROMPT
    assert entry.content == prompt
