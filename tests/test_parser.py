import logging

from react_agent.models import AgentStep, FinalAnswer, ToolInvocation
from react_agent.parser import OutputParser, parse_output
from react_agent.prompt import format_scratchpad

# ---------------------------------------------------------------------------
# Final answer branch
# ---------------------------------------------------------------------------

def test_final_answer_simple():
    decision = parse_output("Thought: I now know the final answer\nFinal Answer: Paris  \n")
    assert isinstance(decision, FinalAnswer)
    assert decision.output == "Paris"
    assert decision.fallback is False
    assert decision.log.startswith("Thought:")

def test_final_answer_splits_on_last_occurrence():
    text = "Thought: Final Answer: not yet\nFinal Answer: 42"
    decision = parse_output(text)
    assert isinstance(decision, FinalAnswer)
    assert decision.output == "42"
    assert decision.log == text

def test_final_answer_wins_over_action():
    text = "Action: search\nAction Input: weather\nFinal Answer: sunny"
    decision = parse_output(text)
    assert isinstance(decision, FinalAnswer)
    assert decision.output == "sunny"

def test_final_answer_multiline_output():
    decision = parse_output("Final Answer: line one\nline two\n")
    assert decision.output == "line one\nline two"

# ---------------------------------------------------------------------------
# Action branch
# ---------------------------------------------------------------------------

def test_action_quotes_stripped():
    decision = parse_output('Action: Calculator\nAction Input: "3+4"')
    assert isinstance(decision, ToolInvocation)
    assert decision.tool == "Calculator"
    assert decision.tool_input == "3+4"

def test_action_strips_only_one_layer_of_quotes():
    decision = parse_output('Action: echo\nAction Input: ""quoted""')
    assert decision.tool_input == '"quoted"'

def test_action_with_thought_and_trailing_whitespace():
    text = "Thought: I should look it up.\nAction:  search \nAction Input: python asyncio   \n\n"
    decision = parse_output(text)
    assert isinstance(decision, ToolInvocation)
    assert decision.tool == "search"
    assert decision.tool_input == "python asyncio"
    assert decision.log == text

def test_action_multiline_input():
    decision = parse_output("Action: file\nAction Input: first line\nsecond line")
    assert decision.tool_input == "first line\nsecond line"

def test_action_labels_are_case_sensitive():
    decision = parse_output("action: search\naction input: x")
    assert isinstance(decision, FinalAnswer)
    assert decision.fallback is True

# ---------------------------------------------------------------------------
# Fallback branch
# ---------------------------------------------------------------------------

def test_unparseable_text_falls_back(caplog):
    with caplog.at_level(logging.WARNING, logger="react_agent.parser"):
        decision = parse_output("I am thinking...")
    assert isinstance(decision, FinalAnswer)
    assert decision.output == "I am thinking..."
    assert decision.fallback is True
    assert "Could not parse" in caplog.text

def test_empty_text_falls_back():
    decision = parse_output("")
    assert isinstance(decision, FinalAnswer)
    assert decision.output == ""
    assert decision.fallback is True

# ---------------------------------------------------------------------------
# Purity and scratchpad round-trip
# ---------------------------------------------------------------------------

def test_parse_is_deterministic():
    parser = OutputParser()
    for text in ["Final Answer: 1", "Action: a\nAction Input: b", "noise"]:
        assert parser.parse(text) == parser.parse(text)

def _steps(n):
    return [
        AgentStep(
            action=ToolInvocation(tool=f"tool{i}", tool_input=f"input {i}"),
            observation=f"result {i}",
        )
        for i in range(n)
    ]

def test_rendered_scratchpad_is_not_a_new_action():
    scratchpad = format_scratchpad(_steps(3))
    decision = parse_output(scratchpad)
    assert isinstance(decision, FinalAnswer)
    assert decision.fallback is True

def test_rendered_scratchpad_followed_by_new_action():
    text = format_scratchpad(_steps(3)) + "Thought: one more\nAction: calculator\nAction Input: 2*21"
    decision = parse_output(text)
    assert isinstance(decision, ToolInvocation)
    assert decision.tool == "calculator"
    assert decision.tool_input == "2*21"

def test_rendered_scratchpad_followed_by_final_answer():
    text = format_scratchpad(_steps(2)) + "Thought: done\nFinal Answer: 7"
    decision = parse_output(text)
    assert isinstance(decision, FinalAnswer)
    assert decision.output == "7"
    assert decision.fallback is False
