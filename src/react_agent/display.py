# display.py
# Verbose terminal output for the agent loop.
#
# This module owns presentation entirely. harness.py never formats strings:
# it calls named functions here, and only when verbose mode is on.
#
# Colour language:
#   cyan: loop events
#   blue: prompts sent to the model
#   yellow: raw model responses
#   magenta: tool dispatch (Action / Observation)
#   green: final answer
#   red: fallbacks and halts

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


# ---------------------------------------------------------------------------
# Loop events
# ---------------------------------------------------------------------------


def query_received(query_id: str, user_input: str) -> None:
    console.print()
    console.print(Rule(Text(f"QUERY {query_id}", style="cyan"), style="cyan"))
    console.print(
        Panel(
            Text(user_input, style="white"),
            title=_label("QUESTION", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


def iteration_start(iteration: int, limit: int) -> None:
    console.print()
    console.print(Text(f"  ITERATION [{iteration}/{limit}]", style="bold cyan"))


def model_prompt(prompt: str) -> None:
    console.print(
        Panel(
            Text(prompt, style="blue"),
            title=_label("MODEL PROMPT", "blue"),
            border_style="blue",
            padding=(0, 1),
        )
    )


def model_response(response: str) -> None:
    console.print(
        Panel(
            Text(response, style="yellow"),
            title=_label("MODEL RESPONSE", "yellow"),
            border_style="yellow",
            padding=(0, 1),
        )
    )


# Tool text comes from the model or the web: always wrap it in Text, never
# interpolate it into markup.


def tool_action(tool: str, tool_input: str) -> None:
    console.print(
        Text.assemble(
            ("  Action", "magenta"),
            "   ",
            (tool, "bold white"),
            "  ",
            (_mono(tool_input, 200), "dim"),
        ),
        highlight=False,
    )


def tool_observation(observation: str) -> None:
    console.print(
        Text.assemble(("  Observe", "magenta"), "  ", (_mono(observation, 140), "white")),
        highlight=False,
    )


def tool_failed(message: str) -> None:
    console.print(Text(f"  ✗ {message}", style="bold red"), highlight=False)


def parse_fallback() -> None:
    console.print(
        _label("FALLBACK", "red"),
        "[red] Model output did not match the response format, returning it as the answer.[/red]",
    )


# ---------------------------------------------------------------------------
# Termination
# ---------------------------------------------------------------------------


def final_answer(output: str) -> None:
    console.print()
    console.print(
        Panel(
            Text(output, style="white"),
            title=_label("FINAL ANSWER", "green"),
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()


def halt(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            Text(reason, style="bold white"),
            title=_label("HALT", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
