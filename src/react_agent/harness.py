# harness.py
# ReAct agent loop.
#
# The loop is the kernel. The model is a passive responder. This class owns
# all control flow, dispatch, scratchpad state and tracing.
#
# Control flow per iteration:
#   cancellation check → build prompt → model → parse
#   → final answer? return
#   → tool action? dispatch → observation → scratchpad → next iteration
#
# All terminal output is delegated to display.py, no formatting here.

import asyncio
import logging
import uuid
from collections.abc import Sequence

from react_agent import display
from react_agent.config import AgentConfig
from react_agent.llm import CompletionModel
from react_agent.models import AgentStep, ConversationMessage, FinalAnswer, ToolInvocation
from react_agent.parser import OutputParser
from react_agent.prompt import DEFAULT_TEMPLATE, PromptTemplate, build
from react_agent.tools import ToolExecutionError, ToolRegistry, UnknownToolError
from react_agent.trace import JsonlTraceSink, TraceRecorder, TraceSink

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class AgentError(Exception):
    """Base class for errors that abort a run."""


class ModelInvocationError(AgentError):
    """Raised when the model backend fails or is unreachable. Always fatal."""


class IterationLimitExceeded(AgentError):
    """Raised when the model keeps calling tools past the iteration limit."""

    def __init__(self, limit: int, steps: list[AgentStep]) -> None:
        self.limit = limit
        self.steps = steps
        super().__init__(f"Agent stopped after {limit} iterations without a final answer.")


class RunCancelled(AgentError):
    """Raised at an iteration boundary once the caller's cancel event is set."""

    def __init__(self, steps: list[AgentStep]) -> None:
        self.steps = steps
        super().__init__(f"Run cancelled after {len(steps)} tool step(s).")


# ---------------------------------------------------------------------------
# Agent loop
# ---------------------------------------------------------------------------


class AgentLoop:
    """
    Drives one model through Thought/Action/Observation cycles until it gives
    a final answer.

    The loop instance holds only read-only collaborators. Scratchpad, trace
    buffer and iteration counter are local to each `run`, so concurrent runs
    on one instance do not interfere.

    Example:
        loop = AgentLoop(
            model=OpenAICompletionModel(load_model_config()),
            tools=ToolRegistry.from_specs(default_tools()),
        )
        answer = await loop.run(history, "What is 3 + 4?")
    """

    def __init__(
        self,
        model: CompletionModel,
        tools: ToolRegistry,
        config: AgentConfig | None = None,
        template: PromptTemplate = DEFAULT_TEMPLATE,
        trace_sink: TraceSink | None = None,
        parser: OutputParser | None = None,
    ) -> None:
        if model is None:
            raise ValueError("AgentLoop requires a completion model.")
        if tools is None:
            raise ValueError("AgentLoop requires a tool registry.")

        self._model = model
        self._tools = tools
        self._config = config or AgentConfig()
        self._template = template
        self._parser = parser or OutputParser()
        if trace_sink is None and self._config.tracing_enabled:
            trace_sink = JsonlTraceSink(self._config.trace_dir)
        self._trace_sink = trace_sink

    @property
    def config(self) -> AgentConfig:
        return self._config

    # ------------------------------------------------------------------
    # Collaborator calls
    # ------------------------------------------------------------------

    async def _call_model(self, prompt: str) -> str:
        try:
            return await self._model.complete(prompt)
        except Exception as exc:
            raise ModelInvocationError(f"Model call failed: {exc}") from exc

    async def _dispatch(self, action: ToolInvocation) -> str:
        """
        Run the requested tool and return its observation.

        Unknown tools and tool failures are not fatal: the error text becomes
        the observation so the model can correct itself next iteration.
        """
        if self._config.verbose:
            display.tool_action(action.tool, action.tool_input)

        try:
            observation = await self._tools.invoke(action.tool, action.tool_input)
        except (UnknownToolError, ToolExecutionError) as exc:
            logger.warning("Tool dispatch failed: %s", exc)
            if self._config.verbose:
                display.tool_failed(str(exc))
            return str(exc)

        if self._config.verbose:
            display.tool_observation(observation)
        return observation

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(
        self,
        history: Sequence[ConversationMessage],
        user_input: str,
        max_iterations: int | None = None,
        *,
        query_id: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> FinalAnswer:
        """
        Answer `user_input`, calling tools as the model requests.

        Raises ModelInvocationError if the model fails, IterationLimitExceeded
        if no final answer arrives within `max_iterations` model calls, and
        RunCancelled if `cancel` is set between iterations. The trace is
        flushed on every exit path when tracing is enabled.
        """
        limit = max_iterations if max_iterations is not None else self._config.max_iterations
        if limit < 1:
            raise ValueError("max_iterations must be at least 1.")

        query_id = query_id or uuid.uuid4().hex
        history = history if self._config.use_history else []
        recorder = TraceRecorder(self._trace_sink) if self._config.tracing_enabled else None
        scratchpad: list[AgentStep] = []
        tool_specs = self._tools.list()

        if self._config.verbose:
            display.query_received(query_id, user_input)

        try:
            for iteration in range(1, limit + 1):
                if cancel is not None and cancel.is_set():
                    raise RunCancelled(list(scratchpad))

                logger.debug("Query %s iteration %d/%d", query_id, iteration, limit)
                if self._config.verbose:
                    display.iteration_start(iteration, limit)

                prompt = build(self._template, history, scratchpad, user_input, tool_specs, recorder)
                if self._config.verbose:
                    display.model_prompt(prompt)

                response = await self._call_model(prompt)
                if recorder is not None:
                    recorder.record_response(response)
                if self._config.verbose:
                    display.model_response(response)

                decision = self._parser.parse(response)

                if isinstance(decision, FinalAnswer):
                    if decision.fallback and self._config.verbose:
                        display.parse_fallback()
                    if self._config.verbose:
                        display.final_answer(decision.output)
                    return decision

                observation = await self._dispatch(decision)
                scratchpad.append(AgentStep(action=decision, observation=observation))

            raise IterationLimitExceeded(limit, list(scratchpad))

        except AgentError as exc:
            logger.warning("Query %s aborted: %s", query_id, exc)
            if self._config.verbose:
                display.halt(str(exc))
            raise

        finally:
            if recorder is not None:
                recorder.flush(query_id)

    async def query(self, history: Sequence[ConversationMessage], user_input: str) -> str:
        """Run the loop and return only the answer text."""
        answer = await self.run(history, user_input)
        return answer.output
