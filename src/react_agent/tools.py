# tools.py
# Tool registry and the reference tool implementations.
# The agent loop only talks to ToolRegistry and never calls these
# functions directly.

import ast
import asyncio
import logging
import math
import operator
import random
from collections.abc import Iterable, Sequence
from typing import Protocol

from pydantic import BaseModel, model_validator

from react_agent.models import SearchHit, ToolSpec

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ToolError(Exception):
    """Base class for registry and dispatch failures."""


class DuplicateToolError(ToolError):
    """Raised when a tool name is registered twice."""


class UnknownToolError(ToolError):
    """Raised when dispatch names a tool absent from the registry."""

    def __init__(self, name: str, available: Sequence[str]) -> None:
        self.name = name
        self.available = list(available)
        super().__init__(f"{name} is not a valid tool, try one of [{', '.join(self.available)}].")


class ToolExecutionError(ToolError):
    """Raised when a registered tool fails. The original error is the __cause__."""

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' failed: {cause}")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ToolRegistry:
    """
    Closed set of tools, looked up by name.

    Populate once at startup; afterwards the registry is only read, so a single
    instance can serve concurrent runs.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    @classmethod
    def from_specs(cls, specs: Iterable[ToolSpec]) -> "ToolRegistry":
        registry = cls()
        for spec in specs:
            registry.register(spec)
        return registry

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise DuplicateToolError(f"Tool '{spec.name}' is already registered.")
        self._tools[spec.name] = spec
        logger.debug("Registered tool: %s", spec.name)

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def list(self) -> list[ToolSpec]:
        """Registered tools in registration order."""
        return list(self._tools.values())

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name, self.names()) from None

    async def invoke(self, name: str, tool_input: str) -> str:
        spec = self.get(name)
        try:
            result = await spec.invoke(tool_input)
        except Exception as exc:
            raise ToolExecutionError(name, exc) from exc
        return result if isinstance(result, str) else str(result)


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


class Embedder(Protocol):
    async def embed(self, text: str) -> list[float]: ...


class SimilaritySearch(Protocol):
    async def search(self, query_embedding: list[float], k: int) -> list[SearchHit]: ...


# ---------------------------------------------------------------------------
# Reference tools
# ---------------------------------------------------------------------------

MAX_OBSERVATION_CHARS = 4000


def _search_sync(query: str) -> str:
    from ddgs import DDGS

    try:
        # Coerce the generator to a list to ensure actual execution
        results = list(DDGS().text(query, max_results=4))
    except Exception as e:
        return f"Search failed: {e}"

    if not results:
        return "No results found."

    lines = []
    for r in results:
        lines.append(f"[{r.get('title', 'No Title')}]\n{r.get('body', '')}\nSource: {r.get('href', '')}")
    return "\n\n".join(lines)


async def _tool_search(tool_input: str) -> str:
    query = tool_input.strip()
    if not query:
        return "Error: no query provided."
    return await asyncio.to_thread(_search_sync, query)


# Largest power result, in decimal digits, the calculator will compute.
MAX_POWER_DIGITS = 300


def _power(base: float, exponent: float) -> float:
    if abs(base) > 1 and exponent > 0 and exponent * math.log10(abs(base)) > MAX_POWER_DIGITS:
        raise ValueError(f"result of {base} ** {exponent} is too large")
    return operator.pow(base, exponent)


_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _power,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_FUNCTIONS = {
    "abs": abs,
    "round": round,
    "sqrt": math.sqrt,
    "log": math.log,
    "exp": math.exp,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
}

_CONSTANTS = {"pi": math.pi, "e": math.e}


def _evaluate(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.Name) and node.id in _CONSTANTS:
        return _CONSTANTS[node.id]
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))
    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id in _FUNCTIONS
        and not node.keywords
    ):
        return _FUNCTIONS[node.func.id](*(_evaluate(arg) for arg in node.args))
    raise ValueError(f"Unsupported expression: {ast.dump(node)}")


def calculate(expression: str) -> str:
    """Evaluate an arithmetic expression without touching eval()."""
    expression = expression.strip().replace("^", "**")
    if not expression:
        raise ValueError("no expression provided")
    try:
        tree = ast.parse(expression, mode="eval")
    except SyntaxError as exc:
        raise ValueError(f"invalid expression {expression!r}") from exc
    value = _evaluate(tree)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


async def _tool_calculator(tool_input: str) -> str:
    return await asyncio.to_thread(calculate, tool_input)


class RandomRange(BaseModel):
    low: float
    high: float

    @model_validator(mode="after")
    def _ordered(self) -> "RandomRange":
        if self.low > self.high:
            raise ValueError("low must not exceed high")
        return self


async def _tool_random_number(tool_input: str) -> str:
    bounds = RandomRange.model_validate_json(tool_input)
    return str(random.uniform(bounds.low, bounds.high))


async def _tool_http_get(tool_input: str) -> str:
    import httpx

    url = tool_input.strip()
    if not url:
        return "Error: no URL provided."
    async with httpx.AsyncClient(timeout=10, follow_redirects=True) as client:
        response = await client.get(url)
    body = response.text[:MAX_OBSERVATION_CHARS]
    return f"GET {url} → {response.status_code}\n{body}"


def format_hits(hits: Sequence[SearchHit]) -> str:
    if not hits:
        return "No matching documents found."
    blocks = []
    for hit in hits:
        source = hit.metadata.get("source") if hit.metadata else None
        blocks.append(f"{hit.content}\nSource: {source}" if source else hit.content)
    return "\n\n".join(blocks)


def make_knowledge_base_tool(
    embedder: Embedder,
    index: SimilaritySearch,
    k: int = 4,
    name: str = "knowledge-base",
    description: str = (
        "search the document knowledge base for passages relevant to the input. "
        "input should be a natural-language search query."
    ),
) -> ToolSpec:
    async def _invoke(tool_input: str) -> str:
        query = tool_input.strip()
        if not query:
            return "Error: no query provided."
        embedding = await embedder.embed(query)
        hits = await index.search(embedding, k)
        return format_hits(hits)

    return ToolSpec(name=name, description=description, invoke=_invoke)


def default_tools(
    embedder: Embedder | None = None,
    index: SimilaritySearch | None = None,
) -> list[ToolSpec]:
    """The stock tool set, in the order the model sees it."""
    tools = [
        ToolSpec(
            name="search",
            description="a search engine. useful for answering questions about current events. "
            "input should be a search query.",
            invoke=_tool_search,
        ),
        ToolSpec(
            name="calculator",
            description="useful for getting the result of a math expression. "
            "input should be a valid arithmetic expression such as 3 * (4 + 5).",
            invoke=_tool_calculator,
        ),
        ToolSpec(
            name="random-number-generator",
            description="generates a random number between two input numbers. "
            'input should be JSON such as {"low": 1, "high": 10}.',
            invoke=_tool_random_number,
        ),
        ToolSpec(
            name="http_get",
            description="fetches a web page. input should be a full URL.",
            invoke=_tool_http_get,
        ),
    ]
    if embedder is not None and index is not None:
        tools.append(make_knowledge_base_tool(embedder, index))
    return tools
