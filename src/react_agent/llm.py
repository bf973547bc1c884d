# llm.py
# Model backends. AgentLoop only depends on the CompletionModel protocol;
# the OpenAI classes here are the stock implementation.

from typing import Protocol

from openai import AsyncOpenAI

from react_agent.config import ModelConfig

# Stops the model before it writes its own (hallucinated) observation.
STOP_SEQUENCE = "\nObservation"


class CompletionModel(Protocol):
    async def complete(self, prompt: str) -> str: ...


def _client(config: ModelConfig) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=config.api_key, base_url=config.base_url, timeout=config.timeout)


class OpenAICompletionModel:
    """
    Sends the rendered prompt as a single user message.

    With stream=True the deltas are reassembled before returning, so callers
    always receive one string.
    """

    def __init__(self, config: ModelConfig, stream: bool = False, client: AsyncOpenAI | None = None) -> None:
        self._config = config
        self._stream = stream
        self._client = client or _client(config)

    async def complete(self, prompt: str) -> str:
        request = dict(
            model=self._config.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self._config.temperature,
            stop=[STOP_SEQUENCE],
        )
        if not self._stream:
            response = await self._client.chat.completions.create(**request)
            return response.choices[0].message.content or ""

        chunks: list[str] = []
        stream = await self._client.chat.completions.create(stream=True, **request)
        async for chunk in stream:
            if chunk.choices and chunk.choices[0].delta.content:
                chunks.append(chunk.choices[0].delta.content)
        return "".join(chunks)


class OpenAIEmbedder:
    def __init__(self, config: ModelConfig, client: AsyncOpenAI | None = None) -> None:
        self._model = config.embedding_model
        self._client = client or _client(config)

    async def embed(self, text: str) -> list[float]:
        response = await self._client.embeddings.create(model=self._model, input=text)
        return list(response.data[0].embedding)
