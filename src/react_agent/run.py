# run.py
# Entry point. Config and wiring only. No logic lives here.
#
# Set OPENAI_API_KEY (and optionally OPENAI_MODEL / OPENAI_BASE_URL) in the
# environment or a .env file.

import asyncio

from react_agent.config import configure_logging, load_agent_config, load_model_config
from react_agent.harness import AgentLoop
from react_agent.llm import OpenAICompletionModel
from react_agent.models import ConversationMessage, Role
from react_agent.tools import ToolRegistry, default_tools

# A short conversation; the follow-up relies on history.
PROMPTS = [
    "What is 17 raised to the power of 0.43?",
    "Add 12 to that and tell me the result.",
]


async def converse(loop: AgentLoop, prompts: list[str]) -> list[ConversationMessage]:
    history: list[ConversationMessage] = []
    for prompt in prompts:
        history.append(ConversationMessage(role=Role.USER, content=prompt))
        answer = await loop.query(history, prompt)
        history.append(ConversationMessage(role=Role.AGENT, content=answer))
        print(f"\n[ANSWER]\n{answer}\n")
    return history


def main() -> None:
    configure_logging()
    loop = AgentLoop(
        model=OpenAICompletionModel(load_model_config()),
        tools=ToolRegistry.from_specs(default_tools()),
        config=load_agent_config(),
    )
    asyncio.run(converse(loop, PROMPTS))


if __name__ == "__main__":
    main()
