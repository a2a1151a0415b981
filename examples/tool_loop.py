from __future__ import annotations

import argparse
import asyncio
import logging

from agent_bridge import (
    ContextWindowManager,
    Message,
    Provider,
    ToolFederation,
    UnifiedLLM,
    default_registry,
)
from agent_bridge.tools import create_servers

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

MCP_SERVERS = {
    "fs": {
        "command": "npx",
        "args": ["-y", "@modelcontextprotocol/server-filesystem", "."],
    },
}


async def run(provider: Provider, goal: str, max_turns: int) -> None:
    manager = ContextWindowManager()
    federation = ToolFederation(default_registry(), create_servers(MCP_SERVERS))

    async with UnifiedLLM(provider) as llm, federation:
        for server_id, connected in federation.get_server_status().items():
            logger.info("MCP server %s connected=%s", server_id, connected)

        tools = federation.get_all_tools()
        messages = [
            Message.system("You are an operations assistant. Use tools to answer."),
            Message.user(goal),
        ]

        for _ in range(max_turns):
            if manager.should_summarize(llm, messages):
                messages = await manager.summarize_conversation(llm, messages)

            response = await llm.chat_with_tools(messages, tools)
            messages.append(response.to_message())
            if not response.has_tool_calls:
                print(response.content)
                return

            for call in response.tool_calls:
                logger.info("-> %s %s", call.function_name, call.arguments_json)
                messages.append(await federation.execute_tool_call(call))

        logger.warning("Gave up after %d turns", max_turns)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a tool-calling loop")
    parser.add_argument("goal")
    parser.add_argument("--provider", default="openai")
    parser.add_argument("--max-turns", type=int, default=10)
    args = parser.parse_args()
    asyncio.run(run(Provider.parse(args.provider), args.goal, args.max_turns))


if __name__ == "__main__":
    main()
