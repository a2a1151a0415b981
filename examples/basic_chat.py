import asyncio

from anthropic import AsyncAnthropic

from agent_bridge import Message, Provider, UnifiedLLM, create_llm


async def chat_example_default_client():
    messages = [
        Message.system("You are a helpful assistant."),
        Message.user("What's your name?"),
    ]
    params = {"max_tokens": 1000, "temperature": 0.7}

    for provider in (Provider.OPENAI, Provider.ANTHROPIC, Provider.GOOGLE):
        async with UnifiedLLM(provider) as llm:
            response = await llm.chat(messages, params=params)
            print(f"{llm.name} ({llm.model}): {response.content}")
            print("  usage:", response.usage)


async def chat_example_pass_client():
    anthropic_llm = create_llm(
        Provider.ANTHROPIC,
        "claude-3-5-haiku-20241022",
        client=AsyncAnthropic(max_retries=3, timeout=10),
    )
    llm = UnifiedLLM.from_llm(anthropic_llm)

    async for chunk in llm.stream([Message.user("Count to five.")]):
        print(chunk.content, end="", flush=True)
    print()
    await llm.aclose()


if __name__ == "__main__":
    asyncio.run(chat_example_default_client())
    asyncio.run(chat_example_pass_client())
