"""
aichat-stream - Streaming Example

Streams a reply, renders each kind of chunk and shows how to stop a
generation from elsewhere (a stop button, a closed tab).

Run against a local chat server:
    AICHAT_BASE_URL=http://localhost:8001/api python examples/streaming.py
"""

import asyncio
import sys

from aichat_stream import (
    ChatStreamClient,
    ChatStreamError,
    ContentDelta,
    ErrorChunk,
    ReasoningChunk,
    StreamAbortedError,
    StreamKeyRegistry,
    StreamStart,
    ToolEvent,
    UsageChunk,
    user_message,
)
from aichat_stream.logs import setup_logging

SESSION_ID = 1


async def main():
    setup_logging(level="WARNING", json_output=False)
    registry = StreamKeyRegistry()

    async with ChatStreamClient(registry=registry) as client:
        # ============================================================
        # Simple Streaming
        # ============================================================
        print("=== Simple Streaming ===\n")

        try:
            async for chunk in client.stream_chat(
                SESSION_ID,
                "Tell me a short story about a robot",
                options={"reasoningEnabled": True},
            ):
                if isinstance(chunk, StreamStart):
                    print(f"[assistant message {chunk.assistant_message_id}]")
                elif isinstance(chunk, ReasoningChunk) and chunk.content:
                    sys.stdout.write(f"({chunk.content})")
                elif isinstance(chunk, ContentDelta):
                    sys.stdout.write(chunk.content)
                elif isinstance(chunk, ToolEvent):
                    print(f"\n[tool {chunk.tool}: {chunk.stage}]")
                elif isinstance(chunk, UsageChunk):
                    print(f"\n[usage {chunk.usage}]")
                elif isinstance(chunk, ErrorChunk):
                    print(f"\n[error] {chunk.error}")
                sys.stdout.flush()
        except ChatStreamError as e:
            print(f"\n{user_message(e)}")
        print("\n")

        # ============================================================
        # Stop Button
        # ============================================================
        print("=== Cancel After One Second ===\n")

        async def consume():
            async for chunk in client.stream_chat(
                SESSION_ID,
                "Count slowly from 1 to 100",
                stream_key="stop-demo",
                options={"clientMessageId": "stop-demo-msg"},
            ):
                if isinstance(chunk, ContentDelta):
                    sys.stdout.write(chunk.content)
                    sys.stdout.flush()

        task = asyncio.ensure_future(consume())
        await asyncio.sleep(1)

        client.cancel_stream("stop-demo")
        await client.cancel_agent_stream(SESSION_ID, client_message_id="stop-demo-msg")

        try:
            await task
        except StreamAbortedError as e:
            print(f"\n[{user_message(e)}]")


if __name__ == "__main__":
    asyncio.run(main())
