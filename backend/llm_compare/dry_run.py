"""
Dry run of both providers without the relay or HTTP.

Prints the first few increments of each stream, then runs each provider
once and prints its metrics.

Usage:
    python -m llm_compare.dry_run "hello world"
"""
import asyncio
import logging
import sys

from llm_compare.config import get_settings
from llm_compare.config_loader import build_provider_streams

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PREVIEW_CHUNKS = 5


async def main(prompt: str) -> None:
    settings = get_settings()
    streams = build_provider_streams(settings)

    for stream in streams:
        print(f"--- First {PREVIEW_CHUNKS} {stream.display_name} chunks ---")
        count = 0
        async for increment in stream.stream(prompt):
            if count < PREVIEW_CHUNKS:
                print(increment.strip())
            count += 1

    for stream in streams:
        metrics = await stream.run_once(prompt)
        print(f"\n{stream.display_name} metrics: {metrics}")


if __name__ == "__main__":
    asyncio.run(main(" ".join(sys.argv[1:]) or "hello world"))
