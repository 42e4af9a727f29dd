# _tests/_smoke_chat.py
from __future__ import annotations
import asyncio
import json

from backend.src.core.config import bootstrap_env
bootstrap_env()

from backend.src.core.config import load_settings
from backend.src.core.runtime import build_runtime


async def main():
    rt = build_runtime(load_settings())
    first = await rt.service.handle(None, "smoke", "My printer shows 'offline' even though it is plugged in.")
    print("REPLY 1:", json.dumps(first.model_dump(), indent=2))
    second = await rt.service.handle(first.session_id, "smoke", "That didn't work.")
    print("REPLY 2:", json.dumps(second.model_dump(), indent=2))
    print("HISTORY:", len(rt.store.get_history(first.session_id)), "turns")


if __name__ == "__main__":
    asyncio.run(main())
