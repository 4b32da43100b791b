"""
Worker threads for blocking SDK calls.

boto3, pymongo and the LangChain loaders are synchronous. Their calls run on
one process-wide pool owned by this module, not on the event loop's default
executor. ``asyncio.run`` only joins the default executor when it returns, so
a call abandoned at its deadline keeps its thread without holding the Lambda
response.

Dependencies: concurrent.futures
System role: Blocking call offload for ingestion and retrieval
"""

import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

T = TypeVar("T")

MAX_BLOCKING_WORKERS = 32

_executor = ThreadPoolExecutor(max_workers=MAX_BLOCKING_WORKERS, thread_name_prefix="kb_blocking")


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Run ``func(*args, **kwargs)`` on the shared pool and await its result.

    Cancelling the awaiting task (e.g. through ``asyncio.wait_for``) returns
    control immediately; the thread finishes the call in the background.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_executor, functools.partial(func, *args, **kwargs))
