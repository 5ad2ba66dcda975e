import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Any

# Глобальный executor для блокирующих вызовов (БД, push-транспорт)
default_executor = ThreadPoolExecutor(max_workers=5, thread_name_prefix="walkpairs")


async def run_in_executor(func: Callable, *args, executor: ThreadPoolExecutor = default_executor, **kwargs) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, lambda: func(*args, **kwargs))
