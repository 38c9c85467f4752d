# -*- coding: utf-8 -*-
"""
异步操作工具
在线程池中并发执行同步的Kubernetes API调用
"""

import asyncio
import functools
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, List


class ConcurrentResourceFetcher:
    """并发资源获取器"""

    def __init__(self, max_workers: int = 8):
        """
        初始化并发获取器

        Args:
            max_workers: 最大工作线程数
        """
        self.max_workers = max_workers
        self.logger = logging.getLogger("meshconsole.ConcurrentResourceFetcher")
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    async def run(self, func: Callable, *args, **kwargs) -> Any:
        """在线程池中执行单个同步调用"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, functools.partial(func, *args, **kwargs)
        )

    def fetch_all(self, func: Callable, items: Iterable[Any]) -> List[Any]:
        """
        在同步代码中并发执行调用

        结果与输入顺序一致；任一调用失败时抛出该调用的异常。
        """
        items = list(items)
        if not items:
            return []

        start_time = time.time()
        results = list(self._executor.map(func, items))
        self.logger.debug(
            "并发获取完成，获取 %d 个资源，耗时 %.2f 秒",
            len(items),
            time.time() - start_time,
        )
        return results

    def shutdown(self):
        """关闭线程池"""
        self._executor.shutdown(wait=False)
