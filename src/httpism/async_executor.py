"""异步执行器模块

提供批量请求的并发执行策略
当前支持线程池执行方式
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from httpism.constants import DEFAULT_MAX_WORKERS

logger = logging.getLogger(__name__)


class BaseAsyncExecutor:
    """
    异步执行器基类

    定义执行多个请求的统一接口，子类需实现具体的执行策略

    参数:
        max_workers: 最大工作线程数
        **kwargs: 其他传递给具体执行器的参数
    """

    def __init__(self, max_workers: int | None = None, **kwargs):
        self.max_workers = max_workers
        self.executor_kwargs = kwargs

    def execute(
        self,
        client_instance: Client,  # noqa: F821
        request_list: list[Mapping[str, Any]],
    ) -> list[Any]:
        """
        执行多个请求

        参数:
            client_instance: 调用此执行器的 Client 实例
            request_list: 请求配置列表，每项包含 method、url、body、options

        返回:
            Response 或异常的列表，顺序与输入一致
        """
        raise NotImplementedError("Subclasses must implement the 'execute' method.")


class ThreadPoolAsyncExecutor(BaseAsyncExecutor):
    """
    线程池异步执行器

    使用 ThreadPoolExecutor 实现并发请求执行
    每个请求在独立线程中走完整条中间件管道，各自拥有独立的 Request/Response

    执行流程:
        1. 创建线程池，提交所有请求任务
        2. 并发执行请求
        3. 收集所有结果，保持原始顺序返回
        4. 单个请求失败时记录异常并在对应位置返回异常对象，不中断整体执行
    """

    def execute(self, client_instance: Client, request_list: list[Mapping[str, Any]]) -> list[Any]:  # noqa: F821
        executor_max_workers = self.max_workers if self.max_workers is not None else DEFAULT_MAX_WORKERS
        logger.info(f"Starting {len(request_list)} asynchronous requests with {executor_max_workers} workers")

        with ThreadPoolExecutor(max_workers=executor_max_workers, **self.executor_kwargs) as executor:
            # 使用字典维护 future 与请求下标的映射关系
            future_to_index = {
                executor.submit(client_instance.send_config, config): index
                for index, config in enumerate(request_list)
            }

            results: dict[int, Any] = {}
            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    results[index] = future.result()
                except Exception as e:
                    config = request_list[index]
                    logger.exception(f"Request {config.get('method')} {config.get('url')} failed: {e}")
                    results[index] = e

        # 按原始顺序返回结果
        return [results[index] for index in range(len(request_list))]
