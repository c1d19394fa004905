"""中间件管道引擎

每个中间件的签名为 ``middleware(request, next, client)``:
    - request: 本次调用独占的 Request 对象
    - next: 无参可调用对象，执行剩余的中间件链并返回其结果
    - client: 发起本次调用的 Client

中间件可以修改请求后调用 next()，对返回的响应做后处理；也可以不调用 next() 直接短路返回。
最后一个中间件之后是传输层，直接以当前请求调用。

跳转后的响应以 Redirected 包装沿普通返回值向上传递，由 Client.send 解包。
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeAlias

logger = logging.getLogger(__name__)

Middleware: TypeAlias = Callable[..., Any]


class Redirected:
    """
    跳转结果标记

    包装跟随跳转后得到的最终响应。位于跳转中间件之上的中间件不应再处理被丢弃的原始响应，
    只有顶层的 Client.send 会将其解包为普通响应。

    属性:
        response: 跳转后最终得到的响应
    """

    __slots__ = ("response",)

    def __init__(self, response):
        self.response = response

    def __repr__(self) -> str:
        return f"Redirected({self.response!r})"


def unwrap(result):
    """返回结果中的响应对象，Redirected 会被解包"""
    if isinstance(result, Redirected):
        return result.response
    return result


class Pipeline:
    """
    固定顺序的中间件管道

    每个 Client 构造时创建一次，之后每次请求以新的 Request 调用。

    参数:
        middleware: 有序中间件列表
        transport: 终端传输层，签名为 transport(request) -> Response
    """

    def __init__(self, middleware: Iterable[Middleware], transport: Callable[..., Any]):
        self.middleware: tuple[Middleware, ...] = tuple(middleware)
        self.transport = transport

    def __call__(self, request, client):
        """
        以请求驱动整条中间件链

        返回:
            Response 或 Redirected
        """

        def dispatch(index: int):
            if index < len(self.middleware):
                middleware = self.middleware[index]
                return middleware(request, lambda: dispatch(index + 1), client)
            logger.debug(f"[{request.id}] Dispatching {request.method} {request.url} to transport")
            return self.transport(request)

        return dispatch(0)

    def __len__(self) -> int:
        return len(self.middleware)

    def __repr__(self) -> str:
        names = [getattr(m, "__name__", type(m).__name__) for m in self.middleware]
        return f"<Pipeline {names}>"
