"""请求模型模块"""

from __future__ import annotations

import time
import uuid
from collections.abc import Mapping
from typing import Any

from requests.structures import CaseInsensitiveDict

from httpism.body import Body


def generate_request_id(suffix=None) -> str:
    """生成全局唯一的请求 ID"""
    timestamp = int(time.time() * 1000)  # 毫秒级时间戳
    short_uuid = uuid.uuid4().hex[:8]
    if suffix is None:
        return f"REQ-{timestamp}-{short_uuid}"
    return f"REQ-{timestamp}-{short_uuid}-{suffix}"


class Request:
    """
    单次调用的请求对象

    由 Client.send 为每次调用新建，只属于这一次管道调用，不在并发调用之间共享。

    属性:
        id: 请求唯一标识符，用于日志追踪
        method: HTTP 方法（大写）
        url: 已解析的绝对 URL
        headers: 不区分大小写的请求头字典，管道中可修改
        payload: 带标记的请求体（EmptyBody/TextBody/StructuredBody/StreamBody）
        options: 本次调用合并后的选项
    """

    def __init__(
        self,
        method: str,
        url: str,
        headers: Mapping[str, Any] | None = None,
        body: Any = None,
        options: Mapping[str, Any] | None = None,
        request_id: str | None = None,
    ):
        self.id = request_id or generate_request_id()
        self.method = method.upper()
        self.url = url
        self.headers = CaseInsensitiveDict(headers or {})
        self.payload = Body.of(body)
        self.options: dict[str, Any] = dict(options or {})

    @property
    def body(self) -> Any:
        return self.payload.value

    @body.setter
    def body(self, value: Any) -> None:
        self.payload = Body.of(value)

    def set_default_header(self, name: str, value: str) -> None:
        """仅在请求头未设置时写入"""
        if name not in self.headers:
            self.headers[name] = value

    def __repr__(self) -> str:
        return f"<Request [{self.id}] {self.method} {self.url}>"
