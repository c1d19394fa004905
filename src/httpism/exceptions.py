"""
HTTP 客户端异常模块

定义所有客户端相关的异常类，提供统一的错误处理机制
"""

from __future__ import annotations

from typing import Any


class HttpismError(Exception):
    """
    客户端异常基类

    所有自定义异常的基类，用于统一捕获和处理客户端相关错误
    """


class TransportError(HttpismError):
    """
    传输层异常

    当网络连接失败、DNS 解析失败、协议错误等网络层面问题时抛出此异常

    参数:
        message: 错误描述信息
        request: 触发异常的请求对象（可选）
    """

    def __init__(self, message: str, request=None):
        super().__init__(message)
        self.request = request


class TransportTimeoutError(TransportError):
    """
    请求超时异常

    当请求执行时间超过传输层设定的超时时间时抛出此异常
    """


class StreamError(HttpismError):
    """
    字节流读取异常

    读取响应体字节流失败，或重复读取已消费的字节流时抛出此异常
    """


class ContentDecodeError(HttpismError):
    """
    响应体解码异常

    当响应内容无法按协商的类型（如 JSON）解码时抛出此异常

    属性:
        content: 解码失败的原始文本
    """

    def __init__(self, message: str, content: str | None = None):
        super().__init__(message)
        self.content = content


class HTTPStatusError(HttpismError):
    """
    HTTP 错误响应异常

    当服务器返回 4xx 或 5xx 状态码且未关闭 exceptions 选项时抛出此异常

    参数:
        message: 错误描述信息
        response: 完成内容协商后的响应对象（可选）

    属性:
        response: 保存响应对象，便于获取详细错误信息
        status_code: HTTP 状态码
        body: 响应体（已解析的 JSON/文本/表单，或未读取的字节流）
    """

    def __init__(self, message: str, response=None):
        super().__init__(message)
        self.response = response
        self.status_code: int | None = response.status_code if response is not None else None
        self.body: Any = response.body if response is not None else None


class ConfigurationError(HttpismError):
    """
    配置异常

    当客户端参数、组件等配置验证失败时抛出此异常
    """
