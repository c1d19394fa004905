"""配置合并与 URL 解析模块"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urljoin

from httpism.exceptions import ConfigurationError


def merge(primary: Mapping | None, secondary: Mapping | None) -> dict[str, Any]:
    """
    合并两个配置字典

    参数:
        primary: 优先配置（如单次调用的选项）
        secondary: 基础配置（如客户端级别的选项）

    返回:
        新字典：包含 secondary 的全部键，并被 primary 中值不为 None 的同名键覆盖

    示例:
        >>> merge({"a": 1, "b": None}, {"b": 2, "c": 3})
        {"b": 2, "c": 3, "a": 1}
    """
    merged = dict(secondary or {})
    for key, value in (primary or {}).items():
        if value is not None:
            merged[key] = value
    return merged


def merge_options(call_options: Mapping | None, client_options: Mapping | None) -> dict[str, Any]:
    """
    合并调用选项和客户端选项，调用选项优先

    headers 子字典单独合并，未被调用方覆盖的客户端请求头会被保留
    """
    merged = merge(call_options, client_options)
    call_headers = (call_options or {}).get("headers")
    client_headers = (client_options or {}).get("headers")
    if call_headers or client_headers:
        merged["headers"] = merge(call_headers, client_headers)
    return merged


def resolve_url(base: str | None, url: str | None) -> str | None:
    """
    将相对 URL 解析为基于 base 的绝对 URL

    base 为空时原样返回 url；相对路径、协议相对 URL 和绝对 URL 按 RFC 3986 规则处理
    """
    if not base:
        return url
    return urljoin(base, url or "")


def parse_client_arguments(*args) -> dict[str, Any]:
    """
    按类型解析客户端构造参数，参数顺序任意

    规则:
        - str: url
        - list/tuple: 中间件列表
        - Mapping: 选项
        - 可调用对象: 单个中间件
        - None: 忽略

    异常:
        ConfigurationError: 参数类型无法识别时抛出
    """
    parsed: dict[str, Any] = {"url": None, "options": None, "middleware": None}

    for arg in args:
        if arg is None:
            continue
        if isinstance(arg, str):
            parsed["url"] = arg
        elif isinstance(arg, (list, tuple)):
            parsed["middleware"] = list(arg)
        elif isinstance(arg, Mapping):
            parsed["options"] = dict(arg)
        elif callable(arg):
            parsed["middleware"] = [arg]
        else:
            raise ConfigurationError(f"Unsupported client argument: {arg!r}")

    return parsed
