"""
内容协商中间件模块

提供 JSON、文本、表单三种内容协商中间件和查询字符串中间件:
- 请求阶段：按请求体类型编码为字符串，替换为只写一次的字节流，并设置 content-length/content-type
- 响应阶段：按 content-type（或 response_body 选项）读取字节流并解码
"""

from __future__ import annotations

import json as jsonlib
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

from httpism.body import ByteStream, StreamBody, StructuredBody, TextBody
from httpism.config import merge
from httpism.constants import (
    BODY_KIND_FORM,
    BODY_KIND_JSON,
    BODY_KIND_TEXT,
    CONTENT_TYPE_FORM,
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_PATTERNS,
    CONTENT_TYPE_TEXT,
    DEFAULT_ENCODING,
)
from httpism.exceptions import ConfigurationError, ContentDecodeError
from httpism.middleware import BaseMiddleware

logger = logging.getLogger(__name__)


def content_type_of(headers: Mapping[str, Any]) -> str | None:
    value = headers.get("content-type") if headers else None
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return value


def charset_of(headers: Mapping[str, Any]) -> str:
    """从 content-type 中提取字符集，默认 utf-8"""
    content_type = content_type_of(headers) or ""
    for param in content_type.split(";")[1:]:
        key, _, value = param.strip().partition("=")
        if key.lower() == "charset" and value:
            return value.strip("\"'")
    return DEFAULT_ENCODING


def should_parse_as(response, kind: str, request) -> bool:
    """
    判断响应是否应按指定类型解析

    参数:
        response: 响应对象
        kind: 内容类型（json/text/form）
        request: 原始请求

    返回:
        是否解析。请求设置了 response_body 选项时只由该选项决定，否则匹配响应的 content-type；
        已被其他中间件解析过的响应体（非字节流）不再解析
    """
    if not isinstance(response.payload, StreamBody):
        return False

    forced_kind = request.options.get("response_body")
    if forced_kind:
        return forced_kind == kind

    content_type = content_type_of(response.headers)
    if not content_type:
        return False
    return any(pattern.search(content_type) for pattern in CONTENT_TYPE_PATTERNS[kind])


def stream_to_string(stream: ByteStream, encoding: str | None = None) -> str:
    """读取整个字节流为字符串，空流返回空字符串"""
    return stream.read_text(encoding)


def set_body_to_string(request, text: str) -> None:
    """将请求体替换为包装 text 的字节流，并设置 content-length"""
    stream = ByteStream.from_string(text)
    request.payload = StreamBody(stream)
    request.headers["content-length"] = str(stream.length)


class ContentMiddleware(BaseMiddleware):
    """
    内容协商中间件基类

    子类需设置 kind、content_type，并实现 accepts/encode/decode。
    """

    kind: str = ""
    content_type: str = ""

    def accepts(self, request) -> bool:
        """请求体是否应由本中间件编码"""
        raise NotImplementedError

    def encode(self, value: Any) -> str:
        raise NotImplementedError

    def decode(self, text: str) -> Any:
        raise NotImplementedError

    def process_request(self, request, client) -> None:
        if self.accepts(request):
            set_body_to_string(request, self.encode(request.body))
            request.set_default_header("content-type", self.content_type)
            logger.debug(f"[{request.id}] Encoded request body as {self.kind}")

    def process_response(self, request, response, client):
        if should_parse_as(response, self.kind, request):
            text = stream_to_string(response.payload.stream, charset_of(response.headers))
            response.body = self.decode(text)
            logger.debug(f"[{request.id}] Parsed response body as {self.kind}")
        return response


class JSONMiddleware(ContentMiddleware):
    """编码结构化请求体为 JSON，并解析 JSON 响应"""

    kind = BODY_KIND_JSON
    content_type = CONTENT_TYPE_JSON

    def accepts(self, request) -> bool:
        # 只编码对象和数组，数字、布尔等标量不作为 JSON 请求体发送
        return isinstance(request.payload, StructuredBody) and isinstance(request.body, (Mapping, list, tuple))

    def process_request(self, request, client) -> None:
        super().process_request(request, client)
        request.set_default_header("accept", CONTENT_TYPE_JSON)

    def encode(self, value: Any) -> str:
        return jsonlib.dumps(value)

    def decode(self, text: str) -> Any:
        if not text.strip():
            return None
        try:
            return jsonlib.loads(text)
        except ValueError as e:
            raise ContentDecodeError(f"Invalid JSON response body: {e}", content=text) from e


class TextMiddleware(ContentMiddleware):
    """字符串请求体以 text/plain 发送，text/* 响应读取为字符串"""

    kind = BODY_KIND_TEXT
    content_type = CONTENT_TYPE_TEXT

    def accepts(self, request) -> bool:
        return isinstance(request.payload, TextBody)

    def encode(self, value: str) -> str:
        return value

    def decode(self, text: str) -> str:
        return text


class FormMiddleware(ContentMiddleware):
    """form 选项开启时将结构化请求体编码为表单，并解析表单响应"""

    kind = BODY_KIND_FORM
    content_type = CONTENT_TYPE_FORM

    def accepts(self, request) -> bool:
        return (
            bool(request.options.get("form"))
            and isinstance(request.payload, StructuredBody)
            and isinstance(request.body, Mapping)
        )

    def encode(self, value: Any) -> str:
        return encode_query(value)

    def decode(self, text: str) -> dict[str, Any]:
        return parse_query(text)


def encode_query(params: Mapping[str, Any]) -> str:
    """
    编码为 application/x-www-form-urlencoded 字符串

    列表值展开为重复的键。嵌套的字典没有对应的扁平编码，直接报错而不是丢弃其中的值

    异常:
        ConfigurationError: 值（或列表元素）是字典时抛出
    """
    for key, value in params.items():
        items = value if isinstance(value, (list, tuple)) else [value]
        if any(isinstance(item, Mapping) for item in items):
            raise ConfigurationError(f"Cannot encode nested mapping under key {key!r} as a query string")
    return urlencode(params, doseq=True)


def parse_query(query: str | None) -> dict[str, Any]:
    """
    解析查询字符串，保持参数顺序

    同名参数出现多次时值为列表，否则为单个字符串
    """
    parsed: dict[str, Any] = {}
    for key, value in parse_qsl(query or "", keep_blank_values=True):
        if key not in parsed:
            parsed[key] = value
        elif isinstance(parsed[key], list):
            parsed[key].append(value)
        else:
            parsed[key] = [parsed[key], value]
    return parsed


def querystring(request, next_, client):
    """
    查询字符串中间件

    options["querystring"] 为字典时，将其合并进 URL 已有的查询参数（选项中的值优先）
    """
    query_options = request.options.get("querystring")
    if isinstance(query_options, Mapping):
        path, _, query = request.url.partition("?")
        encoded = encode_query(merge(query_options, parse_query(query)))
        request.url = f"{path}?{encoded}" if encoded else path
        logger.debug(f"[{request.id}] Merged querystring into {request.url}")

    return next_()


json = JSONMiddleware()
text = TextMiddleware()
form = FormMiddleware()
