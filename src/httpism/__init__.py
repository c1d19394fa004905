"""
httpism HTTP 客户端模块

基于中间件管道的 HTTP 客户端：每个请求依次经过中间件链，最后由传输层发送，
响应再按相反顺序经过各中间件处理。

主要组件:
    - Client / Response: 不可变客户端，响应本身也可以继续发起请求
    - Pipeline: 中间件管道引擎
    - 中间件: exception, form, json, text, redirect, cookies, querystring, basic_auth, log
    - 传输层: RequestsTransport
    - 执行器: ThreadPoolAsyncExecutor
    - CookieJar: 默认 cookie jar

使用示例:
    >>> import httpism
    >>>
    >>> api = httpism.client("https://api.example.com/", {"cookies": httpism.CookieJar()})
    >>> response = api.post("users", {"name": "Alice"})
    >>> response.status_code, response.body
    (201, {"id": 1, "name": "Alice"})
    >>> response.get("1").body
    {"id": 1, "name": "Alice"}
"""

import functools

# 核心客户端
from httpism.client import Client, Response
from httpism.models import Request
from httpism.pipeline import Pipeline, Redirected

# 请求体
from httpism.body import Body, ByteStream, EmptyBody, StreamBody, StructuredBody, TextBody

# 配置
from httpism.config import merge, merge_options, parse_client_arguments, resolve_url

# 中间件
from httpism.middleware import (
    BaseMiddleware,
    BasicAuthMiddleware,
    CookieMiddleware,
    ExceptionMiddleware,
    LogMiddleware,
    RedirectMiddleware,
    basic_auth,
    cookies,
    exception,
    log,
    redirect,
)
from httpism.content import (
    ContentMiddleware,
    FormMiddleware,
    JSONMiddleware,
    TextMiddleware,
    form,
    json,
    querystring,
    should_parse_as,
    stream_to_string,
    text,
)

# 传输层、执行器、cookie jar
from httpism.transport import BaseTransport, RequestsTransport
from httpism.async_executor import BaseAsyncExecutor, ThreadPoolAsyncExecutor
from httpism.cookiejar import CookieJar

# 异常类
from httpism.exceptions import (
    ConfigurationError,
    ContentDecodeError,
    HTTPStatusError,
    HttpismError,
    StreamError,
    TransportError,
    TransportTimeoutError,
)

# 默认中间件顺序：从外到内
DEFAULT_MIDDLEWARE = (
    exception,
    form,
    json,
    text,
    redirect,
    cookies,
    querystring,
    basic_auth,
    log,
)


def client(*args, transport=None, executor=None) -> Client:
    """
    创建根客户端

    参数（按类型识别，顺序任意）:
        url: 基础 URL
        options: 客户端级别选项
        middleware: 中间件列表，None 时使用 DEFAULT_MIDDLEWARE
        transport: 传输层类或实例（关键字参数）
        executor: 批量请求执行器类或实例（关键字参数）
    """
    parsed = parse_client_arguments(*args)
    middleware = parsed["middleware"] if parsed["middleware"] is not None else DEFAULT_MIDDLEWARE
    return Client(parsed["url"], parsed["options"], middleware, transport=transport, executor=executor)


@functools.lru_cache(maxsize=None)
def default_client() -> Client:
    """模块级共享的默认客户端"""
    return client()


def get(url, options=None):
    return default_client().get(url, options)


def delete(url, options=None):
    return default_client().delete(url, options)


def head(url, options=None):
    return default_client().head(url, options)


def post(url, body=None, options=None):
    return default_client().post(url, body, options)


def put(url, body=None, options=None):
    return default_client().put(url, body, options)


def patch(url, body=None, options=None):
    return default_client().patch(url, body, options)


def api(*args, **kwargs) -> Client:
    return default_client().api(*args, **kwargs)


__all__ = [
    # 核心类
    "Client",
    "Response",
    "Request",
    "Pipeline",
    "Redirected",
    "client",
    "default_client",
    "api",
    "get",
    "delete",
    "head",
    "post",
    "put",
    "patch",
    # 请求体
    "Body",
    "ByteStream",
    "EmptyBody",
    "StreamBody",
    "StructuredBody",
    "TextBody",
    # 配置
    "merge",
    "merge_options",
    "parse_client_arguments",
    "resolve_url",
    # 中间件
    "DEFAULT_MIDDLEWARE",
    "BaseMiddleware",
    "BasicAuthMiddleware",
    "CookieMiddleware",
    "ExceptionMiddleware",
    "LogMiddleware",
    "RedirectMiddleware",
    "ContentMiddleware",
    "FormMiddleware",
    "JSONMiddleware",
    "TextMiddleware",
    "basic_auth",
    "cookies",
    "exception",
    "form",
    "json",
    "log",
    "querystring",
    "redirect",
    "text",
    "should_parse_as",
    "stream_to_string",
    # 传输层、执行器、cookie jar
    "BaseTransport",
    "RequestsTransport",
    "BaseAsyncExecutor",
    "ThreadPoolAsyncExecutor",
    "CookieJar",
    # 异常
    "HttpismError",
    "TransportError",
    "TransportTimeoutError",
    "StreamError",
    "ContentDecodeError",
    "HTTPStatusError",
    "ConfigurationError",
]

__version__ = "1.0.0"
