"""
标准中间件模块

提供中间件基类以及跳转、Cookie、Basic 认证、异常、日志中间件
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import unquote, urljoin, urlsplit

from httpism.body import StreamBody
from httpism.constants import ERROR_STATUS_THRESHOLD, REDIRECT_STATUS_CODES
from httpism.exceptions import HTTPStatusError
from httpism.pipeline import Redirected
from httpism.utils import sanitize_dict, sanitize_headers, sanitize_url

logger = logging.getLogger(__name__)


class BaseMiddleware:
    """
    中间件基类

    将一个管道阶段拆分为请求处理和响应处理两步:
        1. process_request: 在调用下游之前修改请求
        2. process_response: 处理下游返回的响应，返回值作为本阶段的结果

    下游返回 Redirected 时直接向上传递，不会对被丢弃的原始响应调用 process_response。
    子类也可以直接重写 __call__ 实现短路等更复杂的控制流。
    """

    def process_request(self, request, client) -> None:
        """请求阶段钩子，默认不做处理"""

    def process_response(self, request, response, client):
        """响应阶段钩子，默认原样返回"""
        return response

    def __call__(self, request, next_: Callable[[], Any], client):
        self.process_request(request, client)
        result = next_()
        if isinstance(result, Redirected):
            return result
        return self.process_response(request, result, client)


class RedirectMiddleware(BaseMiddleware):
    """
    跳转中间件

    响应状态码为 300/301/302/303/307、带有 location 头且 redirect 选项不为 False 时:
        1. 读取并丢弃原始响应体，释放连接
        2. 基于当前请求 URL 解析 location
        3. 通过所属 Client 发起新的 GET 请求（完整走一遍中间件链）
        4. 返回 Redirected 包装的新响应，上层中间件跳过对原始响应的处理
    """

    status_codes = REDIRECT_STATUS_CODES

    def process_response(self, request, response, client):
        location = response.headers.get("location")
        if (
            request.options.get("redirect") is False
            or not location
            or response.status_code not in self.status_codes
        ):
            return response

        if isinstance(response.payload, StreamBody) and not response.payload.stream.consumed:
            response.payload.stream.consume()

        redirect_url = urljoin(request.url, location)
        logger.info(f"[{request.id}] {response.status_code} redirect from {request.url} to {redirect_url}")
        return Redirected(client.get(redirect_url, request.options))


class CookieMiddleware(BaseMiddleware):
    """
    Cookie 中间件

    options["cookies"] 为 cookie jar 时:
        - 请求前：从 jar 中加载当前 URL 的 cookie 头
        - 响应后：将每个 set-cookie 值存入 jar，URL 使用响应的 URL（跳转后可能与请求 URL 不同）
    """

    def __call__(self, request, next_, client):
        # 空 jar 的 len() 为 0，只按是否配置判断
        if request.options.get("cookies") is None:
            return next_()
        return super().__call__(request, next_, client)

    def process_request(self, request, client) -> None:
        cookie_header = request.options["cookies"].load_for_url(request.url)
        if cookie_header:
            request.headers["cookie"] = cookie_header

    def process_response(self, request, response, client):
        jar = request.options["cookies"]
        set_cookie = response.headers.get("set-cookie")
        if set_cookie:
            values = set_cookie if isinstance(set_cookie, (list, tuple)) else [set_cookie]
            for value in values:
                jar.store_for_url(response.url, value)
            logger.debug(f"[{request.id}] Stored {len(values)} cookie(s) for {sanitize_url(response.url)}")
        return response


class BasicAuthMiddleware(BaseMiddleware):
    """
    Basic 认证中间件

    优先使用 options["basic_auth"] 中的用户名和密码（用户名中的冒号会被移除），
    其次使用 URL 中携带的用户信息。两者都没有时不设置 authorization 头。
    """

    @staticmethod
    def encode(credentials: str) -> str:
        return "Basic " + base64.b64encode(credentials.encode("utf-8")).decode("ascii")

    def credentials(self, request) -> str | None:
        basic_auth = request.options.get("basic_auth")
        if basic_auth:
            username = str(basic_auth.get("username") or "").replace(":", "")
            password = str(basic_auth.get("password") or "")
            return f"{username}:{password}"

        parsed = urlsplit(request.url)
        if parsed.username is not None:
            return f"{unquote(parsed.username)}:{unquote(parsed.password or '')}"
        return None

    def process_request(self, request, client) -> None:
        credentials = self.credentials(request)
        if credentials is not None:
            request.headers["authorization"] = self.encode(credentials)


class ExceptionMiddleware(BaseMiddleware):
    """状态码 >= 400 且 exceptions 选项不为 False 时抛出 HTTPStatusError"""

    def process_response(self, request, response, client):
        if response.status_code >= ERROR_STATUS_THRESHOLD and request.options.get("exceptions") is not False:
            message = f"{request.method} {sanitize_url(request.url)} => {response.status_code} {response.reason}".rstrip()
            logger.error(f"[{request.id}] Request failed: {message}")
            raise HTTPStatusError(message, response=response)
        return response


class LogMiddleware(BaseMiddleware):
    """
    日志中间件

    INFO 级别记录请求方法、URL 和响应状态码，DEBUG 级别记录请求头、选项和响应头。
    URL 中的认证信息、敏感参数以及敏感请求头都会被脱敏。
    """

    def process_request(self, request, client) -> None:
        logger.info(f"[{request.id}] Starting {request.method} request to {sanitize_url(request.url)}")

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"[{request.id}] Request headers: {sanitize_headers(dict(request.headers))}")
            loggable_options = {k: v for k, v in request.options.items() if k != "cookies"}
            logger.debug(f"[{request.id}] Request options: {sanitize_dict(loggable_options)}")

    def process_response(self, request, response, client):
        logger.info(f"[{request.id}] Received {response.status_code} response")
        logger.debug(f"[{request.id}] Response headers: {sanitize_headers(dict(response.headers))}")
        return response


exception = ExceptionMiddleware()
redirect = RedirectMiddleware()
cookies = CookieMiddleware()
basic_auth = BasicAuthMiddleware()
log = LogMiddleware()
