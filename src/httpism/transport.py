"""传输层模块

管道的终端阶段：将 Request 通过 requests 发送出去，返回带惰性字节流响应体的 Response
"""

from __future__ import annotations

import functools
import logging
import os
from abc import ABC, abstractmethod
from http.cookiejar import DefaultCookiePolicy
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import requests
from requests.structures import CaseInsensitiveDict

from httpism.body import ByteStream, EmptyBody, StreamBody
from httpism.config import merge
from httpism.constants import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT, PROXY_ENV_VARS
from httpism.exceptions import ConfigurationError, TransportError, TransportTimeoutError
from httpism.utils import sanitize_url

logger = logging.getLogger(__name__)


def proxy_from_environment(environ=None) -> str | None:
    """读取 http_proxy/HTTP_PROXY 环境变量"""
    environ = os.environ if environ is None else environ
    for name in PROXY_ENV_VARS:
        if environ.get(name):
            return environ[name]
    return None


def strip_credentials(url: str) -> str:
    """移除 URL 中的用户信息，认证头由 BasicAuthMiddleware 负责"""
    parsed = urlsplit(url)
    if "@" not in parsed.netloc:
        return url
    return urlunsplit(parsed._replace(netloc=parsed.netloc.rpartition("@")[2]))


class BaseTransport(ABC):
    """传输层基类，定义发送请求的接口。"""

    @abstractmethod
    def send(self, request) -> Any:
        """发送请求并返回 Response，响应体为 ByteStream"""

    def __call__(self, request):
        return self.send(request)

    def close(self) -> None:
        """释放传输层持有的资源"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class RequestsTransport(BaseTransport):
    """
    基于 requests.Session 的传输层

    参数:
        proxy: 代理 URL。None 时在构造时读取 http_proxy/HTTP_PROXY 环境变量
        timeout: 默认超时时间（秒）
        verify: SSL 证书验证开关
        chunk_size: 读取响应体的分块大小（字节）
        session: 自定义 requests.Session（可选）
        **kwargs: 其他传递给 session.request 的默认参数（如 cert）

    说明:
        - 请求选项中的 proxy 优先于构造时确定的代理
        - options["http"] / options["https"] 按 URL 协议合并到 session.request 参数中
        - 始终使用 stream=True 且不自动跟随跳转，跳转由 RedirectMiddleware 处理
    """

    def __init__(
        self,
        proxy: str | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
        verify: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        session: requests.Session | None = None,
        **kwargs,
    ):
        self.proxy = proxy if proxy is not None else proxy_from_environment()
        self.timeout = timeout
        self.verify = verify
        self.chunk_size = chunk_size
        self.default_request_kwargs = kwargs
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        # 代理和认证只来自显式配置，不读取环境变量和 .netrc
        session.trust_env = False
        # cookie 只由 cookies 选项中的 jar 管理，session 自身不保存
        session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        return session

    def _build_request_config(self, request) -> dict[str, Any]:
        scheme = urlsplit(request.url).scheme.lower()
        defaults = {**self.default_request_kwargs, "timeout": self.timeout, "verify": self.verify}
        request_kwargs = merge(request.options.get(scheme), defaults)

        request_kwargs.update(
            {
                "method": request.method,
                "url": strip_credentials(request.url),
                "headers": {key: str(value) for key, value in request.headers.items()},
                "data": self._prepare_body(request),
                "stream": True,
                "allow_redirects": False,
            }
        )

        proxy = request.options.get("proxy") or self.proxy
        if proxy:
            request_kwargs["proxies"] = {"http": proxy, "https": proxy}

        return request_kwargs

    @staticmethod
    def _prepare_body(request):
        payload = request.payload
        if isinstance(payload, EmptyBody):
            return None
        if not isinstance(payload, StreamBody):
            raise ConfigurationError(
                f"{type(payload).__name__} was not encoded by any middleware, pass bytes or a ByteStream instead"
            )
        stream = payload.stream
        # 已知长度的字节流一次写出，未知长度的按分块传输
        if stream.length is not None:
            return stream.read()
        return iter(stream)

    @staticmethod
    def _collect_headers(response: requests.Response) -> CaseInsensitiveDict:
        """收集响应头，set-cookie 可能出现多次，始终以列表形式保存"""
        headers = CaseInsensitiveDict(response.headers)
        raw_headers = getattr(response.raw, "headers", None)
        if raw_headers is not None and hasattr(raw_headers, "getlist"):
            set_cookies = raw_headers.getlist("set-cookie")
        else:
            set_cookies = [headers["set-cookie"]] if "set-cookie" in headers else []
        if set_cookies:
            headers["set-cookie"] = list(set_cookies)
        return headers

    def send(self, request):
        from httpism.client import Response

        request_config = self._build_request_config(request)
        safe_url = sanitize_url(request.url)

        try:
            response = self.session.request(**request_config)
        except requests.exceptions.Timeout as e:
            error = TransportTimeoutError(
                f"Request to {safe_url} timed out after {request_config.get('timeout')}s", request=request
            )
            logger.error(f"[{request.id}] Request failed: {error}")
            raise error from e
        except requests.exceptions.RequestException as e:
            error = TransportError(f"Request to {safe_url} failed: {e}", request=request)
            logger.error(f"[{request.id}] Request failed: {error}")
            raise error from e

        body = ByteStream(response.iter_content(chunk_size=self.chunk_size), close=response.close)
        return Response(
            status_code=response.status_code,
            url=request.url,
            headers=self._collect_headers(response),
            body=body,
            reason=response.reason or "",
        )

    def close(self) -> None:
        if self.session:
            self.session.close()
            logger.info("Session closed")


@functools.lru_cache(maxsize=None)
def default_transport() -> RequestsTransport:
    """进程内共享的默认传输层，首次调用时读取代理环境变量"""
    return RequestsTransport()
