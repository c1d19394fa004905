"""Cookie Jar 模块

提供 CookieMiddleware 使用的默认 cookie jar 实现
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from email.message import Message

import requests
from requests.cookies import MockRequest, MockResponse, RequestsCookieJar, get_cookie_header

from httpism.utils import sanitize_url

logger = logging.getLogger(__name__)


class CookieJar:
    """
    基于 requests.cookies.RequestsCookieJar 的 cookie jar

    实现 CookieMiddleware 依赖的两个方法:
        - load_for_url(url) -> str: 返回发送到 url 时应携带的 cookie 头
        - store_for_url(url, set_cookie): 保存从 url 收到的 set-cookie 值（字符串或字符串列表）

    底层 http.cookiejar.CookieJar 自带锁，可在多个并发请求之间共享。

    使用示例:
        >>> jar = CookieJar()
        >>> api = httpism.client("https://example.com", {"cookies": jar})
    """

    def __init__(self, jar: RequestsCookieJar | None = None):
        self.jar = jar if jar is not None else RequestsCookieJar()

    def load_for_url(self, url: str) -> str:
        return get_cookie_header(self.jar, requests.Request("GET", url)) or ""

    def store_for_url(self, url: str, set_cookie: str | Iterable[str]) -> None:
        values = [set_cookie] if isinstance(set_cookie, str) else list(set_cookie)
        headers = Message()
        for value in values:
            headers["Set-Cookie"] = value
        self.jar.extract_cookies(MockResponse(headers), MockRequest(requests.Request("GET", url)))
        logger.debug(f"Stored {len(values)} cookie(s) for {sanitize_url(url)}")

    def clear(self) -> None:
        self.jar.clear()

    def __len__(self) -> int:
        return len(self.jar)

    def __iter__(self):
        return iter(self.jar)
