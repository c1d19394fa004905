"""
通用测试 Fixture 定义

提供测试所需的伪传输层、响应构造工具和 Fixture
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from httpism.body import ByteStream, StreamBody
from httpism.client import Response
from httpism.transport import BaseTransport


def make_response(status_code=200, body=b"", headers=None, url=None, reason="OK", close=None):
    """构造传输层返回的未绑定响应，响应体为字节流"""
    if isinstance(body, str):
        body = body.encode("utf-8")
    stream = ByteStream([body] if body else [], length=len(body), close=close)
    return Response(status_code=status_code, url=url, headers=headers or {}, body=stream, reason=reason)


class FakeTransport(BaseTransport):
    """
    伪传输层

    按 handler(request) 返回响应，并记录每次发送时的请求快照（请求体字节流会被读取）
    """

    def __init__(self, handler=None):
        self.handler = handler or (lambda request: make_response(200, url=request.url))
        self.sent = []
        self.closed = False

    def send(self, request):
        body = None
        if isinstance(request.payload, StreamBody):
            body = request.payload.stream.read()
        self.sent.append(
            SimpleNamespace(
                id=request.id,
                method=request.method,
                url=request.url,
                headers=dict(request.headers),
                body=body,
                options=request.options,
            )
        )
        response = self.handler(request)
        if response.url is None:
            response.url = request.url
        return response

    def close(self):
        self.closed = True

    @property
    def last(self):
        return self.sent[-1]


def route_handler(routes):
    """
    根据 "METHOD url" 路由表返回响应

    路由值为 callable(request) -> Response，未匹配时返回 404
    """

    def handler(request):
        factory = routes.get(f"{request.method} {request.url}")
        if factory is None:
            return make_response(404, reason="Not Found", url=request.url)
        return factory(request)

    return handler


@pytest.fixture
def response_factory():
    """响应构造函数"""
    return make_response


@pytest.fixture
def transport_factory():
    """伪传输层构造函数：transport_factory(handler=None) 或 transport_factory(routes={...})"""

    def factory(handler=None, routes=None):
        if routes is not None:
            handler = route_handler(routes)
        return FakeTransport(handler)

    return factory


@pytest.fixture
def fake_transport():
    """默认返回空 200 响应的伪传输层"""
    return FakeTransport()


@pytest.fixture
def mock_cookie_jar():
    """Mock cookie jar"""
    jar = Mock()
    jar.load_for_url.return_value = "session=abc"
    return jar
