"""HTTP 客户端核心模块

提供基于中间件管道的不可变 HTTP 客户端：
- 每次请求按顺序经过中间件链，最后由传输层发送
- 通过 api() 派生子客户端，URL 相对父客户端解析，子中间件排在父中间件之前
- 响应本身也是客户端，可以相对响应 URL 继续发起请求
- 支持批量请求的同步/并发执行
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeAlias

from requests.structures import CaseInsensitiveDict

from httpism.async_executor import BaseAsyncExecutor, ThreadPoolAsyncExecutor
from httpism.body import Body
from httpism.config import merge_options, parse_client_arguments, resolve_url
from httpism.constants import (
    HTTP_METHOD_DELETE,
    HTTP_METHOD_GET,
    HTTP_METHOD_HEAD,
    HTTP_METHOD_OPTIONS,
    HTTP_METHOD_PATCH,
    HTTP_METHOD_POST,
    HTTP_METHOD_PUT,
)
from httpism.exceptions import ConfigurationError
from httpism.models import Request
from httpism.pipeline import Pipeline, Redirected

# 类型别名定义
Options: TypeAlias = dict[str, Any]

logger = logging.getLogger(__name__)


class Client:
    """
    HTTP 客户端

    不可变值对象：base URL、合并后的选项和中间件元组在构造后不再修改，
    所有配置类调用都会返回新的 Client。

    参数:
        url: 基础 URL，请求 URL 相对它解析
        options: 客户端级别选项，调用时的选项优先
        middleware: 有序中间件列表，签名为 middleware(request, next_, client)
        transport: 传输层类或实例，None 时使用进程内共享的 RequestsTransport
        executor: 批量请求执行器类或实例，None 时使用 ThreadPoolAsyncExecutor

    使用示例:
        >>> api = httpism.client("https://api.example.com/", {"headers": {"x-api-key": "..."}})
        >>> users = api.api("users/")
        >>> response = users.get("1")
        >>> response.body
        {"id": 1, "name": "Alice"}
    """

    def __init__(
        self,
        url: str | None = None,
        options: Mapping[str, Any] | None = None,
        middleware=None,
        transport=None,
        executor: BaseAsyncExecutor | type[BaseAsyncExecutor] | None = None,
    ):
        self.url = url
        self._options: Options = dict(options or {})
        self.middleware: tuple = tuple(middleware or ())
        self.transport = self._resolve_transport(transport)
        self.executor = self._resolve_component(executor, BaseAsyncExecutor, ThreadPoolAsyncExecutor)
        self.pipeline = Pipeline(self.middleware, self.transport)

    @property
    def default_options(self) -> Options:
        """客户端级别选项的副本"""
        return dict(self._options)

    @staticmethod
    def _resolve_component(component, base_class, fallback_class, **init_kwargs):
        """
        统一的组件解析方法

        参数:
            component: 传入的组件配置（类或实例）
            base_class: 基类类型
            fallback_class: 未配置时使用的默认类
            **init_kwargs: 实例化时的额外参数

        返回:
            组件实例
        """
        if component is None:
            return fallback_class(**init_kwargs)

        # 处理类：尝试实例化
        if isinstance(component, type) and issubclass(component, base_class):
            try:
                return component(**init_kwargs)
            except Exception as e:
                logger.error(f"Failed to instantiate {component.__name__}: {e}")
                raise ConfigurationError(f"{base_class.__name__} instantiation failed: {e}") from e

        # 处理实例：直接返回
        if isinstance(component, base_class):
            return component

        raise ConfigurationError(f"Expected a {base_class.__name__} subclass or instance, got {type(component).__name__}")

    def _resolve_transport(self, transport):
        """解析传输层：None 使用共享默认实例，也接受普通可调用对象"""
        from httpism.transport import BaseTransport, default_transport

        if transport is None:
            return default_transport()
        if isinstance(transport, type):
            return self._resolve_component(transport, BaseTransport, None)
        if callable(transport):
            return transport
        raise ConfigurationError(f"Transport must be callable, got {type(transport).__name__}")

    def _derive(self, url, options, middleware):
        return Client(url, options, middleware, transport=self.transport, executor=self.executor)

    def send(self, method: str, url: str | None = None, body: Any = None, options: Mapping | None = None):
        """
        发送请求的统一入口

        参数:
            method: HTTP 方法
            url: 请求 URL，相对客户端 URL 解析
            body: 请求体（None、字符串、结构化数据、bytes 或 ByteStream）
            options: 本次调用的选项，与客户端选项合并且优先

        返回:
            Response 对象

        执行步骤:
            1. 合并选项，解析 URL，创建本次调用独占的 Request
            2. 驱动中间件管道
            3. Redirected 结果解包为跳转后的响应，其他响应绑定到本客户端的配置上
        """
        merged_options = merge_options(options, self._options)
        request = Request(
            method=method,
            url=resolve_url(self.url, url),
            headers=merged_options.get("headers"),
            body=body,
            options=merged_options,
        )

        result = self.pipeline(request, self)

        if isinstance(result, Redirected):
            return result.response
        return result.bind(self)

    def api(self, *args, **kwargs) -> Client:
        """
        派生子客户端

        参数（按类型识别，顺序任意，也可使用关键字 url/options/middleware）:
            url: 相对当前客户端 URL 解析的子路径
            options: 与当前客户端选项合并，子客户端优先
            middleware: 子客户端自己的中间件，排在继承的中间件之前

        返回:
            新的 Client，当前客户端不受影响
        """
        parsed = parse_client_arguments(*args)
        for key in ("url", "options", "middleware"):
            if kwargs.get(key) is not None:
                parsed[key] = kwargs[key]

        middleware = list(parsed["middleware"] or ()) + list(self.middleware)
        return self._derive(
            resolve_url(self.url, parsed["url"]) if parsed["url"] is not None else self.url,
            merge_options(parsed["options"], self._options),
            middleware,
        )

    def get(self, url: str | None = None, options: Mapping | None = None):
        return self.send(HTTP_METHOD_GET, url, None, options)

    def delete(self, url: str | None = None, options: Mapping | None = None):
        return self.send(HTTP_METHOD_DELETE, url, None, options)

    def head(self, url: str | None = None, options: Mapping | None = None):
        return self.send(HTTP_METHOD_HEAD, url, None, options)

    def post(self, url: str | None = None, body: Any = None, options: Mapping | None = None):
        return self.send(HTTP_METHOD_POST, url, body, options)

    def put(self, url: str | None = None, body: Any = None, options: Mapping | None = None):
        return self.send(HTTP_METHOD_PUT, url, body, options)

    def patch(self, url: str | None = None, body: Any = None, options: Mapping | None = None):
        return self.send(HTTP_METHOD_PATCH, url, body, options)

    def options(self, url: str | None = None, body: Any = None, options: Mapping | None = None):
        return self.send(HTTP_METHOD_OPTIONS, url, body, options)

    def request_many(self, request_list: list[Mapping[str, Any]], is_async: bool = False) -> list:
        """
        执行批量请求

        参数:
            request_list: 请求配置列表，每项包含 method、url，以及可选的 body、options
            is_async: 是否使用执行器并发执行

        返回:
            与输入顺序一致的列表，每项为 Response 或该请求抛出的异常
        """
        if not request_list:
            logger.warning("Empty request list provided")
            return []

        if is_async:
            return self.executor.execute(self, request_list)

        logger.info(f"Starting {len(request_list)} synchronous requests")
        results = []
        for config in request_list:
            try:
                results.append(self.send_config(config))
            except Exception as e:
                logger.exception(f"Request {config.get('method')} {config.get('url')} failed: {e}")
                results.append(e)
        return results

    def send_config(self, config: Mapping[str, Any]):
        """以配置字典发送单个请求"""
        if "method" not in config:
            raise ConfigurationError("request config must contain 'method'")
        return self.send(config["method"], config.get("url"), config.get("body"), config.get("options"))

    def close(self) -> None:
        """关闭传输层，释放连接资源"""
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"<Client url={self.url!r} middleware={len(self.middleware)}>"


class Response(Client):
    """
    HTTP 响应

    在 Client 的基础上增加响应字段。传输层创建的响应尚未绑定客户端配置，
    Client.send 完成后通过 bind() 绑定到发起请求的客户端，之后可继续相对 url 发起请求。

    属性:
        status_code: HTTP 状态码
        reason: 状态描述
        url: 实际请求的 URL（也是后续请求的基础 URL）
        headers: 不区分大小写的响应头字典，set-cookie 为列表
        payload: 带标记的响应体，初始为 StreamBody
        body: 响应体的值（字节流，或经中间件解析后的数据）
    """

    def __init__(
        self,
        status_code: int,
        url: str | None = None,
        headers: Mapping[str, Any] | None = None,
        body: Any = None,
        reason: str = "",
        options: Mapping[str, Any] | None = None,
        middleware=None,
        transport=None,
        executor=None,
    ):
        super().__init__(url, options, middleware, transport=transport, executor=executor)
        self.status_code = status_code
        self.reason = reason
        self.headers = CaseInsensitiveDict(headers or {})
        self.payload = Body.of(body)

    def _resolve_transport(self, transport):
        # 传输层创建的响应在 bind() 之前不持有传输层
        if transport is None:
            return None
        return super()._resolve_transport(transport)

    def send(self, method: str, url: str | None = None, body: Any = None, options: Mapping | None = None):
        if self.transport is None:
            raise ConfigurationError("Response is not bound to a client, call bind() before sending requests")
        return super().send(method, url, body, options)

    @property
    def body(self) -> Any:
        return self.payload.value

    @body.setter
    def body(self, value: Any) -> None:
        self.payload = Body.of(value)

    def bind(self, client: Client) -> Response:
        """
        返回绑定到 client 配置（选项、中间件、传输层、执行器）的新响应

        响应字段（状态码、URL、响应头、响应体）保持不变
        """
        return Response(
            status_code=self.status_code,
            url=self.url,
            headers=self.headers,
            body=self.payload,
            reason=self.reason,
            options=client._options,
            middleware=client.middleware,
            transport=client.transport,
            executor=client.executor,
        )

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {self.url}>"
