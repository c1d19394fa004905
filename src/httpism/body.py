"""请求体/响应体模块

提供显式标记的 Body 表示和惰性字节流 ByteStream:
- EmptyBody: 无请求体
- TextBody: 字符串
- StructuredBody: 结构化数据（dict、list 等），等待内容协商中间件编码
- StreamBody: 惰性字节流，中间件不会再次编码
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any

import requests
import urllib3

from httpism.constants import DEFAULT_ENCODING
from httpism.exceptions import StreamError

logger = logging.getLogger(__name__)

# 读取字节流时转换为 StreamError 的底层异常
_STREAM_FAILURES = (
    OSError,
    ValueError,
    requests.exceptions.RequestException,
    urllib3.exceptions.HTTPError,
)


class ByteStream:
    """
    惰性字节流

    包装一个产出 bytes 分块的可迭代对象，只能被消费一次。

    参数:
        chunks: 产出 bytes 的可迭代对象
        length: 已知的总字节数（未知时为 None）
        close: 字节流读取完毕或关闭时调用的回调（如释放连接）
    """

    def __init__(
        self,
        chunks: Iterable[bytes],
        length: int | None = None,
        close: Callable[[], Any] | None = None,
    ):
        self._chunks = chunks
        self.length = length
        self._close = close
        self.consumed = False
        self.closed = False

    @classmethod
    def from_bytes(cls, data: bytes) -> ByteStream:
        """由内存中的字节串创建只写一次的字节流"""
        return cls([data] if data else [], length=len(data))

    @classmethod
    def from_string(cls, text: str, encoding: str = DEFAULT_ENCODING) -> ByteStream:
        return cls.from_bytes(text.encode(encoding))

    def __iter__(self) -> Iterator[bytes]:
        if self.consumed:
            raise StreamError("Stream has already been consumed")
        self.consumed = True
        try:
            for chunk in self._chunks:
                if chunk:
                    yield chunk
        except _STREAM_FAILURES as e:
            raise StreamError(f"Failed to read stream: {e}") from e
        finally:
            self.close()

    def read(self) -> bytes:
        """读取全部内容（单个挂起点，直到流结束或出错）"""
        return b"".join(self)

    def read_text(self, encoding: str | None = None) -> str:
        """读取全部内容并解码为字符串，空流返回空字符串"""
        data = self.read()
        try:
            return data.decode(encoding or DEFAULT_ENCODING)
        except (LookupError, UnicodeDecodeError) as e:
            raise StreamError(f"Failed to decode stream as {encoding or DEFAULT_ENCODING}: {e}") from e

    def consume(self) -> None:
        """读取并丢弃全部内容，确保底层连接被释放"""
        for _ in self:
            pass

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._close is not None:
            self._close()

    def __repr__(self) -> str:
        return f"<ByteStream length={self.length} consumed={self.consumed}>"


class Body:
    """Body 基类，value 为调用方看到的普通值"""

    value: Any = None

    @staticmethod
    def of(value: Any) -> Body:
        """
        将普通值转换为带标记的 Body

        转换规则:
            - None -> EmptyBody
            - Body -> 原样返回
            - ByteStream -> StreamBody
            - bytes/bytearray -> StreamBody（原始字节，跳过内容协商）
            - str -> TextBody
            - 其他值 -> StructuredBody
        """
        if value is None:
            return EmptyBody()
        if isinstance(value, Body):
            return value
        if isinstance(value, ByteStream):
            return StreamBody(value)
        if isinstance(value, (bytes, bytearray)):
            return StreamBody(ByteStream.from_bytes(bytes(value)))
        if isinstance(value, str):
            return TextBody(value)
        return StructuredBody(value)

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.value == other.value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class EmptyBody(Body):
    pass


class TextBody(Body):
    def __init__(self, text: str):
        self.value = text


class StructuredBody(Body):
    def __init__(self, value: Any):
        self.value = value


class StreamBody(Body):
    def __init__(self, stream: ByteStream):
        self.value = stream

    @property
    def stream(self) -> ByteStream:
        return self.value
