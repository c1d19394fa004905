"""
HTTP 客户端常量配置模块

定义客户端使用的常量、默认配置等
"""

import re

# HTTP 方法常量
HTTP_METHOD_GET = "GET"
HTTP_METHOD_POST = "POST"
HTTP_METHOD_PUT = "PUT"
HTTP_METHOD_DELETE = "DELETE"
HTTP_METHOD_PATCH = "PATCH"
HTTP_METHOD_HEAD = "HEAD"
HTTP_METHOD_OPTIONS = "OPTIONS"

# 需要跟随跳转的状态码（统一以 GET 重新请求）
REDIRECT_STATUS_CODES = frozenset({300, 301, 302, 303, 307})

# 触发 HTTPStatusError 的最小状态码
ERROR_STATUS_THRESHOLD = 400

# 默认配置
DEFAULT_TIMEOUT = 30  # 默认超时时间（秒）
DEFAULT_MAX_WORKERS = 10  # 默认最大工作线程数
DEFAULT_CHUNK_SIZE = 8192  # 默认分块大小（字节）
DEFAULT_ENCODING = "utf-8"

# 代理环境变量，仅在构造传输层时读取一次
PROXY_ENV_VARS = ("http_proxy", "HTTP_PROXY")

# 日志中需要隐藏的请求头
SENSITIVE_HEADERS = frozenset(
    {
        "Authorization",
        "Proxy-Authorization",
        "Cookie",
        "Set-Cookie",
        "X-API-Key",
        "X-Auth-Token",
        "X-Access-Token",
    }
)

# 日志中需要隐藏的查询参数和选项键
SENSITIVE_PARAMS = frozenset(
    {"token", "access_token", "auth_token", "api_key", "apikey", "key", "secret", "password", "pwd", "session"}
)

# 内容类型
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_TEXT = "text/plain"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"

# 内容协商类型
BODY_KIND_JSON = "json"
BODY_KIND_TEXT = "text"
BODY_KIND_FORM = "form"

# 各类型对应的响应 content-type 匹配规则
CONTENT_TYPE_PATTERNS = {
    BODY_KIND_JSON: (re.compile(r"^application/json\s*(;|$)", re.I), re.compile(r"\+json(\s*;|$)", re.I)),
    BODY_KIND_TEXT: (re.compile(r"^text/", re.I),),
    BODY_KIND_FORM: (re.compile(r"^application/x-www-form-urlencoded\s*(;|$)", re.I),),
}
