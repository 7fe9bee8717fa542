"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于在会话层、API 层或 CLI 层做统一捕获与用户提示。

每个子类带有 error_kind，用于把异常折叠为 ExchangeResult.failure。
"""

from typing import Any


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "UPSTREAM_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、model 等）。
    """

    error_kind = "internal"

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)

    @property
    def detail(self) -> Any:
        """展示给调用方的错误详情，默认即 message。"""

        return self.message


class InputError(BusinessError):
    """调用方传入的会话历史或消息不合法，在任何网络调用之前拒绝。"""

    error_kind = "input"


class TransportError(BusinessError):
    """网络层错误，例如 DNS 失败、连接被拒、超时等。不做重试。"""

    error_kind = "transport"


class UpstreamError(BusinessError):
    """上游返回非 2xx 状态码。

    payload 原样保留上游响应体（能解析为 JSON 就是 dict/list，否则为原始文本），
    调用方可据此区分限流、鉴权失败、模型不可用等情况。
    """

    error_kind = "upstream"

    def __init__(self, code: str, message: str, http_status: int = 502, payload: Any = None, **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)
        self.payload = payload

    @property
    def detail(self) -> Any:
        return self.payload if self.payload is not None else self.message


class ContractViolationError(BusinessError):
    """上游返回 2xx 但响应体缺少预期结构（例如 choices 为空）。"""

    error_kind = "contract"


class ConfigurationError(BusinessError):
    """启动期必需的配置缺失（如 API 密钥），属于致命错误。"""

    error_kind = "configuration"

