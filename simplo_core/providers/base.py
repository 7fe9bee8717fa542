"""Provider 抽象接口。

编排器不直接依赖具体厂商的 HTTP 细节，而是依赖此协议：

- 每个上游实现一个 ProviderClient（如 OpenRouterClient）。
- 负责：发送 UpstreamRequest，校验响应并解析为 ChatCompletion，
  失败时抛出已分类的 BusinessError 子类。
"""

from typing import Protocol

from simplo_core.domain.models import ChatCompletion, UpstreamRequest


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - chat(req): 执行一次非流式调用，返回统一的 ChatCompletion。
    """

    name: str

    def chat(self, req: UpstreamRequest) -> ChatCompletion:
        ...
