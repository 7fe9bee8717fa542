"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供 OpenAI 兼容上游的具体实现 (openrouter_client)。
"""

from typing import Optional

from simplo_core.config.settings import settings, require_api_key
from simplo_core.providers.base import ProviderClient
from simplo_core.providers.openrouter_client import OpenRouterClient


def create_provider(cfg: Optional[object] = None) -> ProviderClient:
    """创建 Provider 实例；密钥缺失时在此处（启动期）抛出 ConfigurationError。"""

    cfg = cfg or settings
    api_key = require_api_key(cfg)
    return OpenRouterClient(cfg, api_key=api_key)
