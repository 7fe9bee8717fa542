"""Provider 与模型配置。

本模块将“逻辑模型名”与“具体厂商模型名”解耦：

- 逻辑名（logical_name）：代码里使用的统一名称，只有 "chat" 与 "vision" 两个。
- provider_model：上游实际的模型 ID，例如 "openai/gpt-4o-mini"。

编排器只关心逻辑名，具体用哪个底层模型由这里集中配置，
真实 ID 可以被 Settings 中的 text_model / vision_model 覆盖。"""

from dataclasses import dataclass, replace
from typing import Any, Dict


CHAT_MODEL = "chat"
VISION_MODEL = "vision"


@dataclass(frozen=True)
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str
    max_tokens: int
    default_temperature: float
    supports_vision: bool = False


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]

    def model(self, logical_name: str) -> ModelConfig:
        try:
            return self.models[logical_name]
        except KeyError:
            raise KeyError(f"Unknown logical model: {logical_name!r}") from None


# OpenRouter 配置（OpenAI 兼容 chat/completions）
OPENROUTER_CONFIG = ProviderConfig(
    name="openrouter",
    base_url="https://openrouter.ai/api/v1",
    models={
        CHAT_MODEL: ModelConfig(
            logical_name=CHAT_MODEL,
            provider_model="deepseek/deepseek-r1-0528:free",
            max_tokens=1000,
            default_temperature=0.7,
        ),
        VISION_MODEL: ModelConfig(
            logical_name=VISION_MODEL,
            provider_model="openai/gpt-4o-mini",
            max_tokens=1000,
            default_temperature=0.7,
            supports_vision=True,
        ),
    },
)


def provider_config_from_settings(cfg: Any) -> ProviderConfig:
    """用 Settings 中的覆盖项生成实际生效的 ProviderConfig。

    只允许覆盖模型 id 与 base_url；temperature 和 max_tokens 固定取注册表中的值。
    """

    base = OPENROUTER_CONFIG
    overrides = {
        CHAT_MODEL: getattr(cfg, "text_model", None),
        VISION_MODEL: getattr(cfg, "vision_model", None),
    }
    models: Dict[str, ModelConfig] = {}
    for name, model_cfg in base.models.items():
        models[name] = replace(
            model_cfg,
            provider_model=overrides.get(name) or model_cfg.provider_model,
        )
    return ProviderConfig(
        name=base.name,
        base_url=getattr(cfg, "openrouter_base_url", None) or base.base_url,
        models=models,
    )
