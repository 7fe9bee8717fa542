"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
API 密钥只能来自外部配置，缺失时由 require_api_key 在启动期报错。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from simplo_core.domain.exceptions import ConfigurationError


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("SIMPLO_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if path in seen:
            continue
        seen.add(path)
        if not path.exists():
            continue
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
            continue
        if isinstance(data, dict):
            return data
        warnings.warn(f"Config file {path} is not a mapping, ignored")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API 密钥")
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenAI 兼容 chat/completions 接口的基础URL",
    )
    text_model: str = Field(
        default="deepseek/deepseek-r1-0528:free",
        description="纯文本会话使用的上游模型",
    )
    vision_model: str = Field(
        default="openai/gpt-4o-mini",
        description="会话中出现图片时使用的视觉模型",
    )
    http_timeout: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="HTTP 超时时间（秒），为空时使用 httpx 默认值",
    )
    app_referer: Optional[str] = Field(default=None, description="可选的 HTTP-Referer 归属头")
    app_title: Optional[str] = Field(default=None, description="可选的 X-Title 归属头")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否截断日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("openrouter_api_key")
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


def require_api_key(cfg: Any) -> str:
    """启动期检查：返回 API 密钥，缺失时抛出 ConfigurationError。"""

    key = getattr(cfg, "openrouter_api_key", None)
    if not key:
        raise ConfigurationError(
            code="MISSING_API_KEY",
            message="OPENROUTER_API_KEY environment variable is not set",
            http_status=500,
        )
    return key


settings = Settings()
