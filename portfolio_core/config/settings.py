"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
优先级：构造参数 > 环境变量 > .env > config.yaml > secrets 目录。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("PORTFOLIO_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
        Path(__file__).resolve().parents[1] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class PortfolioSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 远端后端 ----
    api_base_url: str = Field(
        default="http://localhost:5000/api",
        description="作品集后端 REST 接口前缀",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="写操作等无显式期限请求的 HTTP 超时（秒）")
    poll_timeout: float = Field(default=0.5, gt=0.0, description="访客计数轮询的请求期限（秒）")
    first_load_timeout: float = Field(default=1.0, gt=0.0, description="首屏读取的请求期限（秒）")

    # ---- 本地 fallback ----
    storage_root: str = Field(default=".storage", description="存储根目录")
    visitor_baseline: int = Field(default=1025, ge=0, description="访客计数的初始种子值")
    visitor_poll_interval: float = Field(default=5.0, gt=0.0, description="访客计数轮询间隔（秒）")
    admin_password: str = Field(default="admin123", description="后端不可达时用于比对的管理口令")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # ---- Provider 相关配置 ----
    default_provider: str = Field(default="gemini", description="默认使用的 Provider 名称")
    gemini_api_key: Optional[str] = Field(default=None, description="Gemini API 密钥")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini API 基础URL",
    )
    resume_max_chars: int = Field(default=30000, ge=1, description="文本简历发送前的最大字符数")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("gemini_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @field_validator("api_base_url", "gemini_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

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


settings = PortfolioSettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = PortfolioSettings
