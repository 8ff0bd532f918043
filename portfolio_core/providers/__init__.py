"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供各厂商的具体实现 (如 gemini_client)。
"""

from typing import Dict, Optional, Type

from portfolio_core.config.settings import settings
from portfolio_core.providers.base import CompletionProvider
from portfolio_core.providers.gemini_client import GeminiClient
from portfolio_core.providers.registry import get_provider_config


_PROVIDER_CLASSES: Dict[str, Type[GeminiClient]] = {
    GeminiClient.name: GeminiClient,
}


def create_provider(name: Optional[str] = None) -> CompletionProvider:
    """根据名称创建 Provider 实例，默认取配置中的 provider。

    名称先经 registry 校验（不区分大小写），未知名称抛出 KeyError。
    """

    config = get_provider_config(name or settings.default_provider)
    return _PROVIDER_CLASSES[config.name](settings)
