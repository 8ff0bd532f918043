"""系统提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取提示词文本：

- base_persona.md: 所有人设共享的基础提示词，内嵌完整的个人资料 JSON。
- mode_<mode>.md: 各人设模式的语气/侧重点。
- resume_reviewer.md / resume_review_task.md: 简历评审的角色前言与任务说明。
"""

import json
from pathlib import Path

from portfolio_core.domain.exceptions import ValidationError
from portfolio_core.domain.models import AI_MODES, ProfileData


PROMPTS_DIR = Path(__file__).resolve().parent


def load_prompt(name: str, locale: str = "en") -> str:
    """读取 prompts/<locale>/<name>.md 文本。"""

    fname = PROMPTS_DIR / locale / f"{name}.md"
    return fname.read_text(encoding="utf-8").strip()


def build_base_persona(profile: ProfileData, locale: str = "en") -> str:
    """基础人设提示词：模板占位符替换为资料字段，资料 JSON 原样嵌入。"""

    profile_json = json.dumps(profile.to_dict(), ensure_ascii=False, indent=2)
    # JSON 中含有花括号，不能用 str.format
    return (
        load_prompt("base_persona", locale)
        .replace("{name}", profile.name)
        .replace("{role}", profile.role)
        .replace("{profile_json}", profile_json)
    )


def load_mode_prompt(mode: str, locale: str = "en") -> str:
    if mode not in AI_MODES:
        raise ValidationError(code="INVALID_MODE", message=f"Unknown mode: {mode!r}")
    return load_prompt(f"mode_{mode}", locale)
