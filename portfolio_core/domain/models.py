"""统一的领域数据模型。

本模块定义了作品集站点在数据访问层与对话层之间共享的标准数据结构：

- Project / Experience / SkillCategory / ProfileData: 作品集展示数据。
- ChatMessage / ChatSession: 人设对话相关的消息与会话。
- FileInput / ContactAck: 简历评审输入与联系表单回执。
- ContentPart / Turn / CompletionRequest / CompletionResult:
  发给底层 LLM Provider 的统一请求与响应结构。

远端 REST 接口与本地 fallback 存储都使用 JSON，
所以每个实体都提供 from_dict / to_dict 做双向转换。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Mapping, TYPE_CHECKING

if TYPE_CHECKING:
    # 仅在类型检查时导入，避免运行时循环依赖
    from portfolio_core.providers.base import ConversationHandle


# 人设模式（与前端模式切换按钮一一对应）
AIMode = Literal["developer", "designer", "mentor"]
AI_MODES = ("developer", "designer", "mentor")

# 消息角色：Gemini 使用 "model" 而不是 "assistant"
Role = Literal["user", "model"]


@dataclass
class Project:
    """作品集中的一个项目。

    id 由创建它的存储（远端或本地 fallback）分配。
    """

    id: str
    title: str
    description: str
    tags: List[str] = field(default_factory=list)
    date: str = ""
    link: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "",
            description=data.get("description") or "",
            tags=list(data.get("tags") or []),
            date=data.get("date") or "",
            link=data.get("link"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "date": self.date,
        }
        if self.link is not None:
            payload["link"] = self.link
        return payload


@dataclass
class Experience:
    company: str
    role: str
    period: str
    description: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Experience":
        return cls(
            company=data.get("company") or "",
            role=data.get("role") or "",
            period=data.get("period") or "",
            description=list(data.get("description") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "company": self.company,
            "role": self.role,
            "period": self.period,
            "description": list(self.description),
        }


@dataclass
class SkillCategory:
    name: str
    skills: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SkillCategory":
        return cls(name=data.get("name") or "", skills=list(data.get("skills") or []))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "skills": list(self.skills)}


@dataclass
class ContactInfo:
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    github: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContactInfo":
        return cls(**{k: str(data.get(k) or "") for k in ("email", "phone", "location", "linkedin", "github")})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "linkedin": self.linkedin,
            "github": self.github,
        }


@dataclass
class Education:
    institution: str
    degree: str
    year: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Education":
        return cls(
            institution=data.get("institution") or "",
            degree=data.get("degree") or "",
            year=str(data.get("year") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"institution": self.institution, "degree": self.degree, "year": self.year}


@dataclass
class ProfileData:
    """静态个人资料（只读参考数据）。

    既是本地 fallback 存储的种子数据，也会被完整序列化后
    嵌入到人设对话的系统提示词中。
    """

    name: str
    role: str
    contact: ContactInfo
    education: List[Education] = field(default_factory=list)
    experience: List[Experience] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    skills: List[SkillCategory] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProfileData":
        return cls(
            name=data.get("name") or "",
            role=data.get("role") or "",
            contact=ContactInfo.from_dict(data.get("contact") or {}),
            education=[Education.from_dict(e) for e in data.get("education") or []],
            experience=[Experience.from_dict(e) for e in data.get("experience") or []],
            projects=[Project.from_dict(p) for p in data.get("projects") or []],
            skills=[SkillCategory.from_dict(s) for s in data.get("skills") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "role": self.role,
            "contact": self.contact.to_dict(),
            "education": [e.to_dict() for e in self.education],
            "experience": [e.to_dict() for e in self.experience],
            "projects": [p.to_dict() for p in self.projects],
            "skills": [s.to_dict() for s in self.skills],
        }


@dataclass(frozen=True)
class ChatMessage:
    """一条展示在对话窗口中的消息，追加后不可修改。

    - mode: 仅 model 消息记录生成它的人设模式。
    消息列表由调用方（UI）持有，ChatSessionManager 不保存它。
    """

    id: str
    role: Role
    text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    mode: Optional[AIMode] = None


@dataclass
class ChatSession:
    """一个活跃的人设会话。

    handle 是 Provider 返回的不透明会话句柄，内部累积多轮历史；
    切换 mode 时会整体替换为新的 ChatSession。
    """

    mode: AIMode
    handle: "ConversationHandle"
    system_instruction: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class FileInput:
    """二进制简历输入：MIME 类型 + base64 编码内容。"""

    mime_type: str
    data: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileInput":
        return cls(mime_type=str(data["mimeType"]), data=str(data["data"]))

    def to_dict(self) -> Dict[str, str]:
        return {"mimeType": self.mime_type, "data": self.data}


@dataclass
class ContactAck:
    success: bool
    message: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContactAck":
        return cls(success=bool(data.get("success")), message=data.get("message") or "")


@dataclass
class ContentPart:
    """多模态内容片段：纯文本或内联二进制（二选一）。"""

    text: Optional[str] = None
    mime_type: Optional[str] = None
    data: Optional[str] = None

    @property
    def is_inline(self) -> bool:
        return self.mime_type is not None


@dataclass
class Turn:
    """一轮对话内容（Gemini contents 数组中的一项）。"""

    role: Role
    parts: List[ContentPart]


@dataclass
class CompletionRequest:
    """一次完整的补全请求。

    Provider 适配层负责把本结构转换成各家 API 的 JSON 请求体。
    """

    model: str  # 逻辑模型名，如 "persona-chat"（再由 registry 映射为真实模型名）
    system_instruction: str
    contents: List[Turn]
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None


@dataclass
class CompletionUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class CompletionResult:
    """一次补全调用的最终结果。

    - text: 所有候选片段拼接后的文本（可能为空字符串）。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    provider: str
    model: str
    text: str
    usage: Optional[CompletionUsage] = None
    raw: Optional[dict] = None
