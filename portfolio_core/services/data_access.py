"""双路径数据访问层。

每个操作都遵循同一策略：先尝试远端后端，失败（Unreachable）后把同一操作
应用到本地 fallback 存储并返回本地合成的结果。远端返回 2xx 但响应体结构不符时
同样视为不可达。两边之间不做任何对账，同一客户端可以逐次调用地在远端与本地
之间切换，因此两份数据可能永久分叉。
"""

import hmac
import time
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar, Union

from portfolio_core.config.settings import settings
from portfolio_core.domain.exceptions import NotFoundError, Unreachable
from portfolio_core.domain.models import ContactAck, Experience, ProfileData, Project, SkillCategory
from portfolio_core.domain.profile import default_profile
from portfolio_core.infrastructure.http.remote_client import BoundedRemoteClient
from portfolio_core.infrastructure.logging.logger import logger
from portfolio_core.infrastructure.storage.fallback_store import (
    PROJECTS_KEY,
    VISITORS_KEY,
    JsonFallbackStore,
)


SIMULATED_CONTACT_MESSAGE = "Message sent (simulated)! Backend not detected."

ProjectDraft = Union[Project, Mapping[str, Any]]

T = TypeVar("T")


class DataAccessFacade:
    def __init__(
        self,
        client: Optional[BoundedRemoteClient] = None,
        store: Optional[JsonFallbackStore] = None,
        profile: Optional[ProfileData] = None,
        admin_password: Optional[str] = None,
        visitor_baseline: Optional[int] = None,
        poll_deadline: Optional[float] = None,
        first_load_deadline: Optional[float] = None,
    ):
        self._client = client or BoundedRemoteClient()
        self._store = store or JsonFallbackStore()
        self._profile = profile or default_profile()
        self._admin_password = admin_password if admin_password is not None else settings.admin_password
        self._visitor_baseline = visitor_baseline if visitor_baseline is not None else settings.visitor_baseline
        self._poll_deadline = poll_deadline if poll_deadline is not None else settings.poll_timeout
        self._first_load_deadline = (
            first_load_deadline if first_load_deadline is not None else settings.first_load_timeout
        )
        self._id_lock = threading.Lock()
        self._last_id = 0

    # ---- 读取 ------------------------------------------------------

    def fetch_projects(self) -> List[Project]:
        try:
            return self._remote(
                "/projects",
                lambda data: [Project.from_dict(p) for p in data],
                timeout=self._first_load_deadline,
            )
        except Unreachable:
            stored = self._store.get(PROJECTS_KEY, self._project_seed())
            return [Project.from_dict(p) for p in stored]

    def fetch_experience(self) -> List[Experience]:
        try:
            return self._remote("/experience", lambda data: [Experience.from_dict(e) for e in data])
        except Unreachable:
            # 静态数据直接返回，不写入本地存储
            return [Experience.from_dict(e.to_dict()) for e in self._profile.experience]

    def fetch_skills(self) -> List[SkillCategory]:
        try:
            return self._remote("/skills", lambda data: [SkillCategory.from_dict(s) for s in data])
        except Unreachable:
            return [SkillCategory.from_dict(s.to_dict()) for s in self._profile.skills]

    def fetch_profile(self) -> ProfileData:
        try:
            return self._remote("/profile", ProfileData.from_dict)
        except Unreachable:
            return ProfileData.from_dict(self._profile.to_dict())

    # ---- 访客计数 --------------------------------------------------

    def fetch_visitor_count(self) -> int:
        try:
            return self._remote("/visitors", _count_of, timeout=self._poll_deadline)
        except Unreachable:
            return int(self._store.get(VISITORS_KEY, self._visitor_baseline))

    def increment_visitor_count(self) -> int:
        """访客数 +1，返回成功路径上的自增后数值。"""
        try:
            return self._remote("/visitors", _count_of, method="POST")
        except Unreachable:
            def bump(current):
                new_value = int(current) + 1
                return new_value, new_value

            return self._store.update(VISITORS_KEY, self._visitor_baseline, bump)

    # ---- 联系表单 --------------------------------------------------

    def submit_contact_form(self, name: str, email: str, message: str) -> ContactAck:
        """提交联系表单。

        字段校验由远端负责。后端不可达时不发送任何内容，直接伪造一个成功回执，
        调用方无法区分“已送达”和“已接受但无法送达”。
        """
        try:
            return self._remote(
                "/contact",
                ContactAck.from_dict,
                method="POST",
                body={"name": name, "email": email, "message": message},
            )
        except Unreachable:
            logger.warning("contact.simulated", extra={"extra": {"email": email}})
            return ContactAck(success=True, message=SIMULATED_CONTACT_MESSAGE)

    # ---- 管理 ------------------------------------------------------

    def login_admin(self, password: str) -> bool:
        try:
            return self._remote(
                "/admin/login",
                lambda data: bool(data.get("success")),
                method="POST",
                body={"password": password},
            )
        except Unreachable as e:
            if e.http_status == 401:
                # 后端可达并明确拒绝，不再本地比对
                return False
            return hmac.compare_digest(password.encode("utf-8"), self._admin_password.encode("utf-8"))

    def create_project(self, draft: ProjectDraft) -> Project:
        payload = _draft_payload(draft)
        try:
            return self._remote("/projects", _project_of, method="POST", body=payload)
        except Unreachable:
            record = Project.from_dict({**payload, "id": self._next_local_id()})

            def prepend(projects):
                return [record.to_dict(), *projects], record

            created = self._store.update(PROJECTS_KEY, self._project_seed(), prepend)
            logger.info("projects.created_locally", extra={"extra": {"project_id": created.id}})
            return created

    def update_project(self, project_id: str, patch: Mapping[str, Any]) -> Project:
        """更新项目。本地找不到目标时抛出 NotFoundError，存储保持不变。"""
        body = dict(patch)
        try:
            return self._remote(f"/projects/{project_id}", _project_of, method="PUT", body=body)
        except Unreachable:
            changes = {k: v for k, v in body.items() if k != "id"}

            def merge(projects):
                for index, item in enumerate(projects):
                    if str(item.get("id")) == project_id:
                        merged = Project.from_dict({**item, **changes})
                        projects[index] = merged.to_dict()
                        return projects, merged
                raise NotFoundError(code="PROJECT_NOT_FOUND", message=f"Project not found: {project_id}")

            return self._store.update(PROJECTS_KEY, self._project_seed(), merge)

    def delete_project(self, project_id: str) -> bool:
        """删除项目；本地路径下即使没有匹配记录也返回 True。"""
        try:
            self._client.request(f"/projects/{project_id}", method="DELETE")
            return True
        except Unreachable:
            def remove(projects):
                return [p for p in projects if str(p.get("id")) != project_id], True

            return self._store.update(PROJECTS_KEY, self._project_seed(), remove)

    # ---- helpers -------------------------------------------------

    def _remote(
        self,
        path: str,
        parse: Callable[[Any], T],
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """请求远端并解析响应体；2xx 但结构不符时抛出 Unreachable(BAD_BODY)。"""
        data = self._client.request(path, method=method, body=body, timeout=timeout)
        try:
            return parse(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(
                "remote.unexpected_body",
                extra={"extra": {"method": method, "path": path, "error": repr(e)}},
            )
            raise Unreachable(code="BAD_BODY", message=f"Unexpected response body: {e!r}", body=data, path=path)

    def _project_seed(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self._profile.projects]

    def _next_local_id(self) -> str:
        # 毫秒时间戳；同一毫秒内连续创建时顺延，保证单调递增
        with self._id_lock:
            candidate = time.time_ns() // 1_000_000
            if candidate <= self._last_id:
                candidate = self._last_id + 1
            self._last_id = candidate
            return str(candidate)


def _count_of(data: Mapping[str, Any]) -> int:
    return int(data["count"])


def _project_of(data: Mapping[str, Any]) -> Project:
    return Project.from_dict(data["project"])


def _draft_payload(draft: ProjectDraft) -> Dict[str, Any]:
    payload = draft.to_dict() if isinstance(draft, Project) else dict(draft)
    payload.pop("id", None)
    return payload
