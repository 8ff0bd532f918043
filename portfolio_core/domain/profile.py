"""静态个人资料加载。

资料以 YAML 形式随包分发（portfolio_core/data/profile.yaml），
只读，不会被数据访问层修改。
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml

from portfolio_core.domain.exceptions import ValidationError
from portfolio_core.domain.models import ProfileData


DATA_DIR = Path(__file__).resolve().parents[1] / "data"
PROFILE_FILE = DATA_DIR / "profile.yaml"


def load_profile(path: Optional[str | Path] = None) -> ProfileData:
    """读取 YAML 资料文件并转换为 ProfileData。"""

    target = Path(path) if path else PROFILE_FILE
    try:
        data = yaml.safe_load(target.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ValidationError(code="PROFILE_READ_ERROR", message=str(e))
    if not isinstance(data, dict):
        raise ValidationError(code="PROFILE_READ_ERROR", message=f"{target} is not a mapping")
    return ProfileData.from_dict(data)


@lru_cache(maxsize=1)
def default_profile() -> ProfileData:
    return load_profile()
