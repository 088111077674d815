"""기본 환경 설정."""

from __future__ import annotations

import logging
from configparser import ConfigParser
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

from mediflow.core import MediFlowConfigError
from mediflow.core._logging import set_log_level
from mediflow.mediator import Mediator
from mediflow.registry import REQUEST_POLICIES, HandlerRegistry

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
TRUE_VALUES = ("1", "yes", "true", "on")
FALSE_VALUES = ("0", "no", "false", "off")


def _to_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise MediFlowConfigError(f"invalid boolean value for {name}: {value!r}")


def load_setupcfg(path: Path) -> Optional[dict[str, str]]:
    """`path` 에 있는 `setup.cfg` 파일의 ``[mediflow]`` 섹션을 읽습니다."""
    if (path / "setup.cfg").exists():
        config = ConfigParser()
        config.read(path / "setup.cfg", encoding="utf8")
        if "mediflow" in config:
            return dict(config["mediflow"])
    return None


@dataclass
class MediFlowConfig:
    """MediFlow 설정."""

    name: str = "mediflow"
    log_level: str = "INFO"
    request_policy: str = "unique"
    """같은 요청 타입에 핸들러가 중복 등록될 때의 정책. (``unique`` | ``first``)"""
    freeze_on_start: bool = True
    """`Mediator` 생성 시 레지스트리를 읽기 전용으로 고정할지 여부."""
    handlers: Optional[str] = None
    """``module:attr`` 형식의 기본 레지스트리 위치. (`mediflow handlers` 명령에서 사용)"""
    is_implicit: bool = True
    """setup.cfg 없이 기본값으로 만들어진 설정인지 여부."""

    def __post_init__(self):
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise MediFlowConfigError(f"invalid log_level: {self.log_level!r}")
        if self.request_policy not in REQUEST_POLICIES:
            raise MediFlowConfigError(
                f"invalid request_policy: {self.request_policy!r}, "
                f"should be one of {REQUEST_POLICIES}"
            )
        self.freeze_on_start = _to_bool("freeze_on_start", self.freeze_on_start)

    @staticmethod
    def load_from_config(path: Path = Path(".")) -> MediFlowConfig:
        """`setup.cfg` 의 ``[mediflow]`` 섹션에서 설정을 읽습니다.

        섹션이 없으면 기본값을 사용합니다. 예::

            [mediflow]
            log_level = DEBUG
            request_policy = first
            handlers = myapp.handlers:registry
        """
        section = load_setupcfg(path)
        if section is None:
            return MediFlowConfig(name=path.absolute().name)

        known = {f.name for f in fields(MediFlowConfig)} - {"is_implicit"}
        unknown = set(section) - known
        if unknown:
            raise MediFlowConfigError(
                f"unknown option(s) in [mediflow]: {', '.join(sorted(unknown))}"
            )

        section.setdefault("name", path.absolute().name)
        return MediFlowConfig(**section, is_implicit=False)  # type: ignore

    @property
    def log_level_no(self) -> int:
        return logging.getLevelName(self.log_level)

    def create_registry(self) -> HandlerRegistry:
        """설정된 정책으로 새 레지스트리를 만듭니다."""
        return HandlerRegistry(request_policy=self.request_policy)  # type: ignore

    def create_mediator(self, registry: HandlerRegistry) -> Mediator:
        """로그 레벨을 적용하고 `registry` 를 사용하는 `Mediator` 를 만듭니다."""
        set_log_level(self.log_level)
        return Mediator(registry, freeze=self.freeze_on_start)
