# pylint: disable=redefined-outer-name
"""pytest 에서 사용될 전역 Fixture들을 정의합니다."""
from __future__ import annotations

import pytest

from mediflow import HandlerRegistry, MediFlowConfig, Mediator
from mediflow.test.unit import CallLog
from tests.app.bootstrap import App, bootstrap


@pytest.fixture
def registry() -> HandlerRegistry:
    """테스트마다 새로 만들어지는 빈 레지스트리."""
    return HandlerRegistry()


@pytest.fixture
def mediator(registry: HandlerRegistry) -> Mediator:
    """`registry` 를 사용하는 `Mediator`. 레지스트리는 고정하지 않습니다."""
    return Mediator(registry)


@pytest.fixture
def call_log() -> CallLog:
    return CallLog()


@pytest.fixture
def app() -> App:
    """주문 예제 앱. 레지스트리는 고정(freeze)된 상태입니다."""
    return bootstrap(MediFlowConfig(log_level="DEBUG"))
