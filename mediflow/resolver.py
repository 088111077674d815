"""메세지의 런타임 타입으로 핸들러를 찾는 리졸버."""
from __future__ import annotations

from typing import Any, Optional, Sequence, Type

from mediflow.core import (
    AbstractHandlerRegistry,
    HandlerEntry,
    Notification,
    NotificationContract,
    Request,
    RequestContract,
)


class Resolver:
    """레지스트리에 핸들러 계약으로 질의하는 순수한 조회 객체.

    캐시를 가지지 않으며, 같은 계약은 항상 레지스트리가 돌려주는 그대로 리턴합니다.
    상위 타입에 등록된 핸들러로 대체(fallback)하지 않습니다.
    """

    def __init__(self, registry: AbstractHandlerRegistry):
        self.registry = registry

    def resolve_request_handler(
        self, request_type: Type[Request], response_type: Any
    ) -> Optional[HandlerEntry]:
        return self.registry.get_request_handler(
            RequestContract(request_type, response_type)
        )

    def resolve_notification_handlers(
        self, notification_type: Type[Notification]
    ) -> Sequence[HandlerEntry]:
        return self.registry.get_notification_handlers(
            NotificationContract(notification_type)
        )
