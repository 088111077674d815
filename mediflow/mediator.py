"""메세지를 핸들러로 중계하는 디스패처(Mediator) 입니다.

주의:

    알림(`Notification`)은 등록된 순서대로 한 번에 하나의 핸들러만 실행됩니다.
    k번째 핸들러가 끝나기 전에는 k+1번째 핸들러를 시작하지 않으며, 핸들러 하나가
    실패하면 나머지 핸들러는 실행하지 않고 그 예외를 그대로 호출자에게 전달합니다.
    여러 핸들러의 부수 효과가 항상 같은 순서로 관찰되도록 하기 위한 것입니다.
"""
from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Optional, TypeVar

from mediflow.core import (
    AbstractHandlerRegistry,
    AbstractMediator,
    CancellationToken,
    HandlerNotFound,
    InvalidMessageType,
    MediFlowError,
    Notification,
    Request,
    request_contract,
)
from mediflow.core._logging import get_logger
from mediflow.resolver import Resolver

logger = get_logger("mediflow.mediator")

R = TypeVar("R")
T = TypeVar("T")


class Mediator(AbstractMediator):
    """`send` / `publish` 의 진입점.

    레지스트리는 생성자로 명시적으로 전달받으며, 디스패처 자체는 변경 가능한
    상태를 가지지 않으므로 여러 태스크나 스레드에서 동시에 사용해도 됩니다.

    Params:
        - registry: 핸들러 레지스트리.
        - freeze: ``True`` 이면 생성 즉시 :meth:`start` 를 호출합니다.
    """

    def __init__(self, registry: AbstractHandlerRegistry, freeze: bool = False):
        self.registry = registry
        self.resolver = Resolver(registry)
        if freeze:
            self.start()

    def __repr__(self):
        return f"Mediator[{self.registry!r}]"

    def start(self) -> None:
        """레지스트리를 읽기 전용으로 고정합니다.

        레지스트리가 `freeze()` 를 지원하지 않으면 아무것도 하지 않습니다.
        """
        freeze = getattr(self.registry, "freeze", None)
        if callable(freeze):
            freeze()

    async def send(
        self, request: Request[R], cancellation: Optional[CancellationToken] = None
    ) -> R:
        """요청을 담당 핸들러 하나에 보내고 그 결과를 리턴합니다.

        Raises:
            HandlerNotFound: 요청 타입에 등록된 핸들러가 없을 때.
            Exception: 핸들러가 발생시킨 예외는 감싸지 않고 그대로 전달합니다.
        """
        if not isinstance(request, Request):
            raise InvalidMessageType(f"{request!r} is not a Request")
        if cancellation is None:
            cancellation = CancellationToken.NONE

        contract = request_contract(type(request))
        handler = self.resolver.resolve_request_handler(
            contract.message_type, contract.response_type
        )
        if handler is None:
            raise HandlerNotFound(contract.message_type, contract)

        logger.debug("send %r -> %s", request, handler.name)
        try:
            return await handler.invoke(request, cancellation)
        except Exception:
            logger.exception("Exception handling request %r", request)
            raise

    async def publish(
        self,
        notification: Notification,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        """알림을 등록된 모든 핸들러에 순서대로 전달합니다.

        핸들러가 없으면 아무 일도 하지 않습니다. 처음 실패한 핸들러의 예외가
        그대로 전달되고, 그 뒤의 핸들러는 호출되지 않습니다.
        """
        if not isinstance(notification, Notification):
            raise InvalidMessageType(f"{notification!r} is not a Notification")
        if cancellation is None:
            cancellation = CancellationToken.NONE

        handlers = self.resolver.resolve_notification_handlers(type(notification))
        logger.debug("publish %r to %d handler(s)", notification, len(handlers))

        for handler in handlers:
            try:
                await handler.invoke(notification, cancellation)
            except Exception:
                logger.exception(
                    "Exception handling notification %r with %s, "
                    "skipping remaining handlers",
                    notification,
                    handler.name,
                )
                raise

    def send_sync(
        self, request: Request[R], cancellation: Optional[CancellationToken] = None
    ) -> R:
        """이벤트 루프 밖에서 :meth:`send` 를 실행합니다."""
        return self._run(self.send(request, cancellation))

    def publish_sync(
        self,
        notification: Notification,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        """이벤트 루프 밖에서 :meth:`publish` 를 실행합니다."""
        self._run(self.publish(notification, cancellation))

    def _run(self, coro: Coroutine[Any, Any, T]) -> T:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coro)

        coro.close()
        raise MediFlowError(
            "can't dispatch synchronously inside a running event loop, use `await`"
        )
