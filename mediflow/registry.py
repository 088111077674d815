"""핸들러 레지스트리.

메세지 타입별 핸들러 계약(contract)을 키로 핸들러 항목(:class:`HandlerEntry`)을
저장합니다. 각 항목은 등록 시점에 만들어진 호출 클로저를 가지고 있기 때문에
디스패처는 핸들러의 구체 타입을 몰라도 됩니다.

레지스트리는 애플리케이션 시작 시에 한 번 채워지고, :meth:`HandlerRegistry.freeze`
이후에는 읽기 전용으로 사용됩니다. ::

    registry = HandlerRegistry()

    @registry.on_request(CreateOrder)
    class CreateOrderHandler(AbstractRequestHandler[CreateOrder, OrderId]):
        async def handle(self, request, cancellation):
            ...

    @registry.on_notification(OrderCreated)
    async def audit(event: OrderCreated, cancellation: CancellationToken):
        ...
"""
from __future__ import annotations

import inspect
import threading
from collections import defaultdict
from typing import Any, Callable, Literal, Optional, Sequence, Type, TypeVar

from mediflow.core import (
    AbstractHandlerRegistry,
    AmbiguousRegistration,
    CancellationToken,
    HandlerContract,
    HandlerEntry,
    Lifetime,
    MediFlowError,
    Notification,
    NotificationContract,
    RegistryFrozen,
    Request,
    RequestContract,
    notification_contract,
    request_contract,
)
from mediflow.core._logging import get_logger

logger = get_logger("mediflow.registry")

RequestPolicy = Literal["unique", "first"]
REQUEST_POLICIES = ("unique", "first")

F = TypeVar("F", bound=Callable[..., Any])
HandlerProvider = Callable[[], Callable[..., Any]]


def handler_name(obj: Any) -> str:
    name = getattr(obj, "__qualname__", None) or type(obj).__qualname__
    module = getattr(obj, "__module__", None) or type(obj).__module__
    return f"{module}.{name}"


def _make_provider(
    handler: Any, factory: Optional[Callable[[], Any]], lifetime: Lifetime
) -> HandlerProvider:
    """핸들러의 호출 가능한 `handle` 을 돌려주는 함수를 만듭니다.

    - 클래스: 수명에 따라 한 번 또는 매번 인스턴스를 생성합니다.
    - `handle` 메소드가 있는 인스턴스: 싱글턴으로만 사용할 수 있습니다.
    - 일반 함수/코루틴 함수: 함수 자체가 핸들러입니다.
    - `factory`: 인자 없이 호출해서 핸들러 인스턴스를 만드는 함수입니다.
    """
    if factory is None:
        if isinstance(handler, type):
            if not callable(getattr(handler, "handle", None)):
                raise MediFlowError(f"{handler_name(handler)} is not a handler")
            factory = handler
        elif callable(getattr(handler, "handle", None)):
            if lifetime is Lifetime.TRANSIENT:
                raise MediFlowError(
                    f"{handler_name(handler)} is an instance, "
                    "transient lifetime needs a class or a factory"
                )
            bound = handler.handle
            return lambda: bound
        elif callable(handler):
            return lambda: handler
        else:
            raise MediFlowError(f"{handler!r} is not a handler")

    def build():
        obj = factory()
        handle = getattr(obj, "handle", None)
        if not callable(handle):
            raise MediFlowError(
                f"{handler_name(factory)} built {handler_name(obj)}, "
                "which is not a handler"
            )
        return handle

    if lifetime is Lifetime.TRANSIENT:
        return build

    lock = threading.Lock()
    instance: list[Any] = []

    def singleton():
        if not instance:
            with lock:
                if not instance:
                    instance.append(build())
        return instance[0]

    return singleton


def make_handler_entry(
    contract: HandlerContract,
    handler: Any = None,
    *,
    factory: Optional[Callable[[], Any]] = None,
    lifetime: Lifetime = Lifetime.SINGLETON,
) -> HandlerEntry:
    """핸들러를 타입이 지워진 :class:`HandlerEntry` 로 감쌉니다."""
    if (handler is None) == (factory is None):
        raise MediFlowError("exactly one of `handler` or `factory` should be given!")

    provider = _make_provider(handler, factory, Lifetime(lifetime))

    async def invoke(message: Any, cancellation: CancellationToken) -> Any:
        result = provider()(message, cancellation)
        if inspect.isawaitable(result):
            result = await result
        return result

    return HandlerEntry(
        contract=contract,
        name=handler_name(handler if factory is None else factory),
        invoke=invoke,
        lifetime=Lifetime(lifetime),
    )


class HandlerRegistry(AbstractHandlerRegistry):
    """기본 핸들러 레지스트리 구현.

    Params:
        - request_policy: 같은 요청 계약에 핸들러가 두 번 등록될 때의 정책.
          ``"unique"`` 는 :class:`AmbiguousRegistration` 에러를 발생시키고,
          ``"first"`` 는 먼저 등록된 핸들러를 유지하고 나중 것을 무시합니다.
    """

    def __init__(self, request_policy: RequestPolicy = "unique"):
        if request_policy not in REQUEST_POLICIES:
            raise MediFlowError(f"unknown request policy: {request_policy!r}")
        self.request_policy = request_policy
        self._requests: dict[RequestContract, HandlerEntry] = {}
        self._notifications = defaultdict[NotificationContract, list[HandlerEntry]](
            list
        )
        self._lock = threading.RLock()
        self._frozen = False

    def __repr__(self):
        return (
            f"HandlerRegistry[requests={len(self._requests)}, "
            f"notifications={len(self._notifications)}, frozen={self._frozen}]"
        )

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """이후의 등록을 막습니다. 여러 번 호출해도 안전합니다."""
        with self._lock:
            self._frozen = True

    def clear(self) -> None:
        """등록된 모든 핸들러를 지웁니다."""
        with self._lock:
            self._check_not_frozen()
            self._requests.clear()
            self._notifications.clear()

    def _check_not_frozen(self):
        if self._frozen:
            raise RegistryFrozen("registry is frozen, handlers can't be registered")

    def register_request_handler(
        self,
        request_type: Type[Request],
        handler: Any = None,
        *,
        factory: Optional[Callable[[], Any]] = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> HandlerEntry:
        """요청 타입에 핸들러를 등록합니다."""
        contract = request_contract(request_type)
        entry = make_handler_entry(
            contract, handler, factory=factory, lifetime=lifetime
        )

        with self._lock:
            self._check_not_frozen()
            existing = self._requests.get(contract)
            if existing:
                if self.request_policy == "unique":
                    raise AmbiguousRegistration(contract, existing.name, entry.name)
                logger.warning(
                    "Handler already exists for %s: %s, ignoring %s",
                    contract,
                    existing.name,
                    entry.name,
                )
                return existing
            self._requests[contract] = entry

        logger.debug("registered request handler %s for %s", entry.name, contract)
        return entry

    def register_notification_handler(
        self,
        notification_type: Type[Notification],
        handler: Any = None,
        *,
        factory: Optional[Callable[[], Any]] = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> HandlerEntry:
        """알림 타입에 핸들러를 추가합니다. 등록 순서가 실행 순서가 됩니다."""
        contract = notification_contract(notification_type)
        entry = make_handler_entry(
            contract, handler, factory=factory, lifetime=lifetime
        )

        with self._lock:
            self._check_not_frozen()
            self._notifications[contract].append(entry)

        logger.debug("registered notification handler %s for %s", entry.name, contract)
        return entry

    def on_request(
        self, request_type: Type[Request], lifetime: Lifetime = Lifetime.SINGLETON
    ) -> Callable[[F], F]:
        """요청 핸들러 데코레이터.

        함수나 핸들러 클래스를 레지스트리에 등록하고 그대로 리턴합니다.
        """

        def _wrapper(func: F) -> F:
            self.register_request_handler(request_type, func, lifetime=lifetime)
            return func

        return _wrapper

    def on_notification(
        self,
        notification_type: Type[Notification],
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> Callable[[F], F]:
        """알림 핸들러 데코레이터."""

        def _wrapper(func: F) -> F:
            self.register_notification_handler(
                notification_type, func, lifetime=lifetime
            )
            return func

        return _wrapper

    def get_request_handler(self, contract: RequestContract) -> Optional[HandlerEntry]:
        return self._requests.get(contract)

    def get_notification_handlers(
        self, contract: NotificationContract
    ) -> Sequence[HandlerEntry]:
        # 호출하는 쪽이 등록 중인 리스트를 보지 않도록 튜플로 복사합니다.
        with self._lock:
            return tuple(self._notifications.get(contract, ()))

    def contracts(self) -> dict[HandlerContract, tuple[str, ...]]:
        """등록된 계약과 핸들러 이름을 등록 순서대로 리턴합니다. (요청 먼저)"""
        with self._lock:
            result: dict[HandlerContract, tuple[str, ...]] = {
                contract: (entry.name,) for contract, entry in self._requests.items()
            }
            for contract, entries in self._notifications.items():
                result[contract] = tuple(e.name for e in entries)
        return result
