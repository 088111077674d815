from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Generic,
    Optional,
    Protocol,
    Sequence,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from mediflow.core.cancel import CancellationToken
from mediflow.core.errors import InvalidMessageType

R = TypeVar("R")


class Request(Generic[R]):
    """Request 객체.

    응답 타입 ``R`` 을 가지는 메세지입니다. 요청 하나는 정확히 하나의 핸들러가
    처리하고, 핸들러의 결과가 호출자에게 그대로 리턴됩니다. ::

        @dataclass
        class CreateOrder(Request[OrderId]):
            sku: str

    응답 타입은 클래스가 정의될 때 한 번만 결정되어 ``__response_type__`` 에
    저장되며, 다시 파라메터를 지정하지 않은 하위 클래스는 부모의 응답 타입을
    그대로 물려받습니다.
    """

    __response_type__: ClassVar[Any]

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        # `__orig_bases__` 는 상속되므로 자기 자신의 것만 봐야 합니다.
        for base in cls.__dict__.get("__orig_bases__", ()):
            origin = get_origin(base)
            if not (isinstance(origin, type) and issubclass(origin, Request)):
                continue
            args = get_args(base)
            if args and not isinstance(args[0], TypeVar):
                cls.__response_type__ = args[0]
                break


class Notification:
    """Notification 객체.

    응답이 없는 메세지입니다. 같은 타입의 알림에 대해 0개 이상의 핸들러가
    등록 순서대로 하나씩 실행됩니다. 보내는 쪽은 누가 알림을 받는지 알지 못합니다.
    """


Message = Union[Request, Notification]

TRequest = TypeVar("TRequest", bound=Request, contravariant=True)
TResponse = TypeVar("TResponse", covariant=True)
TNotification = TypeVar("TNotification", bound=Notification, contravariant=True)


def type_name(t: Any) -> str:
    return getattr(t, "__name__", None) or repr(t)


def response_type_of(request_type: Type[Request]) -> Any:
    """요청 타입에 선언된 응답 타입을 리턴합니다.

    메세지의 속성 이름은 모두 도메인 데이터이므로 응답 타입은
    ``__response_type__`` 에서만 읽습니다.
    """
    try:
        return request_type.__response_type__
    except AttributeError:
        pass
    name = type_name(request_type)
    raise InvalidMessageType(
        f"{name} does not declare a response type, "
        f"use `class {name}(Request[ResponseType])`"
    )


@dataclass(frozen=True)
class RequestContract:
    """요청 핸들러를 찾기 위한 키. (메세지 런타임 타입, 응답 타입)"""

    message_type: Type[Request]
    response_type: Any

    def __str__(self):
        return f"{type_name(self.message_type)} -> {type_name(self.response_type)}"


@dataclass(frozen=True)
class NotificationContract:
    """알림 핸들러 목록을 찾기 위한 키. (메세지 런타임 타입)"""

    message_type: Type[Notification]

    def __str__(self):
        return type_name(self.message_type)


HandlerContract = Union[RequestContract, NotificationContract]


def request_contract(request_type: Type[Request]) -> RequestContract:
    """요청 타입으로부터 핸들러 계약을 만듭니다.

    등록할 때와 디스패치할 때 모두 이 함수를 사용해야 같은 키가 만들어집니다.
    """
    if not (isinstance(request_type, type) and issubclass(request_type, Request)):
        raise InvalidMessageType(f"{request_type!r} is not a Request type")
    return RequestContract(request_type, response_type_of(request_type))


def notification_contract(
    notification_type: Type[Notification],
) -> NotificationContract:
    """알림 타입으로부터 핸들러 계약을 만듭니다."""
    if not (
        isinstance(notification_type, type)
        and issubclass(notification_type, Notification)
    ):
        raise InvalidMessageType(f"{notification_type!r} is not a Notification type")
    return NotificationContract(notification_type)


class AbstractRequestHandler(Generic[TRequest, TResponse], abc.ABC):
    """요청 핸들러의 추상 인터페이스.

    `handle` 은 코루틴 함수여도 되고 일반 함수여도 됩니다.
    """

    @abc.abstractmethod
    def handle(
        self, request: TRequest, cancellation: CancellationToken
    ) -> Union[TResponse, Awaitable[TResponse]]:
        raise NotImplementedError


class AbstractNotificationHandler(Generic[TNotification], abc.ABC):
    """알림 핸들러의 추상 인터페이스."""

    @abc.abstractmethod
    def handle(
        self, notification: TNotification, cancellation: CancellationToken
    ) -> Optional[Awaitable[None]]:
        raise NotImplementedError


class Lifetime(str, enum.Enum):
    """핸들러 객체의 수명."""

    SINGLETON = "singleton"
    """처음 사용할 때 한 번 생성하고 계속 재사용합니다."""
    TRANSIENT = "transient"
    """호출할 때마다 새로 생성합니다."""


Invoker = Callable[[Any, CancellationToken], Awaitable[Any]]


@dataclass(frozen=True)
class HandlerEntry:
    """레지스트리에 저장되는 타입이 지워진(type-erased) 핸들러 항목.

    ``invoke`` 는 등록할 때 만들어진 클로저로, 실제 핸들러를 얻어와서
    ``(message, cancellation)`` 으로 호출하는 방법을 이미 알고 있습니다.
    """

    contract: HandlerContract
    name: str
    invoke: Invoker = field(repr=False, compare=False)
    lifetime: Lifetime = Lifetime.SINGLETON


class AbstractHandlerRegistry(Protocol):
    """디스패처가 사용하는 최소한의 레지스트리 기능."""

    def get_request_handler(self, contract: RequestContract) -> Optional[HandlerEntry]:
        ...

    def get_notification_handlers(
        self, contract: NotificationContract
    ) -> Sequence[HandlerEntry]:
        ...


class AbstractMediator(Protocol):
    async def send(
        self, request: Request[R], cancellation: Optional[CancellationToken] = None
    ) -> R:
        ...

    async def publish(
        self,
        notification: Notification,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        ...
