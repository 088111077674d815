from __future__ import annotations

from typing import Any, Optional


class MediFlowError(Exception):
    """``MediFlow`` 와 관련된 모든 에러의 기본 클래스."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    ...


class MediFlowConfigError(MediFlowError):
    """설정 파일(`setup.cfg`)의 값이 잘못된 경우 발생하는 에러."""

    ...


class InvalidMessageType(MediFlowError):
    """`Request` 나 `Notification` 이 아닌 타입을 등록하거나 디스패치할 때 발생합니다."""

    ...


class HandlerNotFound(MediFlowError):
    """`send` 요청을 처리할 핸들러가 등록되어 있지 않을 때 발생합니다.

    Attributes:
        message_type: 요청 메세지의 런타임 타입.
        type_name: 요청 메세지 타입의 이름.
        contract: 조회에 사용된 핸들러 계약(contract) 값.
    """

    def __init__(self, message_type: type, contract: Optional[Any] = None):
        self.message_type = message_type
        self.type_name = message_type.__name__
        self.contract = contract
        super().__init__(f"Handler not found: {self.type_name}")


class AmbiguousRegistration(MediFlowError):
    """하나의 요청 계약에 두 번째 핸들러를 등록하려 할 때 발생합니다."""

    def __init__(self, contract: Any, existing: str, candidate: str):
        self.contract = contract
        self.existing = existing
        self.candidate = candidate
        super().__init__(
            f"Handler already exists for {contract}: {existing} (rejected: {candidate})"
        )


class RegistryFrozen(MediFlowError):
    """`freeze()` 이후에 핸들러를 등록하려 할 때 발생합니다."""

    ...


class OperationCancelled(MediFlowError):
    """취소 토큰이 취소된 상태에서 `raise_if_cancelled()` 를 호출하면 발생합니다."""

    def __init__(self, message: str = "Operation was cancelled"):
        super().__init__(message)
