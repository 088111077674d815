"""협조적(cooperative) 취소 신호를 제공합니다.

`Mediator` 는 취소 토큰을 만들지도, 검사하지도 않고 핸들러까지 그대로 전달하기만
합니다. 토큰을 취소하는 쪽(호출자, 웹 요청, 테스트)은 `CancellationTokenSource`
를 만들어 `cancel()` 을 호출하고, 핸들러는 필요할 때 `is_cancelled` 나
`raise_if_cancelled()` 로 상태를 확인합니다.
"""
from __future__ import annotations

import threading
from typing import Callable, ClassVar, Optional

from mediflow.core.errors import OperationCancelled

CancelCallback = Callable[[], None]


class CancellationToken:
    """취소 여부를 읽기만 할 수 있는 토큰."""

    NONE: ClassVar[CancellationToken]
    """절대 취소되지 않는 기본 토큰."""

    def __init__(self, source: Optional[CancellationTokenSource] = None):
        self._source = source

    def __repr__(self):
        return f"CancellationToken(cancelled={self.is_cancelled})"

    @property
    def can_be_cancelled(self) -> bool:
        return self._source is not None

    @property
    def is_cancelled(self) -> bool:
        return self._source is not None and self._source.is_cancelled

    def raise_if_cancelled(self) -> None:
        """취소된 토큰이면 :class:`OperationCancelled` 를 발생시킵니다."""
        if self.is_cancelled:
            raise OperationCancelled()

    def register(self, callback: CancelCallback) -> None:
        """취소될 때 호출될 콜백을 등록합니다.

        이미 취소된 토큰이면 콜백을 바로 호출합니다.
        """
        if self._source is None:
            return
        self._source._add_callback(callback)


CancellationToken.NONE = CancellationToken()


class CancellationTokenSource:
    """:class:`CancellationToken` 을 발급하고 취소하는 객체."""

    def __init__(self):
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks = list[CancelCallback]()
        self.token = CancellationToken(self)

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """토큰을 취소 상태로 바꾸고 등록된 콜백을 등록 순서대로 호출합니다."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            callback()

    def _add_callback(self, callback: CancelCallback) -> None:
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return
        callback()
