"""FastAPI 앱에서 `Mediator` 를 사용하기 위한 연동 모듈.

::

    app = FastAPI()
    install(app, mediator)

    @app.post("/orders", status_code=201)
    async def create_order(
        body: OrderSchema,
        mediator: AbstractMediator = Depends(get_mediator),
        cancellation: CancellationToken = Depends(request_cancellation),
    ):
        order_id = await mediator.send(CreateOrder(body.sku), cancellation)
        return {"order_id": order_id.value}
"""
from typing import Generator

from fastapi import FastAPI
from fastapi import Request as HTTPRequest
from fastapi.responses import JSONResponse

from mediflow.core import (
    AbstractMediator,
    CancellationToken,
    CancellationTokenSource,
    HandlerNotFound,
    MediFlowError,
)
from mediflow.core._logging import get_logger

logger = get_logger("mediflow.api")


def install(app: FastAPI, mediator: AbstractMediator) -> FastAPI:
    """`mediator` 를 FastAPI 앱에 연결합니다.

    `app.state.mediator` 에 저장하고, :class:`HandlerNotFound` 예외를
    ``501 Not Implemented`` 응답으로 바꾸는 예외 핸들러를 등록합니다.
    """
    app.state.mediator = mediator
    app.add_exception_handler(HandlerNotFound, handler_not_found)
    return app


async def handler_not_found(request: HTTPRequest, exc: HandlerNotFound) -> JSONResponse:
    logger.error("%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=501,
        content={"error": "HandlerNotFound", "type": exc.type_name, "detail": exc.message},
    )


def get_mediator(request: HTTPRequest) -> AbstractMediator:
    """FastAPI 의존성: 앱에 설치된 `Mediator` 를 리턴합니다."""
    mediator = getattr(request.app.state, "mediator", None)
    if mediator is None:
        raise MediFlowError("mediator is not installed, call `install(app, mediator)`")
    return mediator


def request_cancellation() -> Generator[CancellationToken, None, None]:
    """FastAPI 의존성: HTTP 요청마다 새 취소 토큰을 만들고, 요청이 끝나면 취소합니다."""
    source = CancellationTokenSource()
    try:
        yield source.token
    finally:
        source.cancel()
