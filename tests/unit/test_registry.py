"""핸들러 레지스트리 단위 테스트."""
import asyncio
import logging

import pytest

from mediflow import (
    AbstractRequestHandler,
    AmbiguousRegistration,
    CancellationToken,
    HandlerRegistry,
    InvalidMessageType,
    Lifetime,
    MediFlowError,
    RegistryFrozen,
)
from mediflow.core import NotificationContract, request_contract
from mediflow.registry import make_handler_entry
from mediflow.test.unit import RecordingHandler
from tests.app.domain.models import OrderId
from tests.app.domain.notifications import OrderCreated
from tests.app.domain.requests import CreateOrderRequest, GetOrder

NONE = CancellationToken.NONE


class CountingHandler(AbstractRequestHandler[CreateOrderRequest, OrderId]):
    created = 0

    def __init__(self):
        CountingHandler.created += 1
        self.calls = 0

    def handle(self, request, cancellation):
        self.calls += 1
        return OrderId(f"{id(self)}:{self.calls}")


@pytest.fixture(autouse=True)
def reset_counter():
    CountingHandler.created = 0


def invoke(registry: HandlerRegistry, request):
    entry = registry.get_request_handler(request_contract(type(request)))
    assert entry is not None
    return asyncio.run(entry.invoke(request, NONE))


class TestRequestHandlers:
    def test_lookup_by_contract(self, registry: HandlerRegistry):
        handler = RecordingHandler(result=OrderId("1"))
        entry = registry.register_request_handler(CreateOrderRequest, handler)

        assert registry.get_request_handler(request_contract(CreateOrderRequest)) is entry
        assert registry.get_request_handler(request_contract(GetOrder)) is None

    def test_unique_policy_rejects_second_handler(self, registry: HandlerRegistry):
        registry.register_request_handler(CreateOrderRequest, RecordingHandler())

        with pytest.raises(AmbiguousRegistration) as e:
            registry.register_request_handler(CreateOrderRequest, CountingHandler)

        assert e.value.contract == request_contract(CreateOrderRequest)
        assert "CountingHandler" in e.value.message

    def test_first_policy_keeps_first_handler(self, caplog):
        registry = HandlerRegistry(request_policy="first")
        first = registry.register_request_handler(
            CreateOrderRequest, RecordingHandler(result=OrderId("first"))
        )
        with caplog.at_level(logging.WARNING, logger="mediflow.registry"):
            kept = registry.register_request_handler(
                CreateOrderRequest, RecordingHandler(result=OrderId("second"))
            )

        assert kept is first
        assert invoke(registry, CreateOrderRequest("A1")) == OrderId("first")
        assert "Handler already exists" in caplog.text

    def test_unknown_policy(self):
        with pytest.raises(MediFlowError, match="unknown request policy"):
            HandlerRegistry(request_policy="last")  # type: ignore

    def test_rejects_non_request_type(self, registry: HandlerRegistry):
        with pytest.raises(InvalidMessageType):
            registry.register_request_handler(OrderCreated, RecordingHandler())  # type: ignore


class TestLifetimes:
    def test_singleton_class_is_built_once_lazily(self, registry: HandlerRegistry):
        registry.register_request_handler(CreateOrderRequest, CountingHandler)
        assert CountingHandler.created == 0

        r1 = invoke(registry, CreateOrderRequest("A1"))
        r2 = invoke(registry, CreateOrderRequest("A1"))

        assert CountingHandler.created == 1
        assert r1.value.split(":")[0] == r2.value.split(":")[0]
        assert r2.value.endswith(":2")

    def test_transient_class_is_built_per_call(self, registry: HandlerRegistry):
        registry.register_request_handler(
            CreateOrderRequest, CountingHandler, lifetime=Lifetime.TRANSIENT
        )

        invoke(registry, CreateOrderRequest("A1"))
        result = invoke(registry, CreateOrderRequest("A1"))

        assert CountingHandler.created == 2
        assert result.value.endswith(":1")

    def test_factory(self, registry: HandlerRegistry):
        built = []

        def factory():
            handler = RecordingHandler(result=OrderId("f"))
            built.append(handler)
            return handler

        registry.register_request_handler(
            CreateOrderRequest, factory=factory, lifetime="transient"  # type: ignore
        )
        invoke(registry, CreateOrderRequest("A1"))
        invoke(registry, CreateOrderRequest("A2"))

        assert [h.call_count for h in built] == [1, 1]

    def test_instance_cannot_be_transient(self, registry: HandlerRegistry):
        with pytest.raises(MediFlowError, match="transient lifetime"):
            registry.register_request_handler(
                CreateOrderRequest, RecordingHandler(), lifetime=Lifetime.TRANSIENT
            )

    def test_plain_function_handler(self, registry: HandlerRegistry):
        def create(request: CreateOrderRequest, cancellation: CancellationToken):
            return OrderId(request.sku)

        entry = registry.register_request_handler(CreateOrderRequest, create)

        assert entry.name.endswith("create")
        assert invoke(registry, CreateOrderRequest("A1")) == OrderId("A1")

    def test_handler_or_factory_required(self):
        contract = request_contract(CreateOrderRequest)
        with pytest.raises(MediFlowError):
            make_handler_entry(contract)
        with pytest.raises(MediFlowError):
            make_handler_entry(contract, CountingHandler, factory=CountingHandler)

    def test_not_a_handler(self, registry: HandlerRegistry):
        with pytest.raises(MediFlowError, match="is not a handler"):
            registry.register_request_handler(CreateOrderRequest, 42)

    def test_class_without_handle_is_rejected(self, registry: HandlerRegistry):
        class NoHandle:
            def run(self, request, cancellation):
                ...

        with pytest.raises(MediFlowError, match="NoHandle is not a handler"):
            registry.register_request_handler(CreateOrderRequest, NoHandle)
        with pytest.raises(MediFlowError, match="is not a handler"):
            registry.register_notification_handler(OrderCreated, NoHandle)

        assert registry.get_request_handler(request_contract(CreateOrderRequest)) is None

    def test_factory_building_non_handler(self, registry: HandlerRegistry):
        registry.register_request_handler(CreateOrderRequest, factory=object)

        with pytest.raises(MediFlowError, match="which is not a handler"):
            invoke(registry, CreateOrderRequest("A1"))


class TestNotificationHandlers:
    def test_registration_order_is_kept(self, registry: HandlerRegistry):
        handlers = [RecordingHandler(name) for name in ("h1", "h2", "h3")]
        for h in handlers:
            registry.register_notification_handler(OrderCreated, h)

        contract = NotificationContract(OrderCreated)
        first = registry.get_notification_handlers(contract)
        second = registry.get_notification_handlers(contract)

        assert first == second
        assert len(first) == 3
        assert isinstance(first, tuple)

    def test_unknown_contract_is_empty(self, registry: HandlerRegistry):
        assert registry.get_notification_handlers(NotificationContract(OrderCreated)) == ()

    def test_lookup_result_is_a_snapshot(self, registry: HandlerRegistry):
        registry.register_notification_handler(OrderCreated, RecordingHandler("h1"))
        contract = NotificationContract(OrderCreated)
        snapshot = registry.get_notification_handlers(contract)

        registry.register_notification_handler(OrderCreated, RecordingHandler("h2"))

        assert len(snapshot) == 1
        assert len(registry.get_notification_handlers(contract)) == 2


class TestFreeze:
    def test_registration_after_freeze_fails(self, registry: HandlerRegistry):
        registry.register_request_handler(CreateOrderRequest, CountingHandler)
        registry.freeze()
        registry.freeze()

        assert registry.frozen
        with pytest.raises(RegistryFrozen):
            registry.register_request_handler(GetOrder, RecordingHandler())
        with pytest.raises(RegistryFrozen):
            registry.register_notification_handler(OrderCreated, RecordingHandler())
        with pytest.raises(RegistryFrozen):
            registry.clear()

        assert registry.get_request_handler(request_contract(CreateOrderRequest))

    def test_clear_before_freeze(self, registry: HandlerRegistry):
        registry.register_request_handler(CreateOrderRequest, CountingHandler)
        registry.clear()
        assert registry.contracts() == {}


class TestDecorators:
    def test_on_request_and_on_notification(self, registry: HandlerRegistry):
        @registry.on_request(GetOrder)
        def get_order(request, cancellation):
            return None

        @registry.on_notification(OrderCreated)
        class Audit:
            def handle(self, event, cancellation):
                ...

        # 데코레이터는 원래 객체를 그대로 리턴합니다.
        assert callable(get_order)
        assert isinstance(Audit, type)

        contracts = registry.contracts()
        assert list(contracts) == [
            request_contract(GetOrder),
            NotificationContract(OrderCreated),
        ]
        [audit_name] = contracts[NotificationContract(OrderCreated)]
        assert audit_name.endswith("Audit")
