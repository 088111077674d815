"""MediFlow - in-process mediator for request/response and notification messages."""
from mediflow.core import (  # noqa
    AbstractHandlerRegistry,
    AbstractMediator,
    AbstractNotificationHandler,
    AbstractRequestHandler,
    AmbiguousRegistration,
    CancellationToken,
    CancellationTokenSource,
    HandlerEntry,
    HandlerNotFound,
    InvalidMessageType,
    Lifetime,
    MediFlowConfigError,
    MediFlowError,
    Notification,
    NotificationContract,
    OperationCancelled,
    RegistryFrozen,
    Request,
    RequestContract,
)
from mediflow.config import MediFlowConfig  # noqa
from mediflow.mediator import Mediator  # noqa
from mediflow.registry import HandlerRegistry  # noqa
from mediflow.resolver import Resolver  # noqa

__version__ = "0.1"
