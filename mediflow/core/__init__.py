from .cancel import CancellationToken, CancellationTokenSource  # noqa
from .errors import (  # noqa
    AmbiguousRegistration,
    HandlerNotFound,
    InvalidMessageType,
    MediFlowConfigError,
    MediFlowError,
    OperationCancelled,
    RegistryFrozen,
)
from .models import (  # noqa
    AbstractHandlerRegistry,
    AbstractMediator,
    AbstractNotificationHandler,
    AbstractRequestHandler,
    HandlerContract,
    HandlerEntry,
    Invoker,
    Lifetime,
    Message,
    Notification,
    NotificationContract,
    Request,
    RequestContract,
    notification_contract,
    request_contract,
    response_type_of,
)
