"""BaseService — abstract foundation for all profnet services.

Every service receives a :class:`Network` at construction time. The
Network provides transactional access to the stores and the graph.
Services own their transaction boundaries via
``self._network.transaction()``.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Concatenate, ParamSpec, TypeVar

from sqlalchemy.exc import OperationalError

from profnet.config.logging import operation_context
from profnet.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from profnet.config.settings import ProfnetSettings
    from profnet.infrastructure.network import Network

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

_P = ParamSpec("_P")
_S = TypeVar("_S", bound="BaseService")

# Parameters naming the users (or message) an operation acts on.
_ACTOR_PARAMS = frozenset(
    {
        "user_id",
        "other_id",
        "requester",
        "responder",
        "target",
        "source",
        "friend",
        "friend_id",
        "viewer",
        "sender",
        "receiver",
        "message_id",
    }
)


def store_guarded(
    func: Callable[Concatenate[_S, _P], ServiceResult],
) -> Callable[Concatenate[_S, _P], ServiceResult]:
    """Map store busy/timeout faults to a ``STORE_UNAVAILABLE`` result.

    The failed transaction has already rolled back, so the whole
    operation is retried once when ``database.retry_on_busy`` is set.
    Any other exception propagates unchanged.

    Log records emitted during the call carry ``op`` and the acting ids
    (see :func:`profnet.config.logging.operation_context`).
    """
    signature = inspect.signature(func)
    actor_params = [name for name in signature.parameters if name in _ACTOR_PARAMS]

    @functools.wraps(func)
    def wrapper(self: _S, *args: _P.args, **kwargs: _P.kwargs) -> ServiceResult:
        arguments = signature.bind_partial(self, *args, **kwargs).arguments
        actors = {name: arguments.get(name) for name in actor_params}
        with operation_context(func.__name__, **actors):
            return _call_guarded(func, self, *args, **kwargs)

    return wrapper


def _call_guarded(
    func: Callable[Concatenate[_S, _P], ServiceResult],
    service: _S,
    *args: _P.args,
    **kwargs: _P.kwargs,
) -> ServiceResult:
    attempts = 2 if service.settings.database.retry_on_busy else 1
    last_exc: OperationalError | None = None
    for attempt in range(1, attempts + 1):
        try:
            return func(service, *args, **kwargs)
        except OperationalError as exc:
            logger.warning(
                "Store unavailable during %s (attempt %d/%d): %s",
                func.__name__,
                attempt,
                attempts,
                exc.orig,
            )
            last_exc = exc
    return ServiceResult(
        ok=False,
        op=func.__name__,
        error=ServiceError(
            code=STORE_UNAVAILABLE,
            message="The data store is busy or unreachable",
            detail={"reason": str(last_exc.orig) if last_exc else ""},
        ),
    )


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class ConnectionService(BaseService):
            @store_guarded
            def send_request(self, requester: str, target: str) -> ServiceResult:
                with self._network.transaction() as txn:
                    ...
    """

    def __init__(self, network: Network) -> None:
        self._network = network

    @property
    def settings(self) -> ProfnetSettings:
        return self._network.settings

    @staticmethod
    def _failure(
        op: str,
        code: str,
        message: str,
        **detail: Any,
    ) -> ServiceResult:
        """Build an ``ok=False`` result for an expected domain condition."""
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code=str(code), message=message, detail=detail),
        )
