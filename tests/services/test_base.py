"""Tests for BaseService and the store_guarded decorator."""

import pytest
from sqlalchemy.exc import OperationalError

from profnet.infrastructure.network import Network
from profnet.services.base import STORE_UNAVAILABLE, BaseService, store_guarded
from profnet.services.connections import ConnectionService
from profnet.services.messages import MessagingService
from profnet.services.result import ServiceResult
from profnet.services.users import UserService
from tests.conftest import make_network


def _busy() -> OperationalError:
    return OperationalError("UPDATE", {}, Exception("database is locked"))


class _Flaky(BaseService):
    """Fails with a busy store a configurable number of times."""

    def __init__(self, network: Network, failures: int) -> None:
        super().__init__(network)
        self.failures = failures
        self.calls = 0

    @store_guarded
    def poke(self) -> ServiceResult:
        self.calls += 1
        if self.calls <= self.failures:
            raise _busy()
        return ServiceResult(ok=True, op="poke")


class TestBaseService:
    def test_network_stored(self, network: Network) -> None:
        service = BaseService(network)
        assert service._network is network
        assert service.settings is network.settings

    def test_failure_helper(self) -> None:
        result = BaseService._failure("op", "CODE", "msg", extra=1)
        assert not result.ok
        assert result.error is not None
        assert result.error.detail == {"extra": 1}

    @pytest.mark.parametrize(
        "service_cls",
        [UserService, ConnectionService, MessagingService],
        ids=lambda c: c.__name__,
    )
    def test_services_inherit(self, service_cls: type, network: Network) -> None:
        assert issubclass(service_cls, BaseService)
        assert service_cls(network)._network is network


class TestStoreGuarded:
    def test_retry_once_then_succeed(self, network: Network) -> None:
        svc = _Flaky(network, failures=1)
        result = svc.poke()
        assert result.ok
        assert svc.calls == 2

    def test_exhausted_retry_reports_unavailable(self, network: Network) -> None:
        svc = _Flaky(network, failures=5)
        result = svc.poke()
        assert not result.ok
        assert result.code == STORE_UNAVAILABLE
        assert result.op == "poke"
        assert "locked" in result.error.detail["reason"]
        assert svc.calls == 2

    def test_no_retry_when_disabled(self, tmp_path) -> None:
        net = make_network(tmp_path, database={"retry_on_busy": False})
        svc = _Flaky(net, failures=1)
        result = svc.poke()
        assert result.code == STORE_UNAVAILABLE
        assert svc.calls == 1
        net.close()

    def test_other_errors_propagate(self, network: Network) -> None:
        class Broken(BaseService):
            @store_guarded
            def explode(self) -> ServiceResult:
                raise KeyError("boom")

        with pytest.raises(KeyError):
            Broken(network).explode()

    def test_real_service_maps_busy_store(
        self, network: Network, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def locked(*args, **kwargs):
            raise _busy()

        monkeypatch.setattr(network, "transaction", locked)
        result = MessagingService(network).send_message("a", "b", "hi")
        assert result.code == STORE_UNAVAILABLE
        assert result.op == "send_message"
