"""Unit tests for driver construction from parameters."""

import httpx
import pytest

from swift_driver.application.factory import (
    InvalidParametersError,
    detect_capabilities,
    from_parameters,
)
from swift_driver.adapters.outbound.memory_store import InMemoryObjectStore
from swift_driver.infrastructure.config import DEFAULT_CHUNK_SIZE, MIN_CHUNK_SIZE
from swift_driver.ports.outbound.object_store import StoreError

STORAGE_URL = "https://swift.test/v1/AUTH_acct"

PARAMETERS = {
    "username": "registry",
    "password": "secret",
    "authurl": "https://swift.test/auth/v1.0",
    "container": "registry",
}


def swift_handler(info_status: int = 200, info: dict | None = None):
    """Mock Swift that authenticates, creates containers and serves /info."""
    created = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/auth/v1.0":
            return httpx.Response(
                200, headers={"X-Auth-Token": "tok", "X-Storage-Url": STORAGE_URL}
            )
        if request.method == "PUT":
            created.append(request.url.path.rsplit("/", 1)[-1])
            return httpx.Response(201)
        if request.url.path == "/info":
            return httpx.Response(info_status, json=info or {})
        return httpx.Response(404)

    return handler, created


@pytest.mark.unit
class TestFromParameters:
    """Test parameter validation and driver wiring."""

    @pytest.mark.parametrize("missing", ["username", "password", "authurl", "container"])
    def test_required_parameters(self, missing):
        parameters = {key: value for key, value in PARAMETERS.items() if key != missing}
        with pytest.raises(InvalidParametersError, match=f"No {missing} parameter"):
            from_parameters(parameters)

    def test_chunk_size_below_minimum(self):
        with pytest.raises(InvalidParametersError):
            from_parameters({**PARAMETERS, "chunksize": MIN_CHUNK_SIZE - 1})

    def test_creates_both_containers(self):
        handler, created = swift_handler()
        driver = from_parameters(PARAMETERS, transport=httpx.MockTransport(handler))

        assert created == ["registry", "registry_segments"]
        assert driver.name == "swift"
        assert driver.chunk_size == DEFAULT_CHUNK_SIZE
        assert driver.capabilities.bulk_delete is False

    def test_detects_bulk_delete(self):
        handler, _ = swift_handler(info={"bulk_delete": {"max_deletes_per_request": 100}})
        driver = from_parameters(
            {**PARAMETERS, "chunksize": str(MIN_CHUNK_SIZE), "prefix": "/root"},
            transport=httpx.MockTransport(handler),
        )

        assert driver.capabilities.bulk_delete is True
        assert driver.capabilities.max_deletes_per_request == 100
        assert driver.chunk_size == MIN_CHUNK_SIZE
        assert driver.addressing.object_name("/a") == "root/a"

    def test_unreadable_info_means_no_bulk_delete(self):
        handler, _ = swift_handler(info_status=503)
        driver = from_parameters(PARAMETERS, transport=httpx.MockTransport(handler))
        assert driver.capabilities.bulk_delete is False

    def test_authentication_failure_propagates(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401))
        with pytest.raises(StoreError) as exc_info:
            from_parameters(PARAMETERS, transport=transport)
        assert exc_info.value.status_code == 401

    def test_unknown_parameters_are_ignored(self):
        handler, _ = swift_handler()
        driver = from_parameters(
            {**PARAMETERS, "secretkey": "unused"}, transport=httpx.MockTransport(handler)
        )
        assert driver.name == "swift"


@pytest.mark.unit
class TestDetectCapabilities:
    """Test one-shot capability discovery."""

    def test_reads_store_capabilities(self):
        store = InMemoryObjectStore(bulk_delete=True, max_deletes_per_request=7)
        capabilities = detect_capabilities(store)
        assert capabilities.bulk_delete is True
        assert capabilities.max_deletes_per_request == 7

    def test_failure_means_unsupported(self):
        store = InMemoryObjectStore(bulk_delete=True)
        store.inject_failure("capabilities", status_code=None)
        assert detect_capabilities(store).bulk_delete is False
