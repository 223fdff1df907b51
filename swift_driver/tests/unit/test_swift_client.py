"""Unit tests for the Swift HTTP adapter, against an httpx mock transport."""

import json
from typing import Callable

import httpx
import pytest

from swift_driver.adapters.outbound.swift_client import SwiftObjectStore
from swift_driver.ports.outbound.object_store import ByteRange, ManifestRef, StoreError

STORAGE_URL = "https://swift.test/v1/AUTH_acct"
ACCOUNT_PATH = "/v1/AUTH_acct"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeSwift:
    """Routes requests by method and path; records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Handler] = {}

    def route(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/auth/v1.0":
            return httpx.Response(
                200, headers={"X-Auth-Token": "tok", "X-Storage-Url": STORAGE_URL}
            )
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404)
        return handler(request)


@pytest.fixture
def fake() -> FakeSwift:
    return FakeSwift()


@pytest.fixture
def swift(fake: FakeSwift) -> SwiftObjectStore:
    """Store authenticated against the fake with Swift v1 auth."""
    store = SwiftObjectStore(
        "https://swift.test/auth/v1.0", "user", "key", transport=httpx.MockTransport(fake)
    )
    store.authenticate()
    yield store
    store.close()


@pytest.mark.unit
class TestAuthentication:
    """Test the supported auth flows."""

    def test_v1_auth(self, swift, fake):
        auth = fake.requests[0]
        assert auth.headers["X-Auth-User"] == "user"
        assert auth.headers["X-Auth-Key"] == "key"
        assert auth.headers["User-Agent"] == "distribution"
        assert swift.storage_url == STORAGE_URL

    def test_v3_auth_selects_public_endpoint_in_region(self):
        seen = []

        def handler(request):
            seen.append(request)
            catalog = [
                {"type": "identity", "endpoints": []},
                {
                    "type": "object-store",
                    "endpoints": [
                        {"interface": "public", "region": "RegionOne", "url": "https://one.test/v1/AUTH_p"},
                        {"interface": "internal", "region": "RegionTwo", "url": "https://internal.test"},
                        {"interface": "public", "region": "RegionTwo", "url": "https://two.test/v1/AUTH_p"},
                    ],
                },
            ]
            return httpx.Response(
                201, headers={"X-Subject-Token": "tok3"}, json={"token": {"catalog": catalog}}
            )

        store = SwiftObjectStore(
            "https://keystone.test/v3",
            "user",
            "pass",
            tenant="proj",
            domain="Default",
            region="RegionTwo",
            transport=httpx.MockTransport(handler),
        )
        store.authenticate()

        assert store.storage_url == "https://two.test/v1/AUTH_p"
        assert seen[0].url.path == "/v3/auth/tokens"
        auth = json.loads(seen[0].content)["auth"]
        assert auth["identity"]["password"]["user"] == {
            "name": "user",
            "password": "pass",
            "domain": {"name": "Default"},
        }
        assert auth["scope"]["project"] == {"name": "proj", "domain": {"name": "Default"}}

    def test_v3_auth_without_endpoint_in_region(self):
        def handler(request):
            catalog = [
                {
                    "type": "object-store",
                    "endpoints": [{"interface": "public", "region": "RegionOne", "url": "https://one.test"}],
                }
            ]
            return httpx.Response(
                201, headers={"X-Subject-Token": "tok3"}, json={"token": {"catalog": catalog}}
            )

        store = SwiftObjectStore(
            "https://keystone.test/v3",
            "user",
            "pass",
            region="Nowhere",
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(StoreError, match="object-store endpoint"):
            store.authenticate()

    def test_v2_auth_with_tenant_id(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "access": {
                        "token": {"id": "tok2"},
                        "serviceCatalog": [
                            {
                                "type": "object-store",
                                "endpoints": [{"region": "R", "publicURL": STORAGE_URL}],
                            }
                        ],
                    }
                },
            )

        store = SwiftObjectStore(
            "https://keystone.test/v2.0",
            "user",
            "pass",
            tenant_id="tid",
            transport=httpx.MockTransport(handler),
        )
        store.authenticate()

        assert store.storage_url == STORAGE_URL
        assert seen[0].url.path == "/v2.0/tokens"
        assert json.loads(seen[0].content)["auth"]["tenantId"] == "tid"

    def test_rejected_credentials(self):
        store = SwiftObjectStore(
            "https://keystone.test/v3",
            "user",
            "wrong",
            transport=httpx.MockTransport(lambda request: httpx.Response(401)),
        )
        with pytest.raises(StoreError) as exc_info:
            store.authenticate()
        assert exc_info.value.status_code == 401


@pytest.mark.unit
class TestObjectCalls:
    """Test object calls against the storage URL."""

    def test_head_object_parses_manifest(self, swift, fake):
        fake.route(
            "HEAD",
            f"{ACCOUNT_PATH}/registry/a",
            lambda request: httpx.Response(
                200,
                headers={
                    "Content-Length": "11",
                    "Content-Type": "application/octet-stream",
                    "Last-Modified": "Wed, 15 Nov 2023 10:00:00 GMT",
                    "X-Object-Manifest": "registry_segments/a/",
                },
            ),
        )

        info = swift.head_object("registry", "a")
        assert info.size == 11
        assert info.manifest == ManifestRef("registry_segments", "a/")
        assert info.last_modified.year == 2023
        assert fake.requests[-1].headers["X-Auth-Token"] == "tok"

    def test_head_object_with_malformed_manifest(self, swift, fake):
        fake.route(
            "HEAD",
            f"{ACCOUNT_PATH}/registry/a",
            lambda request: httpx.Response(200, headers={"X-Object-Manifest": "no-container"}),
        )

        with pytest.raises(StoreError, match="Malformed manifest") as exc_info:
            swift.head_object("registry", "a")
        assert exc_info.value.name == "a"

    def test_put_object_with_manifest(self, swift, fake):
        fake.route("PUT", f"{ACCOUNT_PATH}/registry/a", lambda request: httpx.Response(201))

        swift.put_object(
            "registry", "a", b"", manifest=ManifestRef("registry_segments", "a/")
        )
        request = fake.requests[-1]
        assert request.headers["X-Object-Manifest"] == "registry_segments/a/"
        assert request.headers["Content-Type"] == "application/octet-stream"

    def test_ranged_get(self, swift, fake):
        fake.route(
            "GET",
            f"{ACCOUNT_PATH}/registry/a",
            lambda request: httpx.Response(206, content=b"cdef"),
        )

        assert swift.get_object("registry", "a", ByteRange(2)) == b"cdef"
        assert fake.requests[-1].headers["Range"] == "bytes=2-"

    def test_open_object_streams_body(self, swift, fake):
        served = []

        def body():
            for chunk in (b"cd", b"ef"):
                served.append(chunk)
                yield chunk

        fake.route(
            "GET",
            f"{ACCOUNT_PATH}/registry/a",
            lambda request: httpx.Response(206, content=body()),
        )

        stream = swift.open_object("registry", "a", ByteRange(2))
        assert served == []
        assert fake.requests[-1].headers["Range"] == "bytes=2-"

        assert stream.read(1) == b"c"
        assert served == [b"cd"]
        assert stream.read() == b"def"
        stream.close()
        assert stream.closed

    def test_open_object_unsatisfiable_range(self, swift, fake):
        fake.route(
            "GET", f"{ACCOUNT_PATH}/registry/a", lambda request: httpx.Response(416)
        )
        with pytest.raises(StoreError) as exc_info:
            swift.open_object("registry", "a", ByteRange(9))
        assert exc_info.value.status_code == 416

    def test_open_object_read_failure(self, swift, fake):
        def body():
            yield b"ab"
            raise httpx.ReadError("connection reset")

        fake.route(
            "GET",
            f"{ACCOUNT_PATH}/registry/a",
            lambda request: httpx.Response(200, content=body()),
        )

        stream = swift.open_object("registry", "a")
        assert stream.read(2) == b"ab"
        with pytest.raises(StoreError, match="connection reset") as exc_info:
            stream.read(2)
        assert exc_info.value.name == "a"
        stream.close()

    def test_copy_object(self, swift, fake):
        fake.route("PUT", f"{ACCOUNT_PATH}/registry/b", lambda request: httpx.Response(201))

        swift.copy_object("registry", "a", "registry", "b")
        assert fake.requests[-1].headers["X-Copy-From"] == "/registry/a"

    def test_status_errors_carry_code(self, swift):
        with pytest.raises(StoreError) as exc_info:
            swift.delete_object("registry", "missing")
        assert exc_info.value.status_code == 404
        assert exc_info.value.name == "missing"

    def test_transport_errors_have_no_status(self):
        def handler(request):
            if request.url.path == "/auth/v1.0":
                return httpx.Response(
                    200, headers={"X-Auth-Token": "tok", "X-Storage-Url": STORAGE_URL}
                )
            raise httpx.ConnectError("connection refused", request=request)

        store = SwiftObjectStore(
            "https://swift.test/auth/v1.0", "u", "k", transport=httpx.MockTransport(handler)
        )
        store.authenticate()
        with pytest.raises(StoreError) as exc_info:
            store.get_object("registry", "a")
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_calls_before_authentication_fail(self):
        store = SwiftObjectStore(
            "https://swift.test/auth/v1.0",
            "u",
            "k",
            transport=httpx.MockTransport(lambda request: httpx.Response(200)),
        )
        with pytest.raises(StoreError, match="Not authenticated"):
            store.head_object("registry", "a")


@pytest.mark.unit
class TestListingAndBulk:
    """Test paginated listings, bulk delete and capability discovery."""

    def test_listing_paginates_by_marker(self, swift, fake):
        def listing(request):
            params = request.url.params
            assert params["format"] == "json"
            assert params["prefix"] == "d/"
            assert params["delimiter"] == "/"
            if "marker" not in params:
                return httpx.Response(
                    200,
                    json=[
                        {
                            "name": "d/a",
                            "bytes": 3,
                            "content_type": "application/octet-stream",
                            "last_modified": "2023-11-15T10:00:00.000000",
                        },
                        {"subdir": "d/b/"},
                    ],
                )
            assert params["marker"] == "d/b/"
            return httpx.Response(200, json=[])

        fake.route("GET", f"{ACCOUNT_PATH}/registry", listing)

        objects = swift.list_objects("registry", prefix="d/", delimiter="/")
        assert [(o.name, o.size, o.is_pseudo_dir) for o in objects] == [
            ("d/a", 3, False),
            ("d/b/", 0, True),
        ]
        assert objects[0].last_modified.tzinfo is not None

    def test_bulk_delete_request_and_errors(self, swift, fake):
        def bulk(request):
            assert request.url.query == b"bulk-delete"
            assert request.headers["Content-Type"] == "text/plain"
            assert request.headers["Accept"] == "application/json"
            assert request.content == b"/registry/a\n/registry_segments/a/0000000000000001"
            return httpx.Response(
                200,
                json={
                    "Number Deleted": 1,
                    "Number Not Found": 0,
                    "Response Status": "400 Bad Request",
                    "Errors": [["/registry/a", "409 Conflict"]],
                },
            )

        fake.route("POST", ACCOUNT_PATH, bulk)

        result = swift.bulk_delete(["registry/a", "registry_segments/a/0000000000000001"])
        assert result.deleted == 1
        assert result.errors == [("/registry/a", "409 Conflict")]
        assert not result.ok

    def test_bulk_delete_request_level_failure(self, swift, fake):
        fake.route(
            "POST",
            ACCOUNT_PATH,
            lambda request: httpx.Response(
                200, json={"Response Status": "502 Bad Gateway", "Errors": []}
            ),
        )

        result = swift.bulk_delete(["registry/a"])
        assert result.errors == [("", "502 Bad Gateway")]

    def test_capabilities_from_host_root(self, swift, fake):
        fake.route(
            "GET",
            "/info",
            lambda request: httpx.Response(200, json={"bulk_delete": {"max_deletes_per_request": 50}}),
        )

        assert swift.capabilities() == {"bulk_delete": {"max_deletes_per_request": 50}}
        assert str(fake.requests[-1].url) == "https://swift.test/info"
