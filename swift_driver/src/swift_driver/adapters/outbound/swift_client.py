"""OpenStack Swift adapter over httpx.

Implements the ObjectStorePort protocol against the Swift object API:

- Authentication with Swift v1 (``X-Auth-User``/``X-Auth-Key``), Keystone v2
  or Keystone v3 password credentials, selected from the auth URL.
- Object calls against the storage URL returned by authentication; reads
  can stream the response body instead of buffering it.
- JSON listings paginated by ``marker``.
- Bulk delete through the bulk middleware (``POST ?bulk-delete``).
- Cluster capabilities from ``<scheme>://<host>/info``.

Every non-2xx response raises StoreError carrying the status code; transport
failures raise StoreError with ``status_code=None``. Nothing is retried.

Usage:
    store = SwiftObjectStore.from_config(get_config().swift)
    store.authenticate()
    store.put_object("registry", "docker/registry/v2/blob", b"...")

References:
    - Swift object storage API: https://docs.openstack.org/api-ref/object-store/
    - Keystone identity API v3: https://docs.openstack.org/api-ref/identity/v3/
"""

from __future__ import annotations

import io
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, BinaryIO, Iterator
from urllib.parse import quote, unquote, urlsplit

import httpx

from swift_driver.infrastructure.config import SwiftConfig
from swift_driver.infrastructure.logging import get_logger
from swift_driver.ports.outbound.object_store import (
    MANIFEST_HEADER,
    BulkDeleteResult,
    ByteRange,
    ManifestRef,
    ObjectInfo,
    StoreError,
)

logger = get_logger("swift_client")

USER_AGENT = "distribution"
CONNECT_TIMEOUT = 60.0
REQUEST_TIMEOUT = 15 * 60.0
LISTING_LIMIT = 10000


def _parse_http_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


def _parse_listing_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ResponseStream(io.RawIOBase):
    """Readable stream over the body of a streamed response.

    Chunks are pulled from the connection as the caller reads; closing the
    stream releases the connection.
    """

    def __init__(self, response: httpx.Response, container: str, name: str) -> None:
        super().__init__()
        self._response = response
        self._chunks = response.iter_bytes()
        self._pending = b""
        self._container = container
        self._name = name

    def readable(self) -> bool:
        return True

    def read(self, size: int | None = -1) -> bytes:
        if size is None or size < 0:
            data = self._pending + b"".join(self._remaining_chunks())
            self._pending = b""
            return data
        while not self._pending:
            chunk = self._next_chunk()
            if chunk is None:
                return b""
            self._pending = chunk
        data, self._pending = self._pending[:size], self._pending[size:]
        return data

    def readall(self) -> bytes:
        return self.read()

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()

    def _next_chunk(self) -> bytes | None:
        try:
            return next(self._chunks)
        except StopIteration:
            return None
        except httpx.RequestError as exc:
            raise StoreError(
                f"Reading {self._container}/{self._name} failed: {exc}",
                container=self._container,
                name=self._name,
            ) from exc

    def _remaining_chunks(self) -> Iterator[bytes]:
        chunk = self._next_chunk()
        while chunk is not None:
            yield chunk
            chunk = self._next_chunk()


class SwiftObjectStore:
    """ObjectStorePort implementation for OpenStack Swift."""

    def __init__(
        self,
        auth_url: str,
        username: str,
        password: str,
        *,
        tenant: str = "",
        tenant_id: str = "",
        domain: str = "",
        domain_id: str = "",
        region: str = "",
        insecure_skip_verify: bool = False,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._auth_url = auth_url.rstrip("/")
        self._username = username
        self._password = password
        self._tenant = tenant
        self._tenant_id = tenant_id
        self._domain = domain
        self._domain_id = domain_id
        self._region = region
        self._client = httpx.Client(
            verify=not insecure_skip_verify,
            timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT),
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )
        self._storage_url: str | None = None
        self._token: str | None = None

    @classmethod
    def from_config(
        cls, config: SwiftConfig, transport: httpx.BaseTransport | None = None
    ) -> "SwiftObjectStore":
        return cls(
            config.auth_url,
            config.username,
            config.password,
            tenant=config.tenant,
            tenant_id=config.tenant_id,
            domain=config.domain,
            domain_id=config.domain_id,
            region=config.region,
            insecure_skip_verify=config.insecure_skip_verify,
            transport=transport,
        )

    @property
    def storage_url(self) -> str | None:
        return self._storage_url

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SwiftObjectStore":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self) -> None:
        """Obtain a token and the storage URL for the account.

        Raises:
            StoreError: If the identity service rejects the credentials or
                its catalog has no object-store endpoint.
        """
        path = urlsplit(self._auth_url).path.rstrip("/")
        if path.endswith("v1.0") or path.endswith("/auth/v1"):
            version = "v1"
            self._authenticate_v1()
        elif path.endswith("v3"):
            version = "v3"
            self._authenticate_v3()
        else:
            version = "v2"
            self._authenticate_v2()
        logger.info(
            "swift_authenticated", auth_version=version, storage_url=self._storage_url
        )

    def _authenticate_v1(self) -> None:
        response = self._send(
            "GET",
            self._auth_url,
            headers={"X-Auth-User": self._username, "X-Auth-Key": self._password},
        )
        self._token = response.headers.get("X-Auth-Token")
        self._storage_url = response.headers.get("X-Storage-Url")
        if not self._token or not self._storage_url:
            raise StoreError("Auth response is missing the token or storage URL")

    def _authenticate_v2(self) -> None:
        auth: dict[str, Any] = {
            "passwordCredentials": {
                "username": self._username,
                "password": self._password,
            }
        }
        if self._tenant_id:
            auth["tenantId"] = self._tenant_id
        elif self._tenant:
            auth["tenantName"] = self._tenant

        response = self._send("POST", f"{self._auth_url}/tokens", json={"auth": auth})
        access = self._json(response).get("access", {})
        self._token = access.get("token", {}).get("id")
        for service in access.get("serviceCatalog", []):
            if service.get("type") != "object-store":
                continue
            for endpoint in service.get("endpoints", []):
                if self._region and endpoint.get("region") != self._region:
                    continue
                self._storage_url = endpoint.get("publicURL")
                break
        self._require_session()

    def _authenticate_v3(self) -> None:
        user: dict[str, Any] = {"name": self._username, "password": self._password}
        domain = self._domain_ref()
        if domain:
            user["domain"] = domain

        auth: dict[str, Any] = {
            "identity": {"methods": ["password"], "password": {"user": user}}
        }
        if self._tenant_id:
            auth["scope"] = {"project": {"id": self._tenant_id}}
        elif self._tenant:
            project: dict[str, Any] = {"name": self._tenant}
            if domain:
                project["domain"] = domain
            auth["scope"] = {"project": project}

        response = self._send(
            "POST", f"{self._auth_url}/auth/tokens", json={"auth": auth}
        )
        self._token = response.headers.get("X-Subject-Token")
        catalog = self._json(response).get("token", {}).get("catalog", [])
        for service in catalog:
            if service.get("type") != "object-store":
                continue
            for endpoint in service.get("endpoints", []):
                if endpoint.get("interface") != "public":
                    continue
                if self._region and self._region not in (
                    endpoint.get("region"),
                    endpoint.get("region_id"),
                ):
                    continue
                self._storage_url = endpoint.get("url")
                break
        self._require_session()

    def _domain_ref(self) -> dict[str, str]:
        if self._domain_id:
            return {"id": self._domain_id}
        if self._domain:
            return {"name": self._domain}
        return {}

    def _require_session(self) -> None:
        if not self._token:
            raise StoreError("Identity service returned no token")
        if not self._storage_url:
            raise StoreError(
                f"No object-store endpoint in the service catalog (region={self._region!r})"
            )

    # ------------------------------------------------------------------
    # ObjectStorePort
    # ------------------------------------------------------------------

    def create_container(self, container: str) -> None:
        self._call("PUT", container)
        logger.debug("container_ensured", container=container)

    def head_object(self, container: str, name: str) -> ObjectInfo:
        response = self._call("HEAD", container, name)
        manifest = response.headers.get(MANIFEST_HEADER)
        try:
            ref = ManifestRef.parse(unquote(manifest)) if manifest else None
        except ValueError as exc:
            raise StoreError(str(exc), container=container, name=name) from exc
        return ObjectInfo(
            name=name,
            size=int(response.headers.get("Content-Length", 0)),
            content_type=response.headers.get("Content-Type", "application/octet-stream"),
            last_modified=_parse_http_date(response.headers.get("Last-Modified")),
            manifest=ref,
        )

    def get_object(
        self, container: str, name: str, byte_range: ByteRange | None = None
    ) -> bytes:
        headers = {"Range": byte_range.to_header()} if byte_range is not None else None
        return self._call("GET", container, name, headers=headers).content

    def open_object(
        self, container: str, name: str, byte_range: ByteRange | None = None
    ) -> BinaryIO:
        headers = {"Range": byte_range.to_header()} if byte_range is not None else None
        response = self._call("GET", container, name, headers=headers, stream=True)
        return ResponseStream(response, container, name)

    def put_object(
        self,
        container: str,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        manifest: ManifestRef | None = None,
    ) -> None:
        headers = {"Content-Type": content_type}
        if manifest is not None:
            headers[MANIFEST_HEADER] = quote(manifest.to_header())
        self._call("PUT", container, name, headers=headers, content=data)

    def copy_object(
        self, src_container: str, src_name: str, dst_container: str, dst_name: str
    ) -> None:
        source = "/" + quote(f"{src_container}/{src_name}")
        self._call(
            "PUT",
            dst_container,
            dst_name,
            headers={"X-Copy-From": source, "Content-Length": "0"},
        )

    def delete_object(self, container: str, name: str) -> None:
        self._call("DELETE", container, name)

    def bulk_delete(self, paths: list[str]) -> BulkDeleteResult:
        body = "\n".join(quote("/" + path) for path in paths)
        response = self._call(
            "POST",
            query="bulk-delete",
            headers={"Content-Type": "text/plain", "Accept": "application/json"},
            content=body.encode(),
        )
        payload = self._json(response)
        result = BulkDeleteResult(
            deleted=int(payload.get("Number Deleted", 0)),
            not_found=int(payload.get("Number Not Found", 0)),
            errors=[(str(entry[0]), str(entry[1])) for entry in payload.get("Errors", [])],
        )
        # the middleware reports request-level failures in the body of a 200
        status = str(payload.get("Response Status", "200 OK"))
        if not result.errors and not status.startswith("2"):
            result.errors.append(("", status))
        return result

    def list_objects(
        self, container: str, prefix: str = "", delimiter: str | None = None
    ) -> list[ObjectInfo]:
        params: dict[str, Any] = {"format": "json", "limit": LISTING_LIMIT}
        if prefix:
            params["prefix"] = prefix
        if delimiter:
            params["delimiter"] = delimiter

        objects: list[ObjectInfo] = []
        marker = ""
        while True:
            page_params = dict(params, marker=marker) if marker else params
            page = self._json(self._call("GET", container, params=page_params))
            if not page:
                return objects
            for entry in page:
                if "subdir" in entry:
                    marker = entry["subdir"]
                    objects.append(ObjectInfo(name=marker, is_pseudo_dir=True))
                    continue
                marker = entry["name"]
                objects.append(
                    ObjectInfo(
                        name=marker,
                        size=int(entry.get("bytes", 0)),
                        content_type=entry.get("content_type", "application/octet-stream"),
                        last_modified=_parse_listing_date(entry.get("last_modified")),
                    )
                )

    def capabilities(self) -> dict[str, Any]:
        """Fetch ``/info`` from the root of the storage URL's host."""
        base = self._storage_url or self._auth_url
        parts = urlsplit(base)
        response = self._send("GET", f"{parts.scheme}://{parts.netloc}/info")
        return self._json(response)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _url(self, container: str | None, name: str | None) -> str:
        if self._storage_url is None:
            raise StoreError("Not authenticated", container=container, name=name)
        url = self._storage_url.rstrip("/")
        if container:
            url += "/" + quote(container, safe="")
        if name:
            url += "/" + quote(name)
        return url

    def _call(
        self,
        method: str,
        container: str | None = None,
        name: str | None = None,
        *,
        query: str | None = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        url = self._url(container, name)
        if query:
            url += "?" + query
        request_headers = {"X-Auth-Token": self._token or ""}
        if headers:
            request_headers.update(headers)
        return self._send(
            method,
            url,
            headers=request_headers,
            params=params,
            content=content,
            container=container,
            name=name,
            stream=stream,
        )

    def _send(
        self,
        method: str,
        url: str,
        *,
        container: str | None = None,
        name: str | None = None,
        stream: bool = False,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            request = self._client.build_request(method, url, **kwargs)
            response = self._client.send(request, stream=stream)
        except httpx.RequestError as exc:
            raise StoreError(
                f"{method} {url} failed: {exc}", container=container, name=name
            ) from exc

        if response.is_error:
            if stream:
                response.close()
            raise StoreError(
                f"HTTP {response.status_code} for {method} {url}",
                status_code=response.status_code,
                container=container,
                name=name,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(
                f"Invalid JSON response for {response.request.method} {response.request.url}",
                status_code=response.status_code,
            ) from exc
