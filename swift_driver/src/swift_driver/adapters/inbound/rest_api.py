"""FastAPI REST adapter for the Swift driver.

Exposes the logical filesystem operations over HTTP. File paths are taken
from the URL, so ``GET /files/docker/registry/v2/blob`` reads the logical path
``/docker/registry/v2/blob``.

Usage:
    from swift_driver.adapters.inbound.rest_api import create_app

    app = create_app(Container.get().driver())
    # or: python -m swift_driver.adapters.inbound.rest_api
"""

from __future__ import annotations

import io
from datetime import datetime
from typing import BinaryIO, Iterator, Optional

from fastapi import FastAPI, Query, Request, status
from fastapi.responses import JSONResponse, Response, StreamingResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from swift_driver.domain.errors import (
    InvalidOffsetError,
    InvalidPathError,
    PartialWriteError,
    PathNotFoundError,
    UnsupportedMethodError,
)
from swift_driver.infrastructure.container import Container
from swift_driver.infrastructure.logging import get_logger
from swift_driver.ports.inbound import StorageDriverPort
from swift_driver.ports.outbound.object_store import StoreError

logger = get_logger("rest_api")

READ_CHUNK_SIZE = 64 * 1024


class FileInfoResponse(BaseModel):
    """Stat result."""

    path: str
    size: int
    is_dir: bool
    mod_time: Optional[datetime] = None


class ListResponse(BaseModel):
    """Direct children of a directory."""

    path: str
    entries: list[str]
    count: int


class WriteResponse(BaseModel):
    """Segmented write result."""

    path: str
    offset: int
    bytes_written: int


class MoveRequest(BaseModel):
    """Request to move a file."""

    source: str = Field(..., min_length=1, description="Logical source path")
    dest: str = Field(..., min_length=1, description="Logical destination path")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    driver: str
    version: str = "0.1.0"


def _logical(path: str) -> str:
    return "/" + path.strip("/")


def _iter_stream(stream: BinaryIO) -> Iterator[bytes]:
    try:
        chunk = stream.read(READ_CHUNK_SIZE)
        while chunk:
            yield chunk
            chunk = stream.read(READ_CHUNK_SIZE)
    finally:
        stream.close()


def create_app(
    driver: StorageDriverPort,
    registry: CollectorRegistry = REGISTRY,
) -> FastAPI:
    """Create FastAPI application with file endpoints.

    Args:
        driver: Storage driver serving the requests.
        registry: Prometheus registry exposed on ``/metrics``.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Swift Driver API",
        description="Byte-addressable files on OpenStack Swift",
        version="0.1.0",
    )

    # Error mapping
    @app.exception_handler(PathNotFoundError)
    async def not_found(request: Request, exc: PathNotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(InvalidPathError)
    @app.exception_handler(InvalidOffsetError)
    async def bad_request(request: Request, exc: Exception):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(UnsupportedMethodError)
    async def not_implemented(request: Request, exc: UnsupportedMethodError):
        return JSONResponse(
            status_code=status.HTTP_501_NOT_IMPLEMENTED, content={"detail": str(exc)}
        )

    @app.exception_handler(PartialWriteError)
    async def partial_write(request: Request, exc: PartialWriteError):
        logger.warning("partial_write", path=exc.path, bytes_written=exc.bytes_written)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc), "bytes_written": exc.bytes_written},
        )

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError):
        logger.error("store_error", path=exc.path, status_code=exc.status_code, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc), "status_code": exc.status_code},
        )

    # System endpoints
    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check():
        """Check service health status."""
        return HealthResponse(status="healthy", driver=driver.name)

    @app.get("/metrics", tags=["System"])
    async def metrics():
        """Expose Prometheus metrics."""
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    # File endpoints
    @app.post("/files/{path:path}/write", response_model=WriteResponse, tags=["Files"])
    async def write_file(path: str, request: Request, offset: int = Query(default=0)):
        """Write the request body into a file at ``offset``."""
        logical = _logical(path)
        body = await request.body()
        written = await run_in_threadpool(
            driver.write_stream, logical, offset, io.BytesIO(body)
        )
        return WriteResponse(path=logical, offset=offset, bytes_written=written)

    @app.get("/files/{path:path}", tags=["Files"])
    async def read_file(path: str, offset: Optional[int] = Query(default=None)):
        """Read a whole file, or its content from ``offset`` on."""
        logical = _logical(path)
        if offset is None:
            data = await run_in_threadpool(driver.get_content, logical)
            return Response(content=data, media_type="application/octet-stream")
        stream = await run_in_threadpool(driver.read_stream, logical, offset)
        return StreamingResponse(_iter_stream(stream), media_type="application/octet-stream")

    @app.put("/files/{path:path}", status_code=status.HTTP_204_NO_CONTENT, tags=["Files"])
    async def put_file(path: str, request: Request):
        """Replace a file with the request body."""
        body = await request.body()
        await run_in_threadpool(driver.put_content, _logical(path), body)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.delete("/files/{path:path}", status_code=status.HTTP_204_NO_CONTENT, tags=["Files"])
    async def delete_file(path: str):
        """Recursively delete a path."""
        await run_in_threadpool(driver.delete, _logical(path))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/stat/{path:path}", response_model=FileInfoResponse, tags=["Files"])
    async def stat_file(path: str):
        """Get size, modification time and directory flag of a path."""
        info = await run_in_threadpool(driver.stat, _logical(path))
        return FileInfoResponse(
            path=info.path, size=info.size, is_dir=info.is_dir, mod_time=info.mod_time
        )

    @app.get("/list/{path:path}", response_model=ListResponse, tags=["Files"])
    async def list_directory(path: str):
        """List the direct children of a directory."""
        logical = _logical(path)
        entries = await run_in_threadpool(driver.list, logical)
        return ListResponse(path=logical, entries=entries, count=len(entries))

    @app.post("/move", status_code=status.HTTP_204_NO_CONTENT, tags=["Files"])
    async def move_file(request: MoveRequest):
        """Move a file to a new path."""
        await run_in_threadpool(driver.move, request.source, request.dest)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


def run_server(driver: StorageDriverPort | None = None) -> None:
    """Run the REST API with uvicorn on the configured host and port.

    Args:
        driver: Driver to serve; built from configuration when omitted.
    """
    import uvicorn

    container = Container.get()
    app = create_app(driver or container.driver())
    uvicorn.run(app, host=container.config.server.host, port=container.config.server.port)


if __name__ == "__main__":
    run_server()
