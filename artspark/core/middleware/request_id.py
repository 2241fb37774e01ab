import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from artspark.core.logging import latency_bucket_ms, request_id_ctx_var


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request_id for the duration of each request and log its completion."""

    def __init__(self, app, header_name: str = "x-request-id"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next):
        rid = request.headers.get(self.header_name) or str(uuid4())
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[self.header_name] = rid
            logging.getLogger("artspark").info(
                "request.complete",
                extra={
                    "request_id": rid,
                    "event_type": "http.request",
                    "path": request.url.path,
                    "method": request.method,
                    "status": response.status_code,
                    "latency_bucket": latency_bucket_ms((time.perf_counter() - start) * 1000),
                },
            )
            return response
        finally:
            request_id_ctx_var.reset(token)
