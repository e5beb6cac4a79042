"""
Request Context Middleware

Gives every request an id (X-Request-ID, accepted from the client or
generated) and records how long it took (X-Process-Time). The id is stored
on request.state so handlers and exception handlers can put it in logs.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import logging
import time
import uuid

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = str(process_time)

        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code} in {process_time:.4f}s",
            extra={"request_id": request_id}
        )
        return response
