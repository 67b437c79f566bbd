import logging
import re
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from hermes.core.logging import request_id_ctx_var, latency_bucket_ms

# Client-supplied ids are echoed into headers and logs
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request_id for the request and log one completion line per call.

    A well-formed incoming x-request-id is reused; anything else is replaced
    with a fresh uuid. The completion line carries the authenticated user
    (set on request.state by get_current_user_id) when there is one.
    """

    def __init__(self, app, header_name: str = "x-request-id"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next):
        incoming = request.headers.get(self.header_name)
        rid = incoming if incoming and _VALID_REQUEST_ID.match(incoming) else str(uuid4())
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[self.header_name] = rid

        status = response.status_code
        level = logging.WARNING if status >= 500 else logging.INFO
        logging.getLogger("hermes").log(
            level,
            "request.complete",
            extra={
                "request_id": rid,
                "user_id": getattr(request.state, "user_id", None),
                "path": request.url.path,
                "method": request.method,
                "status": status,
                "latency_bucket": latency_bucket_ms(elapsed_ms),
            },
        )
        return response
