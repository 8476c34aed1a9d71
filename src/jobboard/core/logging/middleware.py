# src/jobboard/core/logging/middleware.py
"""
Request-id middleware for Starlette / FastAPI.
"""

import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from .filters import set_request_id, reset_request_id

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Sets a request id for each incoming request.

    Notes:
      - Uses the 'X-Request-ID' header when provided; otherwise generates a UUID4.
      - Stores the id in the contextvar read by RequestIdFilter, so every log line
        written while handling the request (service, repository, error handlers)
        carries it.
      - Echoes the id in the response 'X-Request-ID' header.
    """

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        token = set_request_id(rid)
        try:
            # exceptions propagate to the framework's error handlers
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)
