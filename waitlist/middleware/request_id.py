"""
Correlation ids for access and audit logs.

A caller-supplied X-Request-ID is reused when it is short and made of safe
characters; otherwise a fresh id is minted. The id is exposed on
``request.state.request_id`` and returned in the X-Request-ID header.
"""
import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"

_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_request_id(inbound) -> str:
    """Inbound id if it can be logged as-is, else a new uuid4"""
    if inbound and _SAFE_REQUEST_ID.match(inbound):
        return inbound
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request.state.request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response
