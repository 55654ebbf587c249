"""Exception-to-HTTP mappings for the marketplace API.

Protean's handlers cover validation (400), not-found (404) and invalid state
(409). Order backend failures surface as 502 with the backend's message.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from marketplace.exceptions import RemoteFailure


def register_marketplace_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)

    @app.exception_handler(RemoteFailure)
    async def remote_failure_handler(request: Request, exc: RemoteFailure) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": exc.message})
