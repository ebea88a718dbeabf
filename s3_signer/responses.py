import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from s3_signer.errors import BackendOperationError, SignerError
from s3_signer.logging_config import TRACE

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, PATCH, OPTIONS",
}


def redirect(url: str) -> Response:
    return RedirectResponse(url, status_code=302)


def error_response(status_code: int, detail: str) -> Response:
    return JSONResponse({"detail": detail}, status_code=status_code, headers=CORS_HEADERS)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SignerError)
    async def signer_error_handler(request: Request, exc: SignerError) -> Response:
        if isinstance(exc, BackendOperationError):
            logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.code, exc.message)
        else:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.message)

    # runs outside the CORS middleware, hence the explicit headers
    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error")


def register_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def cors_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        logger.log(TRACE, "%s %s", request.method, request.url)
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response
