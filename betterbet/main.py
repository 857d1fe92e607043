"""
BetterBet application entry point.
Builds the FastAPI app around one CasinoSession and serves it with uvicorn.
"""

import argparse
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from betterbet.config import settings
from betterbet.core.exceptions import WagerError
from betterbet.core.logger import get_logger, init_logging
from betterbet.core.session import CasinoSession
from betterbet.routers import api

logger = get_logger("main")

# Sent with every response; the API serves JSON only
SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


# ==================== Error Handlers ====================

async def wager_error_handler(request: Request, exc: WagerError):
    """Rejected wagers and actions: nothing was changed, tell the client why."""
    logger.info(
        f"Rejected {request.method} {request.url.path}: {exc.message}",
        extra={"error_code": exc.code},
    )
    return JSONResponse(status_code=400, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "detail": "Internal server error"},
    )


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(WagerError, wager_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


# ==================== Application Setup ====================

def create_app(session: Optional[CasinoSession] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        session: engine to serve; defaults to one backed by the wallet file
    """
    init_logging(
        level=settings.logging.level,
        log_to_file=settings.logging.log_to_file,
        formatter=settings.logging.formatter,
        log_file_path=settings.paths.get_log_path(),
    )

    app = FastAPI(
        title=settings.server.name,
        docs_url="/docs" if settings.server.debug else None,
        redoc_url=None,
    )
    app.state.session = session or CasinoSession.from_settings()
    app.state.limiter = api.limiter

    register_error_handlers(app)
    app.add_middleware(SecurityHeadersMiddleware)
    if settings.server.debug:
        # Local frontends on other ports
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.include_router(api.router, prefix="/api")

    logger.info(f"'{settings.server.name}' ready (debug={settings.server.debug})")
    return app


app = create_app()


def main():
    parser = argparse.ArgumentParser(description=f"Run the {settings.server.name} server")
    parser.add_argument("--host", default=settings.server.host)
    parser.add_argument("--port", type=int, default=settings.server.port)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args()

    uvicorn.run("betterbet.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
