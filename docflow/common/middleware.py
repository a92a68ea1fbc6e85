"""
Middleware de trazabilidad de peticiones
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from uuid import uuid4
import logging
import time

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Asigna un X-Request-ID a cada petición (o reutiliza el del cliente),
    registra método, ruta, código y duración, y agrega cabeceras básicas
    """

    EXEMPT_PATHS = ["/docs", "/redoc", "/openapi.json", "/health"]

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        if not any(request.url.path.startswith(path) for path in self.EXEMPT_PATHS):
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({elapsed_ms:.1f} ms) [{request_id}]"
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed_ms:.1f}ms"
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response
