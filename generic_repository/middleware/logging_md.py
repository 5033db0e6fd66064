import time
import uuid
from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from generic_repository.logging.logger import _current_trace_id

class LoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with a trace id and logs its outcome and duration."""

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get("X-Trace-ID") or uuid.uuid4().hex
        request.state.trace_id = trace_id
        token = _current_trace_id.set(trace_id)
        started = time.perf_counter()

        with logger.contextualize(trace_id=trace_id):
            logger.info(f"{request.method} {request.url.path} started")
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(f"{request.method} {request.url.path} failed: {e} ({self._elapsed(started)})")
                raise
            finally:
                _current_trace_id.reset(token)

            logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({self._elapsed(started)})")
            response.headers["X-Trace-ID"] = trace_id
            return response

    @staticmethod
    def _elapsed(started: float) -> str:
        return f"{(time.perf_counter() - started) * 1000:.2f}ms"
