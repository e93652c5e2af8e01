from __future__ import annotations

import re
import time
from collections import defaultdict, deque

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

# POST routes whose handlers call the hosted model.
MODEL_PATHS = re.compile(r"(/ai/|/contents/[^/]+/(chat|quiz)$|/plans/?$|/quiz-attempts$)")


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limit: int = 120, ai_limit: int = 20, window_seconds: int = 60):
        super().__init__(app)
        self.limit = limit
        self.ai_limit = ai_limit
        self.window_seconds = window_seconds
        self.requests: dict[tuple[str, str], deque[float]] = defaultdict(deque)

    def _bucket_for(self, request: Request) -> tuple[str, int]:
        path = request.url.path
        if request.method == "POST" and MODEL_PATHS.search(path):
            return "ai", self.ai_limit
        return "default", self.limit

    async def dispatch(self, request: Request, call_next):
        if request.url.path.endswith("/health"):
            return await call_next(request)

        ip = request.client.host if request.client else "unknown"
        kind, limit = self._bucket_for(request)
        now = time.time()
        bucket = self.requests[(ip, kind)]

        while bucket and now - bucket[0] > self.window_seconds:
            bucket.popleft()

        if len(bucket) >= limit:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests. Please retry shortly."},
            )

        bucket.append(now)
        return await call_next(request)
