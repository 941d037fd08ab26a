"""LabDesk FastAPI application.

Web server that processes commands synchronously via HTTP. Every request
runs inside the labdesk domain context with the caller bound to the log
context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - default      → event_processing = "sync"  (handlers fire in the UoW)
#   - "production" → event_processing = "async" (handlers fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from labdesk.domain import labdesk
from labdesk.utils.logging import add_context, clear_context

labdesk.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="LabDesk API",
    description="B2B quotes, orders and warehouse preparation",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the labdesk domain context and bind the caller for logging."""
    add_context(
        path=request.url.path,
        method=request.method,
        user_id=request.headers.get("x-user-id", ""),
        role=request.headers.get("x-user-role", ""),
    )
    try:
        with labdesk.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from labdesk.api import (  # noqa: E402
    notification_router,
    order_router,
    quote_router,
    register_error_handlers,
    warehouse_router,
)

app.include_router(quote_router)
app.include_router(order_router)
app.include_router(warehouse_router)
app.include_router(notification_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": labdesk.name},
        }
    )
