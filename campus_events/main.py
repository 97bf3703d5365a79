from __future__ import annotations

import logging
import time
from pathlib import Path

from fastapi import FastAPI, Request, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse
from starlette.responses import JSONResponse
from starlette.templating import Jinja2Templates

from campus_events.core.config import settings
from campus_events.auth.deps import SESSION_COOKIE, get_current_user

# Import models to populate SQLAlchemy metadata (needed for create_all)
import campus_events.db.models  # noqa: F401

from campus_events.auth.router import router as auth_router
from campus_events.modules.audit.router import router as audit_router
from campus_events.modules.events.router import router as events_router
from campus_events.modules.forms.router import router as forms_router
from campus_events.modules.registrations.router import router as registrations_router


logging.basicConfig(
    level=getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("campus_events")


def _wants_html(request: Request) -> bool:
    if request.url.path.startswith("/api/"):
        return False
    accept = (request.headers.get("accept") or "").lower()
    return "text/html" in accept


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

app = FastAPI(title=settings.APP_NAME)
app.state.templates = templates

# CORS (Access-Control-Allow-*) - configurable
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
)

app.add_middleware(GZipMiddleware, minimum_size=800)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start = time.perf_counter()
    resp = await call_next(request)
    resp.headers["X-Process-Time-ms"] = f"{(time.perf_counter() - start) * 1000:.2f}"
    return resp


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    resp = await call_next(request)
    resp.headers["X-Content-Type-Options"] = "nosniff"
    resp.headers["X-Frame-Options"] = "SAMEORIGIN"
    resp.headers["Referrer-Policy"] = "same-origin"
    return resp


@app.exception_handler(HTTPException)
async def http_exc_handler(request: Request, exc: HTTPException):
    if _wants_html(request):
        resp = templates.TemplateResponse(
            request,
            "error.html",
            {"status_code": exc.status_code, "detail": exc.detail},
            status_code=exc.status_code,
        )
    else:
        resp = JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )
    if exc.status_code == 401:
        resp.delete_cookie(SESSION_COOKIE)
    return resp


@app.exception_handler(RequestValidationError)
async def validation_exc_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "Data tidak valid", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": [str(p) for p in e.get("loc", ())], "msg": str(e.get("msg", ""))}
        for e in exc.errors()
    ]


@app.exception_handler(Exception)
async def unhandled_exc_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", exc_info=exc)

    if _wants_html(request):
        return templates.TemplateResponse(
            request,
            "error.html",
            {"status_code": 500, "detail": "Terjadi kesalahan tak terduga."},
            status_code=500,
        )

    return JSONResponse(status_code=500, content={"success": False, "message": "Internal Server Error"})


# Routers
app.include_router(auth_router)
app.include_router(events_router)
app.include_router(forms_router)
app.include_router(registrations_router)
app.include_router(audit_router)


@app.get("/health", response_class=JSONResponse)
def health():
    return {"status": "ok", "app": settings.APP_NAME}


@app.get("/health/auth", response_class=JSONResponse)
def health_auth(user=Depends(get_current_user)):
    return {"status": "ok", "authenticated": True, "user_id": user.id}


@app.get("/", response_class=HTMLResponse)
def home():
    return HTMLResponse(f"<h1>{settings.APP_NAME}</h1><p>API docs: <a href='/docs'>/docs</a></p>")
