import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.admin import router as admin_router
from app.api.billing import router as billing_router
from app.api.blog import router as blog_router
from app.api.comments import router as comments_router
from app.api.contact import router as contact_router
from app.api.newsletter import router as newsletter_router
from app.api.portfolio import router as portfolio_router
from app.api.profile import router as profile_router
from app.config import get_settings
from app.database import init_db
from app.dependencies import GoogleIdentityVerifier

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    # One verifier for the life of the process
    app.state.identity = GoogleIdentityVerifier(settings.google_client_id)
    if not settings.google_client_id:
        logger.warning("GOOGLE_CLIENT_ID is not set: authenticated endpoints will fail")
    if not settings.payments_configured:
        logger.warning("STRIPE_SECRET_KEY is not set: subscriptions are disabled")
    if not settings.stripe_webhook_secret:
        logger.warning("STRIPE_WEBHOOK_SECRET is not set: webhooks will be rejected")

    yield


app = FastAPI(
    title="Portfolio & Blog API",
    docs_url=None if settings.is_prod else "/docs",
    redoc_url=None if settings.is_prod else "/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s %s in %.0fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(blog_router)
app.include_router(comments_router)
app.include_router(portfolio_router)
app.include_router(newsletter_router)
app.include_router(contact_router)
app.include_router(admin_router)
app.include_router(profile_router, prefix="/api")
app.include_router(billing_router)


# Every error leaves as JSON with a human readable "message"

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = {"message": exc.detail.get("message", "Error"), **exc.detail}
    else:
        content = {"message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid data", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})
