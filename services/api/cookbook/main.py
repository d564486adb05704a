# Cookbook API Main Entry Point
import logging
import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import CookbookError, MethodNotAllowed
from .infra.rate_limit import limiter
from .routers.ingredients import router as ingredients_router
from .routers.ready import router as ready_router
from .routers.recipes import router as recipes_router
from .routers.search import router as search_router
from .routers.suggestions import router as suggestions_router
from .routers.wipe import router as wipe_router
from .settings import settings

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("cookbook")

app = FastAPI(title="Cookbook API", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # drop the leading "body" segment
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        msg = err.get("msg", "invalid")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(parts)


@app.exception_handler(CookbookError)
async def cookbook_error_handler(request: Request, exc: CookbookError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = f"Validation failed: {_describe_validation_errors(exc)}"
    logger.info(f"{request.method} {request.url.path} -> 400: {message}")
    return _error(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        return _error(405, MethodNotAllowed().message)
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error(500, "Internal server error")


app.include_router(ready_router, prefix="/api", tags=["ready"])
app.include_router(ingredients_router, prefix="/api", tags=["ingredients"])
app.include_router(recipes_router, prefix="/api", tags=["recipes"])
app.include_router(search_router, prefix="/api", tags=["search"])
app.include_router(suggestions_router, prefix="/api", tags=["suggestions"])
app.include_router(wipe_router, prefix="/api", tags=["wipe"])
