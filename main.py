import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config.invites import get_invite_registry
from app.config.settings import settings
from app.database import Base, engine
from app.routers import auth, user, task, reports
from app.services.scheduler import birthday_scheduler

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Department Task Manager API")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error responses are always {"message": ...}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _describe_validation_error(error: dict) -> str:
    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    location = [str(part) for part in error.get("loc", ()) if part != "body"]
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [_describe_validation_error(error) for error in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "; ".join(messages) or "Invalid request"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": f"Server error: {str(exc)}"},
    )


# Route registration
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(user.router, prefix="/users", tags=["Users"])
app.include_router(task.router, tags=["Tasks"])
app.include_router(reports.router, tags=["Reports"])


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Task Manager API...")
    Base.metadata.create_all(bind=engine)
    invites = get_invite_registry()
    logger.info(f"{len(invites)} invite token(s) configured")
    if settings.ENABLE_SCHEDULER:
        birthday_scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Task Manager API...")
    birthday_scheduler.stop()


# Root route
@app.get("/")
def read_root():
    return {"message": "Task Manager API"}


@app.get("/health")
def health():
    return {"status": "ok", "scheduler": birthday_scheduler.get_scheduler_status()["status"]}
