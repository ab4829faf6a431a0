import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from config import Settings
from db.database import DatabaseClient
from routes.auth import auth_router
from routes.events import event_router
from routes.profile import profile_router
from services.auth_service import TokenService, configure_password_hashing
from services.errors import ServiceError, INTERNAL_ERROR_MESSAGE, format_validation_error
from services.event_service import EventService
from services.user_service import UserService

# Set up logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(message)s')
logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: DatabaseClient | None = None) -> FastAPI:
    """
    Build the API application.

    The database handle is created here (or injected, e.g. by tests) and
    handed to the services; the app lifespan owns opening and closing it.
    """
    settings = settings or Settings.from_env()
    database = database or DatabaseClient(settings.mongo_uri, settings.mongo_db_name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.connect()
        database.ensure_indexes()
        yield
        database.close()

    app = FastAPI(
        title="Appointments API",
        description="API for registering users and managing their calendar events.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    configure_password_hashing(settings.bcrypt_rounds)
    token_service = TokenService(
        settings.token_secret,
        algorithm=settings.token_algorithm,
        expires_in=timedelta(days=settings.token_expire_days),
    )
    event_service = EventService(database)
    app.state.database = database
    app.state.token_service = token_service
    app.state.event_service = event_service
    app.state.user_service = UserService(database, token_service, event_service)

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": format_validation_error(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": INTERNAL_ERROR_MESSAGE},
        )

    app.include_router(auth_router, prefix="/api")
    app.include_router(profile_router, prefix="/api")
    app.include_router(event_router, prefix="/api")

    @app.get("/", tags=["Root"])
    def read_root():
        return {"message": "Welcome to the Appointments API!"}

    @app.get("/health", tags=["Root"])
    @app.get("/api/health", tags=["Root"])
    def health():
        database_ok = database.ping()
        return {
            "success": True,
            "status": "OK",
            "message": "Server is running",
            "database": "connected" if database_ok else "unavailable",
        }

    return app


app = create_app()

# --- Main execution ---
if __name__ == "__main__":
    port = Settings.from_env().port
    logger.info(f"--- Starting server on http://localhost:{port} ---")
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
