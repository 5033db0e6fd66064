from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from generic_repository.config import settings
from generic_repository.database.manager import DatabaseManager
from generic_repository.middleware.logging_md import LoggingMiddleware
from generic_repository.logging.logger import LogConfig
from generic_repository.exceptions.handler import RepositoryException, global_exception_handler
from apps.catalog.api.router import router as catalog_router
import apps.models  # noqa: F401  (registers tables on SQLModel.metadata)

# Initialize logging configuration
LogConfig.setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    manager = DatabaseManager.get_instance()
    if settings.DB_CREATE_ALL:
        await manager.sql.create_all()
    else:
        await manager.sql.connect()
    yield
    await manager.sql.disconnect()

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Register global exception handlers
app.add_exception_handler(RepositoryException, global_exception_handler)
app.add_exception_handler(RequestValidationError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(LoggingMiddleware)

app.include_router(
    catalog_router,
    prefix=settings.API_V1_CATALOG_PREFIX,
    tags=["Catalog"]
)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
