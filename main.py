from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure

import auth
import config
import database
import models
from migration import migrate_books
from routers import books, borrow
from utils.logger import setup_logging

setup_logging(config.LOG_LEVEL, config.LOG_FORMAT)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting book catalogue API", database=config.DB_NAME)
    if await database.connect():
        # Legacy string quantities must be integers before the $gt guards can see them
        await migrate_books(database.db)
    yield
    logger.info("Shutting down book catalogue API")
    await database.close()


app = FastAPI(title="Book Catalogue & Borrowing API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth.router)
app.include_router(books.router)
app.include_router(borrow.router)


@app.exception_handler(ConnectionFailure)
async def store_unavailable_handler(request: Request, exc: ConnectionFailure):
    logger.error("Store unavailable", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service unavailable"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/")
def root():
    return {"message": "Books are ready!!!"}


@app.get("/health", response_model=models.HealthResponse)
async def health_check():
    try:
        database.get_db()
        await database.ping()
    except Exception as e:
        logger.warning("Health check failed", error=str(e))
        return models.HealthResponse(status="unhealthy", database="unreachable")
    return models.HealthResponse(status="healthy", database=config.DB_NAME)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT)
