import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from snaplink_app.config import settings
from snaplink_app.api.rate_limit import limiter
from snaplink_app.api.v1 import links, redirect
from snaplink_app.dependencies import create_container
from snaplink_app.hit_processor.hit_worker import ClickWorker
from snaplink_app.logging_config import setup_logging
from snaplink_app.services.exceptions import ShortenerError

logger = logging.getLogger("snaplink_app.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the container, run the click worker, tear both down on exit"""
    setup_logging(settings)
    container = await create_container(settings)
    app.state.container = container

    worker = None
    worker_task = None
    if settings.run_click_worker:
        worker = ClickWorker(
            queue=container.queue,
            recorder=container.recorder,
            queue_name=settings.queue_name,
            batch_size=settings.queue_batch_size,
            concurrency=settings.click_worker_concurrency,
            block_time=settings.queue_block_ms,
        )
        worker_task = asyncio.create_task(worker.start())
    app.state.click_worker = worker

    logger.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)
    try:
        yield
    finally:
        if worker is not None:
            worker.stop()
            await worker_task
        await container.close()
        logger.info("%s stopped", settings.app_name)


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A link shortener with click analytics built with FastAPI",
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ShortenerError)
async def shortener_error_handler(request: Request, exc: ShortenerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "environment": settings.environment}


######## Include routers
app.include_router(links.router, prefix="/api/v1")
# Catch-all /{short_code}, must come last
app.include_router(redirect.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
