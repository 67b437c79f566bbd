import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException
from dotenv import load_dotenv

# Load env from hermes/.env
hermes_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(hermes_dir, ".env"))

# Import after dotenv is loaded
from hermes.core.config import settings, validate_config  # noqa: E402
from hermes.core.logging import configure_logging  # noqa: E402
from hermes.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from hermes.core.errors import (  # noqa: E402
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from hermes.api import health, subscription_tools  # noqa: E402

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("hermes")
    logger.info("Starting Hermes backend...")
    app.state.startup_time = time.time()
    try:
        yield
    finally:
        logging.getLogger("hermes").info("Stopping Hermes backend...")


app = FastAPI(title="Hermes - Subscription Tool Access", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(subscription_tools.router)
app.include_router(health.router)
app.include_router(health.root_router)
