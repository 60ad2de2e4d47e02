from contextlib import asynccontextmanager

from fastapi import FastAPI

from kitchenops.app.api.v1.router import router as v1_router
from kitchenops.app.core.config import settings
from kitchenops.app.core.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    yield


app = FastAPI(title="KitchenOps Procurement", version="0.1.0", lifespan=lifespan)
app.include_router(v1_router, prefix="/v1")
