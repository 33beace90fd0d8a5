import logging

from fastapi import FastAPI

from app import config
from app.api.routes import router

logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(title="Waste Sorting AI Service")
app.include_router(router)
