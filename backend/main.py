from fastapi import FastAPI
from backend.api.health_routes import router as health_router
from backend.api.payload_routes import router as payload_router
from backend.api.qr_routes import router as qr_router
from backend.core.logging import setup_logging

setup_logging()

app = FastAPI(
    title="QR Studio Backend",
    version="1.0.0",
)

app.include_router(health_router)
app.include_router(payload_router, prefix="/api")
app.include_router(qr_router, prefix="/api")
