from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.cohorts.router import router as cohorts_router
from app.api.v1.fee_reviews.router import router as fee_reviews_router
from app.api.v1.fee_structures.router import router as fee_structures_router
from app.api.v1.scholarships.router import router as scholarships_router
from app.core.config import settings
from app.core.logging_config import setup_logging


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="Fee Review Service")

    # CORS: comma-separated CORS_ORIGINS, all origins when unset
    origins = [o.strip() for o in (settings.cors_origins or "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(cohorts_router)
    app.include_router(fee_structures_router)
    app.include_router(scholarships_router)
    app.include_router(fee_reviews_router)

    return app


app = create_app()
