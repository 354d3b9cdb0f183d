from fastapi import APIRouter

from freight_hub.api.endpoints.consolidation import router as consolidation_router
from freight_hub.api.endpoints.csv_files import router as csv_router
from freight_hub.api.endpoints.generate import router as generate_router
from freight_hub.api.endpoints.offers import router as offers_router


router = APIRouter(prefix="/api")
router.include_router(generate_router, tags=["generate"])
router.include_router(csv_router, tags=["csv"])
router.include_router(consolidation_router, tags=["consolidation"])
router.include_router(offers_router, prefix="/timocom", tags=["timocom"])
