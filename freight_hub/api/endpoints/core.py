import time

from fastapi import APIRouter

from freight_hub.core.errors import utc_now_iso


VERSION = "1.0.0"
TITLE = "TIMOCOM Freight Hub API"

router = APIRouter()

_started = time.monotonic()


@router.get("/")
async def root() -> dict:
    return {
        "message": TITLE,
        "version": VERSION,
        "documentation": "/api/docs",
        "health": "/health",
    }


@router.get("/health")
async def health() -> dict:
    return {
        "status": "healthy",
        "timestamp": utc_now_iso(),
        "uptime": round(time.monotonic() - _started, 3),
        "version": VERSION,
    }


@router.get("/api/docs")
async def docs() -> dict:
    return {
        "title": TITLE,
        "version": VERSION,
        "endpoints": {
            "GET /health": "Health check",
            "POST /api/generate/freight": "Generate freight offers and return data (default: 1000, max: 10000)",
            "POST /api/generate/vehicle-space": "Generate vehicle space offers and return data (default: 1000, max: 10000)",
            "POST /api/generate/all": "Generate both freight and vehicle space offers and return data",
            "POST /api/csv/upload/{type}": "Upload CSV files (type: freight|vehicle)",
            "GET /api/csv/info/{type}": "Get CSV file information",
            "GET /api/csv/backups": "List all backup files",
            "POST /api/csv/restore/{filename}": "Restore from backup file",
            "POST /api/consolidation/export": "Export own offers as consolidation vehicles and orders",
            "POST /api/consolidation/export-mixed": "Export mock vehicles with own freight offers as orders",
            "GET /api/consolidation/info": "Consolidation export options",
            "GET /api/timocom/test": "Test TIMOCOM API connection",
            "GET /api/timocom/freight-offers": "List own freight offers",
            "GET /api/timocom/freight-offers/{id}": "Get freight offer by id",
            "POST /api/timocom/freight-offers": "Create freight offer",
            "DELETE /api/timocom/freight-offers/{id}": "Delete freight offer",
            "POST /api/timocom/freight-offers/bulk": "Bulk create freight offers",
            "POST /api/timocom/freight-offers/delete-all": "Delete all own freight offers (requires confirm)",
            "GET /api/timocom/vehicle-space-offers": "List own vehicle space offers",
            "GET /api/timocom/vehicle-space-offers/{id}": "Get vehicle space offer by id",
            "POST /api/timocom/vehicle-space-offers": "Create vehicle space offer",
            "DELETE /api/timocom/vehicle-space-offers/{id}": "Delete vehicle space offer",
            "POST /api/timocom/vehicle-space-offers/bulk": "Bulk create vehicle space offers",
            "POST /api/timocom/vehicle-space-offers/delete-all": "Delete all own vehicle space offers (requires confirm)",
            "GET /api/docs": "This documentation",
        },
        "examples": {
            "generateFreight": {
                "method": "POST",
                "url": "/api/generate/freight",
                "body": {"count": 500, "autoPost": False},
                "description": "Generates 500 freight offers and returns them directly in the response",
            },
            "generateAll": {
                "method": "POST",
                "url": "/api/generate/all",
                "body": {"freightCount": 300, "vehicleCount": 200},
                "description": "Generates and posts 300 freight and 200 vehicle space offers",
            },
            "bulkCreate": {
                "method": "POST",
                "url": "/api/timocom/freight-offers/bulk",
                "body": {"offers": [], "maxConcurrent": 5},
                "description": "Bulk create freight offers, five at a time with one retry each",
            },
            "deleteAll": {
                "method": "POST",
                "url": "/api/timocom/vehicle-space-offers/delete-all",
                "body": {"confirm": True},
                "description": "Withdraw every own vehicle space offer",
            },
        },
    }
