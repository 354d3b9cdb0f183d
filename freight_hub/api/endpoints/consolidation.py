import logging

from fastapi import APIRouter, Depends, HTTPException

from freight_hub.api.deps import ClientFactory, exchange_client_factory
from freight_hub.core.config import settings
from freight_hub.core.errors import utc_now_iso
from freight_hub.schemas.consolidation import ConsolidationExportRequest, MixedExportRequest
from freight_hub.services.consolidation import (
    MIXED_RUN_SCRIPT,
    RUN_SCRIPT,
    check_name,
    export_consolidation,
    export_mixed_consolidation,
    export_path,
)


log = logging.getLogger(__name__)

router = APIRouter(prefix="/consolidation")

BUILD_INSTRUCTION = "cd ../AssignmentProblem_Consolid && ./build.sh"


def _checked(fn, *args):
    try:
        return fn(*args)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/export")
async def export(
    payload: ConsolidationExportRequest | None = None,
    factory: ClientFactory = Depends(exchange_client_factory),
) -> dict:
    payload = payload or ConsolidationExportRequest()
    directory = _checked(export_path, settings.export_dir, payload.output_dir)

    log.info("consolidation: exporting to %s", directory)
    async with factory() as client:
        result = await export_consolidation(
            client,
            directory,
            include_vehicles=payload.include_vehicles,
            include_orders=payload.include_orders,
            max_vehicles=payload.max_vehicles,
            max_orders=payload.max_orders,
        )

    return {
        "success": True,
        "message": "TIMOCOM data exported successfully for consolidation analysis",
        "exportDirectory": str(result.directory),
        "files": result.files,
        "data": {"vehicles": len(result.vehicles), "orders": len(result.orders), "metadata": result.metadata},
        "warnings": result.warnings,
        "instructions": {"build": BUILD_INSTRUCTION, "run": f"cd {result.directory} && ./{RUN_SCRIPT}"},
        "timestamp": utc_now_iso(),
    }


@router.post("/export-mixed")
async def export_mixed(
    payload: MixedExportRequest | None = None,
    factory: ClientFactory = Depends(exchange_client_factory),
) -> dict:
    payload = payload or MixedExportRequest()
    directory = _checked(export_path, settings.export_dir, payload.output_dir)
    _checked(check_name, payload.config_name, "config")

    async with factory() as client:
        result = await export_mixed_consolidation(
            client,
            directory,
            mock_vehicle_count=payload.mock_vehicle_count,
            max_orders=payload.max_orders,
            export_format=payload.format,
            config_name=payload.config_name,
        )

    return {
        "success": True,
        "message": "Mixed consolidation data exported successfully",
        "exportDirectory": str(result.directory),
        "files": result.files,
        "data": {"vehicles": len(result.vehicles), "orders": len(result.orders), "metadata": result.metadata},
        "warnings": result.warnings,
        "instructions": {"build": BUILD_INSTRUCTION, "run": f"cd {result.directory} && ./{MIXED_RUN_SCRIPT}"},
        "timestamp": utc_now_iso(),
    }


@router.get("/info")
async def info() -> dict:
    return {
        "success": True,
        "description": "TIMOCOM to AssignmentProblem_Consolid data export service",
        "exportRoot": str(settings.export_dir),
        "capabilities": {
            "vehicleExport": "Export vehicle space offers as consolidation vehicles",
            "orderExport": "Export freight offers as consolidation orders",
            "csvFormat": "Generate CSV files compatible with Consolid algorithms",
            "configGeneration": "Create configuration files for optimization runs",
            "scriptGeneration": "Generate shell scripts for easy execution",
        },
        "formats": {
            "json": "Complete data export in JSON format",
            "csv": "Separate CSV files for vehicles and orders",
            "config": "AssignmentProblem_Consolid configuration file",
        },
        "workflow": [
            "POST /api/consolidation/export - Export TIMOCOM data",
            "Build AssignmentProblem_Consolid if needed",
            "Run consolidation analysis using generated script",
            "Analyze results in consolidation_cases.csv",
        ],
        "parameters": {
            "outputDir": "Directory name under the export root (default: consolid_export)",
            "includeVehicles": "Include vehicle space offers (default: true)",
            "includeOrders": "Include freight offers (default: true)",
            "maxVehicles": "Maximum vehicles to export (default: 100)",
            "maxOrders": "Maximum orders to export (default: 1000)",
        },
        "requirements": {
            "timocom": "Valid TIMOCOM API credentials",
            "consolid": "AssignmentProblem_Consolid built and available",
            "permissions": "Write access to export directory",
        },
    }
