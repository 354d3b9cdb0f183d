import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from freight_hub.api.endpoints.core import VERSION, router as core_router
from freight_hub.api.router import router as api_router
from freight_hub.core.errors import ConfigurationError, CsvDataError, UpstreamApiError, error_body
from freight_hub.core.telemetry import setup_telemetry


log = logging.getLogger(__name__)

app = FastAPI(title="Freight Hub API", version=VERSION, docs_url="/api/swagger", redoc_url=None)

setup_telemetry(app)
app.include_router(core_router, tags=["core"])
app.include_router(api_router)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    log.error("%s %s: configuration error: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content=error_body(f"TIMOCOM configuration error: {exc}", hint=exc.hint),
    )


@app.exception_handler(UpstreamApiError)
async def upstream_error_handler(request: Request, exc: UpstreamApiError) -> JSONResponse:
    log.error("%s %s: upstream error: %s", request.method, request.url.path, exc)
    if exc.status_code is None:
        return JSONResponse(status_code=500, content=error_body(str(exc)))
    return JSONResponse(
        status_code=400,
        content=error_body(str(exc), status=exc.status_code, details=jsonable_encoder(exc.body)),
    )


@app.exception_handler(CsvDataError)
async def csv_error_handler(request: Request, exc: CsvDataError) -> JSONResponse:
    log.error("%s %s: csv error: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content=error_body(str(exc)))


@app.exception_handler(ValidationError)
async def model_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    log.error("%s %s: could not build %s: %s", request.method, request.url.path, exc.title, exc)
    details = jsonable_encoder(exc.errors(include_url=False, include_context=False))
    return JSONResponse(status_code=500, content=error_body(f"Invalid {exc.title} data", details=details))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_body("Invalid request", details=jsonable_encoder(exc.errors())),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        # no route matched
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": "Endpoint not found", "documentation": "/api/docs"},
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)), headers=exc.headers)
