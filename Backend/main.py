from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from releasedesk.api import distribution, label_deal, notes, packages, releases, system, uploads
from releasedesk.core.config import settings
from releasedesk.core.exceptions import ReleaseDeskException
import traceback
import logging
import uvicorn # For running programmatically



# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("releasedesk")

app = FastAPI(title="Release Desk API", debug=settings.DEBUG)

# Configure CORS (the UI runs on its own port)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReleaseDeskException)
async def release_desk_exception_handler(request: Request, exc: ReleaseDeskException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(part) for part in error["loc"]) for error in exc.errors()]
    logger.warning(f"{request.method} {request.url.path} rejected: invalid {', '.join(fields)}")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request",
            "message": f"Missing or invalid field(s): {', '.join(fields)}"
        }
    )


# Add exception handler for detailed error responses
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_detail = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{error_detail}")
    content = {
        "success": False,
        "error": str(exc),
        "path": request.url.path
    }
    if settings.DEBUG:
        content["detail"] = error_detail
    return JSONResponse(status_code=500, content=content)

# Include routes
app.include_router(system.router, tags=["System"])
app.include_router(uploads.router, tags=["Uploads"])
app.include_router(releases.router, tags=["Releases"])
app.include_router(distribution.router, tags=["Distribution"])
app.include_router(label_deal.router, tags=["Label Deal"])
app.include_router(notes.router, tags=["Notes"])
app.include_router(packages.router, tags=["Packages"])


@app.get("/")
async def root():
    return {"message": "Welcome to the Release Desk API"}


def run():
    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    # Runs when the script is executed directly (python Backend/main.py)
    run()
