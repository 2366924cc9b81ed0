"""
Policy Wording Match API

Main FastAPI application
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.chat import router as chat_router
from api.customers import router as customers_router
from api.policies import router as policies_router
from api.wordings import router as wordings_router
from services.ingestion.utils import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Policy Wording Match API",
    description="Policy schedule upload, wording matching, comparison and chat",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# routers
app.include_router(customers_router)
app.include_router(policies_router)
app.include_router(wordings_router)
app.include_router(chat_router)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything the routers did not map"""
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Unexpected server error", "details": str(exc)[:200]},
    )


@app.get("/health")
async def health_check():
    """Health check"""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """API info"""
    return {
        "name": "Policy Wording Match API",
        "version": "0.1.0",
        "endpoints": [
            {"path": "/customers", "method": "GET/POST", "description": "Customers"},
            {"path": "/customers/{id}", "method": "GET", "description": "Customer with policies"},
            {"path": "/policies/upload", "method": "POST", "description": "Upload a policy schedule"},
            {"path": "/policies/{id}/extract", "method": "POST", "description": "Extract insurer / wording version"},
            {"path": "/policies/{id}/match", "method": "POST", "description": "Match to a reference wording"},
            {"path": "/policies/{id}/wording", "method": "POST", "description": "Assign a wording manually"},
            {"path": "/policies/{id}/compare", "method": "POST", "description": "Compare schedule vs wording"},
            {"path": "/wordings", "method": "GET", "description": "Reference wordings"},
            {"path": "/wordings/upload", "method": "POST", "description": "Upload a reference wording"},
            {"path": "/chat", "method": "POST", "description": "Chat about a policy"},
            {"path": "/health", "method": "GET", "description": "Health check"},
        ],
    }


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
    )
