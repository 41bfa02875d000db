"""FastAPI application for the AoE4 Versus API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api_routes import router

# Initialize FastAPI app
app = FastAPI(
    title="AoE4 Versus API",
    description="Resolve unit stats and compare Age of Empires IV units",
    version="0.1.0",
)

# Add CORS middleware for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "aoe4-versus-api"}
