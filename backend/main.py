"""
ArtPalette Backend
Palette extraction and color matching for artwork catalogues.
"""
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from artpalette import __version__
from artpalette.api.v1 import router as v1_router
from artpalette.config import config
from artpalette.schemas import HealthResponse

# Load environment variables
load_dotenv()

app = FastAPI(
    title="ArtPalette Backend",
    description="OKLCH palette extraction, palette search and room matching for artworks",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in config.ALLOWED_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(v1_router)


@app.get("/healthz", response_model=HealthResponse)
def healthz() -> HealthResponse:
    """Service health check."""
    return HealthResponse(ok=True, version=__version__, service="artpalette")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
