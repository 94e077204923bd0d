from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter

from app.models.convert_response import HealthResponse
from app.version import __version__

router = APIRouter()


def _renderer_version() -> str:
    try:
        return version("jinja2")
    except PackageNotFoundError:
        return "unknown"


@router.get("/health", response_model=HealthResponse, summary="Service health and versions")
async def health() -> HealthResponse:
    return HealthResponse(version=__version__, renderer_version=_renderer_version())
