"""Places API endpoint: merged, cached points of interest for a region."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from places_api.core.dependencies import get_pipeline
from places_api.lib.region import InvalidRegionError
from places_api.schemas.common import ErrorResponse
from places_api.schemas.places import PlacesResponse
from places_api.services.places_service import PlacesPipeline

places_router = APIRouter(prefix="/places", tags=["places"])


@places_router.get(
    "",
    response_model=PlacesResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_places(
    bbox: str | None = Query(  # noqa: B008
        default=None,
        max_length=200,
        description="minLon,minLat,maxLon,maxLat; omit for the whole territory",
    ),
    pipeline: PlacesPipeline = Depends(get_pipeline),  # noqa: B008
) -> PlacesResponse:
    """Return upstream, curated, operator and community places merged for a region."""
    try:
        result = await pipeline.get_places(bbox)
    except InvalidRegionError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except Exception as e:
        logger.exception("Unexpected error while loading places")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while loading places.",
        ) from e

    return PlacesResponse.from_result(result)
