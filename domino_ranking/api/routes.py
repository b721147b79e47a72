"""API route definitions."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from domino_ranking.api.dependencies import get_competition_service
from domino_ranking.models import Competition, CompetitionMember, CompetitionResult
from domino_ranking.services.competition_service import CompetitionService
from domino_ranking.services.exceptions import InvalidStateError
from domino_ranking.storage import DatabaseError, NotFoundError
from domino_ranking.types import CanFinishResponseDict, CompetitionResultDict

logger = logging.getLogger(__name__)
router = APIRouter()


class CreateCompetitionRequest(BaseModel):
    """Body of POST /api/competitions."""

    name: str = Field(..., min_length=1)
    description: str = ""
    community_id: str = Field(..., alias="communityId")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


def _http_error(e: Exception, action: str) -> HTTPException:
    """Map service and storage errors to HTTP errors."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidStateError):
        return HTTPException(status_code=409, detail=str(e))
    logger.error(f"Error {action}: {e}")
    if isinstance(e, DatabaseError):
        return HTTPException(status_code=502, detail=f"Failed {action}")
    return HTTPException(status_code=500, detail=f"Failed {action}")


def _competition_json(competition: Competition) -> dict:
    return competition.model_dump(mode="json", by_alias=True)


def _result_json(result: CompetitionResult) -> CompetitionResultDict:
    return result.model_dump(mode="json", by_alias=True)


@router.get("/api/communities/{community_id}/competitions")
async def list_competitions(
    community_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> JSONResponse:
    """List competitions of a community, newest first."""
    try:
        competitions = await service.list_competitions(community_id)
    except Exception as e:
        raise _http_error(e, "fetching competitions")
    return JSONResponse(content=[_competition_json(c) for c in competitions])


@router.post("/api/competitions", status_code=201)
async def create_competition(
    body: CreateCompetitionRequest,
    service: CompetitionService = Depends(get_competition_service),
) -> JSONResponse:
    """Create a pending competition."""
    try:
        competition = await service.create_competition(
            name=body.name,
            community_id=body.community_id,
            description=body.description,
        )
    except Exception as e:
        raise _http_error(e, "creating competition")
    return JSONResponse(status_code=201, content=_competition_json(competition))


@router.get("/api/competitions/{competition_id}")
async def get_competition(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> JSONResponse:
    """Get a single competition."""
    try:
        competition = await service.get_competition(competition_id)
    except Exception as e:
        raise _http_error(e, "fetching competition")
    return JSONResponse(content=_competition_json(competition))


@router.post("/api/competitions/{competition_id}/start")
async def start_competition(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> JSONResponse:
    """Move a competition to in_progress."""
    try:
        competition = await service.start_competition(competition_id)
    except Exception as e:
        raise _http_error(e, "starting competition")
    return JSONResponse(content=_competition_json(competition))


@router.get("/api/competitions/{competition_id}/members")
async def list_members(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> JSONResponse:
    """List members of a competition with their players."""
    try:
        members = await service.list_members(competition_id)
    except Exception as e:
        raise _http_error(e, "fetching members")
    return JSONResponse(
        content=[m.model_dump(mode="json", by_alias=True) for m in members]
    )


@router.post("/api/competitions/{competition_id}/members/{player_id}", status_code=201)
async def add_member(
    competition_id: str,
    player_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> JSONResponse:
    """Enroll a player in a competition."""
    try:
        member: CompetitionMember = await service.add_member(competition_id, player_id)
    except Exception as e:
        raise _http_error(e, "adding member")
    return JSONResponse(status_code=201, content=member.model_dump(mode="json", by_alias=True))


@router.delete("/api/competitions/{competition_id}/members/{player_id}", status_code=204)
async def remove_member(
    competition_id: str,
    player_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> Response:
    """Remove a player from a competition."""
    try:
        await service.remove_member(competition_id, player_id)
    except Exception as e:
        raise _http_error(e, "removing member")
    return Response(status_code=204)


@router.get("/api/competitions/{competition_id}/can-finish")
async def can_finish(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> JSONResponse:
    """Check if a competition can be finished."""
    try:
        allowed = await service.can_finish_competition(competition_id)
    except Exception as e:
        raise _http_error(e, "checking competition")
    payload: CanFinishResponseDict = {"competitionId": competition_id, "canFinish": allowed}
    return JSONResponse(content=payload)


@router.post("/api/competitions/{competition_id}/finish")
async def finish_competition(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> JSONResponse:
    """Compute final standings and mark the competition finished."""
    try:
        result = await service.finish_competition(competition_id)
    except Exception as e:
        raise _http_error(e, "finishing competition")
    return JSONResponse(content=_result_json(result))


@router.get("/api/competitions/{competition_id}/results")
async def get_results(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> JSONResponse:
    """Get standings of a finished competition."""
    try:
        result = await service.get_competition_results(competition_id)
    except Exception as e:
        raise _http_error(e, "fetching results")
    return JSONResponse(content=_result_json(result))
