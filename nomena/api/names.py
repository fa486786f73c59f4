"""FastAPI router for name suggestions and single-name descriptions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from nomena.schemas.names import (
    NameDescribeRequest,
    NameDescription,
    NameGenerateRequest,
    NameGenerateResponse,
)
from nomena.services.name_service import NameService

router = APIRouter()


def get_name_service(request: Request) -> NameService:
    return request.app.state.name_service


@router.post("/generate", response_model=NameGenerateResponse)
async def generate_names(
    payload: NameGenerateRequest,
    service: NameService = Depends(get_name_service),
) -> NameGenerateResponse:
    """Suggest names for a theme, optionally with long-form descriptions."""

    names = await service.generate_names(
        payload.theme,
        payload.gender,
        payload.count,
        include_descriptions=payload.include_descriptions,
    )
    return NameGenerateResponse(theme=payload.theme, gender=payload.gender, names=names)


@router.post("/describe", response_model=NameDescription)
async def describe_name(
    payload: NameDescribeRequest,
    service: NameService = Depends(get_name_service),
) -> NameDescription:
    return await service.describe(payload.name)
