"""Creator profile API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession

from sosiol.database import get_db
from sosiol.schemas.common import ErrorResponse
from sosiol.schemas.creator import CleanupResponse, CreatorResponse, CreatorUpsertRequest
from sosiol.services import creator_service

router = APIRouter(prefix="/creators", tags=["creators"])


@router.get("", response_model=list[CreatorResponse])
async def list_creators(db: AsyncSession = Depends(get_db)):
    return await creator_service.list_creators(db)


@router.get(
    "/username/{username}",
    response_model=CreatorResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_creator_by_username(
    username: str = Path(..., min_length=3, max_length=30),
    db: AsyncSession = Depends(get_db),
):
    creator = await creator_service.get_creator_by_username(db, username)
    if not creator:
        raise HTTPException(status_code=404, detail="Creator not found")
    return creator


@router.get(
    "/wallet/{wallet_address}",
    response_model=CreatorResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_creator_by_wallet(wallet_address: str, db: AsyncSession = Depends(get_db)):
    creator = await creator_service.get_creator_by_wallet(db, wallet_address)
    if not creator:
        raise HTTPException(status_code=404, detail="Creator not found")
    return creator


@router.post(
    "",
    response_model=CreatorResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def upsert_creator(req: CreatorUpsertRequest, db: AsyncSession = Depends(get_db)):
    """Create or replace the profile for a wallet. The body must carry a
    message signed by that wallet."""
    return await creator_service.upsert_creator(
        db,
        req.wallet_address,
        req.username,
        req.display_name,
        signature=req.signature,
        message=req.message,
        bio=req.bio,
        avatar_url=req.avatar_url,
        cover_image_url=req.cover_image_url,
    )


@router.get("/{wallet_address}/dashboard", responses={404: {"model": ErrorResponse}})
async def get_dashboard(wallet_address: str, db: AsyncSession = Depends(get_db)):
    """Recent completed tips and the aggregated total for a creator."""
    return await creator_service.get_creator_dashboard(db, wallet_address)


@router.get("/{wallet_address}/wallet-info", responses={404: {"model": ErrorResponse}})
async def get_wallet_info(wallet_address: str, db: AsyncSession = Depends(get_db)):
    return await creator_service.get_wallet_info(db, wallet_address)


@router.post(
    "/{wallet_address}/cleanup",
    response_model=CleanupResponse,
    responses={404: {"model": ErrorResponse}},
)
async def cleanup_self_tips(wallet_address: str, db: AsyncSession = Depends(get_db)):
    """Remove self-payment tip records and recompute the running total."""
    return await creator_service.cleanup_self_tips(db, wallet_address)
