"""Tip recording and listing endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sosiol.database import get_db
from sosiol.schemas.common import ErrorResponse
from sosiol.schemas.tip import TipCreateRequest, TipResponse
from sosiol.services import tip_service
from sosiol.services.tip_verifier import TipVerifier, get_tip_verifier

router = APIRouter(prefix="/tips", tags=["tips"])


@router.post(
    "",
    response_model=TipResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": TipResponse}, 400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_tip(
    req: TipCreateRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    verifier: TipVerifier = Depends(get_tip_verifier),
):
    """Record a tip for a confirmed transfer.

    Returns 201 for a new record and 200 with the stored record when the
    transaction signature was already seen.
    """
    try:
        tip, created = await tip_service.record_tip(
            db,
            req.from_wallet,
            req.to_creator_wallet,
            req.amount_usdc,
            req.transaction_signature,
            message=req.message,
            verifier=verifier,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not created:
        response.status_code = status.HTTP_200_OK
    return tip


@router.get("/creator/{wallet_address}", response_model=list[TipResponse])
async def list_creator_tips(wallet_address: str, db: AsyncSession = Depends(get_db)):
    return await tip_service.list_tips_for_creator(db, wallet_address)


@router.get("/fan/{wallet_address}", response_model=list[TipResponse])
async def list_fan_tips(wallet_address: str, db: AsyncSession = Depends(get_db)):
    return await tip_service.list_tips_from_fan(db, wallet_address)
