"""Solana transaction lookup and unsigned transfer construction."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from sosiol.core.exceptions import SelfTipError, TransactionNotFoundError
from sosiol.schemas.common import ErrorResponse
from sosiol.schemas.transaction import TransactionDetails, TransferRequest, TransferResponse
from sosiol.services.blockhash_service import BlockhashUnavailableError, InsufficientFundsError
from sosiol.services.solana_rpc import SolanaGateway, get_solana_gateway, parse_pubkey
from sosiol.services.transfer_builder import TransferBuilder, get_transfer_builder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post(
    "/transfer",
    response_model=TransferResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def build_transfer(
    req: TransferRequest,
    builder: TransferBuilder = Depends(get_transfer_builder),
):
    """Build an unsigned USDC transfer for the sender's wallet to sign."""
    if req.from_wallet == req.to_wallet:
        raise SelfTipError()
    try:
        sender = parse_pubkey(req.from_wallet)
        recipient = parse_pubkey(req.to_wallet)
        plan = await builder.build_usdc_transfer(sender, recipient, req.amount_usdc)
    except InsufficientFundsError as e:
        raise HTTPException(status_code=400, detail=e.user_message)
    except BlockhashUnavailableError as e:
        logger.error("Transfer %s -> %s aborted: %s", req.from_wallet, req.to_wallet, e)
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "transaction": plan.serialize(),
        "recentBlockhash": plan.blockhash,
        "amountBaseUnits": plan.amount_base_units,
        "createsRecipientAccount": plan.creates_recipient_account,
    }


@router.get(
    "/{signature}",
    response_model=TransactionDetails,
    responses={404: {"model": ErrorResponse}},
)
async def get_transaction(
    signature: str,
    gateway: SolanaGateway = Depends(get_solana_gateway),
):
    details = await gateway.get_transaction_details(signature)
    if details is None:
        raise TransactionNotFoundError(signature)
    return details
