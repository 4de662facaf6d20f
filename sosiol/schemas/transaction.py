from pydantic import BaseModel, Field

from sosiol.schemas.common import MAX_AMOUNT_USDC


class TransferRequest(BaseModel):
    from_wallet: str = Field(..., alias="fromWallet", min_length=32, max_length=44)
    to_wallet: str = Field(..., alias="toWallet", min_length=32, max_length=44)
    amount_usdc: float = Field(
        ..., alias="amountUSDC", gt=0, lt=MAX_AMOUNT_USDC, allow_inf_nan=False
    )

    model_config = {"populate_by_name": True}


class TransferResponse(BaseModel):
    transaction: str  # base64 unsigned transaction
    recentBlockhash: str
    amountBaseUnits: int
    createsRecipientAccount: bool


class TransactionDetails(BaseModel):
    signature: str
    blockTime: int | None = None
    slot: int
    confirmationStatus: str
    err: str | None = None
    fee: int
