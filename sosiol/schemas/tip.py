from pydantic import BaseModel, Field

from sosiol.schemas.common import MAX_AMOUNT_USDC


class TipCreateRequest(BaseModel):
    from_wallet: str = Field(..., alias="fromWallet", min_length=32, max_length=44)
    to_creator_wallet: str = Field(..., alias="toCreatorWallet", min_length=32, max_length=44)
    amount_usdc: float = Field(
        ..., alias="amountUSDC", gt=0, lt=MAX_AMOUNT_USDC, allow_inf_nan=False
    )
    transaction_signature: str = Field(..., alias="transactionSignature", min_length=1, max_length=88)
    message: str | None = Field(None, max_length=280)

    model_config = {"populate_by_name": True}


class TipResponse(BaseModel):
    id: str
    fromWallet: str
    toCreatorWallet: str
    amountUSDC: float
    transactionSignature: str
    message: str = ""
    status: str
    createdAt: str | None = None
