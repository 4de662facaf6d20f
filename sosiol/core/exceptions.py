from fastapi import HTTPException, status


class CreatorNotFoundError(HTTPException):
    def __init__(self, identifier: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"Creator {identifier} not found")


class UsernameTakenError(HTTPException):
    def __init__(self, username: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Username '{username}' already taken")


class InvalidSignatureError(HTTPException):
    def __init__(self, detail: str = "Invalid signature"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class SelfTipError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot send tips to yourself. Tips must be sent to different wallet addresses.",
        )


class TransactionNotFoundError(HTTPException):
    def __init__(self, signature: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"Transaction {signature} not found")


class InvalidUploadError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
