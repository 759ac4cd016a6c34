"""
Session endpoints: credentials and logout.
"""

from fastapi import APIRouter, Depends

from purchase_register.api.dependencies import get_session
from purchase_register.application.dto.requests import SaveCredentialsRequest
from purchase_register.application.dto.responses import OperationResponse
from purchase_register.application.session import InvoiceSession
from purchase_register.core.entities.credentials import Credentials
from purchase_register.core.exceptions import PurchaseRegisterError

router = APIRouter(prefix="/api/session", tags=["session"])


@router.put("/credentials", response_model=OperationResponse)
async def save_credentials(
    request: SaveCredentialsRequest,
    session: InvoiceSession = Depends(get_session),
) -> OperationResponse:
    """Validate and store SUNAT credentials."""
    credentials = Credentials(
        ruc=request.ruc,
        username=request.username,
        password=request.password,
        client_id=request.client_id,
        client_secret=request.client_secret,
    )
    result = await session.save_credentials(credentials, validate=request.validate_remote)
    if not result.success:
        raise PurchaseRegisterError(result.message or "Credentials rejected", code=result.error_code)
    return OperationResponse.from_result(result)


@router.post("/logout", response_model=OperationResponse)
async def logout(session: InvoiceSession = Depends(get_session)) -> OperationResponse:
    """Cancel background work and forget invoices and credentials."""
    await session.logout()
    return OperationResponse(success=True, message="Logged out")
