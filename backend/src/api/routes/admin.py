"""
Admin maintenance routes.

- POST /admin/transactions/clear: Wipe all transaction history
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_admin
from src.api.middleware.error_handler import BadRequestException
from src.lib.db import get_db
from src.lib.logging import get_logger
from src.models.admins import Admin
from src.services.reports_service import ReportsService


logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class ClearHistoryRequest(BaseModel):
    confirm: str = Field(..., description="Must equal the logged-in admin's username")


class ClearHistoryResponse(BaseModel):
    transactions_deleted: int
    customers_reset: int


@router.post("/transactions/clear", response_model=ClearHistoryResponse)
def clear_transaction_history(
    request: ClearHistoryRequest,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    Delete every transaction and reset every customer's totals and cashback.

    This cannot be undone. The caller must repeat their username in
    `confirm`.

    Raises:
        400: Confirmation does not match
    """
    if request.confirm != admin.username:
        raise BadRequestException(
            "Confirmation does not match your username",
            details={"confirm": request.confirm},
        )

    logger.warning("History wipe requested", extra={"admin": admin.username})
    result = ReportsService(db).clear_all_history()
    return ClearHistoryResponse(
        transactions_deleted=result.transactions_deleted,
        customers_reset=result.customers_reset,
    )
