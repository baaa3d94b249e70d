"""KYC submission for the signed-in user."""

from fastapi import APIRouter, Depends, status

from tradedesk.application.use_cases.kyc import (
    GetKycRequest,
    GetKycUseCase,
    SubmitKycRequest,
    SubmitKycUseCase,
)
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork

from ..dependencies import CurrentUser, get_unit_of_work, require_user
from ..errors import unwrap
from ..schemas import KycOut, KycSubmitRequest

router = APIRouter(prefix="/kyc", tags=["KYC"])


@router.post("/", response_model=KycOut, status_code=status.HTTP_201_CREATED)
async def submit_kyc(
    body: KycSubmitRequest,
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> KycOut:
    """Submit or replace identity and bank documents. Open to unverified accounts."""
    response = unwrap(
        await SubmitKycUseCase(uow).execute(SubmitKycRequest(user_id=user.user_id, **body.model_dump()))
    )
    return KycOut.from_entity(response.submission)


@router.get("/", response_model=KycOut | None)
async def my_kyc(
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> KycOut | None:
    response = unwrap(await GetKycUseCase(uow).execute(GetKycRequest(user_id=user.user_id)))
    return KycOut.from_entity(response.submission) if response.submission else None
