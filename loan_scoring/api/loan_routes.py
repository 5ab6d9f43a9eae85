from fastapi import APIRouter, HTTPException, Depends, Body, Header
from fastapi import status
from fastapi.responses import JSONResponse
from typing import Callable, Dict, Any, List, Optional
import logging

from loan_scoring.core.config import settings
from loan_scoring.core.auth_dependencies import get_current_user
from loan_scoring.core.exceptions import ServiceError
from loan_scoring.core.idempotency import IdempotencyStore, get_idempotency_store
from loan_scoring.database.connection import get_storage
from loan_scoring.database.storage import LoanStorage
from loan_scoring.helpers.response_builder import build_replay_response
from loan_scoring.schemas.loan_schema import LoanApplicationSchema
from loan_scoring.schemas.detail_schema import LoanApplicationDetail
from loan_scoring.schemas.score_schema import LoanScoreSchema
from loan_scoring.services.loan_service import LoanApplicationService
from loan_scoring.services.assessment_service import AssessmentService, ScoringOracle
from loan_scoring.services.scoring_oracle import get_scoring_oracle

logger = logging.getLogger(__name__)


# Returns the configured storage or raises an error if unavailable
def get_loan_storage() -> LoanStorage:
    try:
        return get_storage()
    except RuntimeError:
        logger.error("Loan storage is not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Loan storage is not initialized. Please contact system administrator."
        )


def get_loan_application_service(storage: LoanStorage = Depends(get_loan_storage)) -> LoanApplicationService:
    return LoanApplicationService(storage, enforce_document_gate=settings.ENFORCE_DOCUMENT_GATE)


# Returns a factory for the scoring model client; it is built on first use
def get_oracle_provider() -> Callable[[], ScoringOracle]:
    return get_scoring_oracle


def get_assessment_service(
    storage: LoanStorage = Depends(get_loan_storage),
    oracle_provider: Callable[[], ScoringOracle] = Depends(get_oracle_provider),
) -> AssessmentService:
    return AssessmentService(
        storage,
        timeout_seconds=settings.SCORING_TIMEOUT_SECONDS,
        oracle_provider=oracle_provider,
    )


router = APIRouter(prefix="/api/loans", tags=["Loan Applications"])


# Lists the caller's loan applications, newest first
@router.get("", response_model=List[LoanApplicationSchema])
async def list_loans(
    current_user: Dict = Depends(get_current_user),
    service: LoanApplicationService = Depends(get_loan_application_service)
):
    try:
        return await service.list_applications(current_user["id"])
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error listing loan applications: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error retrieving loan applications"
        )


# Creates a loan application with its document references
@router.post("", response_model=LoanApplicationSchema, status_code=status.HTTP_201_CREATED)
async def create_loan(
    payload: Dict[str, Any] = Body(...),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    current_user: Dict = Depends(get_current_user),
    service: LoanApplicationService = Depends(get_loan_application_service),
    idempotency_store: IdempotencyStore = Depends(get_idempotency_store)
):
    try:
        store_key = None
        if idempotency_key:
            store_key = IdempotencyStore.make_key("loan-create", current_user["id"], idempotency_key)
            previous = await idempotency_store.get(store_key)
            if previous is not None:
                logger.info(f"Replaying loan application {previous.get('id')} for repeated idempotency key")
                return JSONResponse(status_code=status.HTTP_201_CREATED, content=previous)

        # userId comes from the token, never from the body
        application = await service.create_application(current_user["id"], payload)

        if store_key:
            await idempotency_store.set(store_key, build_replay_response(application))

        return application
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error in loan application creation: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


# Retrieves a loan application with its documents and AI score
@router.get("/{application_id}", response_model=LoanApplicationDetail)
async def get_loan(
    application_id: str,
    current_user: Dict = Depends(get_current_user),
    service: LoanApplicationService = Depends(get_loan_application_service)
):
    try:
        return await service.get_application(application_id, current_user["id"])
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error retrieving loan application {application_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error retrieving loan application"
        )


# Runs the AI assessment once and returns the stored score afterwards
@router.post("/{application_id}/assess", response_model=LoanScoreSchema)
async def assess_loan(
    application_id: str,
    current_user: Dict = Depends(get_current_user),
    service: AssessmentService = Depends(get_assessment_service)
):
    try:
        return await service.assess(application_id, current_user["id"])
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"AI assessment error for {application_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to run AI assessment"
        )
