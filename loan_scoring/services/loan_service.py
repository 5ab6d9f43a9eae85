import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from loan_scoring.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from loan_scoring.database.storage import LoanStorage
from loan_scoring.schemas.loan_schema import CreateLoanRequest, LoanApplicationFields, LoanApplicationSchema
from loan_scoring.schemas.detail_schema import LoanApplicationDetail
from loan_scoring.services.document_requirements import evaluate

logger = logging.getLogger(__name__)


def first_validation_error(exc: PydanticValidationError) -> ValidationError:
    """Report only the first failing field, in declaration order."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    return ValidationError(error.get("msg", "Invalid value"), field=field or None)


class LoanApplicationService:

    def __init__(self, storage: LoanStorage, enforce_document_gate: bool = False):
        self.storage = storage
        self.enforce_document_gate = enforce_document_gate

    # Validates and stores a new application together with its documents
    async def create_application(self, owner_id: str, payload: Dict[str, Any]) -> LoanApplicationSchema:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        try:
            request = CreateLoanRequest.model_validate(payload)
        except PydanticValidationError as e:
            error = first_validation_error(e)
            logger.warning(f"Rejected loan application from {owner_id}: {error.field}: {error.message}")
            raise error

        if self.enforce_document_gate:
            gate = evaluate(request.documents, request.contract_type)
            if not gate.can_proceed:
                logger.warning(f"Rejected loan application from {owner_id}: document requirements not met")
                raise ValidationError(
                    f"Required documents are missing for {request.contract_type.value}",
                    field="documents",
                )

        fields = LoanApplicationFields.model_validate(request.model_dump(exclude={"documents"}))
        application = await self.storage.create_application_with_documents(owner_id, fields, request.documents)
        logger.info(f"Loan application {application.id} created for {owner_id} ({application.contract_type.value})")
        return application

    # Lists the caller's own applications, newest first
    async def list_applications(self, owner_id: str) -> List[LoanApplicationSchema]:
        applications = await self.storage.list_by_owner(owner_id)
        logger.info(f"Retrieved {len(applications)} applications for {owner_id}")
        return applications

    # Loads an application and checks that the caller owns it
    async def get_owned_application(self, application_id: str, caller_id: str) -> LoanApplicationSchema:
        application = await self.storage.get_by_id(application_id)
        if application is None:
            logger.warning(f"Loan application {application_id} not found")
            raise NotFoundError("Loan not found")
        if application.user_id != caller_id:
            logger.warning(f"Caller {caller_id} does not own loan application {application_id}")
            raise ForbiddenError("Caller does not own this application")
        return application

    # Retrieves an application with its documents and score
    async def get_application(self, application_id: str, caller_id: str) -> LoanApplicationDetail:
        application = await self.get_owned_application(application_id, caller_id)
        documents = await self.storage.get_documents(application.id)
        score = await self.storage.get_score(application.id)
        return LoanApplicationDetail(
            **application.model_dump(),
            documents=documents,
            ai_score=score,
        )
