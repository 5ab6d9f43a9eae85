from loan_scoring.database.models import LoanApplication, LoanDocument, LoanAiScore
from loan_scoring.schemas.loan_schema import (
    LoanApplicationFields,
    LoanApplicationSchema,
    LoanDocumentInput,
    LoanDocumentSchema,
)
from loan_scoring.schemas.score_schema import LoanScoreCreate, LoanScoreSchema


def build_application_document(owner_id: str, fields: LoanApplicationFields) -> LoanApplication:
    return LoanApplication(user_id=owner_id, **fields.model_dump(mode="json"))


def build_loan_document(application_id: str, document: LoanDocumentInput) -> LoanDocument:
    return LoanDocument(application_id=application_id, **document.model_dump(mode="json"))


def build_score_document(score: LoanScoreCreate) -> LoanAiScore:
    return LoanAiScore(**score.model_dump(mode="json"))


def convert_application(application: LoanApplication) -> LoanApplicationSchema:
    data = application.model_dump(exclude={"id", "revision_id"})
    return LoanApplicationSchema(id=str(application.id), **data)


def convert_document(document: LoanDocument) -> LoanDocumentSchema:
    data = document.model_dump(exclude={"id", "revision_id"})
    return LoanDocumentSchema(id=str(document.id), **data)


def convert_score(score: LoanAiScore) -> LoanScoreSchema:
    data = score.model_dump(exclude={"id", "revision_id"})
    return LoanScoreSchema(id=str(score.id), **data)
