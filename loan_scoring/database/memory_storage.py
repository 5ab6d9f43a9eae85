import itertools
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from loan_scoring.core.exceptions import ScoreConflictError
from loan_scoring.database.storage import LoanStorage
from loan_scoring.schemas.loan_schema import (
    LoanApplicationFields,
    LoanApplicationSchema,
    LoanDocumentInput,
    LoanDocumentSchema,
)
from loan_scoring.schemas.score_schema import LoanScoreCreate, LoanScoreSchema

logger = logging.getLogger(__name__)


class InMemoryLoanStorage(LoanStorage):
    """Process-local storage used by the test suite and ``STORAGE_BACKEND=memory``.

    Records are built completely before anything is committed, so a failure
    while building a document leaves no application behind.
    """

    def __init__(self):
        self._applications: Dict[str, LoanApplicationSchema] = {}
        self._documents: Dict[str, List[LoanDocumentSchema]] = {}
        self._scores: Dict[str, LoanScoreSchema] = {}
        self._ids = itertools.count(1)

    def _next_id(self) -> str:
        return str(next(self._ids))

    def _build_application(self, owner_id: str, fields: LoanApplicationFields) -> LoanApplicationSchema:
        return LoanApplicationSchema(
            id=self._next_id(),
            user_id=owner_id,
            created_at=datetime.utcnow(),
            **fields.model_dump(),
        )

    def _build_document(self, application_id: str, document: LoanDocumentInput) -> LoanDocumentSchema:
        return LoanDocumentSchema(
            id=self._next_id(),
            application_id=application_id,
            type=document.type.value,
            file_name=document.file_name,
            file_url=document.file_url,
            created_at=datetime.utcnow(),
        )

    async def create_application_with_documents(
        self,
        owner_id: str,
        fields: LoanApplicationFields,
        documents: Sequence[LoanDocumentInput],
    ) -> LoanApplicationSchema:
        application = self._build_application(owner_id, fields)
        staged = [self._build_document(application.id, doc) for doc in documents]

        self._applications[application.id] = application
        self._documents[application.id] = staged
        logger.info(f"Loan application {application.id} stored in memory with {len(staged)} documents")
        return application.model_copy(deep=True)

    async def list_by_owner(self, owner_id: str) -> List[LoanApplicationSchema]:
        owned = [a for a in self._applications.values() if a.user_id == owner_id]
        owned.sort(key=lambda a: (a.created_at, int(a.id)), reverse=True)
        return [a.model_copy(deep=True) for a in owned]

    async def get_by_id(self, application_id: str) -> Optional[LoanApplicationSchema]:
        application = self._applications.get(str(application_id))
        return application.model_copy(deep=True) if application else None

    async def get_documents(self, application_id: str) -> List[LoanDocumentSchema]:
        return [d.model_copy(deep=True) for d in self._documents.get(str(application_id), [])]

    async def get_score(self, application_id: str) -> Optional[LoanScoreSchema]:
        score = self._scores.get(str(application_id))
        return score.model_copy(deep=True) if score else None

    async def create_score(self, score: LoanScoreCreate) -> LoanScoreSchema:
        if score.application_id in self._scores:
            raise ScoreConflictError(f"Score already exists for application {score.application_id}")

        record = LoanScoreSchema(id=self._next_id(), created_at=datetime.utcnow(), **score.model_dump())
        self._scores[score.application_id] = record
        return record.model_copy(deep=True)
