import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError

from loan_scoring.core.exceptions import PersistenceError, ScoreConflictError
from loan_scoring.database.models import LoanApplication, LoanDocument, LoanAiScore
from loan_scoring.schemas.loan_schema import (
    LoanApplicationFields,
    LoanApplicationSchema,
    LoanDocumentInput,
    LoanDocumentSchema,
)
from loan_scoring.schemas.score_schema import LoanScoreCreate, LoanScoreSchema
from loan_scoring.utils.loan_application_utils import (
    build_application_document,
    build_loan_document,
    build_score_document,
    convert_application,
    convert_document,
    convert_score,
)

logger = logging.getLogger(__name__)


class LoanStorage(ABC):
    """Persistence port for applications, their documents and scores.

    Implementations must create an application and its documents
    atomically and must refuse a second score for the same application
    by raising ``ScoreConflictError``.
    """

    @abstractmethod
    async def create_application_with_documents(
        self,
        owner_id: str,
        fields: LoanApplicationFields,
        documents: Sequence[LoanDocumentInput],
    ) -> LoanApplicationSchema:
        ...

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> List[LoanApplicationSchema]:
        """Applications owned by ``owner_id``, newest first."""

    @abstractmethod
    async def get_by_id(self, application_id: str) -> Optional[LoanApplicationSchema]:
        ...

    @abstractmethod
    async def get_documents(self, application_id: str) -> List[LoanDocumentSchema]:
        ...

    @abstractmethod
    async def get_score(self, application_id: str) -> Optional[LoanScoreSchema]:
        ...

    @abstractmethod
    async def create_score(self, score: LoanScoreCreate) -> LoanScoreSchema:
        ...


class BeanieLoanStorage(LoanStorage):
    """MongoDB storage through Beanie.

    Application creation runs in a multi-document transaction, which needs
    MongoDB running as a replica set (Atlas clusters always are).
    """

    def __init__(self, client):
        self._client = client

    async def create_application_with_documents(
        self,
        owner_id: str,
        fields: LoanApplicationFields,
        documents: Sequence[LoanDocumentInput],
    ) -> LoanApplicationSchema:
        try:
            async with await self._client.start_session() as session:
                async with session.start_transaction():
                    application = build_application_document(owner_id, fields)
                    await application.insert(session=session)

                    if documents:
                        await LoanDocument.insert_many(
                            [build_loan_document(str(application.id), doc) for doc in documents],
                            session=session,
                        )
        except PyMongoError as e:
            logger.error(f"Failed to persist loan application for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create loan application: {e}") from e

        logger.info(f"Loan application {application.id} persisted with {len(documents)} documents")
        return convert_application(application)

    async def list_by_owner(self, owner_id: str) -> List[LoanApplicationSchema]:
        try:
            applications = await LoanApplication.find(
                LoanApplication.user_id == owner_id
            ).sort("-created_at").to_list()
        except PyMongoError as e:
            logger.error(f"Failed to list loan applications: {e}")
            raise PersistenceError(f"Failed to list loan applications: {e}") from e
        return [convert_application(a) for a in applications]

    async def get_by_id(self, application_id: str) -> Optional[LoanApplicationSchema]:
        try:
            object_id = PydanticObjectId(application_id)
        except (InvalidId, TypeError):
            logger.debug(f"Unparsable application id: {application_id}")
            return None

        try:
            application = await LoanApplication.get(object_id)
        except PyMongoError as e:
            logger.error(f"Failed to load loan application {application_id}: {e}")
            raise PersistenceError(f"Failed to load loan application: {e}") from e
        return convert_application(application) if application else None

    async def get_documents(self, application_id: str) -> List[LoanDocumentSchema]:
        try:
            documents = await LoanDocument.find(LoanDocument.application_id == application_id).to_list()
        except PyMongoError as e:
            logger.error(f"Failed to load documents for {application_id}: {e}")
            raise PersistenceError(f"Failed to load documents: {e}") from e
        return [convert_document(d) for d in documents]

    async def get_score(self, application_id: str) -> Optional[LoanScoreSchema]:
        try:
            score = await LoanAiScore.find_one(LoanAiScore.application_id == application_id)
        except PyMongoError as e:
            logger.error(f"Failed to load score for {application_id}: {e}")
            raise PersistenceError(f"Failed to load score: {e}") from e
        return convert_score(score) if score else None

    async def create_score(self, score: LoanScoreCreate) -> LoanScoreSchema:
        document = build_score_document(score)
        try:
            await document.insert()
        except DuplicateKeyError as e:
            logger.warning(f"Score for application {score.application_id} already exists")
            raise ScoreConflictError(f"Score already exists for application {score.application_id}") from e
        except PyMongoError as e:
            logger.error(f"Failed to persist score for {score.application_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to persist score: {e}") from e
        return convert_score(document)
