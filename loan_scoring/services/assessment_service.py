import asyncio
import logging
from typing import Callable, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from loan_scoring.core.exceptions import OracleResponseError, ScoreConflictError, ScoringUnavailableError
from loan_scoring.database.storage import LoanStorage
from loan_scoring.schemas.score_schema import LoanScoreCreate, LoanScoreSchema, OracleScoringResponse
from loan_scoring.services.loan_service import LoanApplicationService
from loan_scoring.services.scoring_oracle import ScoringRequest, build_scoring_request, parse_oracle_payload

logger = logging.getLogger(__name__)


class ScoringOracle(Protocol):
    async def complete(self, request: ScoringRequest) -> str:
        ...


class AssessmentService:
    """Scores an application at most once.

    An application without a score may be scored; once a score exists every
    further request returns it without calling the model again. A failed
    attempt persists nothing, so the caller can simply retry.

    Pass either ``oracle`` or ``oracle_provider``; the provider is only
    called when no stored score exists.
    """

    def __init__(
        self,
        storage: LoanStorage,
        oracle: Optional[ScoringOracle] = None,
        timeout_seconds: Optional[float] = 60,
        oracle_provider: Optional[Callable[[], ScoringOracle]] = None,
    ):
        if oracle is None and oracle_provider is None:
            raise ValueError("AssessmentService needs an oracle or an oracle_provider")
        self.storage = storage
        self.oracle = oracle
        self.oracle_provider = oracle_provider
        self.timeout_seconds = timeout_seconds
        self.loan_service = LoanApplicationService(storage)

    async def assess(self, application_id: str, caller_id: str) -> LoanScoreSchema:
        application = await self.loan_service.get_owned_application(application_id, caller_id)

        existing = await self.storage.get_score(application.id)
        if existing:
            logger.info(f"Application {application.id} already scored, returning existing score")
            return existing

        documents = await self.storage.get_documents(application.id)
        request = build_scoring_request(application, documents)

        logger.info(f"Scoring application {application.id} ({application.contract_type.value})")
        raw = await self._call_oracle(request)
        result = self._validate(raw, application.id)

        try:
            score = await self.storage.create_score(LoanScoreCreate.from_oracle(application.id, result))
        except ScoreConflictError:
            # A concurrent request stored its score first; that one wins.
            winner = await self.storage.get_score(application.id)
            if winner is None:
                raise
            logger.info(f"Concurrent assessment for {application.id} already persisted a score, returning it")
            return winner

        logger.info(
            f"Application {application.id} scored: final={score.final_score} "
            f"risk={score.risk_category.value} decision={score.decision.value}"
        )
        return score

    def _get_oracle(self) -> ScoringOracle:
        if self.oracle is None:
            try:
                self.oracle = self.oracle_provider()
            except RuntimeError as e:
                logger.critical(f"Scoring model is not configured: {e}")
                raise ScoringUnavailableError(f"Scoring model is not configured: {e}") from e
        return self.oracle

    async def _call_oracle(self, request: ScoringRequest) -> str:
        oracle = self._get_oracle()
        try:
            return await asyncio.wait_for(oracle.complete(request), timeout=self.timeout_seconds)
        except OracleResponseError:
            raise
        except asyncio.TimeoutError as e:
            logger.error(f"Scoring model call timed out after {self.timeout_seconds}s")
            raise OracleResponseError("Scoring model call timed out") from e
        except Exception as e:
            logger.error(f"Scoring model call failed: {e}", exc_info=True)
            raise OracleResponseError(f"Scoring model call failed: {e}") from e

    def _validate(self, raw: Optional[str], application_id: str) -> OracleScoringResponse:
        payload = parse_oracle_payload(raw)
        try:
            return OracleScoringResponse.model_validate(payload)
        except PydanticValidationError as e:
            logger.error(f"Scoring model response for {application_id} failed validation: {e.errors()}")
            raise OracleResponseError(f"Scoring model response is incomplete or malformed: {e}") from e
