from pydantic import Field
from typing import List, Optional

from loan_scoring.schemas.loan_schema import LoanApplicationSchema, LoanDocumentSchema
from loan_scoring.schemas.score_schema import LoanScoreSchema


class LoanApplicationDetail(LoanApplicationSchema):
    """An application with its documents and score (``aiScore`` is null until assessed)."""
    documents: List[LoanDocumentSchema] = Field(default_factory=list)
    ai_score: Optional[LoanScoreSchema] = None
