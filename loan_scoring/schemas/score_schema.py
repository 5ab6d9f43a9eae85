from pydantic import BaseModel, Field
from enum import Enum
from typing import List, Optional
from datetime import datetime

from loan_scoring.schemas.loan_schema import CamelModel


class RiskCategoryEnum(str, Enum):
    low = "Low Risk"
    medium = "Medium Risk"
    high = "High Risk"
    reject = "Reject"


class DecisionEnum(str, Enum):
    approve = "Approve"
    manual_review = "Manual Review"
    conditional = "Conditional"
    reject = "Reject"


class OracleScoringResponse(BaseModel):
    """JSON object the scoring model must return.

    Every key except the two advisory strings is required; nothing is
    defaulted. Integers are strict so ``"72"`` or ``true`` are rejected, and
    every score must lie in 0..100.
    """
    affordability_score: int = Field(..., strict=True, ge=0, le=100)
    stability_score: int = Field(..., strict=True, ge=0, le=100)
    documentation_score: int = Field(..., strict=True, ge=0, le=100)
    shariah_score: int = Field(..., strict=True, ge=0, le=100)
    contract_compliance_score: int = Field(..., strict=True, ge=0, le=100)
    final_score: int = Field(..., strict=True, ge=0, le=100)
    risk_category: RiskCategoryEnum
    decision: DecisionEnum
    score_explanation: List[str]
    key_risks: List[str]
    recommendations: List[str]
    contract_suitability_advice: Optional[str] = None
    shariah_warning_flag: Optional[str] = None


class LoanScoreCreate(CamelModel):
    application_id: str
    affordability_score: int
    stability_score: int
    documentation_score: int
    shariah_score: int
    contract_compliance_score: int
    final_score: int
    risk_category: RiskCategoryEnum
    decision: DecisionEnum
    explanation: List[str] = Field(default_factory=list)
    key_risks: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    contract_suitability_advice: Optional[str] = None
    shariah_warning_flag: Optional[str] = None

    @classmethod
    def from_oracle(cls, application_id: str, result: OracleScoringResponse) -> "LoanScoreCreate":
        return cls(
            application_id=application_id,
            affordability_score=result.affordability_score,
            stability_score=result.stability_score,
            documentation_score=result.documentation_score,
            shariah_score=result.shariah_score,
            contract_compliance_score=result.contract_compliance_score,
            final_score=result.final_score,
            risk_category=result.risk_category,
            decision=result.decision,
            explanation=result.score_explanation,
            key_risks=result.key_risks,
            recommendations=result.recommendations,
            contract_suitability_advice=result.contract_suitability_advice,
            shariah_warning_flag=result.shariah_warning_flag,
        )


class LoanScoreSchema(LoanScoreCreate):
    id: str
    created_at: datetime
