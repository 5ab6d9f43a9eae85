from beanie import Document, Indexed
from pydantic import Field
from typing import List, Optional
from datetime import datetime


class LoanAiScore(Document):
    # Unique: a second insert for the same application fails with DuplicateKeyError.
    application_id: Indexed(str, unique=True)

    affordability_score: int
    stability_score: int
    documentation_score: int
    shariah_score: int
    contract_compliance_score: int
    final_score: int

    risk_category: str = Field(..., description="Low Risk, Medium Risk, High Risk or Reject")
    decision: str = Field(..., description="Approve, Manual Review, Conditional or Reject")

    explanation: List[str] = Field(default_factory=list)
    key_risks: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    contract_suitability_advice: Optional[str] = None
    shariah_warning_flag: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "loan_ai_scores"
