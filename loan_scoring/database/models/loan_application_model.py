from beanie import Document, Indexed
from pydantic import Field
from typing import Optional
from datetime import datetime


class LoanApplication(Document):
    user_id: Indexed(str) = Field(..., description="Identity of the applicant who owns the application")

    # Financing request
    requested_amount: float = Field(..., description="Requested financing amount")
    duration_months: int = Field(..., description="Financing duration in months")
    contract_type: str = Field(..., description="Murabahah, Musharakah or Qard Hasan")
    purpose: str = Field(..., description="Purpose of financing")
    asset_type: Optional[str] = Field(None, description="Asset being financed, expected for Murabahah")

    # Financial profile
    monthly_income: float = Field(..., description="Monthly income")
    employment_type: str = Field(..., description="Employment type")
    employer_name: Optional[str] = Field(None, description="Employer or business name")
    monthly_expenses: float = Field(..., description="Monthly expenses")
    other_debts: float = Field(default=0, description="Other existing debts")

    status: str = Field(default="submitted", description="submitted, processing, approved, rejected, manual_review")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="When the application was submitted")

    class Settings:
        name = "loan_applications"
