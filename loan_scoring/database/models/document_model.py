from beanie import Document, Indexed
from pydantic import Field
from datetime import datetime


class LoanDocument(Document):
    application_id: Indexed(str)
    type: str = Field(..., description="identity, income, bank_statement or an asset-proof tag")
    file_name: str
    file_url: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "loan_documents"
