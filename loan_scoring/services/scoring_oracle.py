import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

from loan_scoring.core.config import settings
from loan_scoring.core.contract_rules import CONTRACT_POLICY_PROSE, RULES_VERSION
from loan_scoring.core.exceptions import OracleResponseError
from loan_scoring.schemas.loan_schema import LoanApplicationSchema, LoanDocumentSchema
from loan_scoring.services.document_requirements import evaluate

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an Islamic finance credit risk analyst.\n"
    "Score loan applications deterministically.\n"
    "Apply contract-specific Islamic finance rules.\n"
    "Explain scores briefly in bullet points.\n"
    "Return only valid JSON.\n"
    "Do not include text outside JSON."
)

RESPONSE_STRUCTURE = """{
  "affordability_score": number,
  "stability_score": number,
  "documentation_score": number,
  "shariah_score": number,
  "contract_compliance_score": number,
  "final_score": number,
  "risk_category": "Low Risk | Medium Risk | High Risk | Reject",
  "decision": "Approve | Manual Review | Conditional | Reject",
  "score_explanation": ["string"],
  "key_risks": ["string"],
  "recommendations": ["string"],
  "contract_suitability_advice": "string",
  "shariah_warning_flag": "string"
}"""


@dataclass(frozen=True)
class ScoringRequest:
    system_instruction: str
    user_payload: str
    temperature: float = 0.0
    response_mime_type: str = "application/json"


def serialize_application(application: LoanApplicationSchema, documents: List[LoanDocumentSchema]) -> Dict[str, Any]:
    """The application as the model sees it, with document metadata and the advisory gate."""
    data = application.model_dump(mode="json", by_alias=True)
    data["documents"] = [
        d.model_dump(mode="json", by_alias=True, include={"type", "file_name", "created_at"})
        for d in documents
    ]
    data["documentRequirements"] = evaluate(documents, application.contract_type).model_dump(by_alias=True)
    return data


def build_scoring_request(application: LoanApplicationSchema, documents: List[LoanDocumentSchema]) -> ScoringRequest:
    rules = "\n".join(f"- {prose}" for prose in CONTRACT_POLICY_PROSE.values())
    user_payload = (
        "Evaluate this Islamic financing application.\n\n"
        f"Scoring Rules (v{RULES_VERSION}):\n"
        f"{rules}\n"
        "- documentRequirements reports whether the mandatory documents were supplied; "
        "treat missing documents as a risk.\n"
        "- All scores are integers from 0 to 100.\n\n"
        "Return JSON structure:\n"
        f"{RESPONSE_STRUCTURE}\n\n"
        "Application Data:\n"
        f"{json.dumps(serialize_application(application, documents), indent=2, default=str)}"
    )
    return ScoringRequest(system_instruction=SYSTEM_INSTRUCTION, user_payload=user_payload)


def parse_oracle_payload(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        raise OracleResponseError("Scoring model returned an empty response")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise OracleResponseError(f"Scoring model returned invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise OracleResponseError("Scoring model response is not a JSON object")
    return payload


class GeminiScoringOracle:
    """Sends scoring requests to Gemini and returns the raw JSON text."""

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash"):
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY is not set in the environment or settings.")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        logger.info(f"GeminiScoringOracle initialized successfully with model: {model_name}")

    async def complete(self, request: ScoringRequest) -> str:
        model = genai.GenerativeModel(self.model_name, system_instruction=request.system_instruction)
        generation_config = GenerationConfig(
            temperature=request.temperature,
            response_mime_type=request.response_mime_type,
        )
        response = await model.generate_content_async(request.user_payload, generation_config=generation_config)
        return response.text


_oracle: Optional[GeminiScoringOracle] = None


def get_scoring_oracle() -> GeminiScoringOracle:
    """Build the Gemini oracle on first use."""
    global _oracle
    if _oracle is None:
        _oracle = GeminiScoringOracle(api_key=settings.GEMINI_API_KEY, model_name=settings.GEMINI_MODEL)
    return _oracle
