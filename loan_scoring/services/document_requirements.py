from enum import Enum
from typing import Any, Iterable, Mapping, Set

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from loan_scoring.core.contract_rules import RULES_VERSION, TIER1_DOCUMENTS, required_any_of


class DocumentGate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    tier1_satisfied: bool
    asset_proof_satisfied: bool
    can_proceed: bool
    rules_version: int = RULES_VERSION


def _type_of(document: Any) -> Any:
    if isinstance(document, Mapping):
        value = document.get("type")
    else:
        value = getattr(document, "type", None)
    return value.value if isinstance(value, Enum) else value


def document_types(documents: Iterable[Any]) -> Set[str]:
    """Distinct document tags present; duplicates count once."""
    return {t for t in (_type_of(d) for d in documents or ()) if t}


def evaluate(documents: Iterable[Any], contract_type: Any) -> DocumentGate:
    """Check a document set against the tier-1 and contract-specific requirements.

    ``documents`` holds objects with a ``type`` attribute or mappings with a
    ``"type"`` key. An empty set never satisfies tier-1.
    """
    present = document_types(documents)
    tier1 = TIER1_DOCUMENTS.issubset(present)

    required = required_any_of(contract_type)
    asset_proof = not required or bool(present & required)

    return DocumentGate(
        tier1_satisfied=tier1,
        asset_proof_satisfied=asset_proof,
        can_proceed=tier1 and asset_proof,
    )
