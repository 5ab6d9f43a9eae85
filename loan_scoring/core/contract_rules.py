"""Document requirements per financing contract.

This table is the single source for which document tags an application
needs. The wizard gate, the optional server-side gate and the scoring
prompt all read it, so bump ``RULES_VERSION`` whenever it changes.
"""
from typing import Dict, FrozenSet

from loan_scoring.schemas.loan_schema import ContractTypeEnum, DocumentTypeEnum

RULES_VERSION = 1

TIER1_DOCUMENTS: FrozenSet[str] = frozenset({
    DocumentTypeEnum.identity.value,
    DocumentTypeEnum.income.value,
    DocumentTypeEnum.bank_statement.value,
})

ASSET_PROOF_DOCUMENTS: FrozenSet[str] = frozenset({
    DocumentTypeEnum.car_quotation.value,
    DocumentTypeEnum.proforma_invoice.value,
    DocumentTypeEnum.sale_agreement.value,
})

# At least one tag from each contract's set must be present.
CONTRACT_RULES: Dict[ContractTypeEnum, FrozenSet[str]] = {
    ContractTypeEnum.murabahah: ASSET_PROOF_DOCUMENTS,
}

CONTRACT_POLICY_PROSE: Dict[ContractTypeEnum, str] = {
    ContractTypeEnum.murabahah: (
        "Murabahah requires asset proof (one of: "
        + ", ".join(sorted(ASSET_PROOF_DOCUMENTS))
        + ") and is lower risk for asset purchases."
    ),
    ContractTypeEnum.musharakah: (
        "Musharakah requires business proof and profit potential; higher uncertainty."
    ),
    ContractTypeEnum.qard_hasan: (
        "Qard Hasan is for social welfare; penalize large commercial requests."
    ),
}


def required_any_of(contract_type) -> FrozenSet[str]:
    """Return the tags of which one must be present for ``contract_type``."""
    try:
        key = ContractTypeEnum(contract_type)
    except ValueError:
        return frozenset()
    return CONTRACT_RULES.get(key, frozenset())
