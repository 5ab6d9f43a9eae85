import pytest

from loan_scoring.core.contract_rules import RULES_VERSION, required_any_of
from loan_scoring.schemas.loan_schema import ContractTypeEnum, DocumentTypeEnum, LoanDocumentInput
from loan_scoring.services.document_requirements import document_types, evaluate

TIER1 = ["identity", "income", "bank_statement"]


def docs(*tags):
    return [{"type": tag} for tag in tags]


@pytest.mark.parametrize(
    "tags, contract, tier1, asset_proof",
    [
        (TIER1, "Musharakah", True, True),
        (TIER1, "Qard Hasan", True, True),
        (TIER1, "Murabahah", True, False),
        (TIER1 + ["car_quotation"], "Murabahah", True, True),
        (TIER1 + ["proforma_invoice"], "Murabahah", True, True),
        (TIER1 + ["sale_agreement"], "Murabahah", True, True),
        (["identity", "income"], "Musharakah", False, True),
        (["identity", "income", "sale_agreement"], "Murabahah", False, True),
    ],
)
def test_gate_truth_table(tags, contract, tier1, asset_proof):
    gate = evaluate(docs(*tags), contract)
    assert gate.tier1_satisfied is tier1
    assert gate.asset_proof_satisfied is asset_proof
    assert gate.can_proceed is (tier1 and asset_proof)
    assert gate.rules_version == RULES_VERSION


def test_empty_document_list_never_proceeds():
    for contract in ContractTypeEnum:
        gate = evaluate([], contract)
        assert gate.tier1_satisfied is False
        assert gate.can_proceed is False


def test_duplicate_tags_count_once():
    gate = evaluate(docs("identity", "identity", "identity"), "Qard Hasan")
    assert document_types(docs("identity", "identity")) == {"identity"}
    assert gate.tier1_satisfied is False


def test_models_and_mappings_give_the_same_result():
    models = [
        LoanDocumentInput(type=tag, file_name=f"{tag}.pdf", file_url=f"uploads/{tag}.pdf")
        for tag in TIER1 + ["car_quotation"]
    ]
    assert evaluate(models, ContractTypeEnum.murabahah) == evaluate(docs(*TIER1, "car_quotation"), "Murabahah")


def test_unknown_contract_has_no_asset_requirement():
    assert required_any_of("Ijarah") == frozenset()
    assert required_any_of(None) == frozenset()
    assert evaluate(docs(*TIER1), None).can_proceed is True


def test_murabahah_requires_any_asset_proof():
    assert required_any_of(ContractTypeEnum.murabahah) == {
        DocumentTypeEnum.car_quotation.value,
        DocumentTypeEnum.proforma_invoice.value,
        DocumentTypeEnum.sale_agreement.value,
    }


def test_gate_serializes_camel_case():
    data = evaluate(docs(*TIER1), "Musharakah").model_dump(by_alias=True)
    assert data == {
        "tier1Satisfied": True,
        "assetProofSatisfied": True,
        "canProceed": True,
        "rulesVersion": RULES_VERSION,
    }
