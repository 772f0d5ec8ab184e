# tests/modules/contract_analysis/test_analysis_engine.py
from decimal import Decimal
from types import SimpleNamespace

import pytest
from bson import ObjectId

from backoffice.core.exceptions import InvalidInputError
from backoffice.modules.contract_analysis.engine import (
    AlertStatus, AllocationInput, GlobalParameters, SalaryTable, SectorRole,
    compute_difference, compute_invoice_costing, derive_alert_status, resolve_override,
)

S1, S2 = ObjectId(), ObjectId()
R1, R2 = ObjectId(), ObjectId()

def salary_row(sector, role, amount):
    return SimpleNamespace(setor_id=sector, cargo_id=role, salario_mensal_base=Decimal(amount))

@pytest.fixture
def params():
    return GlobalParameters.validated(Decimal("20"), Decimal("220"))

def test_reference_example(params):
    """4400/220 = 20/h; 100h = 2000.00; 5000 + 2000 = 7000; +20% = 8400.00."""
    salaries = SalaryTable.from_configs([salary_row(S1, R1, "4400")])
    costing = compute_invoice_costing(Decimal("5000"), [AllocationInput(S1, R1, Decimal("100"))], salaries, params)

    assert costing.labor_cost == Decimal("2000.00")
    assert costing.baseline == Decimal("7000.00")
    assert costing.ideal_value == Decimal("8400.00")
    assert costing.unpriced == []
    assert not costing.nothing_priced

def test_unconfigured_allocations_are_skipped(params):
    salaries = SalaryTable.from_configs([salary_row(S1, R1, "4400")])
    missing = AllocationInput(S2, R2, Decimal("50"))
    costing = compute_invoice_costing(
        Decimal("1000"), [AllocationInput(S1, R1, Decimal("10")), missing], salaries, params,
    )

    assert costing.labor_cost == Decimal("200.00")
    assert costing.unpriced == [missing]
    assert costing.priced_count == 1

def test_all_unconfigured_means_zero_labor_cost(params):
    costing = compute_invoice_costing(
        Decimal("1000"), [AllocationInput(S1, R1, Decimal("10"))], SalaryTable.from_configs([]), params,
    )
    assert costing.labor_cost == Decimal("0.00")
    assert costing.baseline == Decimal("1000.00")
    assert costing.ideal_value == Decimal("1200.00")
    assert costing.nothing_priced

def test_zero_or_negative_salary_counts_as_unconfigured():
    salaries = SalaryTable.from_configs([salary_row(S1, R1, "0"), salary_row(S2, R2, "-10")])
    assert len(salaries) == 0
    assert SectorRole(S1, R1) not in salaries

def test_salary_lookup_is_keyed_by_sector_and_role(params):
    salaries = SalaryTable.from_configs([salary_row(S1, R1, "4400")])
    assert salaries.hourly_rate(SectorRole(S1, R1), params.hours_factor) == Decimal("20")
    assert salaries.hourly_rate(SectorRole(S1, R2), params.hours_factor) is None

def test_labor_cost_rounds_half_up(params):
    # 1000/220 * 1 = 4.5454... -> 4.55
    salaries = SalaryTable.from_configs([salary_row(S1, R1, "1000")])
    costing = compute_invoice_costing(Decimal("0"), [AllocationInput(S1, R1, Decimal("1"))], salaries, params)
    assert costing.labor_cost == Decimal("4.55")
    assert costing.ideal_value == Decimal("5.46")

@pytest.mark.parametrize("margin, factor", [("-1", "220"), ("20", "0"), ("20", "-5")])
def test_invalid_global_parameters_are_rejected(margin, factor):
    with pytest.raises(InvalidInputError):
        GlobalParameters.validated(Decimal(margin), Decimal(factor))

def test_zero_margin_is_accepted():
    assert GlobalParameters.validated(Decimal("0"), Decimal("160")).margin_percent == Decimal("0")

def test_existing_override_wins_over_seed():
    assert resolve_override(Decimal("9000"), Decimal("7000")) == Decimal("9000")
    assert resolve_override(None, Decimal("7000")) == Decimal("7000")
    assert resolve_override(None, None) is None

def test_difference_treats_missing_override_as_zero():
    assert compute_difference(None, Decimal("8400.00")) == Decimal("-8400.00")
    assert compute_difference(Decimal("8000"), Decimal("8400.00")) == Decimal("-400.00")

@pytest.mark.parametrize(
    "difference, allow_neutral, expected",
    [
        ("-0.01", False, AlertStatus.REVISAR_CONTRATO),
        ("0", False, AlertStatus.OK),
        ("10", False, AlertStatus.OK),
        ("-400", True, AlertStatus.REVISAR_CONTRATO),
        ("0.00", True, AlertStatus.NEUTRO),
        ("0.01", True, AlertStatus.OK),
    ],
)
def test_alert_status(difference, allow_neutral, expected):
    assert derive_alert_status(Decimal(difference), allow_neutral=allow_neutral) is expected
