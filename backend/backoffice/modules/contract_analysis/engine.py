# backoffice/modules/contract_analysis/engine.py
"""
Cálculo da análise contratual (sem I/O).

Esquema de custeio por salário:
    valor_hora = salario_mensal_base / fator_horas_mensal_padrao
    custo      = horas_gastas * valor_hora

O custo base para a margem é faturamento + custo de mão de obra, e o valor
ideal é esse custo base acrescido do percentual de margem. Valores monetários
são arredondados para centavos (ROUND_HALF_UP) apenas no custo total e no
valor ideal.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from bson import ObjectId

from backoffice.core.exceptions import InvalidInputError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

def to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

class AlertStatus(str, Enum):
    OK = "OK"
    REVISAR_CONTRATO = "REVISAR_CONTRATO"
    NEUTRO = "NEUTRO"

class SectorRole(NamedTuple):
    setor_id: ObjectId
    cargo_id: ObjectId

@dataclass(frozen=True)
class GlobalParameters:
    margin_percent: Decimal
    hours_factor: Decimal

    @classmethod
    def validated(cls, margin_percent: Decimal, hours_factor: Decimal) -> "GlobalParameters":
        """Valida uma vez por execução, antes de qualquer faturamento ser processado."""
        margin = Decimal(margin_percent)
        factor = Decimal(hours_factor)
        if margin < 0:
            raise InvalidInputError(f"Percentual de margem inválido na configuração global: {margin}. Deve ser >= 0.")
        if factor <= 0:
            raise InvalidInputError(f"Fator de horas mensal inválido na configuração global: {factor}. Deve ser > 0.")
        return cls(margin_percent=margin, hours_factor=factor)

class SalaryTable:
    """Salários do mês indexados por (setor, cargo). Salário <= 0 conta como não configurado."""

    def __init__(self, salaries: Dict[SectorRole, Decimal]):
        self._salaries = salaries

    @classmethod
    def from_configs(cls, configs: Iterable) -> "SalaryTable":
        salaries: Dict[SectorRole, Decimal] = {}
        for config in configs:
            salary = Decimal(config.salario_mensal_base)
            if salary > 0:
                salaries[SectorRole(config.setor_id, config.cargo_id)] = salary
        return cls(salaries)

    def __len__(self) -> int:
        return len(self._salaries)

    def __contains__(self, key: SectorRole) -> bool:
        return key in self._salaries

    def hourly_rate(self, key: SectorRole, hours_factor: Decimal) -> Optional[Decimal]:
        salary = self._salaries.get(key)
        if salary is None:
            return None
        return salary / hours_factor

@dataclass(frozen=True)
class AllocationInput:
    setor_id: ObjectId
    cargo_id: ObjectId
    horas: Decimal

    @property
    def key(self) -> SectorRole:
        return SectorRole(self.setor_id, self.cargo_id)

@dataclass
class InvoiceCosting:
    labor_cost: Decimal
    baseline: Decimal
    ideal_value: Decimal
    unpriced: List[AllocationInput] = field(default_factory=list)
    priced_count: int = 0

    @property
    def nothing_priced(self) -> bool:
        return self.priced_count == 0 and bool(self.unpriced)

def compute_invoice_costing(
    billed_amount: Decimal,
    allocations: Sequence[AllocationInput],
    salaries: SalaryTable,
    params: GlobalParameters,
) -> InvoiceCosting:
    labor = Decimal("0")
    unpriced: List[AllocationInput] = []
    priced = 0
    for allocation in allocations:
        rate = salaries.hourly_rate(allocation.key, params.hours_factor)
        if rate is None:
            unpriced.append(allocation)
            continue
        labor += Decimal(allocation.horas) * rate
        priced += 1

    labor_cost = to_money(labor)
    baseline = to_money(Decimal(billed_amount) + labor_cost)
    ideal_value = to_money(baseline * (1 + params.margin_percent / HUNDRED))
    return InvoiceCosting(
        labor_cost=labor_cost,
        baseline=baseline,
        ideal_value=ideal_value,
        unpriced=unpriced,
        priced_count=priced,
    )

def resolve_override(existing: Optional[Decimal], seed: Optional[Decimal]) -> Optional[Decimal]:
    # Valor já gravado (pelo gerente ou por um seed anterior) nunca é sobrescrito pelo lote
    return existing if existing is not None else seed

def compute_difference(override: Optional[Decimal], ideal_value: Decimal) -> Decimal:
    return to_money((override if override is not None else Decimal("0")) - Decimal(ideal_value))

def derive_alert_status(difference: Decimal, allow_neutral: bool = False) -> AlertStatus:
    if difference < 0:
        return AlertStatus.REVISAR_CONTRATO
    if allow_neutral and difference == 0:
        return AlertStatus.NEUTRO
    return AlertStatus.OK
