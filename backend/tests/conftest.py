# tests/conftest.py
import os

# Settings são carregadas na importação de backoffice.core.config
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/painel_backoffice_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from typing import AsyncGenerator, Dict, Iterable, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorDatabase

from backoffice.core.security import create_access_token
from backoffice.modules.allocation.repository import EffortAllocationRepository
from backoffice.modules.allocation.services import EffortAllocationService
from backoffice.modules.analysis_config.repository import GlobalConfigRepository, SalaryConfigRepository
from backoffice.modules.analysis_config.services import AnalysisConfigService
from backoffice.modules.contract_analysis.repository import ContractAnalysisRepository
from backoffice.modules.contract_analysis.services import ContractAnalysisService
from backoffice.modules.invoices.repository import InvoiceRepository
from backoffice.modules.invoices.services import InvoiceService
from backoffice.modules.office.repository import AuditLogRepository
from backoffice.modules.office.services_audit import AuditService
from backoffice.modules.people.repository import UserRepository
from backoffice.modules.registry.repository import ClientRepository, JobRoleRepository, SectorRepository

class SnapshotTransactionManager:
    """
    mongomock não tem sessões nem transações. Commit mantém o que foi escrito;
    rollback restaura as coleções ao snapshot do início. audit_logs fica de fora,
    como em produção, onde a auditoria é gravada sem sessão.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_names: Iterable[str]):
        self.db = db
        self.collection_names = list(collection_names)
        self.committed: List[str] = []
        self.rolled_back: List[str] = []

    async def _snapshot(self) -> Dict[str, List[Dict]]:
        return {name: await self.db[name].find({}).to_list(None) for name in self.collection_names}

    async def _restore(self, snapshot: Dict[str, List[Dict]]):
        for name, documents in snapshot.items():
            await self.db[name].delete_many({})
            if documents:
                await self.db[name].insert_many(documents)

    @asynccontextmanager
    async def transaction(self, operation: str):
        snapshot = await self._snapshot()
        try:
            yield None
        except Exception:
            await self._restore(snapshot)
            self.rolled_back.append(operation)
            raise
        self.committed.append(operation)

# --- Fixtures ---

@pytest_asyncio.fixture(scope="function")
async def db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    client = AsyncMongoMockClient(tz_aware=True)
    db_name = f"test_db_{os.urandom(4).hex()}"
    yield client[db_name]
    await client.drop_database(db_name)

@pytest_asyncio.fixture
async def repos(db) -> SimpleNamespace:
    namespace = SimpleNamespace(
        clients=ClientRepository(db),
        sectors=SectorRepository(db),
        roles=JobRoleRepository(db),
        users=UserRepository(db),
        audit=AuditLogRepository(db),
        invoices=InvoiceRepository(db),
        global_configs=GlobalConfigRepository(db),
        salaries=SalaryConfigRepository(db),
        allocations=EffortAllocationRepository(db),
        analyses=ContractAnalysisRepository(db),
    )
    # Mesmos índices únicos criados no lifespan da aplicação
    for repo in vars(namespace).values():
        await repo.create_indexes()
    return namespace

@pytest.fixture
def tx(db, repos) -> SnapshotTransactionManager:
    names = [repo.collection_name for repo in vars(repos).values() if repo is not repos.audit]
    return SnapshotTransactionManager(db, names)

@pytest.fixture
def audit_service(repos) -> AuditService:
    return AuditService(repos.audit)

@pytest.fixture
def analysis_service(repos, tx, audit_service) -> ContractAnalysisService:
    return ContractAnalysisService(
        repos.analyses, repos.global_configs, repos.salaries, repos.invoices, repos.allocations,
        repos.clients, repos.sectors, repos.roles, repos.users, tx, audit_service,
    )

@pytest.fixture
def config_service(repos, tx, audit_service) -> AnalysisConfigService:
    return AnalysisConfigService(repos.global_configs, repos.salaries, repos.sectors, repos.roles, tx, audit_service)

@pytest.fixture
def allocation_service(repos, tx, audit_service) -> EffortAllocationService:
    return EffortAllocationService(repos.allocations, repos.invoices, repos.sectors, repos.roles, tx, audit_service)

@pytest.fixture
def invoice_service(repos, audit_service) -> InvoiceService:
    return InvoiceService(repos.invoices, repos.clients, repos.users, audit_service)

class Seeder:
    """Atalhos para montar o cenário de um mês, gravando pelos próprios repositórios."""

    def __init__(self, repos: SimpleNamespace):
        self.repos = repos

    async def user(self, nome: str = "Gerente Teste", email: str = "gerente@example.com"):
        return await self.repos.users.create({"nome": nome, "email": email, "permissao": "Gerente"})

    async def client(self, nome: str, codigo: Optional[str] = None):
        return await self.repos.clients.create({"nome": nome, "codigo": codigo, "razao_social": f"{nome} LTDA"})

    async def sector(self, nome: str = "Contábil"):
        return await self.repos.sectors.create({"nome_setor": nome})

    async def role(self, nome: str = "Analista"):
        return await self.repos.roles.create({"nome_cargo": nome})

    async def global_config(self, month: date, margin="20", hours_factor="220"):
        return await self.repos.global_configs.create({
            "mes_ano_referencia": month,
            "percentual_margem_lucro_desejada": Decimal(margin),
            "fator_horas_mensal_padrao": Decimal(hours_factor),
        })

    async def salary(self, month: date, sector, role, amount="4400"):
        return await self.repos.salaries.create({
            "mes_ano_referencia": month, "setor_id": sector.id, "cargo_id": role.id, "salario_mensal_base": Decimal(amount),
        })

    async def invoice(self, client, month: date, amount="5000"):
        return await self.repos.invoices.create({"cliente_id": client.id, "mes_ano": month, "valor_faturamento": Decimal(amount)})

    async def allocation(self, invoice, sector, role, hours="100", headcount: int = 1):
        return await self.repos.allocations.create({
            "faturamento_id": invoice.id, "setor_id": sector.id, "cargo_id": role.id,
            "quantidade_funcionarios": headcount, "total_horas_gastas_cargo": Decimal(hours),
        })

@pytest.fixture
def seed(repos) -> Seeder:
    return Seeder(repos)

@pytest_asyncio.fixture
async def manager(seed: Seeder):
    return await seed.user()

@pytest.fixture
def audit_actions(repos):
    async def _actions() -> List[str]:
        return await repos.audit.collection.distinct("action")
    return _actions

@pytest.fixture
def principal_for():
    from backoffice.models.auth import Principal, Role

    def _make(user, role: Role = Role.GERENTE) -> Principal:
        return Principal(user_id=user.id, email=user.email, role=role, raw_role=role.value)
    return _make

@pytest.fixture
def token_for():
    def _make(user_id, role: str = "Gerente", email: str = "user@example.com") -> Dict[str, str]:
        token = create_access_token({"sub": str(user_id), "email": email, "role": role})
        return {"Authorization": f"Bearer {token}"}
    return _make

@pytest.fixture
def app(analysis_service, config_service, allocation_service, invoice_service, audit_service):
    from backoffice.main import app as fastapi_app
    from backoffice.modules.allocation.services import get_allocation_service
    from backoffice.modules.analysis_config.services import get_analysis_config_service
    from backoffice.modules.contract_analysis.services import get_contract_analysis_service
    from backoffice.modules.invoices.services import get_invoice_service
    from backoffice.modules.office.services_audit import get_audit_service

    fastapi_app.dependency_overrides = {
        get_contract_analysis_service: lambda: analysis_service,
        get_analysis_config_service: lambda: config_service,
        get_allocation_service: lambda: allocation_service,
        get_invoice_service: lambda: invoice_service,
        get_audit_service: lambda: audit_service,
    }
    yield fastapi_app
    fastapi_app.dependency_overrides = {}

@pytest_asyncio.fixture
async def test_client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
