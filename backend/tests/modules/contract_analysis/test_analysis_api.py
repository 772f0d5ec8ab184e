# tests/modules/contract_analysis/test_analysis_api.py
from datetime import date

import pytest
import pytest_asyncio
from bson import ObjectId
from fastapi import status
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

MAY = date(2024, 5, 1)

@pytest_asyncio.fixture
async def month_with_effort(seed):
    sector, role = await seed.sector(), await seed.role()
    client = await seed.client("Padaria Central", codigo="C001")
    await seed.global_config(MAY)
    await seed.salary(MAY, sector, role, "4400")
    invoice = await seed.invoice(client, MAY, "5000")
    await seed.allocation(invoice, sector, role, "100")
    return invoice

async def test_generate_analysis(test_client: AsyncClient, month_with_effort, manager, token_for):
    """Gera a análise do mês e devolve linhas + avisos."""
    response = await test_client.post(
        "/api/v1/analise-contratual/gerar-analise/2024-05-01", headers=token_for(manager.id, "Gerente"),
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert body["warnings"] == []
    assert len(body["analises"]) == 1
    row = body["analises"][0]
    assert row["faturamento_id"] == str(month_with_effort.id)
    assert row["mes_ano_referencia"] == "2024-05-01"
    assert row["valor_ideal_calculado_com_margem"] == "8400.00"
    assert row["custo_total_mao_de_obra_calculado"] == "2000.00"
    assert row["status_alerta"] == "REVISAR_CONTRATO"

async def test_generate_without_global_config_returns_400(test_client: AsyncClient, seed, manager, token_for, repos):
    invoice = await seed.invoice(await seed.client("Sem Config"), MAY)
    await seed.allocation(invoice, await seed.sector(), await seed.role())

    response = await test_client.post(
        "/api/v1/analise-contratual/gerar-analise/2024-05-01", headers=token_for(manager.id, "Dev"),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["success"] is False
    assert "Configuração global" in response.json()["message"]
    assert await repos.analyses.collection.count_documents({}) == 0

async def test_generate_with_malformed_month_returns_400(test_client: AsyncClient, manager, token_for):
    response = await test_client.post(
        "/api/v1/analise-contratual/gerar-analise/maio-2024", headers=token_for(manager.id, "Gerente"),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

async def test_list_analyses(test_client: AsyncClient, month_with_effort, manager, token_for):
    headers = token_for(manager.id, "Gestor")
    await test_client.post("/api/v1/analise-contratual/gerar-analise/2024-05-01", headers=headers)

    response = await test_client.get("/api/v1/analise-contratual/2024-05", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    rows = response.json()["analises"]
    assert len(rows) == 1
    assert rows[0]["cliente_nome"] == "Padaria Central"
    assert rows[0]["cliente_codigo"] == "C001"
    assert rows[0]["analise_realizada_por_usuario_nome"] == manager.nome

async def test_set_contract_value(test_client: AsyncClient, month_with_effort, manager, token_for):
    """contract_value=8000 contra ideal 8400 => diferença -400.00, REVISAR_CONTRATO."""
    headers = token_for(manager.id, "Gerente")
    generated = await test_client.post("/api/v1/analise-contratual/gerar-analise/2024-05-01", headers=headers)
    analysis_id = generated.json()["analises"][0]["id"]

    response = await test_client.put(
        f"/api/v1/analise-contratual/{analysis_id}/valor-contrato-atual",
        json={"contract_value": 8000},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    row = response.json()["analise"]
    assert row["valor_contrato_atual_cliente_input_gerente"] == "8000.00"
    assert row["diferenca_analise"] == "-400.00"
    assert row["status_alerta"] == "REVISAR_CONTRATO"

async def test_set_contract_value_accepts_portuguese_field(test_client: AsyncClient, month_with_effort, manager, token_for):
    headers = token_for(manager.id, "Gerente")
    generated = await test_client.post("/api/v1/analise-contratual/gerar-analise/2024-05-01", headers=headers)
    analysis_id = generated.json()["analises"][0]["id"]

    response = await test_client.put(
        f"/api/v1/analise-contratual/{analysis_id}/valor-contrato-atual",
        json={"valor_contrato_atual": "8400"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["analise"]["status_alerta"] == "NEUTRO"

@pytest.mark.parametrize("payload", [{}, {"contract_value": -10}])
async def test_set_contract_value_rejects_invalid_input(test_client: AsyncClient, month_with_effort, manager, token_for, payload):
    headers = token_for(manager.id, "Gerente")
    generated = await test_client.post("/api/v1/analise-contratual/gerar-analise/2024-05-01", headers=headers)
    analysis_id = generated.json()["analises"][0]["id"]

    response = await test_client.put(
        f"/api/v1/analise-contratual/{analysis_id}/valor-contrato-atual", json=payload, headers=headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

async def test_set_contract_value_unknown_analysis(test_client: AsyncClient, manager, token_for):
    response = await test_client.put(
        f"/api/v1/analise-contratual/{ObjectId()}/valor-contrato-atual",
        json={"contract_value": 100},
        headers=token_for(manager.id, "Gerente"),
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND

async def test_fiscal_role_is_forbidden(test_client: AsyncClient, manager, token_for, audit_actions):
    response = await test_client.post(
        "/api/v1/analise-contratual/gerar-analise/2024-05-01", headers=token_for(manager.id, "Fiscal"),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"success": False, "message": "Acesso negado. Permissão insuficiente."}
    assert "access_denied" in await audit_actions()

async def test_missing_token_is_unauthorized(test_client: AsyncClient):
    response = await test_client.get("/api/v1/analise-contratual/2024-05")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["success"] is False
