# tests/modules/analysis_config/test_analysis_config_api.py
import pytest
from fastapi import status
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

async def test_upsert_and_read_global_config(test_client: AsyncClient, manager, token_for, repos):
    headers = token_for(manager.id, "Gerente")
    payload = {"mes_ano_referencia": "2024-05", "percentual_margem_lucro_desejada": 20, "fator_horas_mensal_padrao": 220}

    response = await test_client.post("/api/v1/configuracao-analise/global", json=payload, headers=headers)
    assert response.status_code == status.HTTP_200_OK

    response = await test_client.post(
        "/api/v1/configuracao-analise/global", json={**payload, "percentual_margem_lucro_desejada": 25}, headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert await repos.global_configs.collection.count_documents({}) == 1
    document = await repos.global_configs.collection.find_one({})
    assert document["mes_ano_referencia"] == "2024-05-01"
    assert document["percentual_margem_lucro_desejada"] == "25"

    response = await test_client.get("/api/v1/configuracao-analise/global/2024-05-01", headers=headers)
    config = response.json()["configuracao_global"]
    assert config["mes_ano_referencia"] == "2024-05-01"
    assert config["percentual_margem_lucro_desejada"] == "25"
    assert config["fator_horas_mensal_padrao"] == "220"

async def test_missing_global_config_is_not_found(test_client: AsyncClient, manager, token_for):
    response = await test_client.get("/api/v1/configuracao-analise/global/2024-05", headers=token_for(manager.id, "Dev"))
    assert response.status_code == status.HTTP_404_NOT_FOUND

@pytest.mark.parametrize(
    "margin, factor", [(-1, 220), (20, 0)],
)
async def test_global_config_bounds(test_client: AsyncClient, manager, token_for, margin, factor):
    payload = {"mes_ano_referencia": "2024-05", "percentual_margem_lucro_desejada": margin, "fator_horas_mensal_padrao": factor}
    response = await test_client.post("/api/v1/configuracao-analise/global", json=payload, headers=token_for(manager.id, "Gerente"))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_gestor_cannot_configure(test_client: AsyncClient, manager, token_for):
    response = await test_client.get("/api/v1/configuracao-analise/salarios/2024-05", headers=token_for(manager.id, "Gestor"))
    assert response.status_code == status.HTTP_403_FORBIDDEN

async def test_salary_batch(test_client: AsyncClient, seed, manager, token_for):
    """Salários do mês voltam com nomes de setor e cargo."""
    sector, analyst, assistant = await seed.sector("Fiscal"), await seed.role("Analista"), await seed.role("Auxiliar")
    headers = token_for(manager.id, "Gerente")
    body = {"salarios": [
        {"setor_id": str(sector.id), "cargo_id": str(assistant.id), "salario_mensal_base": 2200},
        {"setor_id": str(sector.id), "cargo_id": str(analyst.id), "salario_mensal_base": "4400.5"},
    ]}

    response = await test_client.post("/api/v1/configuracao-analise/salarios/2024-05", json=body, headers=headers)
    assert response.status_code == status.HTTP_200_OK

    response = await test_client.get("/api/v1/configuracao-analise/salarios/2024-05-01", headers=headers)
    rows = response.json()["salarios_config"]
    assert [(r["nome_setor"], r["nome_cargo"], r["salario_mensal_base"]) for r in rows] == [
        ("Fiscal", "Analista", "4400.50"),
        ("Fiscal", "Auxiliar", "2200.00"),
    ]

async def test_salary_batch_with_unknown_role_writes_nothing(test_client: AsyncClient, seed, manager, token_for, repos):
    from bson import ObjectId

    sector, role = await seed.sector(), await seed.role()
    body = {"salarios": [
        {"setor_id": str(sector.id), "cargo_id": str(role.id), "salario_mensal_base": 3000},
        {"setor_id": str(sector.id), "cargo_id": str(ObjectId()), "salario_mensal_base": 3000},
    ]}

    response = await test_client.post("/api/v1/configuracao-analise/salarios/2024-05", json=body, headers=token_for(manager.id, "Dev"))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert await repos.salaries.collection.count_documents({}) == 0
