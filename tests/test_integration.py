import base64
from datetime import datetime
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from src.fleetops.main import create_app
from src.fleetops.services.weather import TTLCache, WeatherService, WeatherUnavailableError, get_weather_service

STOPS = [
    {"id": 1, "nome": "Ana", "endereco": "Rua das Flores, 10", "lat": -25.4300, "lng": -49.2700},
    {"id": 2, "nome": "Bruno", "endereco": "Rua das Flores, 14", "lat": -25.4304, "lng": -49.2701},
    {"id": 3, "nome": "Carla", "endereco": "Av. Brasil, 500", "lat": -25.5000, "lng": -49.3000},
]


def _save_route(client: TestClient, name: str = "Rota Manhã") -> int:
    response = client.post(
        "/api/optimized-routes",
        json={
            "nome": name,
            "pontos": STOPS,
            "distanciaOriginal": 12.0,
            "distanciaOtimizada": 9.0,
            "algoritmo": "nearest_neighbor",
        },
    )
    assert response.status_code == 201
    return response.json()["rotaId"]


def test_health(api_client: TestClient) -> None:
    assert api_client.get("/api/health").json() == {"status": "ok"}
    database = api_client.get("/api/health/database").json()
    assert database["configured"] is True
    assert database["routes_count"] == 0


def test_health_without_database(no_db) -> None:
    client = TestClient(create_app())
    assert client.get("/api/health/database").json()["configured"] is False


def test_detect_duplicates_endpoint(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/duplicates/detect",
        json={"addresses": ["Rua das Flores, 123", "rua das flores 123", "Av. Brasil, 500"], "checkDatabase": False},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["summary"] == "Encontradas 1 duplicatas potenciais"
    assert payload["duplicates"][0]["confidence"] == "high"
    assert payload["report"]["high"] == 1
    assert payload["mergeActions"][0]["action"] == "merge"


def test_detect_endpoint_keeps_medium_pairs_separate(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/duplicates/detect",
        json={
            "addresses": [
                "Ponta Grossa",
                "Estrada da Graciosa, 1234, Quatro Barras",
                "Ponta Grosso",
                "Estrada da Graciosa, 1234, Quatro Barra",
            ],
            "checkDatabase": False,
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert [d["confidence"] for d in payload["duplicates"]] == ["medium", "high"]
    assert [(a["action"], a["original"]) for a in payload["mergeActions"]] == [
        ("keep_separate", "Ponta Grossa"),
        ("merge", "Estrada da Graciosa, 1234, Quatro Barras"),
    ]


def test_detect_endpoint_resolves_stored_row_ids(api_client: TestClient, fake_db) -> None:
    fake_db.rows("viagens").extend([{"id": 3, "endereco": "Curitiba"}, {"id": 1, "endereco": "Curitiba"}])

    response = api_client.post("/api/duplicates/detect", json={"addresses": ["curitiba", "Ponta Grossa"]})

    assert response.status_code == 200
    actions = response.json()["mergeActions"]
    assert len(actions) == 1
    assert actions[0]["original"] == "Curitiba"
    assert actions[0]["originalId"] == 1
    assert actions[0]["duplicateIds"] == []


def test_detect_duplicates_requires_addresses(api_client: TestClient) -> None:
    assert api_client.post("/api/duplicates/detect", json={"addresses": []}).status_code == 422
    assert api_client.post("/api/duplicates/detect", json={"addresses": ["a"], "threshold": 0.2}).status_code == 422


def test_review_duplicates_endpoint(api_client: TestClient, fake_db) -> None:
    fake_db.rows("viagens").extend([{"id": 1, "endereco": "Curitiba"}, {"id": 2, "endereco": "curitiba"}])

    response = api_client.post(
        "/api/duplicates/review",
        json={"duplicates": [{"original": "Curitiba", "duplicate": "curitiba", "action": "merge"}]},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["results"]["merged"] == 1
    assert payload["results"]["rowsUpdated"] == 1
    assert payload["message"] == "Revisão concluída: 1 merges, 0 splits, 0 ignoradas"


def test_save_and_load_route(api_client: TestClient) -> None:
    route_id = _save_route(api_client)

    response = api_client.get(f"/api/optimized-routes/{route_id}")

    assert response.status_code == 200
    route = response.json()["rota"]
    assert route["nome"] == "Rota Manhã"
    assert route["status"] == "optimized"
    assert route["economia"] == pytest.approx(3.0)
    assert [point["sequencia"] for point in route["pontos"]] == [1, 2, 3]
    assert route["paradas"][0]["id"] == "1"


def test_save_route_validates_payload(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/optimized-routes",
        json={"nome": "R", "pontos": STOPS, "distanciaOriginal": 1, "distanciaOtimizada": 1, "algoritmo": "x"},
    )
    assert response.status_code == 422


def test_list_routes_with_filters(api_client: TestClient) -> None:
    first = _save_route(api_client, "Rota Um")
    second = _save_route(api_client, "Rota Dois")

    routes = api_client.get("/api/optimized-routes").json()["rotas"]
    assert [route["id"] for route in routes] == [second, first]
    assert api_client.get("/api/optimized-routes", params={"status": "draft"}).json()["rotas"] == []
    paged = api_client.get("/api/optimized-routes", params={"limite": 1, "offset": 1}).json()["rotas"]
    assert [route["id"] for route in paged] == [first]


def test_build_route_endpoint_stores_nothing(api_client: TestClient, fake_db) -> None:
    response = api_client.post("/api/optimized-routes/build", json={"pontos": STOPS, "algoritmo": "sequencial"})

    assert response.status_code == 200
    payload = response.json()
    assert [point["membros"] for point in payload["pontosEmbarque"]] == [["1", "2"], ["3"]]
    assert payload["metadata"]["cluster_count"] == 2
    assert fake_db.rows("optimized_routes") == []


def test_build_route_rejects_mismatched_legs(api_client: TestClient) -> None:
    response = api_client.post("/api/optimized-routes/build", json={"pontos": STOPS, "distanciasTrechos": [1.0]})
    assert response.status_code == 400


def test_draft_optimize_and_restore(api_client: TestClient) -> None:
    draft = api_client.post("/api/optimized-routes/drafts", json={"nome": "Rota Tarde", "pontos": STOPS})
    assert draft.status_code == 201
    route_id = draft.json()["rota"]["id"]
    assert draft.json()["rota"]["status"] == "draft"

    optimized = api_client.post(f"/api/optimized-routes/{route_id}/optimize", json={"persist": True})
    assert optimized.status_code == 200
    payload = optimized.json()
    assert payload["versao"] == 1
    assert payload["rota"]["status"] == "optimized"
    assert len(payload["resultado"]["pontosEmbarque"]) == 2

    again = api_client.post(f"/api/optimized-routes/{route_id}/optimize", json={"maxPontosPorCluster": 1})
    assert again.json()["versao"] == 2
    assert len(again.json()["rota"]["pontos"]) == 3

    history = api_client.get(f"/api/optimized-routes/{route_id}/versions").json()["versoes"]
    assert [version["versao"] for version in history] == [2, 1]

    restored = api_client.post(f"/api/optimized-routes/{route_id}/versions/1/restore")
    assert restored.status_code == 200
    assert restored.json()["versao"] == 3
    assert len(restored.json()["rota"]["pontos"]) == 2


def test_optimize_writes_export_when_asked(api_client: TestClient, export_root) -> None:
    draft = api_client.post("/api/optimized-routes/drafts", json={"nome": "Rota Export", "pontos": STOPS})
    route_id = draft.json()["rota"]["id"]

    api_client.post(f"/api/optimized-routes/{route_id}/optimize", json={"persist": True})

    runs = list((export_root / "exports").glob(f"route_{route_id}_*"))
    assert len(runs) == 1
    assert (runs[0] / "summary.json").exists()


def test_create_version_endpoint(api_client: TestClient) -> None:
    route_id = _save_route(api_client)

    response = api_client.post(
        f"/api/optimized-routes/{route_id}/versions",
        json={"descricaoMudanca": "Ajuste manual", "pontos": STOPS[:2], "distancia": 8.0, "economia": 2.0},
    )

    assert response.status_code == 201
    assert response.json()["versao"] == 1
    [version] = api_client.get(f"/api/optimized-routes/{route_id}/versions").json()["versoes"]
    assert version["percentualEconomia"] == pytest.approx(20.0)
    assert version["descricaoMudanca"] == "Ajuste manual"


def test_status_update_delete(api_client: TestClient) -> None:
    route_id = _save_route(api_client)

    renamed = api_client.patch(f"/api/optimized-routes/{route_id}", json={"nome": "Rota Renomeada"})
    assert renamed.json()["rota"]["nome"] == "Rota Renomeada"

    assert api_client.post(f"/api/optimized-routes/{route_id}/status", json={"status": "active"}).status_code == 200
    conflict = api_client.post(f"/api/optimized-routes/{route_id}/status", json={"status": "draft"})
    assert conflict.status_code == 409

    assert api_client.delete(f"/api/optimized-routes/{route_id}").json()["sucesso"] is True
    assert api_client.get(f"/api/optimized-routes/{route_id}").status_code == 404


def test_missing_route_is_404(api_client: TestClient) -> None:
    assert api_client.get("/api/optimized-routes/999").status_code == 404
    assert api_client.get("/api/optimized-routes/999/versions").status_code == 404
    assert api_client.post("/api/optimized-routes/999/versions/1/restore").status_code == 404


def test_unconfigured_storage_is_503(no_db) -> None:
    client = TestClient(create_app())
    assert client.get("/api/optimized-routes").status_code == 503


def test_share_flow(api_client: TestClient) -> None:
    route_id = _save_route(api_client)

    invalid = api_client.post(f"/api/optimized-routes/{route_id}/shares", json={"motoristaEmail": "not-an-email"})
    assert invalid.status_code == 422

    created = api_client.post(
        f"/api/optimized-routes/{route_id}/shares",
        json={"motoristaEmail": "motorista@example.com", "plataforma": "whatsapp"},
    )
    assert created.status_code == 201
    token = created.json()["token"]
    assert created.json()["urlCompartilhada"].endswith(f"/motorista/rota/{token}")
    assert created.json()["compartilhamento"]["status"] == "pending"

    assert api_client.post(f"/api/shares/{token}/events", json={"evento": "view"}).json()["visualizacoes"] == 1
    assert api_client.post(f"/api/shares/{token}/resend").json()["compartilhamento"]["envios"] == 2
    assert api_client.post(f"/api/shares/{token}/respond", json={"aceito": True}).json()["status"] == "accepted"
    assert api_client.post(f"/api/shares/{token}/respond", json={"aceito": False}).status_code == 409

    stats = api_client.get(f"/api/optimized-routes/{route_id}/shares/stats").json()
    assert stats["totalShares"] == 1
    assert stats["acceptanceRate"] == pytest.approx(100.0)
    assert stats["byPlatform"] == {"whatsapp": 1}

    shares = api_client.get(f"/api/optimized-routes/{route_id}/shares").json()["compartilhamentos"]
    assert [share["token"] for share in shares] == [token]


def test_links_and_qrcode(api_client: TestClient) -> None:
    route_id = _save_route(api_client)

    links = api_client.get(f"/api/optimized-routes/{route_id}/links").json()
    assert links["origem"] == "-25.43,-49.27"
    assert links["destino"] == "-25.5,-49.3"
    assert links["urlWaze"].startswith("https://waze.com/ul?ll=-25.5,-49.3")

    qr = api_client.get(f"/api/optimized-routes/{route_id}/qrcode").json()
    assert qr["qrCodeUrl"].startswith("https://api.qrserver.com/v1/create-qr-code/?size=300x300&data=")
    assert qr["urlCompartilhada"].endswith(f"/motorista/rota/{route_id}")


def test_share_unknown_token_is_404(api_client: TestClient) -> None:
    assert api_client.post("/api/shares/nope/respond", json={"aceito": True}).status_code == 404


def _workbook_base64() -> str:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "1° Turno"
    sheet.append(["Data", "Veículo", "Cidade", "Motorista", "Tipo"])
    sheet.append([datetime(2024, 5, 1, 6, 0), "ABC1D23", "Curitiba", "João", "entrada"])
    sheet.append([datetime(2024, 5, 1, 7, 0), "ABC1D23", "curitiba", "João", "saida"])
    buffer = BytesIO()
    workbook.save(buffer)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def test_import_trips_endpoint(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/imports/trips",
        json={"fileBase64": _workbook_base64(), "fileName": "viagens.xlsx", "autoMergeDuplicates": True},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["totalRecords"] == 2
    assert payload["duplicates"]["total"] == 1
    assert payload["mergedCities"] == {"curitiba": "Curitiba"}

    history = api_client.get("/api/imports/history").json()
    assert history[0]["id"] == payload["historyId"]
    assert history[0]["fileName"] == "viagens.xlsx"


def test_import_rejects_unreadable_file(api_client: TestClient) -> None:
    response = api_client.post("/api/imports/trips", json={"fileBase64": "@@@", "fileName": "x.xlsx"})
    assert response.status_code == 400


def _forecast(latitude: float, longitude: float) -> dict:
    return {
        "current": {"temperature_2m": 18.2, "weather_code": 3},
        "daily": {
            "time": ["2024-05-01", "2024-05-02"],
            "weather_code": [3, 61],
            "temperature_2m_max": [22.0, 19.6],
            "temperature_2m_min": [11.0, 10.4],
        },
    }


def test_weather_endpoint(api_client: TestClient) -> None:
    service = WeatherService(_forecast, TTLCache(600))
    api_client.app.dependency_overrides[get_weather_service] = lambda: service

    payload = api_client.get("/api/weather").json()

    assert payload["curitiba"]["current"]["temperature"] == 18
    assert payload["araucaria"]["city"] == "Araucária"
    assert payload["curitiba"]["forecast"][1]["maxTemp"] == 20
    assert "lastUpdated" in payload


def test_weather_provider_failure_is_502(api_client: TestClient) -> None:
    def failing(latitude: float, longitude: float) -> dict:
        raise WeatherUnavailableError("Open-Meteo offline")

    service = WeatherService(failing, TTLCache(600))
    api_client.app.dependency_overrides[get_weather_service] = lambda: service

    assert api_client.get("/api/weather").status_code == 502
