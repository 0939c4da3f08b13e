# tests/commons/test_health_y_middleware.py

import pytest
from django.test import Client


@pytest.mark.django_db
def test_readiness_informa_motor_de_base():
    resp = Client().get("/health/readiness")

    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    assert resp.json()["db_vendor"] in ("sqlite", "postgresql")


def test_liveness_y_request_id_generado():
    resp = Client().get("/health/liveness")

    assert resp.status_code == 200
    assert resp["X-Request-ID"]


def test_request_id_entrante_se_devuelve():
    resp = Client().get("/time/now", HTTP_X_REQUEST_ID="abc-123")

    assert resp.status_code == 200
    assert resp["X-Request-ID"] == "abc-123"
    assert "now" in resp.json()
