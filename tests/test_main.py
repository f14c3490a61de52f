from typing import cast
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from segment_service.main import app


def test_health_check():
    """The health endpoint works without touching dependencies."""
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_routes_are_mounted_under_api_v1():
    paths = set(app.openapi()["paths"])
    assert {
        "/api/v1/createSegment",
        "/api/v1/deleteSegment",
        "/api/v1/updateUserSegments/{userID}",
        "/api/v1/getUserSegments/{userID}",
        "/api/v1/getReport/{period}",
        "/api/v1/getUserReport/{period}/{userID}",
    } <= paths


def test_lifespan_success_path(mocker, mock_container: MagicMock):
    """Startup stores the container in app state; shutdown disposes of its engine."""
    mock_settings_instance = MagicMock()
    mocker.patch("segment_service.main.Settings", return_value=mock_settings_instance)
    mock_initialize_dependencies = mocker.patch(
        "segment_service.main.initialize_app_dependencies",
        new_callable=AsyncMock,
        return_value=mock_container,
    )
    mock_close_db_engine = mocker.patch("segment_service.main.close_db_engine", new_callable=AsyncMock)

    with TestClient(app) as client:
        mock_initialize_dependencies.assert_awaited_once_with(mock_settings_instance)
        current_app = cast(FastAPI, client.app)
        assert current_app.state.dependencies is mock_container

    mock_close_db_engine.assert_awaited_once_with(mock_container.db_engine)


def test_lifespan_startup_failure(mocker):
    """A failing dependency initialization prevents startup."""
    mocker.patch("segment_service.main.Settings", return_value=MagicMock())
    mocker.patch(
        "segment_service.main.initialize_app_dependencies",
        new_callable=AsyncMock,
        side_effect=RuntimeError("DB engine boom during init!"),
    )

    with pytest.raises(RuntimeError, match="Application startup failed.*DB engine boom during init!"):
        with TestClient(app):
            pass


def test_dependencies_missing_returns_500(mocker):
    """Without a lifespan-initialized container, segment endpoints fail with 500."""
    client = TestClient(app)
    if hasattr(app.state, "dependencies"):
        mocker.patch.object(app.state, "dependencies", None)

    response = client.get("/api/v1/getUserSegments/0f8fad5b-d9cb-469f-a165-70867728950e")

    assert response.status_code == 500
