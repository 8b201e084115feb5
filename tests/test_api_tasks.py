from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path

import allure
import pytest
from fastapi.testclient import TestClient

from shiftdesk.api.app import create_app
from shiftdesk.config import Settings, TaskSettings
from shiftdesk.container import AppContainer
from shiftdesk.tasks.models import TaskStatus

pytestmark = [
    allure.epic("Async Tasks"),
    allure.feature("Polling API"),
]

OWNER = {"X-Owner-Id": "7"}


@pytest.fixture()
def container(tmp_path: Path) -> Iterator[AppContainer]:
    settings = replace(
        Settings(db_path=tmp_path / "api.db"),
        tasks=TaskSettings(cleanup_enabled=False),
    )
    app_container = AppContainer.build(settings)
    try:
        yield app_container
    finally:
        app_container.close()


@pytest.fixture()
def client(container: AppContainer) -> Iterator[TestClient]:
    with TestClient(create_app(container=container)) as test_client:
        yield test_client


def test_get_status_of_running_task(client: TestClient, container: AppContainer) -> None:
    task_id = container.task_service.create_task("STORE_CREATE", 7, {"name": "Cafe"})
    container.task_service.update_progress(task_id, 10)

    response = client.get(f"/api/v1/tasks/{task_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == 200
    assert body["message"] == "Task status retrieved"
    assert "timestamp" in body
    data = body["data"]
    assert data["taskId"] == task_id
    assert data["status"] == "IN_PROGRESS"
    assert data["taskType"] == "STORE_CREATE"
    assert data["progress"] == 10
    assert data["startedAt"] is not None
    assert data["expiresAt"] is not None
    assert "completedAt" not in data
    assert "errorMessage" not in data


def test_get_status_of_failed_task_includes_error(
    client: TestClient,
    container: AppContainer,
) -> None:
    task_id = container.task_service.create_task("SCHEDULE_UPDATE", 7, None)
    container.task_service.set_error(task_id, "Schedule not found: 99")

    data = client.get(f"/api/v1/tasks/{task_id}").json()["data"]

    assert data["status"] == "FAILED"
    assert data["errorMessage"] == "Schedule not found: 99"
    assert data["completedAt"] is not None


def test_get_status_unknown_task_is_404(client: TestClient) -> None:
    response = client.get("/api/v1/tasks/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == 404
    assert body["error"] == "TASK_NOT_FOUND"
    assert body["message"] == "Task not found: does-not-exist"
    assert body["path"] == "/api/v1/tasks/does-not-exist"


def test_get_result_of_completed_task(client: TestClient, container: AppContainer) -> None:
    task_id = container.task_service.create_task("STORE_CREATE", 7, None)
    container.task_service.update_status(
        task_id,
        TaskStatus.COMPLETED,
        {"id": 1, "name": "Cafe"},
    )

    response = client.get(f"/api/v1/tasks/{task_id}/result")

    assert response.status_code == 200
    assert response.json()["data"] == {"id": 1, "name": "Cafe"}


def test_get_result_of_completed_task_without_result_has_null_data(
    client: TestClient,
    container: AppContainer,
) -> None:
    task_id = container.task_service.create_task("STORE_CREATE", 7, None)
    container.task_service.update_status(task_id, TaskStatus.COMPLETED)

    body = client.get(f"/api/v1/tasks/{task_id}/result").json()

    assert body["status"] == 200
    assert body["data"] is None


def test_get_result_of_running_task_is_400(client: TestClient, container: AppContainer) -> None:
    task_id = container.task_service.create_task("STORE_CREATE", 7, None)

    response = client.get(f"/api/v1/tasks/{task_id}/result")

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "TASK_NOT_READY"
    assert body["message"] == "Task is not completed yet. Current status: IN_PROGRESS"


def test_get_result_of_failed_task_is_400(client: TestClient, container: AppContainer) -> None:
    task_id = container.task_service.create_task("STORE_CREATE", 7, None)
    container.task_service.set_error(task_id, "boom")

    response = client.get(f"/api/v1/tasks/{task_id}/result")

    assert response.status_code == 400
    assert response.json()["message"].endswith("Current status: FAILED")


def test_get_result_unknown_task_is_404(client: TestClient) -> None:
    response = client.get("/api/v1/tasks/nope/result")

    assert response.status_code == 404
    assert response.json()["error"] == "TASK_NOT_FOUND"


def test_corrupt_result_is_reported_as_unreadable(
    client: TestClient,
    container: AppContainer,
) -> None:
    task_id = container.task_service.create_task("STORE_CREATE", 7, None)
    task = container.repository.find_by_id(task_id)
    task.status = TaskStatus.COMPLETED
    task.result_data = "{broken"
    container.repository.save(task)

    response = client.get(f"/api/v1/tasks/{task_id}/result")

    assert response.status_code == 400
    assert response.json()["error"] == "RESULT_UNREADABLE"


def test_list_tasks_returns_only_callers_tasks(
    client: TestClient,
    container: AppContainer,
) -> None:
    own = container.task_service.create_task("STORE_CREATE", 7, None)
    container.task_service.create_task("STORE_CREATE", 8, None)

    response = client.get("/api/v1/tasks", headers=OWNER)

    assert response.status_code == 200
    assert [item["taskId"] for item in response.json()["data"]] == [own]


def test_list_tasks_filters_by_status(client: TestClient, container: AppContainer) -> None:
    container.task_service.create_task("STORE_CREATE", 7, None)
    done = container.task_service.create_task("STORE_CREATE", 7, None)
    container.task_service.update_status(done, TaskStatus.COMPLETED)

    response = client.get("/api/v1/tasks", params={"status": "COMPLETED"}, headers=OWNER)

    assert [item["taskId"] for item in response.json()["data"]] == [done]


def test_list_tasks_requires_owner(client: TestClient) -> None:
    response = client.get("/api/v1/tasks")

    assert response.status_code == 401
    body = response.json()
    assert body["error"] == "UNAUTHORIZED"
    assert body["message"] == "Authentication required"


def test_list_tasks_rejects_invalid_limit(client: TestClient) -> None:
    response = client.get("/api/v1/tasks", params={"limit": 0}, headers=OWNER)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["fieldErrors"][0]["field"] == "query.limit"


def test_owned_container_is_closed_when_lifespan_ends(tmp_path: Path) -> None:
    settings = replace(
        Settings(db_path=tmp_path / "owned.db"),
        tasks=TaskSettings(cleanup_enabled=False),
    )
    app = create_app(settings)
    owned: AppContainer = app.state.container

    with TestClient(app) as test_client:
        assert test_client.get("/api/v1/tasks/unknown").status_code == 404

    with pytest.raises(RuntimeError, match="after shutdown"):
        owned.pools.db.submit(lambda: None)
    with pytest.raises(RuntimeError, match="after shutdown"):
        owned.pools.general.submit(lambda: None)
