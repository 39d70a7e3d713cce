from src.board.domain.events.board_event import EventType
from src.board.domain.exceptions import StoreError
from src.board.domain.models import TaskStatus

HEADERS = {"X-User-Id": "user-1"}


def test_get_board_opens_newest_project(api_client) -> None:
    client, store, _ = api_client
    task = store.add(project_id="p-new", title="Design logo", status=TaskStatus.REVIEW)

    response = client.get("/board", headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["project_id"] == "p-new"
    assert body["empty"] is False
    review = next(c for c in body["columns"] if c["status"] == "review")
    assert [t["id"] for t in review["tasks"]] == [task.id]


def test_missing_user_header_is_rejected(api_client) -> None:
    client, _, _ = api_client

    response = client.get("/board")

    assert response.status_code == 422


def test_list_projects_returns_only_owned_projects(api_client) -> None:
    client, _, _ = api_client

    response = client.get("/projects", headers=HEADERS)

    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == ["p-new", "p-old"]


def test_create_task_returns_store_assigned_id(api_client) -> None:
    client, store, notifier = api_client
    client.get("/board", headers=HEADERS)

    response = client.post(
        "/board/tasks",
        json={"title": "Send proposal", "priority": "urgent", "due_date": "2024-09-30"},
        headers=HEADERS,
    )

    assert response.status_code == 201
    created = response.json()
    assert created["id"] in store.tasks
    assert created["priority"] == "urgent"
    assert created["status"] == "todo"
    assert notifier.types()[-1] == EventType.TASK_CREATED


def test_create_task_with_blank_title_is_unprocessable(api_client) -> None:
    client, store, _ = api_client
    client.get("/board", headers=HEADERS)

    response = client.post("/board/tasks", json={"title": " "}, headers=HEADERS)

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "title"
    assert "insert_task" not in store.call_names()


def test_actions_before_opening_board_are_not_found(api_client) -> None:
    client, _, _ = api_client

    response = client.post("/board/tasks", json={"title": "Early"}, headers=HEADERS)

    assert response.status_code == 404


def test_move_task_and_store_failure_rollback(api_client) -> None:
    client, store, _ = api_client
    task = store.add(project_id="p-new", title="Call client")
    client.get("/board", headers=HEADERS)

    moved = client.post(f"/board/tasks/{task.id}/move", json={"status": "in_progress"}, headers=HEADERS)
    assert moved.status_code == 200
    assert moved.json()["status"] == "in_progress"

    store.fail_next("update_task", StoreError("network down"))
    failed = client.post(f"/board/tasks/{task.id}/move", json={"status": "completed"}, headers=HEADERS)
    assert failed.status_code == 502

    board = client.get("/board", headers=HEADERS).json()
    in_progress = next(c for c in board["columns"] if c["status"] == "in_progress")
    assert [t["id"] for t in in_progress["tasks"]] == [task.id]


def test_move_to_unknown_column_is_unprocessable(api_client) -> None:
    client, store, _ = api_client
    task = store.add(project_id="p-new", title="Call client")
    client.get("/board", headers=HEADERS)

    response = client.post(f"/board/tasks/{task.id}/move", json={"status": "done"}, headers=HEADERS)

    assert response.status_code == 422


def test_delete_task(api_client) -> None:
    client, store, _ = api_client
    task = store.add(project_id="p-new", title="Obsolete")
    client.get("/board", headers=HEADERS)

    response = client.delete(f"/board/tasks/{task.id}", headers=HEADERS)

    assert response.status_code == 204
    assert task.id not in store.tasks
    missing = client.delete(f"/board/tasks/{task.id}", headers=HEADERS)
    assert missing.status_code == 404


def test_select_foreign_project_is_forbidden(api_client) -> None:
    client, _, _ = api_client

    response = client.put("/board/project", json={"project_id": "p-other"}, headers=HEADERS)

    assert response.status_code == 403


def test_select_and_clear_project(api_client) -> None:
    client, _, _ = api_client

    selected = client.put("/board/project", json={"project_id": "p-old"}, headers=HEADERS)
    cleared = client.put("/board/project", json={"project_id": None}, headers=HEADERS)

    assert selected.json()["project_id"] == "p-old"
    assert cleared.json()["empty"] is True


def test_log_time(api_client) -> None:
    client, store, _ = api_client
    task = store.add(project_id="p-new", title="Bookkeeping", time_spent=1.0)
    client.get("/board", headers=HEADERS)

    response = client.post(f"/board/tasks/{task.id}/time", json={"hours": 2.5}, headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["time_spent"] == 3.5


def test_board_subscription_starts_with_snapshot(api_client) -> None:
    client, store, _ = api_client
    task = store.add(project_id="p-new", title="Plan sprint")
    client.get("/board", headers=HEADERS)

    with client.websocket_connect("/ws/board/user-1") as websocket:
        message = websocket.receive_json()

    assert message["type"] == "board_snapshot"
    assert message["project_id"] == "p-new"
    todo = next(c for c in message["payload"]["view"]["columns"] if c["status"] == "todo")
    assert [t["id"] for t in todo["tasks"]] == [task.id]
