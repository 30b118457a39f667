# issuetracker/services/api_client.py
"""
Small ``requests`` client for the tracker REST API.

Used by scripts and by board front-ends that want server-confirmed moves:

    client = TrackerClient("http://localhost:8000")
    client.login("pm@acme.com", "secret123", "ACME")
    board = client.board()
    if not client.move_task(board, "PRJ-3", "done"):
        print("move rejected:", board.columns)
"""

import logging
from typing import Optional

import requests

from issuetracker.services.board import KanbanBoard, MoveCommand

logger = logging.getLogger(__name__)


class TrackerClient:
    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.set_token(token)

    def set_token(self, token: str):
        self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api{path}"

    def _request(self, method: str, path: str, **kwargs):
        response = self.session.request(method, self._url(path), timeout=self.timeout, **kwargs)
        response.raise_for_status()
        return response.json()

    def login(self, email: str, password: str, company_code: Optional[str] = None) -> dict:
        payload = {"email": email, "password": password}
        if company_code:
            payload["company_code"] = company_code
        data = self._request("POST", "/auth/login", json=payload)
        self.set_token(data["access_token"])
        return data["user"]

    def tasks(self, project_id: Optional[int] = None) -> list:
        params = {"project_id": project_id} if project_id is not None else None
        return self._request("GET", "/project-manager/tasks", params=params)

    def board(self, project_id: Optional[int] = None) -> KanbanBoard:
        params = {"project_id": project_id} if project_id is not None else None
        columns = self._request("GET", "/project-manager/board", params=params)
        return KanbanBoard(task for column in columns for task in column["tasks"])

    def update_status(self, task_key: str, status: str) -> dict:
        return self._request("PUT", f"/project-manager/tasks/{task_key}/status", json={"status": status})

    def move_task(self, board: KanbanBoard, task_key: str, status: str,
                  position: Optional[int] = None) -> bool:
        """Move a card and persist it; on any failure the board is restored."""
        command = MoveCommand(board, task_key, status, self.update_status, position=position)
        moved = command.execute()
        if not moved:
            logger.info("Server rejected move of %s to %s: %s", task_key, status, command.error)
        return moved
