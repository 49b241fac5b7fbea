"""
Dorm API client.

Thin wrapper over the HTTP API: JSON in, JSON out, bearer token from a
TokenStore. Any non-2xx answer raises ApiError carrying the server's error
tag, or "request_failed" when there is none. Nothing is retried.
"""
from typing import Any, Dict, List, Optional

import httpx

from .store import TokenStore

TICKET_STATUSES = ("open", "in_progress", "resolved", "closed")


class ApiError(Exception):
    def __init__(self, code: str, status_code: Optional[int] = None, details: Optional[list] = None):
        super().__init__(code)
        self.code = code
        self.status_code = status_code
        self.details = details


class DormClient:
    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        store: Optional[TokenStore] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.store = store or TokenStore()
        self.http = http or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.store.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, body: Optional[dict] = None) -> Any:
        try:
            resp = self.http.request(method, path, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            raise ApiError("request_failed") from e
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not resp.is_success:
            code = data.get("error") if isinstance(data, dict) else None
            details = data.get("details") if isinstance(data, dict) else None
            raise ApiError(code or "request_failed", resp.status_code, details)
        return data

    # --- session

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login", {"email": email, "password": password})
        self.store.set(data["token"])
        return data["user"]

    def logout(self) -> None:
        # токены не отзываются на сервере, просто забываем
        self.store.clear()

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    @property
    def logged_in(self) -> bool:
        return self.store.get() is not None

    # --- admin

    def create_user(self, email: str, name: str, role: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/admin/users", {"email": email, "name": name, "role": role, "password": password})

    # --- buildings / rooms / beds

    def buildings(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/buildings")

    def create_building(self, name: str) -> Dict[str, Any]:
        return self._request("POST", "/buildings", {"name": name})

    def create_room(self, building_id: int, floor: int, number: str) -> Dict[str, Any]:
        return self._request("POST", "/rooms", {"buildingId": building_id, "floor": floor, "number": number})

    def create_bed(self, room_id: int, label: str) -> Dict[str, Any]:
        return self._request("POST", "/beds", {"roomId": room_id, "label": label})

    # --- students

    def students(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/students")

    def create_student(self, user_id: int, student_no: str) -> Dict[str, Any]:
        return self._request("POST", "/students", {"userId": user_id, "studentNo": student_no})

    def checkin(self, student_id: int, bed_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/students/{student_id}/checkin", {"bedId": bed_id})

    def checkout(self, student_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/students/{student_id}/checkout")

    # --- tickets

    def tickets(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/tickets")

    def create_ticket(self, title: str, description: str) -> Dict[str, Any]:
        return self._request("POST", "/tickets", {"title": title, "description": description})

    def update_ticket(self, ticket_id: int, status: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/tickets/{ticket_id}", {"status": status})
