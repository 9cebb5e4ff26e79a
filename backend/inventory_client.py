"""
inventory_client.py

A small Python client for the inventory check-in/check-out API, mirroring
what the web UI does.

What it provides:
- Item CRUD (create with optional photo and PDF receipts)
- Check-in / check-out with the "register this item?" flow for unknown ids
- History, stats and CSV export helpers

Environment variables expected:
- INVENTORY_API_URL: e.g. "http://localhost:5000/api"

Dependencies:
- requests (pip install requests)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional

import requests


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


@dataclass
class CheckInOutOutcome:
    success: bool
    message: str
    item: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    requires_registration: bool = False
    suggested_item_id: Optional[str] = None


@dataclass
class InventoryApiClient:
    base_url: str
    timeout: float = 10.0
    session: requests.Session = field(default_factory=requests.Session)

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, *, json: Any = None, params: Dict[str, Any] | None = None,
                 data: Any = None, files: Any = None) -> requests.Response:
        resp = self.session.request(
            method,
            self._url(path),
            json=json,
            params=params,
            data=data,
            files=files,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        if resp.status_code >= 400:
            try:
                payload = resp.json()
            except ValueError:
                payload = None
            message = None
            if isinstance(payload, dict):
                message = payload.get("message") or payload.get("detail")
            raise ApiError(
                f"{method} {path} failed ({resp.status_code}): {message or resp.text}",
                status_code=resp.status_code,
                payload=payload,
            )
        return resp

    def _data(self, method: str, path: str, **kwargs) -> Any:
        return self._request(method, path, **kwargs).json().get("data")

    # ----------------------------
    # Items
    # ----------------------------

    def list_items(self, search: Optional[str] = None, status: Optional[str] = None) -> Dict[str, Any]:
        """Calls: GET /items -> {items, stats, count}"""
        params = {k: v for k, v in {"search": search, "status": status}.items() if v}
        return self._data("GET", "/items", params=params)

    def get_item(self, item_id: str) -> Dict[str, Any]:
        return self._data("GET", f"/items/{item_id}")

    def create_item(
        self,
        item_id: str,
        item_name: str,
        serial_number: Optional[str] = None,
        *,
        photo: Optional[BinaryIO] = None,
        receipts: Optional[List[BinaryIO]] = None,
    ) -> Dict[str, Any]:
        """
        Calls: POST /items
        Sends JSON unless a photo or receipts are attached, then multipart.
        """
        fields = {"itemId": item_id, "itemName": item_name}
        if serial_number:
            fields["serialNumber"] = serial_number
        if photo is None and not receipts:
            return self._data("POST", "/items", json=fields)

        files = []
        if photo is not None:
            files.append(("photo", (os.path.basename(getattr(photo, "name", "photo.jpg")), photo, "image/jpeg")))
        for r in receipts or []:
            files.append(("receipts", (os.path.basename(getattr(r, "name", "receipt.pdf")), r, "application/pdf")))
        return self._data("POST", "/items", data=fields, files=files)

    def update_item(self, item_id: str, *, item_name: Optional[str] = None, serial_number: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if item_name is not None:
            payload["itemName"] = item_name
        if serial_number is not None:
            payload["serialNumber"] = serial_number
        return self._data("PUT", f"/items/{item_id}", json=payload)

    def upload_photo(self, item_id: str, photo: BinaryIO, content_type: str = "image/jpeg") -> Dict[str, Any]:
        name = os.path.basename(getattr(photo, "name", "photo.jpg"))
        return self._data("POST", f"/items/{item_id}/photo", files={"photo": (name, photo, content_type)})

    def delete_item(self, item_id: str) -> None:
        self._request("DELETE", f"/items/{item_id}")

    # ----------------------------
    # Check-in / check-out
    # ----------------------------

    def check_in_out(self, item_id: str, serial_number: str, action: str, user_id: Optional[str] = None) -> CheckInOutOutcome:
        """
        Calls: POST /checkin-checkout

        Unknown items and wrong-state requests come back as an unsuccessful
        outcome instead of raising, so callers can offer registration.
        """
        payload = {"itemId": item_id, "serialNumber": serial_number, "action": action}
        if user_id:
            payload["userId"] = user_id
        try:
            body = self._request("POST", "/checkin-checkout", json=payload).json()
        except ApiError as e:
            body = e.payload if isinstance(e.payload, dict) else None
            if e.status_code == 404 and body and body.get("requiresRegistration"):
                return CheckInOutOutcome(
                    success=False,
                    message=body.get("message", ""),
                    requires_registration=True,
                    suggested_item_id=body.get("suggestedItemId"),
                )
            if e.status_code == 409 and body:
                return CheckInOutOutcome(
                    success=False,
                    message=body.get("message", ""),
                    item=body.get("data"),
                    reason=body.get("reason"),
                )
            raise
        return CheckInOutOutcome(success=True, message=body.get("message", ""), item=body.get("data"))

    def check_out(self, item_id: str, serial_number: str, user_id: Optional[str] = None) -> CheckInOutOutcome:
        return self.check_in_out(item_id, serial_number, "checkout", user_id)

    def check_in(self, item_id: str, serial_number: str, user_id: Optional[str] = None) -> CheckInOutOutcome:
        return self.check_in_out(item_id, serial_number, "checkin", user_id)

    # ----------------------------
    # Reports
    # ----------------------------

    def get_history(self, item_id: str) -> Dict[str, Any]:
        """Calls: GET /items/{id}/history -> {item, history}"""
        return self._data("GET", f"/items/{item_id}/history")

    def get_receipts(self, item_id: str) -> List[Dict[str, Any]]:
        return self._data("GET", f"/items/{item_id}/receipts")

    def get_stats(self) -> Dict[str, Any]:
        return self._data("GET", "/stats")

    def export_csv(self) -> str:
        return self._request("GET", "/export/csv").text


def make_client_from_env() -> InventoryApiClient:
    base_url = os.getenv("INVENTORY_API_URL", "").strip()
    if not base_url:
        raise RuntimeError("Missing INVENTORY_API_URL")
    return InventoryApiClient(base_url=base_url)


if __name__ == "__main__":
    client = make_client_from_env()
    print(client.get_stats())
