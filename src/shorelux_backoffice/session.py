import json
import os
import requests
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from .errors import AuthenticationError, ServerRejection, TransportError, extract_error_message


@dataclass
class Session:
    """Logged-in user context, passed explicitly to everything that talks to the API.

    ``role`` is whatever the login endpoint reported. It is shown to the user
    but never used to decide what the server will allow.
    """
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    role: Optional[str] = None
    username: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def bearer_headers(self) -> Dict[str, str]:
        if not self.access_token:
            raise AuthenticationError("Authentication failed. Please login again.")
        return {"Authorization": f"Bearer {self.access_token}"}

    def logout(self):
        self.access_token = None
        self.refresh_token = None
        self.role = None
        self.username = None

    def save(self, file_path: str):
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)
        print(f"💾 Session saved to {file_path}")

    @classmethod
    def load(cls, file_path: str) -> "Session":
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return cls()
        return cls(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            role=data.get("role"),
            username=data.get("username"),
        )


def forget(file_path: str):
    """Remove the stored session file, if any."""
    try:
        os.remove(file_path)
    except FileNotFoundError:
        pass


def login(base_url: str, username: str, password: str, staff_code: Optional[str] = None,
          timeout: Optional[float] = None) -> Session:
    """Log in as ADMIN, or as STAFF when a staff code is given."""
    payload = {
        "login_type": "STAFF" if staff_code else "ADMIN",
        "username": username,
        "password": password,
    }
    if staff_code:
        payload["staff_unique_id"] = staff_code

    try:
        response = requests.post(f"{base_url}/login/login", json=payload, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Something went wrong! Try again later. ({e})")

    try:
        data = response.json()
    except ValueError:
        raise TransportError(f"Server error {response.status_code}: {response.reason or 'Unknown'}")

    if not response.ok:
        raise ServerRejection(extract_error_message(data, response.status_code), response.status_code)

    token = (data.get("token") if isinstance(data, dict) else None) or {}
    if not token.get("access"):
        raise AuthenticationError("Login response did not include an access token")

    return Session(
        access_token=token.get("access"),
        refresh_token=token.get("refresh"),
        role=data.get("role"),
        username=data.get("username", username),
    )
