import requests
from typing import Any, Dict, List, Optional

from .errors import ServerRejection, TransportError, extract_error_message
from .session import Session


class BackOfficeClient:
    """Shorelux back-office API client.

    All error shapes the API produces are turned into ``TransportError`` or
    ``ServerRejection`` here, so callers only ever see one ``message`` field.
    """

    def __init__(self, base_url: str, session: Session, timeout: Optional[float] = None,
                 http: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout
        self.http = http or requests.Session()

    # --- low level -------------------------------------------------------

    def _request(self, method: str, path: str, json: Optional[Dict] = None, data: Optional[Dict] = None,
                 files: Optional[Dict] = None, params: Optional[Dict] = None) -> Any:
        # raises AuthenticationError before touching the network
        headers = self.session.bearer_headers()
        url = f"{self.base_url}{path}"

        try:
            response = self.http.request(method, url, headers=headers, json=json, data=data,
                                         files=files, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Network error: {e}")

        return self._handle_json_or_error(response)

    @staticmethod
    def _handle_json_or_error(response: requests.Response) -> Any:
        try:
            payload = response.json()
        except ValueError:
            raise TransportError(f"Server error {response.status_code}: {response.reason or 'Unknown'}")

        if not response.ok:
            raise ServerRejection(extract_error_message(payload, response.status_code), response.status_code)
        return payload

    @staticmethod
    def _as_object(payload: Any) -> Dict:
        """A 2xx body that is not a JSON object (a bare string, a list) reads as empty."""
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def _multipart(payload: Dict, files: Dict) -> Dict:
        """Form fields as (None, value) parts so requests always sends multipart/form-data."""
        parts = {k: (None, str(v)) for k, v in payload.items() if v is not None}
        parts.update(files)
        return parts

    def close(self):
        self.http.close()

    # --- admin management ------------------------------------------------

    def request_otp(self, verification_type: str, object_id: int, category: Optional[str] = None) -> Dict:
        """Ask the server to send an OTP to the admin for this record."""
        body = {"verification_type": verification_type, "object_id": object_id}
        if category is not None:
            body["category"] = category
        return self._as_object(self._request("POST", "/admin-management/request-otp", json=body))

    def verify_otp(self, verification_type: str, otp: str) -> Dict:
        """Returns the raw payload; whether ``verified`` is set is the caller's call."""
        body = {"verification_type": verification_type, "otp": otp}
        return self._as_object(self._request("POST", "/admin-management/verify-otp", json=body))

    # --- staff management ------------------------------------------------

    def list_records(self, list_path: str, params: Optional[Dict] = None) -> List[Dict]:
        payload = self._request("GET", f"/staff-management/{list_path}", params=params)
        if not isinstance(payload, dict):
            return []
        return payload.get("data") or []

    def update_record(self, update_path: str, record_id: int, payload: Dict,
                      files: Optional[Dict] = None) -> Dict:
        path = f"/staff-management/{update_path}/{record_id}"
        if files is not None:
            return self._as_object(self._request("PUT", path, files=self._multipart(payload, files)))
        return self._as_object(self._request("PUT", path, json=payload))

    def create_record(self, create_path: str, payload: Dict, files: Optional[Dict] = None) -> Dict:
        path = f"/staff-management/{create_path}"
        if files is not None:
            return self._as_object(self._request("POST", path, files=self._multipart(payload, files)))
        return self._as_object(self._request("POST", path, json=payload))

    def delete_booking(self, booking_id: int) -> Dict:
        return self._as_object(self._request("DELETE", f"/staff-management/delete-booking/{booking_id}"))

    def daybook_entries(self, date: str) -> List[Dict]:
        """Credit/debit entries for one calendar day (YYYY-MM-DD)."""
        return self.list_records("daybook-entries", params={"date": date})

    def unified_income(self) -> List[Dict]:
        """Bookings, sales income and other income in one list, each row tagged with ``type``."""
        return self.list_records("unified-income")

    def booking_types(self) -> List[Dict]:
        return self.list_records("list-booking-types")

    def next_invoice_number(self) -> str:
        payload = self._as_object(self._request("GET", "/staff-management/generate-invoice-number"))
        return str(payload.get("next_invoice_no") or "")

    def monthly_ledger_summary(self, account: str, year: str) -> List[Dict]:
        payload = self._request("GET", "/staff-management/monthly-ledger-summary",
                                params={"account": account, "year": str(year)})
        if not isinstance(payload, dict):
            return []
        return payload.get("results") or []
