#!/usr/bin/env python
"""
OTP-gated edit workflow

Editing a financial record (booking, expense, sale, salary, other income)
takes two separate steps against the API:

1. request-otp / verify-otp proves an admin approved the edit
2. update-* actually changes the record

The two calls are retried independently: a failed save leaves the session
unlocked, so the user does not need a new OTP to try again.

States:
    IDLE -> OTP_REQUESTED -> OTP_PENDING_ENTRY -> OTP_VERIFYING
         -> EDIT_UNLOCKED -> SAVING -> IDLE
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .api_client import BackOfficeClient
from .editability import EDIT_WINDOW_DAYS, is_editable
from .errors import (
    BackOfficeError,
    PreconditionError,
    TransportError,
    VerificationFailure,
    WorkflowStateError,
)
from .notifier import ConsoleNotifier
from .resources import EditableResource


class EditState(Enum):
    IDLE = "idle"
    OTP_REQUESTED = "otp_requested"
    OTP_PENDING_ENTRY = "otp_pending_entry"
    OTP_VERIFYING = "otp_verifying"
    EDIT_UNLOCKED = "edit_unlocked"
    SAVING = "saving"


# states during which a call is outstanding; new triggers are refused
BUSY_STATES = (EditState.OTP_REQUESTED, EditState.OTP_VERIFYING, EditState.SAVING)


@dataclass
class EditSession:
    """One edit attempt. Lives in memory only and is dropped on success or cancel."""
    verification_type: str
    object_id: int
    target_record: Dict[str, Any]
    category: Optional[str] = None
    otp_code: str = ""
    form: Dict[str, Any] = field(default_factory=dict)
    otp_requested_at: Optional[datetime] = None


@dataclass
class WorkflowResult:
    state: EditState
    ok: bool
    message: str = ""


class EditAuthorizationWorkflow:
    """Drives one record kind through the OTP edit flow.

    Args:
        client: API client carrying the logged-in session
        resource: which record kind is being edited
        notifier: toast presenter (success / error)
        editable: predicate on the record date, defaults to the 2-day window
        on_records: called with the freshly re-fetched list after a save
    """

    def __init__(self, client: BackOfficeClient, resource: EditableResource, notifier=None,
                 editable: Optional[Callable[[Any], bool]] = None,
                 on_records: Optional[Callable[[List[Dict]], None]] = None,
                 window_days: int = EDIT_WINDOW_DAYS):
        self.client = client
        self.resource = resource
        self.notifier = notifier or ConsoleNotifier()
        self.window_days = window_days
        self.editable = editable or (lambda d: is_editable(d, window_days=window_days))
        self.on_records = on_records
        self.state = EditState.IDLE
        self.session: Optional[EditSession] = None
        self.records: List[Dict] = []
        # bumped on every teardown; a reply for an older generation is ignored
        self._generation = 0

    # --- helpers ---------------------------------------------------------

    @property
    def form(self) -> Dict[str, Any]:
        return self.session.form if self.session else {}

    def _require(self, *states: EditState):
        if self.state not in states:
            if self.state in BUSY_STATES:
                raise WorkflowStateError("Please wait for the current request to finish.")
            raise WorkflowStateError(f"Not allowed while {self.state.value}.")

    def _teardown(self):
        self._generation += 1
        self.session = None
        self.state = EditState.IDLE

    def _stale(self, generation: int) -> bool:
        return generation != self._generation

    def _discarded(self) -> WorkflowResult:
        return WorkflowResult(self.state, False, "Edit cancelled")

    def _fail(self, message: str) -> WorkflowResult:
        self.notifier.error(message)
        return WorkflowResult(self.state, False, message)

    def _ok(self, message: str) -> WorkflowResult:
        self.notifier.success(message)
        return WorkflowResult(self.state, True, message)

    @staticmethod
    def _reply(result: Any) -> Dict[str, Any]:
        return result if isinstance(result, dict) else {}

    @staticmethod
    def _message(error: BackOfficeError, fallback: str) -> str:
        # transport problems get the generic text; server messages go out verbatim
        if isinstance(error, TransportError):
            return fallback
        return error.message or fallback

    # --- list ------------------------------------------------------------

    def refresh(self) -> List[Dict]:
        """Full re-fetch of the record list. A missing ``data`` key is an empty list."""
        try:
            self.records = self.client.list_records(self.resource.list_path)
        except BackOfficeError as e:
            self.records = []
            self.notifier.error(self._message(e, f"Failed to load {self.resource.name}"))
        if self.on_records:
            self.on_records(self.records)
        return self.records

    # --- transitions -----------------------------------------------------

    def begin(self, record: Dict) -> WorkflowResult:
        """IDLE -> OTP_REQUESTED -> OTP_PENDING_ENTRY (or back to IDLE on failure)."""
        try:
            self._require(EditState.IDLE)
            if not self.editable(record.get(self.resource.date_field)):
                raise PreconditionError(
                    f"Editing allowed only for records up to {self.window_days} days old")
        except BackOfficeError as e:
            return self._fail(e.message)

        snapshot = self.resource.snapshot(record)
        session = EditSession(
            verification_type=self.resource.verification_type,
            object_id=record.get("id"),
            target_record=snapshot,
            category=self.resource.otp_category(record),
        )
        self.session = session
        self.state = EditState.OTP_REQUESTED
        generation = self._generation

        try:
            result = self.client.request_otp(session.verification_type, session.object_id, session.category)
        except BackOfficeError as e:
            if self._stale(generation):
                return self._discarded()
            self._teardown()
            return self._fail(self._message(e, "Failed to request OTP"))

        if self._stale(generation):
            return self._discarded()
        session.otp_requested_at = datetime.now()
        self.state = EditState.OTP_PENDING_ENTRY
        return self._ok(self._reply(result).get("message") or "OTP sent to admin email")

    def submit_otp(self, code: str) -> WorkflowResult:
        """OTP_PENDING_ENTRY -> OTP_VERIFYING -> EDIT_UNLOCKED (or back to OTP_PENDING_ENTRY)."""
        try:
            self._require(EditState.OTP_PENDING_ENTRY)
        except BackOfficeError as e:
            return self._fail(e.message)

        code = (code or "").strip()
        if not code:
            return self._fail("Please enter OTP.")

        session = self.session
        session.otp_code = code
        self.state = EditState.OTP_VERIFYING
        generation = self._generation

        try:
            result = self._reply(self.client.verify_otp(session.verification_type, code))
            if result.get("verified") is not True:
                raise VerificationFailure(result.get("message") or "OTP not verified")
        except BackOfficeError as e:
            if self._stale(generation):
                return self._discarded()
            session.otp_code = ""
            self.state = EditState.OTP_PENDING_ENTRY
            return self._fail(self._message(e, "OTP verification failed"))

        if self._stale(generation):
            return self._discarded()
        session.otp_code = ""
        # form comes from the snapshot taken at begin(), never from a re-fetch
        session.form = dict(session.target_record)
        self.state = EditState.EDIT_UNLOCKED
        return self._ok("OTP verified. You can edit now.")

    def save(self, changes: Optional[Dict[str, Any]] = None) -> WorkflowResult:
        """EDIT_UNLOCKED -> SAVING -> IDLE (or back to EDIT_UNLOCKED on failure)."""
        try:
            self._require(EditState.EDIT_UNLOCKED)
        except BackOfficeError as e:
            return self._fail(e.message)

        session = self.session
        session.form.update(changes or {})

        try:
            cleaned = self.resource.validate(session.form)
            payload, files = self.resource.build_update(cleaned)
        except BackOfficeError as e:
            return self._fail(e.message)
        except OSError as e:
            return self._fail(f"Could not read attachment: {e}")

        self.state = EditState.SAVING
        generation = self._generation

        try:
            self.client.update_record(self.resource.update_path, session.object_id, payload, files)
        except BackOfficeError as e:
            if self._stale(generation):
                return self._discarded()
            self.state = EditState.EDIT_UNLOCKED
            return self._fail(self._message(e, f"Failed to update {self.resource.label.lower()}"))

        if self._stale(generation):
            return self._discarded()
        self._teardown()
        result = self._ok(f"{self.resource.label} updated successfully")
        self.refresh()
        return result

    def cancel(self) -> WorkflowResult:
        """Drop the session from any state but SAVING. Makes no calls."""
        if self.state == EditState.SAVING:
            return WorkflowResult(self.state, False, "Cannot cancel while saving")
        self._teardown()
        return WorkflowResult(self.state, True, "Edit cancelled")

    def close(self):
        """Tear down and abandon anything still in flight."""
        if self.state != EditState.SAVING:
            self._teardown()
        else:
            # the save reply will find a newer generation and be ignored
            self._generation += 1
        self.client.close()
