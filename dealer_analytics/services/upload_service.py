"""
dealer_analytics/services/upload_service.py

State machine for one upload attempt, shared by the spreadsheet, raw-file and
deal-summary views.

    IDLE -> FILE_SELECTED -> VALIDATING -> REJECTED -> FILE_SELECTED ...
                                        -> ACCEPTED -> UPLOADING -> SUCCEEDED
                                                                 -> FAILED

A failed upload keeps its candidate so the user can press upload again; a
successful one discards it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

from dealer_analytics.client.api import UPLOAD_FAILED_MESSAGE, DealershipAPIClient
from dealer_analytics.client.errors import DealerAPIError, FileValidationError, Unauthorized
from dealer_analytics.schemas.uploads import DealSummaryUploadResult, LatestDealPointer, RawFileUploadResult
from dealer_analytics.session import SessionStore
from dealer_analytics.validators.upload_validator import (
    UploadCandidate,
    UploadPolicy,
    deal_summary_policy,
    raw_file_policy,
    spreadsheet_policy,
)

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


class UploadState(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    VALIDATING = "validating"
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_ALLOWED_TRANSITIONS: dict[UploadState, frozenset[UploadState]] = {
    UploadState.IDLE: frozenset({UploadState.FILE_SELECTED}),
    UploadState.FILE_SELECTED: frozenset({UploadState.VALIDATING, UploadState.IDLE}),
    UploadState.VALIDATING: frozenset({UploadState.REJECTED, UploadState.ACCEPTED}),
    UploadState.REJECTED: frozenset({UploadState.FILE_SELECTED, UploadState.IDLE}),
    UploadState.ACCEPTED: frozenset({UploadState.UPLOADING, UploadState.FILE_SELECTED, UploadState.IDLE}),
    UploadState.UPLOADING: frozenset({UploadState.SUCCEEDED, UploadState.FAILED, UploadState.REJECTED}),
    UploadState.SUCCEEDED: frozenset({UploadState.FILE_SELECTED, UploadState.IDLE}),
    UploadState.FAILED: frozenset({UploadState.UPLOADING, UploadState.FILE_SELECTED, UploadState.IDLE}),
}


class InvalidTransition(RuntimeError):
    """
    Raised when an operation is not allowed in the workflow's current state.
    """


class UploadWorkflow(Generic[ResultT]):
    """
    Drives select -> validate -> upload for a single call site.
    """

    def __init__(
        self,
        *,
        policy: UploadPolicy,
        submit: Callable[[UploadCandidate], ResultT],
        on_success: Callable[[ResultT], None] | None = None,
    ) -> None:
        self._policy = policy
        self._submit = submit
        self._on_success = on_success
        self._state = UploadState.IDLE
        self._history: list[UploadState] = [UploadState.IDLE]
        self._candidate: UploadCandidate | None = None
        self._result: ResultT | None = None
        self._error_message: str | None = None

    @property
    def policy(self) -> UploadPolicy:
        return self._policy

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def history(self) -> tuple[UploadState, ...]:
        return tuple(self._history)

    @property
    def candidate(self) -> UploadCandidate | None:
        return self._candidate

    @property
    def result(self) -> ResultT | None:
        return self._result

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def can_upload(self) -> bool:
        return self._state in {UploadState.ACCEPTED, UploadState.FAILED} and self._candidate is not None

    def select(self, filename: str, data: bytes, content_type: str | None = None) -> UploadState:
        """
        Pick a file and validate it against the policy.

        Returns ACCEPTED or REJECTED.
        """

        self._transition(UploadState.FILE_SELECTED)
        self._candidate = UploadCandidate(filename=filename, data=data, content_type=content_type)
        self._result = None
        self._error_message = None

        self._transition(UploadState.VALIDATING)
        checked = self._policy.validate(self._candidate)
        self._candidate = checked
        if not checked.validated:
            self._error_message = checked.error_reason
            self._transition(UploadState.REJECTED)
        else:
            self._transition(UploadState.ACCEPTED)
        return self._state

    def upload(self) -> ResultT | None:
        """
        Submit the accepted candidate and return the server's result.

        API failures are captured in ``error_message`` and None is returned.
        Unauthorized is re-raised after the workflow moves to FAILED so the
        caller can route to login.
        """

        candidate = self._candidate
        if not self.can_upload or candidate is None:
            raise InvalidTransition(f"Cannot upload from state {self._state.value}")

        self._transition(UploadState.UPLOADING)
        self._error_message = None
        try:
            result = self._submit(candidate)
        except FileValidationError as exc:
            self._error_message = str(exc)
            self._transition(UploadState.REJECTED)
            return None
        except Unauthorized:
            self._error_message = "Your session has expired. Please sign in again."
            self._transition(UploadState.FAILED)
            raise
        except DealerAPIError as exc:
            self._error_message = str(exc) or UPLOAD_FAILED_MESSAGE
            self._transition(UploadState.FAILED)
            logger.warning(
                "Upload failed policy=%s filename=%s error=%s",
                self._policy.name,
                candidate.filename,
                self._error_message,
            )
            return None

        self._result = result
        self._candidate = None
        self._transition(UploadState.SUCCEEDED)
        if self._on_success is not None:
            self._on_success(result)
        return result

    def reset(self) -> None:
        """
        Discard the candidate and any outcome; allowed except mid-upload.
        """

        if self._state is UploadState.IDLE:
            return
        self._transition(UploadState.IDLE)
        self._candidate = None
        self._result = None
        self._error_message = None

    def _transition(self, target: UploadState) -> None:
        allowed = _ALLOWED_TRANSITIONS[self._state]
        if target not in allowed:
            raise InvalidTransition(f"Cannot move from {self._state.value} to {target.value}")
        self._state = target
        self._history.append(target)


def deal_summary_workflow(
    client: DealershipAPIClient,
    session_store: SessionStore,
    *,
    policy: UploadPolicy | None = None,
    on_pointer: Callable[[LatestDealPointer], None] | None = None,
) -> UploadWorkflow[DealSummaryUploadResult]:
    """
    Deal-summary upload that records the latest-deal pointer on success.
    """

    def _remember(result: DealSummaryUploadResult) -> None:
        pointer = session_store.remember_latest_deal(result)
        if pointer is not None and on_pointer is not None:
            on_pointer(pointer)

    policy = policy or deal_summary_policy()

    def _submit(candidate: UploadCandidate) -> DealSummaryUploadResult:
        return client.process_deal_summary(candidate, policy=policy)

    return UploadWorkflow(policy=policy, submit=_submit, on_success=_remember)


def raw_file_workflow(
    client: DealershipAPIClient,
    *,
    policy: UploadPolicy | None = None,
) -> UploadWorkflow[RawFileUploadResult]:
    policy = policy or raw_file_policy()

    def _submit(candidate: UploadCandidate) -> RawFileUploadResult:
        return client.upload_raw_file(candidate, policy=policy)

    return UploadWorkflow(policy=policy, submit=_submit)


def spreadsheet_workflow(
    client: DealershipAPIClient,
    *,
    policy: UploadPolicy | None = None,
) -> UploadWorkflow[RawFileUploadResult]:
    """
    Generic spreadsheet upload; stores the file under the spreadsheet ceiling.
    """

    policy = policy or spreadsheet_policy()

    def _submit(candidate: UploadCandidate) -> RawFileUploadResult:
        return client.upload_raw_file(candidate, policy=policy)

    return UploadWorkflow(policy=policy, submit=_submit)
