"""
Submission gate and result compilation.

Every submission, manual or triggered by the timer, goes through
SubmissionGate.try_submit, which checks and sets the in-flight flag under a
lock before any I/O starts.
"""

import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from .errors import SubmissionError
from .models import Paper, QuestionResult, ResultSheet, Subject, Totals


class Trigger(Enum):
    MANUAL = "manual"
    AUTO = "auto"


class SubmitOutcome(Enum):
    SUBMITTED = "submitted"
    IN_FLIGHT = "in_flight"
    ALREADY_SUBMITTED = "already_submitted"
    AUTO_ALREADY_FIRED = "auto_already_fired"
    NO_PAPER = "no_paper"
    FAILED = "failed"


@dataclass
class SubmitResult:
    outcome: SubmitOutcome
    trigger: Trigger
    record: Optional[Dict[str, Any]] = None
    error: Optional[SubmissionError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is SubmitOutcome.SUBMITTED

    @property
    def retryable(self) -> bool:
        """A failed manual submission may be attempted again."""
        return self.outcome is SubmitOutcome.FAILED and self.trigger is Trigger.MANUAL


class SubmissionGate:
    """Single-flight guard for one SessionState."""

    def __init__(self, state, log: Optional[Callable[[str, str], None]] = None):
        self.state = state
        self.log = log
        self._lock = threading.Lock()
        self._auto_fired = False

    def _log(self, event: str, details: str = ""):
        if self.log:
            self.log(event, details)

    def try_submit(self, trigger: Trigger, pipeline: Callable[[], Dict[str, Any]]) -> SubmitResult:
        """
        Run the submission pipeline unless another one is running or done.

        Rejections are logged no-ops. A SubmissionError from the pipeline
        releases the gate so a manual retry is possible; the automatic
        trigger is honoured at most once.
        """
        with self._lock:
            if self.state.submitted:
                self._log("SUBMIT_REJECTED", f"{trigger.value}: already submitted")
                return SubmitResult(SubmitOutcome.ALREADY_SUBMITTED, trigger)
            if self.state.submission_in_flight:
                self._log("SUBMIT_REJECTED", f"{trigger.value}: submission already in progress")
                return SubmitResult(SubmitOutcome.IN_FLIGHT, trigger)
            if trigger is Trigger.AUTO:
                if self._auto_fired:
                    self._log("SUBMIT_REJECTED", "auto: automatic submission already attempted")
                    return SubmitResult(SubmitOutcome.AUTO_ALREADY_FIRED, trigger)
                self._auto_fired = True
            self.state.begin_submission()

        succeeded = False
        try:
            record = pipeline()
            succeeded = True
        except SubmissionError as e:
            self._log("SUBMISSION_FAILED", f"{trigger.value}: {e}")
            return SubmitResult(SubmitOutcome.FAILED, trigger, error=e)
        finally:
            with self._lock:
                self.state.end_submission(succeeded)

        self._log("SUBMISSION", f"{trigger.value}: record {record.get('id')}")
        return SubmitResult(SubmitOutcome.SUBMITTED, trigger, record=record)


def _js_round(value: float) -> int:
    return math.floor(value + 0.5)


def elapsed_seconds(started_at: datetime, submitted_at: datetime) -> int:
    """Whole seconds between start and submission, never negative."""
    millis = (submitted_at - started_at) / timedelta(milliseconds=1)
    return max(0, _js_round(millis / 1000))


def compile_result_sheet(
    paper: Paper,
    answers: Mapping[str, int],
    started_at: datetime,
    submitted_at: datetime
) -> ResultSheet:
    """
    Score a paper against the chosen answers.

    A question without an answer key is unscored (is_correct None). Wrong
    counts every scored question not answered correctly, unanswered ones
    included.
    """
    per_question = []
    for question in paper.questions:
        chosen = answers.get(question.id)
        correct = question.correct_index
        is_correct = (chosen == correct) if correct is not None else None
        per_question.append(QuestionResult(
            question_id=question.id,
            text=question.text,
            options=list(question.options),
            chosen_index=chosen,
            correct_index=correct,
            is_correct=is_correct
        ))

    totals = Totals(
        correct=sum(1 for r in per_question if r.is_correct is True),
        wrong=sum(1 for r in per_question if r.is_correct is False),
        unanswered=sum(1 for r in per_question if r.chosen_index is None),
        total=len(per_question)
    )
    return ResultSheet(
        per_question=per_question,
        totals=totals,
        elapsed_seconds=elapsed_seconds(started_at, submitted_at)
    )


def personal_key(student_email: str, student_name: str) -> str:
    """History key: email, else name, else 'anonymous'; lower-cased."""
    raw = (student_email or "").strip() or (student_name or "").strip() or "anonymous"
    return raw.lower()


def iso_utc(instant: datetime) -> str:
    """Format like JavaScript's toISOString: 2025-06-15T15:00:00.000Z."""
    instant = instant.astimezone(timezone.utc)
    millis = instant.microsecond // 1000
    return instant.strftime('%Y-%m-%dT%H:%M:%S') + f".{millis:03d}Z"


def build_submission_record(
    subject: Subject,
    paper: Paper,
    sheet: ResultSheet,
    answers: Mapping[str, int],
    student_name: str,
    student_email: str,
    is_auto: bool,
    submitted_at: datetime
) -> Dict[str, Any]:
    """Assemble the record handed to the storage collaborator."""
    epoch_ms = int(submitted_at.timestamp() * 1000)
    return {
        "id": f"sub-{epoch_ms}",
        "subjectId": subject.id,
        "subjectName": subject.name,
        "paperId": paper.paper_id,
        "alias": paper.alias,
        "studentName": student_name or None,
        "studentEmail": student_email or None,
        "totals": sheet.totals.to_dict(),
        "resultSheet": sheet.to_dict(),
        "answers": dict(answers),
        "isAuto": is_auto,
        "timestampUtc": iso_utc(submitted_at),
    }
