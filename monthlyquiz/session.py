"""
Exam session: state, event log and the controller that owns the timer,
the submission gate and the state for one exam attempt.
"""

import dataclasses
import threading
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, Optional

from .errors import LoadError, SchemaError, SubmissionError
from .models import ExamConfig, ExamWindow, Paper
from .papers import candidates, load_source, normalize_candidate, resolve_source_path
from .selector import VariantSelector, paper_seed
from .submission import (
    SubmissionGate,
    SubmitOutcome,
    SubmitResult,
    Trigger,
    build_submission_record,
    compile_result_sheet,
    personal_key,
)
from .timer import SessionTimer, TimerState
from .windows import Clock, utc_now


class SessionLog:
    """Append-only event log for exam sessions."""

    def __init__(self, log_path: Path):
        self.log_path = Path(log_path)

    def log(self, event: str, details: str = ""):
        """Append an entry to the session log."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = f"[{timestamp}] - {event}"
        if details:
            log_entry += f" - {details}"
        log_entry += "\n"

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, 'a', encoding='utf-8') as f:
            f.write(log_entry)

    __call__ = log


class SessionState:
    """Transient state of one exam attempt."""

    def __init__(self, paper: Optional[Paper], window: ExamWindow, started_at: datetime):
        self.paper = paper
        self.window = window
        self.started_at = started_at
        self.answers: Dict[str, int] = {}
        self.submission_in_flight = False
        self.submitted = False
        self.elapsed = False
        self._lock = threading.Lock()

    @property
    def accepts_answers(self) -> bool:
        return (
            self.paper is not None
            and not self.elapsed
            and not self.submission_in_flight
            and not self.submitted
        )

    def select(self, question_id: str, option_index: int) -> bool:
        """Record an answer; returns False if answers are frozen or invalid."""
        with self._lock:
            if not self.accepts_answers:
                return False
            question = self.paper.question_by_id(question_id)
            if question is None or not 0 <= option_index < len(question.options):
                return False
            self.answers[question_id] = option_index
            return True

    def clear(self, question_id: str) -> bool:
        with self._lock:
            if not self.accepts_answers:
                return False
            return self.answers.pop(question_id, None) is not None

    def snapshot_answers(self) -> Dict[str, int]:
        with self._lock:
            return dict(self.answers)

    def mark_elapsed(self):
        with self._lock:
            self.elapsed = True

    def begin_submission(self):
        with self._lock:
            self.submission_in_flight = True

    def end_submission(self, succeeded: bool):
        with self._lock:
            self.submission_in_flight = False
            if succeeded:
                self.submitted = True


class SessionController:
    """
    Owns everything belonging to one exam attempt.

    Created when a window is open (or in practice mode), discarded when the
    attempt ends. Nothing here is process-global.
    """

    def __init__(
        self,
        config: ExamConfig,
        window: ExamWindow,
        exam_date: date,
        store,
        student_name: str = "",
        student_email: str = "",
        clock: Clock = utc_now,
        log: Optional[Callable[[str, str], None]] = None,
        key: Optional[bytes] = None,
        password: Optional[str] = None,
        selector: Optional[VariantSelector] = None,
        on_tick: Optional[Callable[[TimerState, timedelta], None]] = None,
        on_auto_submit: Optional[Callable[[SubmitResult], None]] = None
    ):
        self.config = config
        self.window = window
        self.subject = window.subject
        self.exam_date = exam_date
        self.store = store
        self.student_name = student_name.strip()
        self.student_email = student_email.strip()
        self.clock = clock
        self.log = log or (lambda event, details="": None)
        self.key = key
        self.password = password
        self.on_tick = on_tick
        self.on_auto_submit = on_auto_submit

        self.seed_text = paper_seed(exam_date.year, exam_date.month, exam_date.day, self.subject.id)
        self.selector = selector or VariantSelector(
            self.seed_text,
            randomize_paper=config.randomize_paper,
            question_order=config.question_order
        )

        self.load_error: Optional[Exception] = None
        self.state: Optional[SessionState] = None
        self.gate: Optional[SubmissionGate] = None
        self.timer: Optional[SessionTimer] = None
        self.auto_result: Optional[SubmitResult] = None
        self.last_result: Optional[SubmitResult] = None

    @property
    def identity_key(self) -> str:
        return personal_key(self.student_email, self.student_name)

    @property
    def paper(self) -> Optional[Paper]:
        return self.state.paper if self.state else None

    @property
    def is_finished(self) -> bool:
        if self.state is None:
            return False
        if self.state.submitted:
            return True
        if self.timer is None or self.timer.state not in (TimerState.ELAPSED, TimerState.CLOSED):
            return False
        # a failed submission after time-out stays open for a manual retry
        return not (self.last_result and self.last_result.outcome is SubmitOutcome.FAILED)

    def load_paper(self) -> Optional[Paper]:
        """
        Load, select and normalize today's paper.

        Load and schema errors are recorded on the controller and logged;
        the session then runs without a paper.
        """
        source_path = resolve_source_path(Path(self.config.papers_dir), self.subject)
        try:
            doc = load_source(source_path, self.subject.id, key=self.key, password=self.password)
            kind, raw_list = candidates(doc, self.subject.id)
            idx = self.selector.pick(len(raw_list))
            paper = normalize_candidate(kind, raw_list[idx], idx, doc, self.subject.id)
        except LoadError as e:
            self.load_error = e
            self.log("LOAD_ERROR", str(e))
            return None
        except SchemaError as e:
            self.load_error = e
            self.log("SCHEMA_ERROR", str(e))
            return None

        ordered = self.selector.order_questions(paper.questions, self.identity_key)
        paper = dataclasses.replace(paper, questions=ordered)
        self.log(
            "PAPER_LOADED",
            f"Subject: {self.subject.id}, Paper: {paper.paper_id}, Questions: {len(paper.questions)}"
        )
        return paper

    def open(self, start_timer: bool = True):
        """Load the paper, create the session state and start the countdown."""
        self.log(
            "SESSION_START",
            f"Student: {self.student_name or '-'} <{self.student_email or '-'}>, "
            f"Subject: {self.subject.id}, Window: {self.window.start.isoformat()} - {self.window.end.isoformat()}"
        )
        paper = self.load_paper()
        self.state = SessionState(paper, self.window, self.clock())
        self.gate = SubmissionGate(self.state, log=self.log)
        self.timer = SessionTimer(
            self.window,
            on_elapsed=self._on_elapsed,
            clock=self.clock,
            interval=self.config.tick_interval_seconds,
            on_tick=self.on_tick,
            log=self.log
        )
        if start_timer:
            self.timer.start()

    def answer(self, question_id: str, option_index: int) -> bool:
        if self.state is None:
            return False
        return self.state.select(question_id, option_index)

    def clear_answer(self, question_id: str) -> bool:
        if self.state is None:
            return False
        return self.state.clear(question_id)

    def remaining(self) -> timedelta:
        return self.timer.remaining() if self.timer else timedelta(0)

    def _pipeline(self, trigger: Trigger) -> Dict:
        submitted_at = self.clock()
        answers = self.state.snapshot_answers()
        sheet = compile_result_sheet(self.state.paper, answers, self.state.started_at, submitted_at)
        record = build_submission_record(
            self.subject,
            self.state.paper,
            sheet,
            answers,
            self.student_name,
            self.student_email,
            trigger is Trigger.AUTO,
            submitted_at
        )
        self.store.save_submission(record)
        return record

    def _submit(self, trigger: Trigger) -> SubmitResult:
        if self.state is None or self.state.paper is None:
            self.log("SUBMIT_REJECTED", f"{trigger.value}: no paper loaded")
            return SubmitResult(SubmitOutcome.NO_PAPER, trigger)
        try:
            result = self.gate.try_submit(trigger, lambda: self._pipeline(trigger))
        except Exception as e:
            self.log("SUBMISSION_FAILED", f"{trigger.value}: unexpected error: {e}")
            result = SubmitResult(SubmitOutcome.FAILED, trigger, error=SubmissionError(str(e)))
        # rejections from a concurrent trigger must not overwrite the outcome
        if result.outcome in (SubmitOutcome.SUBMITTED, SubmitOutcome.FAILED):
            self.last_result = result
        return result

    def submit(self) -> SubmitResult:
        """Manual submission by the student."""
        result = self._submit(Trigger.MANUAL)
        if result.ok and self.timer:
            self.timer.stop()
        return result

    def _on_elapsed(self):
        self.state.mark_elapsed()
        self.auto_result = self._submit(Trigger.AUTO)
        if self.on_auto_submit:
            self.on_auto_submit(self.auto_result)

    def close(self):
        """Tear down the attempt; the timer will not fire afterwards."""
        if self.timer:
            self.timer.stop()
        submitted = self.state.submitted if self.state else False
        self.log("SESSION_END", f"Submitted: {'yes' if submitted else 'no'}")
