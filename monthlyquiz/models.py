"""
Data models for subjects, schedules, papers and result sheets.

Provides type-safe structures for the routine, the exam window, the
normalized paper shape and the exam configuration.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any


QUESTION_ORDERS = ("fixed", "seeded", "random")


@dataclass(frozen=True)
class Subject:
    """A subject taking part in the monthly program."""
    id: str
    name: str
    file: str
    short: bool = False

    @staticmethod
    def from_dict(data: dict) -> 'Subject':
        """Create a Subject from a config entry."""
        return Subject(
            id=data['id'],
            name=data.get('name') or data['id'],
            file=data.get('file') or f"{data['id']}.json",
            short=bool(data.get('short', False))
        )


@dataclass(frozen=True)
class ScheduleEntry:
    """One day of the exam window and the subject sat on it."""
    day: int
    subject: Subject


@dataclass(frozen=True)
class ExamWindow:
    """Absolute interval during which a day's exam accepts interaction."""
    subject: Subject
    start: datetime  # timezone-aware UTC
    end: datetime
    duration_minutes: int

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end

    @property
    def length(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class Option:
    """A multiple-choice option; plain text or text with an image."""
    text: str
    image: Optional[str] = None
    image_alt: Optional[str] = None

    @staticmethod
    def from_raw(raw: Any) -> 'Option':
        if isinstance(raw, dict):
            return Option(
                text=str(raw.get('text') or ''),
                image=raw.get('image'),
                image_alt=raw.get('imageAlt')
            )
        return Option(text=str(raw))

    def to_dict(self) -> Any:
        if self.image is None:
            return self.text
        return {"text": self.text, "image": self.image, "imageAlt": self.image_alt}


@dataclass(frozen=True)
class Question:
    """A question of a paper, in canonical shape."""
    id: str
    text: str
    options: List[Option]
    correct_index: Optional[int] = None
    image: Optional[str] = None
    image_alt: Optional[str] = None


@dataclass(frozen=True)
class Paper:
    """One selectable variant of a subject's question set."""
    paper_id: str
    questions: List[Question]
    alias: Optional[str] = None

    def question_by_id(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass(frozen=True)
class QuestionResult:
    """Scored outcome of a single question."""
    question_id: str
    text: str
    options: List[Option]
    chosen_index: Optional[int]
    correct_index: Optional[int]
    is_correct: Optional[bool]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.question_id,
            "text": self.text,
            "options": [opt.to_dict() for opt in self.options],
            "chosenIndex": self.chosen_index,
            "correctIndex": self.correct_index,
            "correct": self.is_correct,
        }


@dataclass(frozen=True)
class Totals:
    correct: int
    wrong: int
    unanswered: int
    total: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "correct": self.correct,
            "wrong": self.wrong,
            "unanswered": self.unanswered,
            "total": self.total,
        }


@dataclass(frozen=True)
class ResultSheet:
    """Scored, per-question breakdown of one submission."""
    per_question: List[QuestionResult]
    totals: Totals
    elapsed_seconds: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "perQuestion": [r.to_dict() for r in self.per_question],
            "totals": self.totals.to_dict(),
            "elapsedSeconds": self.elapsed_seconds,
        }


DEFAULT_SUBJECTS = [
    {"id": "bangla-1", "name": "Bangla - 1st Paper", "file": "bangla-1.json"},
    {"id": "bangla-2", "name": "Bangla - 2nd Paper", "file": "bangla-2.json"},
    {"id": "math", "name": "Math", "file": "math.json"},
    {"id": "higher-math", "name": "Higher Math", "file": "higher-math.json", "short": True},
    {"id": "physics", "name": "Physics", "file": "physics.json", "short": True},
    {"id": "chemistry", "name": "Chemistry", "file": "chemistry.json", "short": True},
    {"id": "biology", "name": "Biology", "file": "biology.json", "short": True},
    {"id": "bgs", "name": "Bangladesh & Global Studies", "file": "bgs.json"},
    {"id": "ict", "name": "ICT", "file": "ict.json", "short": True},
    {"id": "religion", "name": "Religion", "file": "religion.json"},
]


@dataclass
class ExamConfig:
    """
    Configuration of the monthly exam program.

    Attributes:
        exam_hour_local: Hour (local, fixed offset) at which each daily exam opens
        utc_offset_hours: Constant offset of the exam time zone from UTC
        window_days: Number of exam days at the end of each month (K)
        publish_lead_days: Days before the window when the routine is disclosed
        short_duration_minutes: Exam length for short-duration subjects
        standard_duration_minutes: Exam length for every other subject
        randomize_paper: Pick papers non-deterministically on each load
        question_order: "fixed", "seeded" or "random" question ordering
        tick_interval_seconds: Polling interval of the session timer
        papers_dir: Directory holding the per-subject paper sources
        data_dir: Directory for the local store and the session log
        subjects: Ordered subject list
    """
    exam_hour_local: int = 21
    utc_offset_hours: int = 6
    window_days: int = 10
    publish_lead_days: int = 20
    short_duration_minutes: int = 25
    standard_duration_minutes: int = 30
    randomize_paper: bool = False
    question_order: str = "seeded"
    tick_interval_seconds: float = 0.5
    papers_dir: str = "quizdata"
    data_dir: str = "exam_data"
    subjects: List[Subject] = field(
        default_factory=lambda: [Subject.from_dict(s) for s in DEFAULT_SUBJECTS]
    )

    @staticmethod
    def from_dict(data: dict) -> 'ExamConfig':
        """Create ExamConfig from dictionary."""
        subjects_data = data.get('subjects') or DEFAULT_SUBJECTS
        return ExamConfig(
            exam_hour_local=data.get('exam_hour_local', 21),
            utc_offset_hours=data.get('utc_offset_hours', 6),
            window_days=data.get('window_days', 10),
            publish_lead_days=data.get('publish_lead_days', 20),
            short_duration_minutes=data.get('short_duration_minutes', 25),
            standard_duration_minutes=data.get('standard_duration_minutes', 30),
            randomize_paper=data.get('randomize_paper', False),
            question_order=data.get('question_order', 'seeded'),
            tick_interval_seconds=float(data.get('tick_interval_seconds', 0.5)),
            papers_dir=data.get('papers_dir', 'quizdata'),
            data_dir=data.get('data_dir', 'exam_data'),
            subjects=[Subject.from_dict(s) for s in subjects_data]
        )

    def validate(self) -> tuple[bool, str]:
        """
        Validate configuration consistency.

        Returns:
            Tuple of (is_valid, error_message)
        """
        int_fields = (
            "exam_hour_local",
            "utc_offset_hours",
            "window_days",
            "publish_lead_days",
            "short_duration_minutes",
            "standard_duration_minutes",
        )
        for name in int_fields:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                return False, f"{name} must be an integer, got {value!r}"

        if not isinstance(self.randomize_paper, bool):
            return False, "randomize_paper must be true or false"

        for name in ("question_order", "papers_dir", "data_dir"):
            if not isinstance(getattr(self, name), str):
                return False, f"{name} must be a string"

        if not 0 <= self.exam_hour_local <= 23:
            return False, f"Exam hour must be between 0 and 23, got {self.exam_hour_local}"

        if not -12 <= self.utc_offset_hours <= 14:
            return False, f"UTC offset must be between -12 and 14 hours, got {self.utc_offset_hours}"

        if not 1 <= self.window_days <= 28:
            return False, "Window length must be between 1 and 28 days"

        if self.window_days > len(self.subjects):
            return False, f"Window length ({self.window_days}) exceeds the number of subjects ({len(self.subjects)})"

        ids = [s.id for s in self.subjects]
        if len(set(ids)) != len(ids):
            return False, "Subject ids must be unique"

        if self.publish_lead_days < 0:
            return False, "Publish lead time must be non-negative"

        for minutes in (self.short_duration_minutes, self.standard_duration_minutes):
            if minutes < 1 or minutes > 480:
                return False, "Exam durations must be between 1 and 480 minutes (8 hours)"

        if self.question_order not in QUESTION_ORDERS:
            return False, f"question_order must be one of {', '.join(QUESTION_ORDERS)}"

        if not 0 < self.tick_interval_seconds <= 1:
            return False, "Timer interval must be greater than 0 and at most 1 second"

        return True, ""

    def get_subject(self, subject_id: str) -> Optional[Subject]:
        """Look up a subject by id."""
        for subject in self.subjects:
            if subject.id == subject_id:
                return subject
        return None

    @staticmethod
    def default() -> 'ExamConfig':
        """Return default configuration (the original ten-subject program)."""
        return ExamConfig()
