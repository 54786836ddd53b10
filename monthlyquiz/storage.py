"""
Local key-value store.

A single JSON file holds the remembered identity, the append-only list of
submissions and the personal history map keyed by normalized email/name.
"""

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .errors import SubmissionError
from .submission import personal_key

NAME_KEY = "aq_studentName"
EMAIL_KEY = "aq_studentEmail"
SUBMISSIONS_KEY = "aq_submissions"
PERSONAL_KEY = "aq_personal"


class LocalStore:
    """JSON-file backed store for identity, submissions and history."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            # corrupt store reads as empty
            return {}
        if not isinstance(data, dict):
            return {}
        if not isinstance(data.get(SUBMISSIONS_KEY, []), list):
            del data[SUBMISSIONS_KEY]
        if not isinstance(data.get(PERSONAL_KEY, {}), dict):
            del data[PERSONAL_KEY]
        return data

    def _write(self, data: Dict[str, Any]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get(self, key: str, default=None):
        with self._lock:
            return self._read().get(key, default)

    def get_identity(self) -> Tuple[str, str]:
        """Return the remembered (name, email), empty strings if unknown."""
        with self._lock:
            data = self._read()
        return data.get(NAME_KEY) or "", data.get(EMAIL_KEY) or ""

    def remember_identity(self, name: str, email: str):
        with self._lock:
            data = self._read()
            data[NAME_KEY] = name.strip()
            data[EMAIL_KEY] = email.strip()
            self._write(data)

    def save_submission(self, record: Dict[str, Any]):
        """
        Append a submission and file it under the student's personal key.

        Raises:
            SubmissionError: If the store cannot be written
        """
        content = {k: v for k, v in record.items() if k != "id"}
        raw_key = (
            (record.get("studentEmail") or "").strip()
            or (record.get("studentName") or "").strip()
            or "anonymous"
        )
        key = personal_key(record.get("studentEmail") or "", record.get("studentName") or "")
        totals = record.get("totals") or {}
        entry = {
            "subjectId": record.get("subjectId"),
            "subjectName": record.get("subjectName"),
            "paperId": record.get("paperId"),
            "correctCount": totals.get("correct"),
            "totalQuestions": totals.get("total"),
            "timeTakenSec": (record.get("resultSheet") or {}).get("elapsedSeconds"),
            "resultSheet": record.get("resultSheet"),
            "timestampUtc": record.get("timestampUtc"),
            "studentName": record.get("studentName"),
            "studentEmail": record.get("studentEmail"),
            "_rawKey": raw_key,
        }

        with self._lock:
            try:
                data = self._read()
                data.setdefault(SUBMISSIONS_KEY, []).append({"id": record.get("id"), "content": content})
                personal = data.setdefault(PERSONAL_KEY, {})
                if not isinstance(personal.get(key), list):
                    personal[key] = []
                personal[key].append(entry)
                self._write(data)
            except OSError as e:
                raise SubmissionError(f"Could not write submission store {self.path}: {e}") from e

    def submissions(self) -> List[Dict[str, Any]]:
        return list(self.get(SUBMISSIONS_KEY, []))

    def history(self, key: str) -> List[Dict[str, Any]]:
        """Personal results for an email or name (case-insensitive)."""
        entries = self.get(PERSONAL_KEY, {}).get(key.strip().lower(), [])
        return list(entries) if isinstance(entries, list) else []
