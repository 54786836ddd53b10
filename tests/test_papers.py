"""
Tests for paper source loading.

Tests the paper loader including:
- Normalization of 'papers' and 'sets' documents
- Load errors for missing, malformed and wrongly keyed files
- Schema errors for empty documents and papers
- Fernet encrypted sources (key file and password)
"""

import json
import pytest
from pathlib import Path
from unittest.mock import patch

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from cryptography.fernet import Fernet

from monthlyquiz.errors import LoadError, SchemaError
from monthlyquiz.models import Subject
from monthlyquiz.papers import (
    candidates,
    decrypt_source,
    encrypt_source,
    load_all_papers,
    load_source,
    normalize_candidate,
    resolve_source_path,
)

PAPERS_DOC = {
    "board": "Dhaka",
    "papers": [
        {
            "paperId": "P-1",
            "questions": [
                {"id": "a1", "text": "2 + 2?", "options": ["3", "4"], "answer": 1},
                {"text": "Pick the image", "options": [{"text": "cat", "image": "cat.png", "imageAlt": "a cat"}, "dog"]},
            ],
        },
        {"id": "legacy-id", "questions": [{"text": "x", "options": ["y"], "answer": "0"}]},
        {"questions": [{"text": "x", "options": ["y"]}]},
    ],
}

SETS_DOC = {
    "sets": [
        {
            "id": "S1",
            "alias": "Board A",
            "questions": [
                {"q": "Capital of Bangladesh?", "a": ["Dhaka", "Khulna"], "correct": 0},
                {"text": "Fallback text", "options": ["x", "y"], "answer": 1},
                {"a": ["p", "q"]},
            ],
        }
    ]
}


class TestCandidates:
    """Test document shape detection."""

    def test_papers_preferred(self):
        kind, items = candidates(PAPERS_DOC, "math")
        assert kind == "papers"
        assert len(items) == 3

    def test_sets(self):
        kind, items = candidates(SETS_DOC, "math")
        assert kind == "sets"
        assert len(items) == 1

    def test_empty_papers_falls_back_to_sets(self):
        """Test that an empty papers array does not hide the sets."""
        kind, _ = candidates({"papers": [], **SETS_DOC}, "math")
        assert kind == "sets"

    def test_neither_is_schema_error(self):
        """Test a document without papers or sets."""
        with pytest.raises(SchemaError) as exc_info:
            candidates({"title": "nothing"}, "math")
        assert exc_info.value.subject_id == "math"


class TestNormalizePapers:
    """Test normalization of the 'papers' shape."""

    def test_paper_fields(self):
        paper = normalize_candidate("papers", PAPERS_DOC["papers"][0], 0, PAPERS_DOC, "math")
        assert paper.paper_id == "P-1"
        assert paper.alias == "Dhaka"
        assert [q.id for q in paper.questions] == ["a1", "q2"]
        assert paper.questions[0].correct_index == 1
        assert paper.questions[1].correct_index is None

    def test_option_objects(self):
        """Test options given as objects with images."""
        paper = normalize_candidate("papers", PAPERS_DOC["papers"][0], 0, PAPERS_DOC, "math")
        option = paper.questions[1].options[0]
        assert option.text == "cat"
        assert option.image == "cat.png"
        assert option.image_alt == "a cat"
        assert paper.questions[1].options[1].text == "dog"

    def test_paper_id_fallbacks(self):
        """Test id, then positional paper ids."""
        second = normalize_candidate("papers", PAPERS_DOC["papers"][1], 1, PAPERS_DOC, "math")
        third = normalize_candidate("papers", PAPERS_DOC["papers"][2], 2, PAPERS_DOC, "math")
        assert second.paper_id == "legacy-id"
        assert third.paper_id == "paper3"

    def test_string_answer_is_numeric(self):
        """Test that a numeric string answer key is accepted."""
        paper = normalize_candidate("papers", PAPERS_DOC["papers"][1], 1, PAPERS_DOC, "math")
        assert paper.questions[0].correct_index == 0

    def test_fractional_answer_is_unscored(self):
        """Test that a non-integer answer key leaves the question unscored."""
        raw = {"questions": [
            {"text": "a", "options": ["x", "y"], "answer": 1.7},
            {"text": "b", "options": ["x", "y"], "answer": 1.0},
            {"text": "c", "options": ["x", "y"], "answer": "one"},
        ]}
        paper = normalize_candidate("papers", raw, 0, {}, "math")
        assert [q.correct_index for q in paper.questions] == [None, 1, None]

    def test_paper_without_questions(self):
        """Test that a selected paper with no questions is a schema error."""
        with pytest.raises(SchemaError):
            normalize_candidate("papers", {"paperId": "empty", "questions": []}, 0, {}, "math")

    def test_paper_with_malformed_question(self):
        with pytest.raises(SchemaError):
            normalize_candidate("papers", {"questions": ["not an object"]}, 0, {}, "math")

    def test_paper_entry_not_object(self):
        with pytest.raises(SchemaError):
            normalize_candidate("papers", "paper-1", 0, {}, "math")


class TestNormalizeSets:
    """Test normalization of the 'sets' shape."""

    def test_set_fields(self):
        paper = normalize_candidate("sets", SETS_DOC["sets"][0], 0, SETS_DOC, "bgs")
        assert paper.paper_id == "S1"
        assert paper.alias == "Board A"
        assert [q.id for q in paper.questions] == ["S1-q1", "S1-q2", "S1-q3"]

    def test_set_question_mapping(self):
        """Test q/a/correct with text/options/answer fallbacks."""
        paper = normalize_candidate("sets", SETS_DOC["sets"][0], 0, SETS_DOC, "bgs")
        first, second, third = paper.questions
        assert first.text == "Capital of Bangladesh?"
        assert [o.text for o in first.options] == ["Dhaka", "Khulna"]
        assert first.correct_index == 0
        assert second.text == "Fallback text"
        assert second.correct_index == 1
        assert third.text == "Q3"
        assert third.correct_index is None

    def test_load_all_papers(self):
        papers = load_all_papers(SETS_DOC, "bgs")
        assert len(papers) == 1


class TestLoadSource:
    """Test reading paper files."""

    def test_plain_json(self, tmp_path):
        path = tmp_path / "math.json"
        path.write_text(json.dumps(PAPERS_DOC), encoding="utf-8")
        assert load_source(path, "math") == PAPERS_DOC

    def test_missing_file(self, tmp_path):
        """Test that a missing file is a load error, not a crash."""
        with pytest.raises(LoadError) as exc_info:
            load_source(tmp_path / "missing.json", "math")
        assert exc_info.value.subject_id == "math"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "math.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(LoadError):
            load_source(path, "math")

    def test_top_level_array(self, tmp_path):
        path = tmp_path / "math.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(LoadError):
            load_source(path, "math")

    @patch("builtins.open", side_effect=PermissionError(13, "Permission denied"))
    def test_unreadable_file(self, mock_open, tmp_path):
        """Test that OS errors become load errors."""
        with pytest.raises(LoadError):
            load_source(tmp_path / "math.json", "math")


class TestEncryptedSources:
    """Test Fernet encrypted paper files."""

    def test_key_file_roundtrip(self, tmp_path):
        key = Fernet.generate_key()
        path = tmp_path / "math.enc"
        path.write_bytes(encrypt_source(json.dumps(SETS_DOC).encode(), key=key))
        assert load_source(path, "math", key=key) == SETS_DOC

    @patch("monthlyquiz.papers.PBKDF2HMAC")
    def test_password_roundtrip(self, mock_kdf, tmp_path):
        """Test the salted password format (key derivation stubbed for speed)."""
        mock_kdf.return_value.derive.return_value = b"k" * 32
        data = encrypt_source(b'{"sets": []}', password="correct horse")
        assert data.startswith(b"SALT")
        assert decrypt_source(data, password="correct horse") == b'{"sets": []}'

    def test_wrong_key(self, tmp_path):
        path = tmp_path / "math.enc"
        path.write_bytes(encrypt_source(b"{}", key=Fernet.generate_key()))
        with pytest.raises(LoadError) as exc_info:
            load_source(path, "math", key=Fernet.generate_key())
        assert "invalid key" in exc_info.value.reason

    def test_missing_key(self, tmp_path):
        path = tmp_path / "math.enc"
        path.write_bytes(encrypt_source(b"{}", key=Fernet.generate_key()))
        with pytest.raises(LoadError):
            load_source(path, "math")

    def test_encrypt_requires_credentials(self):
        with pytest.raises(ValueError):
            encrypt_source(b"{}")


class TestResolveSourcePath:
    """Test the encrypted-file fallback."""

    def test_prefers_plain_file(self, tmp_path):
        subject = Subject(id="math", name="Math", file="math.json")
        (tmp_path / "math.json").write_text("{}")
        (tmp_path / "math.enc").write_bytes(b"x")
        assert resolve_source_path(tmp_path, subject) == tmp_path / "math.json"

    def test_falls_back_to_enc(self, tmp_path):
        subject = Subject(id="math", name="Math", file="math.json")
        (tmp_path / "math.enc").write_bytes(b"x")
        assert resolve_source_path(tmp_path, subject) == tmp_path / "math.enc"

    def test_missing_returns_configured_name(self, tmp_path):
        subject = Subject(id="math", name="Math", file="math.json")
        assert resolve_source_path(tmp_path, subject) == tmp_path / "math.json"
