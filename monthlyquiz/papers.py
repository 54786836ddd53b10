"""
Paper source loading and normalization.

A subject's paper source is a JSON document holding either a `papers` array
or a `sets` array. Sources may be stored encrypted with Fernet, using a raw
key or a password (salted PBKDF2). Everything is normalized to Paper.
"""

import base64
import json
import os
from pathlib import Path
from typing import Any, List, Optional, Tuple

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import LoadError, SchemaError
from .models import Option, Paper, Question, Subject

SALT_PREFIX = b'SALT'
SALT_LENGTH = 16


def derive_key_from_password(password: str, salt: bytes) -> bytes:
    """Derive a Fernet key from a password using PBKDF2."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=480000,
    )
    key_material = kdf.derive(password.encode('utf-8'))
    return base64.urlsafe_b64encode(key_material)


def encrypt_source(plaintext: bytes, key: Optional[bytes] = None, password: Optional[str] = None) -> bytes:
    """Encrypt a paper source with a key file or a password."""
    if password is not None:
        salt = os.urandom(SALT_LENGTH)
        token = Fernet(derive_key_from_password(password, salt)).encrypt(plaintext)
        return SALT_PREFIX + salt + token
    if key is None:
        raise ValueError("Either a key or a password is required")
    return Fernet(key).encrypt(plaintext)


def decrypt_source(data: bytes, key: Optional[bytes] = None, password: Optional[str] = None) -> bytes:
    """
    Decrypt a paper source.

    Raises:
        ValueError: If the credentials do not match the file format
        InvalidToken: If decryption fails
    """
    if data.startswith(SALT_PREFIX):
        if password is None:
            raise ValueError("This file was encrypted with a password")
        salt = data[len(SALT_PREFIX):len(SALT_PREFIX) + SALT_LENGTH]
        token = data[len(SALT_PREFIX) + SALT_LENGTH:]
        return Fernet(derive_key_from_password(password, salt)).decrypt(token)
    if key is None:
        raise ValueError("This file was encrypted with a key file")
    return Fernet(key).decrypt(data)


def resolve_source_path(papers_dir: Path, subject: Subject) -> Path:
    """
    Find a subject's source file, falling back to the encrypted variant.
    """
    direct = papers_dir / subject.file
    if direct.exists():
        return direct
    encrypted = direct.with_suffix('.enc')
    if encrypted.exists():
        return encrypted
    return direct


def load_source(
    path: Path,
    subject_id: str,
    key: Optional[bytes] = None,
    password: Optional[str] = None
) -> dict:
    """
    Read and parse a paper source document.

    Raises:
        LoadError: If the file is missing, cannot be decrypted or is not JSON
    """
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise LoadError(subject_id, str(path), f"file not readable ({e.strerror or e})")

    if path.suffix.lower() == '.enc':
        try:
            data = decrypt_source(data, key=key, password=password)
        except InvalidToken:
            raise LoadError(subject_id, str(path), "invalid key/password or corrupted file")
        except ValueError as e:
            raise LoadError(subject_id, str(path), str(e))

    try:
        doc = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise LoadError(subject_id, str(path), f"invalid JSON: {e}")

    if not isinstance(doc, dict):
        raise LoadError(subject_id, str(path), "top-level JSON value must be an object")
    return doc


def candidates(doc: dict, subject_id: str) -> Tuple[str, List[Any]]:
    """
    Return ("papers" | "sets", raw candidate list) for a source document.

    Raises:
        SchemaError: If neither a non-empty `papers` nor `sets` array exists
    """
    papers = doc.get('papers')
    if isinstance(papers, list) and papers:
        return 'papers', papers
    sets = doc.get('sets')
    if isinstance(sets, list) and sets:
        return 'sets', sets
    raise SchemaError(subject_id, "no 'papers' or 'sets' array found")


def _correct_index(raw: Any) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float) and not raw.is_integer():
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _normalize_paper_entry(raw: dict, idx: int, doc: dict) -> Paper:
    paper_id = raw.get('paperId') or raw.get('id') or f"paper{idx + 1}"
    questions = []
    for i, q in enumerate(raw.get('questions') or []):
        questions.append(Question(
            id=str(q.get('id') or f"q{i + 1}"),
            text=str(q.get('text') or ''),
            options=[Option.from_raw(o) for o in q.get('options') or []],
            correct_index=_correct_index(q.get('answer')),
            image=q.get('image'),
            image_alt=q.get('imageAlt')
        ))
    alias = doc.get('alias') or doc.get('board')
    return Paper(paper_id=str(paper_id), questions=questions, alias=alias)


def _normalize_set_entry(raw: dict, idx: int) -> Paper:
    set_id = str(raw.get('id') or f"set{idx + 1}")
    questions = []
    for i, q in enumerate(raw.get('questions') or []):
        correct = q.get('correct') if 'correct' in q else q.get('answer')
        questions.append(Question(
            id=f"{set_id}-q{i + 1}",
            text=str(q.get('q') or q.get('text') or f"Q{i + 1}"),
            options=[Option.from_raw(o) for o in q.get('a') or q.get('options') or []],
            correct_index=_correct_index(correct),
            image=q.get('image'),
            image_alt=q.get('imageAlt')
        ))
    return Paper(paper_id=set_id, questions=questions, alias=raw.get('alias'))


def normalize_candidate(kind: str, raw: Any, idx: int, doc: dict, subject_id: str) -> Paper:
    """
    Convert one raw paper or set to the canonical Paper shape.

    Raises:
        SchemaError: If the entry is not an object or has no questions
    """
    if not isinstance(raw, dict):
        raise SchemaError(subject_id, f"{kind} entry #{idx + 1} is not an object")
    raw_questions = raw.get('questions')
    if not isinstance(raw_questions, list) or not raw_questions:
        raise SchemaError(subject_id, f"{kind} entry #{idx + 1} has no 'questions' array")
    if not all(isinstance(q, dict) for q in raw_questions):
        raise SchemaError(subject_id, f"{kind} entry #{idx + 1} contains a malformed question")
    if kind == 'papers':
        return _normalize_paper_entry(raw, idx, doc)
    return _normalize_set_entry(raw, idx)


def load_all_papers(doc: dict, subject_id: str) -> List[Paper]:
    """Normalize every candidate of a document (used by the admin tools)."""
    kind, raw_list = candidates(doc, subject_id)
    return [normalize_candidate(kind, raw, i, doc, subject_id) for i, raw in enumerate(raw_list)]
