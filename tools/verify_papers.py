#!/usr/bin/env python3
"""
verify_papers.py - Validate a paper source and print a summary.

Usage:
    python tools/verify_papers.py --file quizdata/physics.json
    python tools/verify_papers.py --file quizdata/physics.enc --key-file papers.key
    python tools/verify_papers.py --file quizdata/physics.enc --password
"""

import argparse
import getpass
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from monthlyquiz.errors import LoadError, SchemaError
from monthlyquiz.papers import load_all_papers, load_source


def verify_papers(path: str, key_file: str = None, use_password: bool = False, verbose: bool = False) -> bool:
    """
    Verify a paper source (encrypted or plaintext).
    Returns True if every paper normalizes, False otherwise.
    """
    source = Path(path)
    key = None
    password = None
    if key_file:
        try:
            with open(key_file, 'rb') as f:
                key = f.read().strip()
        except OSError as e:
            print(f"[ERROR] Cannot read key file: {e}", file=sys.stderr)
            return False
    elif use_password:
        password = getpass.getpass("Enter decryption password: ")

    try:
        doc = load_source(source, source.stem, key=key, password=password)
        papers = load_all_papers(doc, source.stem)
    except (LoadError, SchemaError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return False

    warnings = []
    print(f"[OK] {source.name}: {len(papers)} paper(s)")
    for paper in papers:
        unscored = sum(1 for q in paper.questions if q.correct_index is None)
        alias = f" ({paper.alias})" if paper.alias else ""
        print(f"  - {paper.paper_id}{alias}: {len(paper.questions)} question(s)")
        if unscored:
            warnings.append(f"{paper.paper_id}: {unscored} question(s) without an answer key")
        for question in paper.questions:
            if question.correct_index is not None and not 0 <= question.correct_index < len(question.options):
                warnings.append(f"{paper.paper_id}/{question.id}: answer index out of range")
            if verbose:
                print(f"      {question.id}: {question.text[:60]}")

    if warnings:
        print(f"\n[WARNING] ({len(warnings)}):")
        for warn in warnings[:10]:
            print(f"  - {warn}")
        if len(warnings) > 10:
            print(f"  ... and {len(warnings) - 10} more")

    print(f"\n[OK] Paper validation PASSED")
    return True


def main():
    parser = argparse.ArgumentParser(description="Validate a paper source file.")
    parser.add_argument("--file", required=True, help="Path to paper file (.json or .enc)")
    method = parser.add_mutually_exclusive_group()
    method.add_argument("--key-file", help="Encryption key file")
    method.add_argument("--password", action="store_true", help="Prompt for decryption password")
    parser.add_argument("--verbose", action="store_true", help="List every question")

    args = parser.parse_args()
    success = verify_papers(args.file, args.key_file, args.password, args.verbose)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
