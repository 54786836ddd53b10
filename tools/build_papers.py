#!/usr/bin/env python3
"""
build_papers.py - Validate and encrypt a subject's paper source.

Usage with key file:
    python tools/build_papers.py --in physics.json --out quizdata/physics.enc --key-file papers.key

Usage with password:
    python tools/build_papers.py --in physics.json --out quizdata/physics.enc --password
"""

import argparse
import getpass
import hashlib
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from monthlyquiz.errors import SchemaError
from monthlyquiz.papers import encrypt_source, load_all_papers


def build_papers(in_file: str, out_file: str, key_file: str = None, use_password: bool = False) -> bool:
    """Encrypt a plaintext paper source after checking it normalizes."""
    key = None
    password = None
    try:
        if use_password:
            password = getpass.getpass("Enter encryption password: ")
            password_confirm = getpass.getpass("Confirm password: ")

            if password != password_confirm:
                print("[ERROR] Passwords do not match", file=sys.stderr)
                return False

            if len(password) < 8:
                print("[ERROR] Password must be at least 8 characters", file=sys.stderr)
                return False
            print("[OK] Using password-based encryption")
        elif key_file:
            with open(key_file, 'rb') as f:
                key = f.read().strip()
            print("[OK] Using key file encryption")
        else:
            print("[ERROR] Must specify either --key-file or --password", file=sys.stderr)
            return False

        with open(in_file, 'rb') as f:
            plaintext = f.read()

        try:
            doc = json.loads(plaintext)
        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid JSON in input file: {e}", file=sys.stderr)
            return False
        if not isinstance(doc, dict):
            print("[ERROR] Top-level JSON value must be an object", file=sys.stderr)
            return False

        try:
            papers = load_all_papers(doc, Path(in_file).stem)
        except SchemaError as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            return False
        print(f"[OK] Input validated: {len(papers)} paper(s), "
              f"{sum(len(p.questions) for p in papers)} question(s)")

        final_data = encrypt_source(plaintext, key=key, password=password)
        sha256_hash = hashlib.sha256(final_data).hexdigest()

        Path(out_file).parent.mkdir(parents=True, exist_ok=True)
        with open(out_file, 'wb') as f:
            f.write(final_data)

        print(f"\n[OK] Success: Papers encrypted")
        print(f"  Input: {in_file} ({len(plaintext)} bytes)")
        print(f"  Output: {out_file} ({len(final_data)} bytes)")
        print(f"  Method: {'Password-based' if password is not None else 'Key file'}")
        print(f"  SHA256: {sha256_hash}")
        return True

    except OSError as e:
        print(f"[ERROR] File error: {e}", file=sys.stderr)
        return False
    except ValueError as e:
        print(f"[ERROR] Invalid key: {e}", file=sys.stderr)
        return False


def main():
    parser = argparse.ArgumentParser(
        description="Validate and encrypt a paper source JSON file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/build_papers.py --in math.json --out quizdata/math.enc --key-file papers.key
  python tools/build_papers.py --in ict.json --out quizdata/ict.enc --password

Notes:
  - Input must contain a non-empty 'papers' or 'sets' array
  - Output directory will be created if it doesn't exist
        """
    )
    parser.add_argument("--in", dest="in_file", required=True, help="Input plaintext JSON file")
    parser.add_argument("--out", required=True, help="Output encrypted file (.enc)")
    method = parser.add_mutually_exclusive_group(required=True)
    method.add_argument("--key-file", help="File containing the encryption key")
    method.add_argument("--password", action="store_true", help="Use password-based encryption")

    args = parser.parse_args()
    success = build_papers(args.in_file, args.out, args.key_file, args.password)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
