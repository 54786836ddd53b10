#!/usr/bin/env python3
"""
keygen.py - Generate Fernet encryption keys for paper sources.

Usage:
    python tools/keygen.py --out papers.key

Note: You can also use passwords directly with build_papers.py --password
      instead of generating key files.
"""

import argparse
import sys
from cryptography.fernet import Fernet


def generate_key(output_file: str) -> None:
    """Generate a new Fernet key and save it to file."""
    try:
        key = Fernet.generate_key()

        with open(output_file, 'wb') as f:
            f.write(key)

        print(f"[OK] Success: Encryption key generated")
        print(f"  Output: {output_file}")
        print(f"\n[!] Keep this key next to the exam runner, not inside the papers directory.")
        print(f"    Students start the runner with --key-file {output_file}")

    except OSError as e:
        print(f"[ERROR] Error writing key: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(
        description="Generate a new Fernet encryption key for paper sources.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/keygen.py --out papers.key
  python tools/build_papers.py --in physics.json --out quizdata/physics.enc --key-file papers.key
        """
    )
    parser.add_argument(
        "--out",
        required=True,
        help="Output file path for the key (e.g., papers.key)"
    )

    args = parser.parse_args()
    generate_key(args.out)


if __name__ == "__main__":
    main()
