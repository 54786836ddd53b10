"""
Paper/variant selection and question ordering.

In seeded mode the paper for a (date, subject) pair is a pure function of
that pair, so reloading mid-exam always yields the same paper. Random mode
draws from a generator created once per selector and is never mixed with
seeded draws.
"""

import random
from typing import List, Optional, Sequence

from .models import Question
from .rng import seeded_random, seeded_shuffle, random_shuffle


def paper_seed(year: int, month: int, day: int, subject_id: str) -> str:
    """Seed string identifying one exam session, e.g. '2025-06-15|physics'."""
    return f"{year}-{month:02d}-{day:02d}|{subject_id}"


def pick_paper_index(seed_text: str, count: int) -> int:
    """Deterministic index in [0, count) from one draw of a fresh generator."""
    if count < 1:
        raise ValueError("No candidate papers to choose from")
    return int(seeded_random(seed_text)() * count)


class VariantSelector:
    """Chooses a paper index and orders its questions for one session."""

    def __init__(
        self,
        seed_text: str,
        randomize_paper: bool = False,
        question_order: str = "seeded",
        rng: Optional[random.Random] = None
    ):
        self.seed_text = seed_text
        self.randomize_paper = randomize_paper
        self.question_order = question_order
        self._rng = rng or random.Random()

    def pick(self, count: int) -> int:
        if count < 1:
            raise ValueError("No candidate papers to choose from")
        if self.randomize_paper:
            return int(self._rng.random() * count)
        return pick_paper_index(self.seed_text, count)

    def order_questions(
        self,
        questions: Sequence[Question],
        identity_key: str = ""
    ) -> List[Question]:
        """
        Apply the configured question order.

        "seeded" shuffles per session and student, so a reload keeps the
        order while neighbours see different orders.
        """
        if self.question_order == "random":
            return random_shuffle(questions, self._rng)
        if self.question_order == "seeded":
            return seeded_shuffle(questions, f"{self.seed_text}|questions|{identity_key}")
        return list(questions)
