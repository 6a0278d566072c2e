import random

from typing import Iterable, List, Optional, Sequence, Set, TypeVar

from .models import QuizQuestion

T = TypeVar("T")


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates).

    ``items`` itself is left untouched so callers decide when an order
    becomes final.
    """
    rnd = rng or random.Random()
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rnd.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def shuffle_batch(
    batch: Sequence[QuizQuestion], rng: Optional[random.Random] = None
) -> List[QuizQuestion]:
    """Randomize batch order and each question's option order, once."""
    rnd = rng or random.Random()
    return [q.with_options(shuffled(q.options, rnd)) for q in shuffled(batch, rnd)]


def filter_unseen(
    batch: Iterable[QuizQuestion], existing_titles: Iterable[str]
) -> List[QuizQuestion]:
    """Keep only questions whose exact text has not been accepted yet.

    Matching is case-sensitive and untrimmed. A text repeated inside
    ``batch`` is kept once (first occurrence).
    """
    seen: Set[str] = set(existing_titles)
    unique: List[QuizQuestion] = []
    for q in batch:
        if q.question in seen:
            continue
        seen.add(q.question)
        unique.append(q)
    return unique
