"""Random question generation."""
import random
from typing import Optional, Protocol, Sequence, TypeVar

from conjubot.catalog import CONTEXTS, PRONOUNS, VERBS
from conjubot.models.quiz_models import Prompt

T = TypeVar("T")


class Randomness(Protocol):
    """Anything that can pick a uniform integer in [0, n)."""

    def uniform(self, n: int) -> int:
        ...


class RandomSource:
    """Default randomness backed by `random.Random`."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def uniform(self, n: int) -> int:
        if n <= 0:
            raise ValueError(f"Cannot choose from {n} items")
        return self._random.randrange(n)


def choose(rng: Randomness, items: Sequence[T]) -> T:
    """Pick one item uniformly at random."""
    return items[rng.uniform(len(items))]


def generate_prompt(rng: Randomness) -> Prompt:
    """Pick a verb, one of its tenses and a pronoun, independently and uniformly.

    Consecutive prompts may repeat.
    """
    verb = choose(rng, VERBS)
    tense = choose(rng, verb.tenses)
    pronoun = choose(rng, PRONOUNS)
    return Prompt(verb=verb, tense=tense, pronoun=pronoun)


def build_sentence_template(prompt: Prompt, rng: Randomness) -> str:
    """Build the fill-in-the-blank sentence for the bonus round.

    Uses the first pronoun of a group ("él/ella/usted" -> "Él") and a random place,
    e.g. "Tú ____ en la biblioteca."
    """
    root_pronoun = prompt.pronoun.split("/")[0]
    capitalized = root_pronoun[:1].upper() + root_pronoun[1:]
    context = choose(rng, CONTEXTS)
    return f"{capitalized} ____ en {context}."
