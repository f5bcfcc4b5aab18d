"""Models for quiz-related data structures."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class QuizMode(Enum):
    """What kind of answer the current round expects."""
    CONJUGATION = "conjugation"  # Type the conjugated form
    SENTENCE = "sentence"  # Use the form in a sentence (bonus round)


class Outcome(Enum):
    """Result of submitting an answer."""
    RETRY = "retry"  # First strike, try again
    REVEALED = "revealed"  # Out of strikes, answer revealed
    CORRECT = "correct"  # Correct conjugation
    MASTERED = "mastered"  # Correct conjugation that unlocked the bonus round
    SENTENCE_CORRECT = "sentence_correct"  # Bonus round passed
    SENTENCE_INCORRECT = "sentence_incorrect"  # Bonus round missed


class ReviewStatus(Enum):
    """Progress bucket shown in the review report."""
    MASTERED = "✅"
    IN_PROGRESS = "🔄"
    NEEDS_WORK = "❗"


@dataclass(frozen=True)
class Verb:
    """A verb with its conjugation table."""
    infinitive: str
    verb_type: str  # "ar", "er" or "ir"
    conjugations: Mapping[str, Tuple[str, ...]] = field(hash=False)

    @property
    def tenses(self) -> Tuple[str, ...]:
        return tuple(self.conjugations)


@dataclass(frozen=True)
class Prompt:
    """A single question: conjugate `verb` in `tense` for `pronoun`."""
    verb: Verb
    tense: str
    pronoun: str

    @property
    def expected_form(self) -> str:
        from conjubot.catalog import pronoun_index
        return self.verb.conjugations[self.tense][pronoun_index(self.pronoun)]

    @property
    def key(self) -> str:
        from conjubot.catalog import make_key
        return make_key(self.verb.infinitive, self.tense, self.pronoun)


@dataclass(frozen=True)
class MasteryRecord:
    """Progress for one verb/tense/pronoun combination."""
    correct_count: int = 0
    total_attempts: int = 0
    mastered: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored representation."""
        return {
            "correctCount": self.correct_count,
            "totalAttempts": self.total_attempts,
            "mastered": self.mastered,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MasteryRecord":
        """Create a record from its stored representation.

        Raises:
            ValueError: If the data is not a valid record.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Record must be an object, got {type(data).__name__}")
        try:
            correct_count = data["correctCount"]
            total_attempts = data["totalAttempts"]
            mastered = data["mastered"]
        except KeyError as e:
            raise ValueError(f"Record is missing field {e}") from e
        for name, value in (("correctCount", correct_count), ("totalAttempts", total_attempts)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        if total_attempts < correct_count:
            raise ValueError(f"totalAttempts ({total_attempts}) is less than correctCount ({correct_count})")
        if not isinstance(mastered, bool):
            raise ValueError(f"mastered must be a boolean, got {mastered!r}")
        return cls(correct_count=correct_count, total_attempts=total_attempts, mastered=mastered)


@dataclass(frozen=True)
class SessionState:
    """Everything the quiz needs to know about the current round."""
    prompt: Prompt
    strike_count: int = 0
    mode: QuizMode = QuizMode.CONJUGATION
    streak: int = 0
    score: int = 0
    resolved: bool = False  # answer revealed, waiting for "next"
    feedback: str = ""
    sentence_template: Optional[str] = None


@dataclass(frozen=True)
class Transition:
    """Outcome of one answer submission."""
    state: SessionState
    outcome: Outcome
    correct: bool
    expected: str
    record: Optional[MasteryRecord] = None  # set when the ledger must be updated
    milestone: Optional[str] = None

    @property
    def revealed(self) -> bool:
        return self.outcome in (Outcome.REVEALED, Outcome.CORRECT,
                                Outcome.SENTENCE_CORRECT, Outcome.SENTENCE_INCORRECT)


@dataclass(frozen=True)
class QuizView:
    """What the presentation layer needs to render a round."""
    prompt: Prompt
    state: SessionState
    feedback: str
    mode: QuizMode
    sentence_template: Optional[str] = None
    milestone: Optional[str] = None


@dataclass(frozen=True)
class ReviewEntry:
    """One line of the review report."""
    verb: str
    tense: str
    pronoun: str
    record: MasteryRecord
    status: ReviewStatus
    threshold: int = 7

    def format(self) -> str:
        return (f"{self.status.value} {self.verb} – {self.tense} – {self.pronoun} "
                f"({self.record.correct_count}/{self.threshold})")
