"""Answer grading and round transitions."""
import unicodedata
from dataclasses import replace

from conjubot.config import MASTERY_THRESHOLD, MAX_STRIKES, STREAK_MILESTONE
from conjubot.errors import RoundResolvedError
from conjubot.models.quiz_models import (
    MasteryRecord,
    Outcome,
    QuizMode,
    SessionState,
    Transition,
)
from conjubot.services.mastery_ledger import record_failure, record_success

MSG_CORRECT = "✅ ¡Correcto!"
MSG_MASTERED = "🎉 Mastered! Fill in the blank:"
MSG_SENTENCE_CORRECT = "🧠 ¡Perfecto! You've used the verb correctly in context."


def msg_strike(strikes: int) -> str:
    return f"⚠️ Strike {strikes}! Try again."


def msg_revealed(expected: str) -> str:
    return f"❌ Incorrecto. Correct answer: {expected}"


def msg_sentence_incorrect(expected: str) -> str:
    return f"🧐 Not quite. The sentence needed: {expected}"


def msg_milestone(streak: int) -> str:
    return f"🔥 Streak: {streak}!"


def normalize_input(text: str) -> str:
    """Reduce text to what grading compares.

    Case-folds, strips accents and other diacritics, drops everything that is not
    a letter, digit or whitespace, and trims the ends. "¡Habló!" -> "hablo".
    """
    decomposed = unicodedata.normalize("NFD", text.casefold())
    kept = (
        char for char in decomposed
        if not unicodedata.combining(char) and (char.isalnum() or char.isspace())
    )
    return "".join(kept).strip()


def is_exact_match(answer: str, expected: str) -> bool:
    """Conjugation grading: the whole answer must be the expected form."""
    return normalize_input(answer) == normalize_input(expected)


def contains_form(sentence: str, expected: str) -> bool:
    """Sentence grading: the expected form must appear somewhere in the sentence."""
    target = normalize_input(expected)
    return bool(target) and target in normalize_input(sentence)


def submit_answer(
    state: SessionState,
    raw_text: str,
    record: MasteryRecord,
    *,
    mastery_threshold: int = MASTERY_THRESHOLD,
    max_strikes: int = MAX_STRIKES,
    streak_milestone: int = STREAK_MILESTONE,
) -> Transition:
    """Grade `raw_text` against the current prompt and compute the next state.

    `record` is the ledger entry for the current prompt. The returned transition
    carries an updated record whenever the ledger has to be written.

    Raises:
        RoundResolvedError: If the round already has its answer revealed.
    """
    if state.resolved:
        raise RoundResolvedError(f"Round for {state.prompt.key} is already resolved")

    if state.mode == QuizMode.SENTENCE:
        return _submit_sentence(state, raw_text)
    return _submit_conjugation(state, raw_text, record, mastery_threshold, max_strikes, streak_milestone)


def _submit_sentence(state: SessionState, raw_text: str) -> Transition:
    # Single attempt: the bonus round resolves whether or not it was passed
    expected = state.prompt.expected_form
    if contains_form(raw_text, expected):
        new_state = replace(state, score=state.score + 1, resolved=True, feedback=MSG_SENTENCE_CORRECT)
        return Transition(new_state, Outcome.SENTENCE_CORRECT, correct=True, expected=expected)

    new_state = replace(state, resolved=True, feedback=msg_sentence_incorrect(expected))
    return Transition(new_state, Outcome.SENTENCE_INCORRECT, correct=False, expected=expected)


def _submit_conjugation(
    state: SessionState,
    raw_text: str,
    record: MasteryRecord,
    mastery_threshold: int,
    max_strikes: int,
    streak_milestone: int,
) -> Transition:
    expected = state.prompt.expected_form

    if not is_exact_match(raw_text, expected):
        strikes = state.strike_count + 1
        if strikes < max_strikes:
            new_state = replace(state, strike_count=strikes, feedback=msg_strike(strikes))
            return Transition(new_state, Outcome.RETRY, correct=False, expected=expected)

        new_state = replace(
            state,
            strike_count=0,
            streak=0,
            resolved=True,
            feedback=msg_revealed(expected),
        )
        return Transition(
            new_state, Outcome.REVEALED, correct=False, expected=expected,
            record=record_failure(record),
        )

    streak = state.streak + 1
    milestone = msg_milestone(streak) if streak % streak_milestone == 0 else None
    updated, newly_mastered = record_success(record, mastery_threshold)

    if newly_mastered:
        new_state = replace(
            state,
            strike_count=0,
            score=state.score + 1,
            streak=streak,
            mode=QuizMode.SENTENCE,
            feedback=MSG_MASTERED,
        )
        return Transition(
            new_state, Outcome.MASTERED, correct=True, expected=expected,
            record=updated, milestone=milestone,
        )

    new_state = replace(
        state,
        strike_count=0,
        score=state.score + 1,
        streak=streak,
        resolved=True,
        feedback=MSG_CORRECT,
    )
    return Transition(
        new_state, Outcome.CORRECT, correct=True, expected=expected,
        record=updated, milestone=milestone,
    )
