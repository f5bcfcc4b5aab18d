"""Tests for answer grading and round transitions."""
import pytest

from conjubot.errors import RoundResolvedError
from conjubot.models.quiz_models import MasteryRecord, Outcome, QuizMode
from conjubot.services.answer_evaluator import (
    MSG_CORRECT,
    MSG_MASTERED,
    contains_form,
    is_exact_match,
    msg_milestone,
    msg_revealed,
    msg_sentence_incorrect,
    msg_strike,
    normalize_input,
    submit_answer,
)


@pytest.mark.parametrize("raw, expected", [
    ("HABLÉ", "hable"),
    ("  ¡Habló!  ", "hablo"),
    ("Comíamos.", "comiamos"),
    ("niño", "nino"),
    ("", ""),
    ("   \t ", ""),
    ("¿?¡!...", ""),
    ("Yo hablo mucho.", "yo hablo mucho"),
])
def test_normalize_input(raw: str, expected: str) -> None:
    assert normalize_input(raw) == expected


@pytest.mark.parametrize("raw", ["HABLÉ", "Él habló, ¿no?", "  Straße ", "Comí 3 veces."])
def test_normalize_input_is_idempotent(raw: str) -> None:
    once = normalize_input(raw)
    assert normalize_input(once) == once


def test_exact_match_ignores_case_and_accents() -> None:
    assert is_exact_match("HABLÉ", "hablé")
    assert is_exact_match("hable", "hablé")
    assert is_exact_match(" hablé. ", "hablé")
    assert not is_exact_match("hablo", "hablé")
    assert not is_exact_match("hablé mucho", "hablé")


def test_contains_form() -> None:
    assert contains_form("Yo hablo mucho en el parque.", "hablo")
    assert not contains_form("Yo hablaré", "hablo")
    assert not contains_form("", "hablo")
    assert not contains_form("anything", "")


def test_correct_answer_resolves_round(state_factory) -> None:
    state = state_factory()
    transition = submit_answer(state, "hablo", MasteryRecord())

    assert transition.outcome == Outcome.CORRECT
    assert transition.correct is True
    assert transition.revealed is True
    assert transition.record == MasteryRecord(correct_count=1, total_attempts=1, mastered=False)
    assert transition.state.resolved is True
    assert transition.state.mode == QuizMode.CONJUGATION
    assert transition.state.score == 1
    assert transition.state.streak == 1
    assert transition.state.feedback == MSG_CORRECT
    # Input state is left untouched
    assert state.score == 0 and state.resolved is False


def test_first_wrong_answer_is_a_free_retry(state_factory) -> None:
    state = state_factory(streak=3, score=4)
    transition = submit_answer(state, "hablas", MasteryRecord(correct_count=2, total_attempts=2))

    assert transition.outcome == Outcome.RETRY
    assert transition.revealed is False
    assert transition.record is None
    assert transition.state.strike_count == 1
    assert transition.state.resolved is False
    assert transition.state.prompt == state.prompt
    assert transition.state.streak == 3
    assert "hablo" not in transition.state.feedback


def test_second_wrong_answer_reveals(state_factory) -> None:
    state = state_factory(strike_count=1, streak=3, score=4)
    record = MasteryRecord(correct_count=2, total_attempts=2)
    transition = submit_answer(state, "hablas", record)

    assert transition.outcome == Outcome.REVEALED
    assert transition.correct is False
    assert transition.record == MasteryRecord(correct_count=2, total_attempts=3, mastered=False)
    assert transition.state.strike_count == 0
    assert transition.state.streak == 0
    assert transition.state.score == 4
    assert transition.state.resolved is True
    assert "hablo" in transition.state.feedback


def test_failure_clears_mastered_flag(state_factory) -> None:
    state = state_factory(strike_count=1)
    record = MasteryRecord(correct_count=9, total_attempts=10, mastered=True)
    transition = submit_answer(state, "nope", record)
    assert transition.record == MasteryRecord(correct_count=9, total_attempts=11, mastered=False)


def test_empty_answer_is_just_wrong(state_factory) -> None:
    transition = submit_answer(state_factory(), "   ", MasteryRecord())
    assert transition.outcome == Outcome.RETRY


def test_seventh_correct_answer_unlocks_sentence_round(state_factory) -> None:
    state = state_factory("comer", "Pretérito", "tú")
    record = MasteryRecord(correct_count=6, total_attempts=8, mastered=False)
    transition = submit_answer(state, "comiste", record)

    assert transition.outcome == Outcome.MASTERED
    assert transition.revealed is False
    assert transition.record == MasteryRecord(correct_count=7, total_attempts=9, mastered=True)
    assert transition.state.mode == QuizMode.SENTENCE
    assert transition.state.resolved is False
    assert transition.state.feedback == MSG_MASTERED
    assert transition.state.score == 1


def test_already_mastered_does_not_unlock_again(state_factory) -> None:
    state = state_factory("comer", "Pretérito", "tú")
    record = MasteryRecord(correct_count=7, total_attempts=9, mastered=True)
    transition = submit_answer(state, "comiste", record)

    assert transition.outcome == Outcome.CORRECT
    assert transition.record == MasteryRecord(correct_count=8, total_attempts=10, mastered=True)
    assert transition.state.mode == QuizMode.CONJUGATION
    assert transition.state.resolved is True


def test_custom_threshold(state_factory) -> None:
    transition = submit_answer(state_factory(), "hablo", MasteryRecord(), mastery_threshold=1)
    assert transition.outcome == Outcome.MASTERED


def test_sentence_round_uses_containment(state_factory) -> None:
    state = state_factory(mode=QuizMode.SENTENCE, score=5, streak=2)
    transition = submit_answer(state, "Yo HABLO mucho en el parque.", MasteryRecord())

    assert transition.outcome == Outcome.SENTENCE_CORRECT
    assert transition.record is None
    assert transition.state.score == 6
    assert transition.state.streak == 2
    assert transition.state.resolved is True


def test_sentence_round_miss_still_resolves(state_factory) -> None:
    state = state_factory(mode=QuizMode.SENTENCE, score=5)
    transition = submit_answer(state, "Yo hablaré", MasteryRecord())

    assert transition.outcome == Outcome.SENTENCE_INCORRECT
    assert transition.record is None
    assert transition.state.score == 5
    assert transition.state.strike_count == 0
    assert transition.state.resolved is True
    assert "hablo" in transition.state.feedback


def test_streak_milestone(state_factory) -> None:
    transition = submit_answer(state_factory(streak=4), "hablo", MasteryRecord())
    assert transition.milestone == "🔥 Streak: 5!"

    transition = submit_answer(state_factory(streak=5), "hablo", MasteryRecord())
    assert transition.milestone is None


def test_resolved_round_rejects_answers(state_factory) -> None:
    with pytest.raises(RoundResolvedError):
        submit_answer(state_factory(resolved=True), "hablo", MasteryRecord())


def test_feedback_messages() -> None:
    assert msg_strike(1) == "⚠️ Strike 1! Try again."
    assert msg_revealed("hablé") == "❌ Incorrecto. Correct answer: hablé"
    assert msg_sentence_incorrect("comiste") == "🧐 Not quite. The sentence needed: comiste"
    assert msg_milestone(10) == "🔥 Streak: 10!"
