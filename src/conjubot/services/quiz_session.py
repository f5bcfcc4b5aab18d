"""Quiz session: the state machine driven by answers and "next" requests."""
import logging
from dataclasses import replace
from typing import List, Optional

from conjubot.config import QuizSettings, settings
from conjubot.errors import RoundNotResolvedError
from conjubot.models.quiz_models import (
    Outcome,
    QuizView,
    ReviewEntry,
    SessionState,
    Transition,
)
from conjubot.monitoring import answers_submitted, items_mastered, quiz_sessions
from conjubot.services import answer_evaluator
from conjubot.services.mastery_ledger import MasteryLedger, review_entries
from conjubot.services.question_generator import (
    Randomness,
    RandomSource,
    build_sentence_template,
    generate_prompt,
)

logger = logging.getLogger(__name__)


class QuizSession:
    """One learner's quiz.

    Every round starts in conjugation mode. A correct answer that newly masters
    the prompt switches the same round to the sentence bonus; any other
    resolution waits for `advance()` to draw a fresh prompt. Streak and score
    carry over between rounds.
    """

    def __init__(
        self,
        ledger: MasteryLedger,
        rng: Optional[Randomness] = None,
        quiz_settings: Optional[QuizSettings] = None,
    ):
        self.ledger = ledger
        self.rng = rng or RandomSource()
        self.settings = quiz_settings or settings.quiz
        self.state = SessionState(prompt=generate_prompt(self.rng))
        self.milestone: Optional[str] = None
        quiz_sessions.inc()
        logger.debug(f"New quiz session, first prompt {self.state.prompt.key}")

    def submit_answer(self, text: str) -> Transition:
        """Grade an answer for the current round and apply the result.

        Raises:
            RoundResolvedError: If the round is already resolved.
        """
        key = self.state.prompt.key
        transition = answer_evaluator.submit_answer(
            self.state,
            text,
            self.ledger.get(key),
            mastery_threshold=self.settings.mastery_threshold,
            max_strikes=self.settings.max_strikes,
            streak_milestone=self.settings.streak_milestone,
        )

        if transition.record is not None:
            self.ledger.put(key, transition.record)

        state = transition.state
        if transition.outcome == Outcome.MASTERED:
            state = replace(state, sentence_template=build_sentence_template(state.prompt, self.rng))
            transition = replace(transition, state=state)
            items_mastered.inc()
            logger.info(f"Mastered {key}, starting sentence round")

        self.state = state
        self.milestone = transition.milestone
        answers_submitted.labels(outcome=transition.outcome.value).inc()
        logger.debug(f"Answer for {key}: {transition.outcome.value} (score={state.score}, streak={state.streak})")
        return transition

    def advance(self) -> SessionState:
        """Move to a freshly generated prompt.

        Raises:
            RoundNotResolvedError: If the current round has not been resolved yet.
        """
        if not self.state.resolved:
            raise RoundNotResolvedError(f"Round for {self.state.prompt.key} is not resolved yet")

        self.state = SessionState(
            prompt=generate_prompt(self.rng),
            streak=self.state.streak,
            score=self.state.score,
        )
        self.milestone = None
        logger.debug(f"Next prompt {self.state.prompt.key}")
        return self.state

    def clear_milestone(self) -> None:
        self.milestone = None

    def view(self) -> QuizView:
        """Current round as seen by the presentation layer."""
        return QuizView(
            prompt=self.state.prompt,
            state=self.state,
            feedback=self.state.feedback,
            mode=self.state.mode,
            sentence_template=self.state.sentence_template,
            milestone=self.milestone,
        )

    def review(self) -> List[ReviewEntry]:
        """Progress report for every item attempted so far."""
        return review_entries(
            self.ledger,
            threshold=self.settings.mastery_threshold,
            in_progress_at=self.settings.review_in_progress_at,
        )
