"""Exceptions raised by the quiz engine."""


class QuizError(Exception):
    """Base class for quiz engine errors."""


class RoundResolvedError(QuizError):
    """An answer was submitted after the round was already resolved."""


class RoundNotResolvedError(QuizError):
    """The quiz was asked to advance before the current round was resolved."""
