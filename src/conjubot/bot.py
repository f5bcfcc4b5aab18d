"""Telegram front end for the quiz."""
import asyncio
import html
import logging
from typing import Awaitable, Callable, List, Optional, Set

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Message, Update
from telegram.error import TelegramError
from telegram.ext import CallbackContext

from conjubot.config import settings
from conjubot.models.base import SessionLocal
from conjubot.models.quiz_models import QuizMode, QuizView, ReviewEntry
from conjubot.services.mastery_ledger import MasteryLedger, SlotStorage, review_entries
from conjubot.services.quiz_session import QuizSession

# Get logger for this module
logger = logging.getLogger(__name__)

# Conversation states
MAIN_MENU, QUIZ = range(2)

# Button texts
NEXT = "➡️ Next"
SHOW_REVIEW = "📊 Verb Review"
START_QUIZ = "🎮 Start"

# Callback data
CB_NEXT = "quiz_next"
CB_REVIEW = "quiz_review"
CB_START = "quiz_start"

SESSION_KEY = "quiz_session"

ERR_MSG_NO_SESSION = "Please /start first to begin a quiz"
ERR_KB_NO_SESSION = [[InlineKeyboardButton(START_QUIZ, callback_data=CB_START)]]
MSG_PRESS_NEXT = "This round is over. Press Next for a new verb."
MSG_EMPTY_REVIEW = "No verbs practiced yet. Answer a few questions first!"

Sleep = Callable[[float], Awaitable[None]]

# Strong references to milestone clean-up tasks until they finish
background_tasks: Set[asyncio.Task] = set()


def slot_name(chat_id: int) -> str:
    """Storage slot holding one chat's mastery ledger."""
    return f"{settings.quiz.storage_slot}:{chat_id}"


def create_session(chat_id: int) -> QuizSession:
    """Create a quiz session backed by the chat's storage slot."""
    ledger = MasteryLedger(SlotStorage(SessionLocal, slot_name(chat_id)))
    return QuizSession(ledger)


def load_review(chat_id: int) -> List[ReviewEntry]:
    """Read the chat's review report without starting a quiz."""
    ledger = MasteryLedger(SlotStorage(SessionLocal, slot_name(chat_id)))
    return review_entries(
        ledger,
        threshold=settings.quiz.mastery_threshold,
        in_progress_at=settings.quiz.review_in_progress_at,
    )


async def log_received(update: Update, context_type: str) -> None:
    """Log message."""
    txt = ""
    if update.callback_query:
        txt = f" {update.callback_query.data}"
    elif update.message:
        txt = f" {update.message.text}"
    user = update.effective_user
    logger.info(f"Received @{context_type:8} from user {user.username} ({user.id}){txt}")


def format_round(view: QuizView) -> str:
    """Render the current round as an HTML message."""
    state = view.state
    lines = [
        f"🔥 Streak: {state.streak}   🏆 Score: {state.score}   "
        f"⛔ Strikes: {state.strike_count}/{settings.quiz.max_strikes}",
        "",
        f"<b>Verb:</b> {html.escape(view.prompt.verb.infinitive)}",
        f"<b>Tense:</b> {html.escape(view.prompt.tense)}",
        f"<b>Pronoun:</b> {html.escape(view.prompt.pronoun)}",
    ]
    if view.feedback:
        lines.extend(["", html.escape(view.feedback)])
    if view.mode == QuizMode.SENTENCE and view.sentence_template:
        lines.append(f"<b>Fill in the blank:</b> {html.escape(view.sentence_template)}")
    if not state.resolved:
        hint = "Type your completed sentence" if view.mode == QuizMode.SENTENCE else "Type your conjugation"
        lines.extend(["", f"<i>{hint}</i>"])
    return "\n".join(lines)


def build_keyboard(view: QuizView) -> InlineKeyboardMarkup:
    """Next is only offered once the answer has been revealed."""
    keyboard = []
    if view.state.resolved:
        keyboard.append([InlineKeyboardButton(NEXT, callback_data=CB_NEXT)])
    keyboard.append([InlineKeyboardButton(SHOW_REVIEW, callback_data=CB_REVIEW)])
    return InlineKeyboardMarkup(keyboard)


def format_review(entries: List[ReviewEntry]) -> str:
    if not entries:
        return MSG_EMPTY_REVIEW
    return "📊 Verb Review\n\n" + "\n".join(html.escape(entry.format()) for entry in entries)


async def send_round(message: Message, view: QuizView) -> None:
    """Send the current round to the chat."""
    try:
        await message.reply_text(
            format_round(view),
            reply_markup=build_keyboard(view),
            parse_mode="HTML",
        )
    except TelegramError as e:
        logger.warning(f"Error sending quiz round: {e}")


async def clear_after(message: Message, delay: float, sleep: Sleep = asyncio.sleep) -> None:
    """Delete a message once `delay` seconds have passed."""
    await sleep(delay)
    try:
        await message.delete()
    except TelegramError as e:
        logger.warning(f"Error clearing milestone message: {e}")


async def send_milestone(
    message: Message,
    text: str,
    delay: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
) -> Optional[asyncio.Task]:
    """Announce a streak milestone and schedule its removal."""
    if delay is None:
        delay = settings.quiz.milestone_clear_seconds
    try:
        sent = await message.reply_text(text)
    except TelegramError as e:
        logger.warning(f"Error sending milestone message: {e}")
        return None
    task = asyncio.create_task(clear_after(sent, delay, sleep))
    background_tasks.add(task)
    task.add_done_callback(background_tasks.discard)
    return task


def get_session(context: CallbackContext) -> Optional[QuizSession]:
    return context.user_data.get(SESSION_KEY)


async def handle_start(update: Update, context: CallbackContext) -> int:
    """Start a quiz and show the first question."""
    await log_received(update, "start")

    message = update.effective_message
    session = create_session(update.effective_chat.id)
    context.user_data[SESSION_KEY] = session

    await message.reply_text(
        f"¡Hola, {html.escape(update.effective_user.first_name or 'amigo')}! 👋\n\n"
        "Conjugate the verb for the given tense and pronoun. "
        "Accents and capitals don't matter. You get one free retry.",
        parse_mode="HTML",
    )
    await send_round(message, session.view())
    return QUIZ


async def handle_answer(update: Update, context: CallbackContext) -> int:
    """Grade a typed answer."""
    await log_received(update, "answer")

    session = get_session(context)
    if session is None:
        await update.message.reply_text(ERR_MSG_NO_SESSION, reply_markup=InlineKeyboardMarkup(ERR_KB_NO_SESSION))
        return MAIN_MENU

    if session.state.resolved:
        await update.message.reply_text(
            MSG_PRESS_NEXT,
            reply_markup=InlineKeyboardMarkup([[InlineKeyboardButton(NEXT, callback_data=CB_NEXT)]]),
        )
        return QUIZ

    transition = session.submit_answer(update.message.text or "")
    await send_round(update.message, session.view())

    if transition.milestone:
        await send_milestone(update.message, transition.milestone)
        session.clear_milestone()
    return QUIZ


async def handle_next(update: Update, context: CallbackContext) -> int:
    """Move on to a new question."""
    session = get_session(context)
    message = update.effective_message
    if session is None:
        await message.reply_text(ERR_MSG_NO_SESSION, reply_markup=InlineKeyboardMarkup(ERR_KB_NO_SESSION))
        return MAIN_MENU

    if not session.state.resolved:
        # Stale button from an earlier round
        await send_round(message, session.view())
        return QUIZ

    session.advance()
    await send_round(message, session.view())
    return QUIZ


async def handle_review(update: Update, context: CallbackContext) -> int:
    """Show mastery progress for every practiced item."""
    await log_received(update, "review")

    message = update.effective_message
    session = get_session(context)
    if session is None:
        await message.reply_text(
            format_review(load_review(update.effective_chat.id)),
            reply_markup=InlineKeyboardMarkup(ERR_KB_NO_SESSION),
            parse_mode="HTML",
        )
        return MAIN_MENU

    await message.reply_text(format_review(session.review()), parse_mode="HTML")
    return QUIZ


async def handle_callback(update: Update, context: CallbackContext) -> int:
    """Handle callback queries from inline keyboard."""
    query = update.callback_query
    await query.answer()

    await log_received(update, "callback")

    if query.data == CB_NEXT:
        return await handle_next(update, context)
    elif query.data == CB_REVIEW:
        return await handle_review(update, context)
    elif query.data == CB_START:
        return await handle_start(update, context)

    logger.debug(f"Ignoring unknown callback data: {query.data}")
    return QUIZ if get_session(context) else MAIN_MENU
