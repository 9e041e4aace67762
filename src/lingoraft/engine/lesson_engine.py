from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import ValidationError

from lingoraft.data_models import (
    Action,
    CompletionRecord,
    FeedbackCard,
    LessonInfo,
    LessonListItem,
    LessonStats,
    PromptCard,
    Response,
    SessionState,
)
from lingoraft.engine.intents import (
    RESET_SENTINEL,
    detect_lesson_control,
    is_capability_question,
    is_start_typing_request,
    parse_slash_command,
)
from lingoraft.learning.activities import Activity, RuntimeContext, TypingActivity
from lingoraft.learning.evaluator import EvaluationResult, MistakeFlags
from lingoraft.learning.lessons import LessonCatalog, LessonDefinition
from lingoraft.storage import SessionStore
from lingoraft.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LESSON_ID = "typing_beginner_20min"

GREETING = "Hello! I'm LingoRaft. I can help you learn beginner English."
CHOOSE_ONE = "Choose one:"
NO_ACTIVE_LESSON = "No active lesson."
SKIP_SUGGESTION = "You can tap Skip if you feel stuck."
HELP_LINES = [
    "Commands:",
    "/help",
    "/lessons",
    "/start <lessonId>",
    "/restart",
    "/exit",
    "/progress",
    "Lesson mode: retry, skip",
]
CHAT_MODE_FIELDS = {
    "mode": "chat",
    "active_lesson_id": None,
    "current_activity_index": 0,
    "retries_on_current_prompt": 0,
    "lesson_stats": None,
}


def make_action(action_id: str, label: str, value: str, variant: str = "secondary") -> Action:
    """Build a quick or lesson action button."""
    return Action(id=action_id, label=label, value=value, variant=variant)


def apply_mistake_flags(stats: LessonStats, flags: MistakeFlags) -> None:
    """Bump the lesson's mistake counters for each flag set on an attempt."""
    counters = stats.common_mistakes
    if flags.missing_spaces:
        counters.missing_spaces += 1
    if flags.extra_spaces:
        counters.extra_spaces += 1
    if flags.wrong_capitalization:
        counters.wrong_capitalization += 1
    if flags.other:
        counters.other += 1


class LessonEngine:
    """
    State machine driving a learner through chat and typing lessons.

    The engine owns one `SessionState`, mutates it in response to each message and
    hands back a `Response` snapshot for whichever shell is rendering. Every path
    ends in a valid response; user mistakes become chat messages and persistence
    is best effort through the injected `SessionStore`.

    Flow
    ----
    - blank input: nothing happens
    - `__reset_session__`: state and store are wiped
    - `/command ...`: dispatched in either mode
    - lesson mode: `retry` / `skip` controls, anything else is scored as an attempt
    - chat mode: two small intents, otherwise a capability message

    Attributes
    ----------
    catalog : LessonCatalog
        Lessons the learner can start; stale ids in a restored session are dropped.
    session_store : SessionStore | None
        Where the session is loaded from at construction and saved after changes.
    default_lesson_id : str
        Lesson used by chat shortcuts and by `/restart` when no lesson is active.
    """

    def __init__(
        self,
        catalog: LessonCatalog,
        session_store: Optional[SessionStore] = None,
        default_lesson_id: str = DEFAULT_LESSON_ID,
    ):
        self.catalog = catalog
        self.session_store = session_store
        self.default_lesson_id = default_lesson_id
        self.session = self._load_session()

    # ------------------------------------------------------------------
    # session lifecycle

    def _load_session(self) -> SessionState:
        """Merge the stored blob over defaults, repairing bad fields instead of discarding the session."""
        loaded = self.session_store.load() if self.session_store is not None else None
        if not isinstance(loaded, dict):
            return SessionState()

        merged = {**SessionState().model_dump(mode="json"), **loaded}
        completions = self._restore_completions(merged.get("completions"))
        merged["completions"] = {}
        message_count = merged.get("message_count")
        if not isinstance(message_count, int) or isinstance(message_count, bool) or message_count < 0:
            merged["message_count"] = 0

        try:
            session = SessionState.model_validate(merged)
        except ValidationError as exc:
            logger.info("session_lesson_state_rejected", error=str(exc))
            try:
                session = SessionState.model_validate({**merged, **CHAT_MODE_FIELDS})
            except ValidationError as fallback_exc:
                logger.info("session_restore_rejected", error=str(fallback_exc))
                return SessionState()
        session.completions = completions

        lesson = self.catalog.get(session.active_lesson_id)
        if session.active_lesson_id and lesson is None:
            logger.info("session_lesson_missing", lesson_id=session.active_lesson_id)
        if session.mode != "lesson" or lesson is None:
            session.clear_lesson()
        elif session.lesson_stats is None:
            session.lesson_stats = LessonStats.empty(lesson.typing_prompt_count)
        return session

    @staticmethod
    def _restore_completions(raw: object) -> Dict[str, CompletionRecord]:
        """Keep every completion record that still validates and drop the rest."""
        if not isinstance(raw, dict):
            return {}
        completions: Dict[str, CompletionRecord] = {}
        for lesson_id, record in raw.items():
            try:
                completions[str(lesson_id)] = CompletionRecord.model_validate(record)
            except ValidationError:
                logger.info("completion_record_dropped", lesson_id=lesson_id)
        return completions

    def persist(self) -> None:
        """Save the current session through the store, if one is attached."""
        if self.session_store is not None:
            self.session_store.save(self.session.model_dump(mode="json"))

    def reset_session(self) -> Response:
        """Wipe the session and the stored copy, then greet the learner again."""
        self.session = SessionState()
        if self.session_store is not None:
            self.session_store.clear()
        logger.info("session_reset")
        return self._make_response(
            messages=["Session reset.", GREETING],
            quick_actions=self.chat_actions(),
        )

    # ------------------------------------------------------------------
    # derived views

    def active_lesson(self) -> Optional[LessonDefinition]:
        """Lesson definition for the active lesson id, if it still exists."""
        return self.catalog.get(self.session.active_lesson_id)

    def current_activity(self) -> Optional[Activity]:
        """Activity under the cursor, or None when not in a lesson or past its end."""
        if self.session.mode != "lesson":
            return None
        lesson = self.active_lesson()
        if lesson is None:
            return None
        activities = lesson.build_activities()
        index = self.session.current_activity_index
        return activities[index] if 0 <= index < len(activities) else None

    def chat_actions(self) -> List[Action]:
        """Quick actions offered while chatting."""
        lesson = self.catalog.get(self.default_lesson_id)
        label = f"Start Typing Lesson ({lesson.estimated_minutes} min)" if lesson else "Start Typing Lesson"
        return [
            make_action("start_typing", label, f"/start {self.default_lesson_id}", "primary"),
            make_action("see_lessons", "See Lessons", "/lessons"),
            make_action("help", "Help", "/help"),
        ]

    def lesson_actions(self) -> List[Action]:
        """Retry, skip and exit buttons shown under a prompt."""
        return [
            make_action("retry", "Retry", "retry"),
            make_action("skip", "Skip", "skip"),
            make_action("exit", "Exit", "/exit"),
        ]

    def quick_actions_for_mode(self) -> List[Action]:
        """Quick actions matching the current mode."""
        if self.session.mode == "lesson":
            return [
                make_action("progress", "Progress", "/progress"),
                make_action("restart", "Restart Lesson", "/restart"),
            ]
        return self.chat_actions()

    def lessons_list_view(self) -> List[LessonListItem]:
        """Lessons panel entries with their completion state."""
        items = []
        for lesson in self.catalog.list():
            record = self.session.completions.get(lesson.id)
            items.append(
                LessonListItem(
                    id=lesson.id,
                    title=lesson.title,
                    level=lesson.level,
                    estimated_minutes=lesson.estimated_minutes,
                    description=lesson.description,
                    completed=bool(record and record.completed),
                    last_average_accuracy=record.average_accuracy if record else None,
                    start_action=make_action(f"start_{lesson.id}", "Start Lesson", f"/start {lesson.id}", "primary"),
                )
            )
        return items

    def current_lesson_info(self) -> Optional[LessonInfo]:
        """Header data for the prompt under the cursor."""
        lesson = self.active_lesson()
        activity = self.current_activity()
        if lesson is None or not isinstance(activity, TypingActivity):
            return None
        stats = self.session.lesson_stats
        return LessonInfo(
            lesson_id=lesson.id,
            lesson_title=lesson.title,
            section_number=activity.section_number,
            section_title=activity.section_title,
            total_sections=len(lesson.sections),
            prompt_number=activity.prompt_number,
            total_prompts=activity.total_prompts,
            average_accuracy=stats.average_accuracy if stats else 0,
            completed_prompts=stats.completed_prompts if stats else 0,
        )

    def prompt_card(self) -> Optional[PromptCard]:
        """Card showing the target text the learner should type."""
        activity = self.current_activity()
        if not isinstance(activity, TypingActivity):
            return None
        return PromptCard(target_text=activity.target, hint=activity.hint)

    def _make_response(
        self,
        messages: Optional[List[str]] = None,
        quick_actions: Optional[List[Action]] = None,
        lesson_actions: Optional[List[Action]] = None,
        feedback_card: Optional[FeedbackCard] = None,
    ) -> Response:
        """Assemble a Response from the current session plus per-turn extras."""
        in_lesson = self.session.mode == "lesson"
        if lesson_actions is None:
            lesson_actions = self.lesson_actions() if in_lesson else []
        return Response(
            is_lesson_active=in_lesson,
            messages=list(messages or []),
            mode=self.session.mode,
            quick_actions=quick_actions if quick_actions is not None else self.quick_actions_for_mode(),
            lesson_actions=lesson_actions,
            current_lesson_info=self.current_lesson_info() if in_lesson else None,
            prompt_card=self.prompt_card() if in_lesson else None,
            feedback_card=feedback_card,
            lessons=self.lessons_list_view(),
            can_reset=True,
        )

    # ------------------------------------------------------------------
    # responses

    def boot_response(self) -> Response:
        """First response a shell shows, welcoming a learner back into an unfinished lesson."""
        lesson = self.active_lesson()
        if self.session.mode == "lesson" and lesson is not None and self.current_activity() is not None:
            return self._make_response(messages=[f"Welcome back to {lesson.title}."])
        return self._make_response(messages=[GREETING, CHOOSE_ONE], quick_actions=self.chat_actions())

    def help_response(self) -> Response:
        """List the available commands."""
        return self._make_response(messages=["\n".join(HELP_LINES)])

    def list_lessons_response(self) -> Response:
        """Describe every lesson in the catalog as one chat message."""
        lines = ["Available lessons:"]
        for lesson in self.catalog.list():
            lines.append(f"- {lesson.id}: {lesson.title} ({lesson.estimated_minutes} min)")
        return self._make_response(messages=["\n".join(lines)])

    def start_lesson(self, lesson_id: str) -> Response:
        """Enter lesson mode at the lesson's entry activity with fresh statistics."""
        lesson = self.catalog.get(lesson_id)
        if lesson is None:
            return self._make_response(messages=[f"Lesson not found: {lesson_id}"])

        self.session.mode = "lesson"
        self.session.active_lesson_id = lesson.id
        self.session.current_activity_index = lesson.entry_activity
        self.session.retries_on_current_prompt = 0
        self.session.lesson_stats = LessonStats.empty(lesson.typing_prompt_count)
        self.persist()
        logger.info("lesson_started", lesson_id=lesson.id)
        return self._make_response(messages=[])

    def restart_lesson(self) -> Response:
        """Start the active lesson again, or the default lesson outside a lesson."""
        return self.start_lesson(self.session.active_lesson_id or self.default_lesson_id)

    def exit_lesson(self) -> Response:
        """Leave lesson mode without recording a completion."""
        if self.session.mode != "lesson":
            return self._make_response(messages=[NO_ACTIVE_LESSON])
        lesson_id = self.session.active_lesson_id
        self.session.clear_lesson()
        self.persist()
        logger.info("lesson_exited", lesson_id=lesson_id)
        return self._make_response(
            messages=["Exited lesson.", CHOOSE_ONE],
            quick_actions=self.chat_actions(),
            lesson_actions=[],
        )

    def progress_response(self) -> Response:
        """Report prompts done, average accuracy and the current position."""
        stats = self.session.lesson_stats
        if self.session.mode != "lesson" or stats is None:
            return self._make_response(messages=[NO_ACTIVE_LESSON])
        messages = [
            f"Progress: {stats.completed_prompts}/{stats.total_prompts}",
            f"Average accuracy: {stats.average_accuracy}%",
        ]
        info = self.current_lesson_info()
        if info is not None:
            messages.append(
                f"Section {info.section_number}/{info.total_sections} • Prompt {info.prompt_number}/{info.total_prompts}"
            )
        return self._make_response(messages=messages)

    def finish_lesson(self) -> Response:
        """Record the completion, fall back to chat and offer what to do next."""
        lesson = self.active_lesson()
        stats = (self.session.lesson_stats or LessonStats.empty(0)).model_copy(deep=True)
        average = stats.average_accuracy

        if lesson is not None:
            self.session.completions[lesson.id] = CompletionRecord(
                completed=True,
                average_accuracy=average,
                completed_at=datetime.now(timezone.utc),
            )
            logger.info(
                "lesson_completed",
                lesson_id=lesson.id,
                average_accuracy=average,
                attempts=stats.attempt_count,
            )

        self.session.clear_lesson()
        self.persist()

        restart_value = f"/start {lesson.id}" if lesson is not None else "/lessons"
        return self._make_response(
            messages=["Lesson complete!", f"Average accuracy: {average}%", "Great work. Keep practicing."],
            quick_actions=[
                make_action("restart", "Restart Lesson", restart_value, "primary"),
                make_action("lessons", "Back to Lessons", "/lessons"),
                make_action("reset", "Reset Session", RESET_SENTINEL),
            ],
            lesson_actions=[],
        )

    def move_next(self, feedback_card: Optional[FeedbackCard] = None) -> Response:
        """Advance the cursor and finish the lesson once it runs past the end."""
        self.session.current_activity_index += 1
        self.session.retries_on_current_prompt = 0
        self.persist()
        if self.current_activity() is None:
            return self.finish_lesson()
        return self._make_response(feedback_card=feedback_card)

    @staticmethod
    def feedback_for_result(result: EvaluationResult, extra_line: Optional[str] = None) -> FeedbackCard:
        """Turn an evaluation into the success or warning card."""
        if result.accepted:
            return FeedbackCard(status="success", lines=[f"✓ {result.short_label} Accuracy: {result.accuracy}%"])
        lines = [result.short_label, f"Accuracy: {result.accuracy}%"]
        for line in (result.missing_text, result.extra_text, result.tip, extra_line):
            if line:
                lines.append(line)
        return FeedbackCard(status="warning", lines=lines)

    def handle_lesson_control(self, control: str) -> Response:
        """Apply a `retry` or `skip` control word."""
        if self.session.mode != "lesson":
            return self._make_response(messages=[NO_ACTIVE_LESSON])
        if control == "retry":
            return self._make_response(feedback_card=FeedbackCard(status="info", lines=["Try again."]))
        if control == "skip":
            if self.session.lesson_stats is not None:
                self.session.lesson_stats.completed_prompts += 1
            return self.move_next(FeedbackCard(status="info", lines=["Skipped. Moving on."]))
        return self._make_response(messages=["Unknown lesson action."])

    def handle_lesson_input(self, text: str) -> Response:
        """Score an attempt at the current prompt and update statistics."""
        activity = self.current_activity()
        if activity is None:
            return self.finish_lesson()

        stats = self.session.lesson_stats
        if stats is None:
            lesson = self.active_lesson()
            stats = LessonStats.empty(lesson.typing_prompt_count if lesson else 0)
            self.session.lesson_stats = stats

        result = activity.evaluate(
            text,
            RuntimeContext(
                retries_on_current_prompt=self.session.retries_on_current_prompt,
                lesson_stats=stats.model_copy(deep=True),
            ),
        )
        stats.record_accuracy(result.accuracy)
        apply_mistake_flags(stats, result.mistake_flags)
        logger.debug(
            "attempt_scored",
            activity_id=activity.id,
            accepted=result.accepted,
            accuracy=result.accuracy,
        )

        if result.accepted:
            stats.completed_prompts += 1
            return self.move_next(self.feedback_for_result(result))

        self.session.retries_on_current_prompt += 1
        self.persist()

        threshold = activity.max_retries_before_suggest_skip if isinstance(activity, TypingActivity) else None
        extra_line = None
        if threshold is not None and self.session.retries_on_current_prompt >= threshold:
            extra_line = SKIP_SUGGESTION
        return self._make_response(feedback_card=self.feedback_for_result(result, extra_line))

    def handle_natural_chat(self, text: str) -> Response:
        """Answer free text outside a lesson."""
        if is_start_typing_request(text):
            return self.start_lesson(self.default_lesson_id)
        if is_capability_question(text):
            return self._make_response(
                messages=["I can help with beginner English practice.", CHOOSE_ONE],
                quick_actions=self.chat_actions(),
            )
        return self._make_response(
            messages=["I can help with beginner English and typing practice.", CHOOSE_ONE],
            quick_actions=self.chat_actions(),
        )

    # ------------------------------------------------------------------
    # entry point

    def handle_message(self, raw_text: Optional[str]) -> Response:
        """Interpret one line of learner input and return the next UI state."""
        text = (raw_text or "").strip()
        if not text:
            return self._make_response(messages=[])
        self.session.message_count += 1

        if text == RESET_SENTINEL:
            return self.reset_session()

        slash = parse_slash_command(text)
        if slash is not None:
            return self._dispatch_command(slash.command, slash.args)

        if self.session.mode == "lesson":
            control = detect_lesson_control(text)
            if control is not None:
                return self.handle_lesson_control(control)
            return self.handle_lesson_input(text)

        return self.handle_natural_chat(text)

    def _dispatch_command(self, command: str, args: List[str]) -> Response:
        """Run a slash command with its arguments."""
        if command == "help":
            self.persist()
            return self.help_response()
        if command == "lessons":
            self.persist()
            return self.list_lessons_response()
        if command == "start":
            if not args:
                return self._make_response(messages=["Usage: /start <lessonId>"])
            return self.start_lesson(args[0])
        if command == "restart":
            return self.restart_lesson()
        if command == "exit":
            return self.exit_lesson()
        if command == "progress":
            self.persist()
            return self.progress_response()
        return self._make_response(messages=[f"Unknown command: /{command}"])
