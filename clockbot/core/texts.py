# Русские тексты ответов бота. В логике используем ключи (kind ошибок, алиасы кнопок),
# пользователю показываем только значения.

from __future__ import annotations

from html import escape
from typing import Final, Sequence

from clockbot.config import ResolverConfig
from clockbot.core.errors import FUTURE_WEEKDAY_ERROR_MESSAGE
from clockbot.core.temporal import format_minutes
from clockbot.core.types import ParsedCommand, RankedCandidate


COMMAND_FORMAT_MESSAGE: Final[str] = "\n".join(
    [
        "Извини, я понимаю только команды в формате:",
        "Занеси в Clockify",
        "Проект: <название проекта>",
        "Работа:  <описание задачи>",
        "Время начала: <время начала>",
        "Длительность: <в часах или минутах>",
    ]
)

PROJECT_NOT_FOUND_MESSAGE: Final[str] = "Проект не найден. Попробуйте ещё раз."
CHOICE_PROMPT_MESSAGE: Final[str] = "Выбери проект или нажми <отмена>"
CANCELED_MESSAGE: Final[str] = "Операция прервана. Попробуй прислать аудио сообщение заново."


# =========================
# Ответы на нажатие кнопок (answerCallbackQuery)
# =========================
CALLBACK_LABELS: Final[dict[str, str]] = {
    "accepted": "Принято",
    "canceled": "Отменено",
    "invalid": "Неверная кнопка",
    "selection_expired": "Выбор устарел",
    "selection_ownership": "Это не ваш выбор",
    "selection_not_found": "Вариант не найден",
}

BUTTON_LABELS: Final[dict[str, str]] = {
    "BTN_CANCEL": "Отмена",
}

# kind ошибки -> текст пользователю
ERROR_MESSAGES: Final[dict[str, str]] = {
    "format": COMMAND_FORMAT_MESSAGE,
    "time": COMMAND_FORMAT_MESSAGE,
    "duration": COMMAND_FORMAT_MESSAGE,
    "future_weekday": FUTURE_WEEKDAY_ERROR_MESSAGE,
    "no_match": PROJECT_NOT_FOUND_MESSAGE,
    "selection_expired": CALLBACK_LABELS["selection_expired"],
    "selection_ownership": CALLBACK_LABELS["selection_ownership"],
    "selection_not_found": CALLBACK_LABELS["selection_not_found"],
}


def label(mapping: dict[str, str], key: str, default: str | None = None) -> str:
    """Безопасно получить русский текст по ключу."""
    if not key:
        return default or ""
    return mapping.get(key, default or key)


def button_ru(btn_alias: str) -> str:
    return label(BUTTON_LABELS, btn_alias)


def callback_ru(alias: str) -> str:
    return label(CALLBACK_LABELS, alias)


def error_message(kind: str | None) -> str:
    return label(ERROR_MESSAGES, kind or "format", COMMAND_FORMAT_MESSAGE)


def choice_required_message(candidates: Sequence[RankedCandidate]) -> str:
    choices = [f"{idx + 1}. {c.display_name}" for idx, c in enumerate(candidates)]
    return "\n".join(
        [
            "Найдено несколько похожих проектов:",
            *choices,
            "Пришлите команду ещё раз и укажите точное название проекта.",
        ]
    )


def success_message(project_name: str, command: ParsedCommand, config: ResolverConfig) -> str:
    start = command.start.astimezone(config.reference_tz)
    return "\n".join(
        [
            '<a href="https://app.clockify.me/tracker">Создана запись в Clockify</a>',
            f"Проект: {escape(project_name, quote=False)}",
            f"Детализация: {escape(command.task_query, quote=False)}",
            f"Время начала: {start.strftime('%d.%m.%Y %H:%M')}",
            f"Длительность: {format_minutes(command.duration_minutes)}",
            "Спасибо, что ведёшь учёт рабочего времени!",
        ]
    )
