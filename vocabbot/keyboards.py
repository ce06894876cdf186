from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from vocabbot.models import RATINGS


def kb_main_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="▶️ Review", callback_data="ui:review"),
                InlineKeyboardButton(text="📖 Reading", callback_data="ui:reading"),
            ],
            [InlineKeyboardButton(text="📊 Stats", callback_data="ui:stats")],
        ]
    )


def kb_card_front(item_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="👀 Show answer", callback_data=f"flip:{item_id}")],
            [InlineKeyboardButton(text="🏁 Finish session", callback_data="ui:review.finish")],
        ]
    )


def kb_rating(item_id: str) -> InlineKeyboardMarkup:
    """Again/Hard/Good/Easy buttons for a revealed card."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text=r.capitalize(), callback_data=f"ans:{r}:{item_id}")
                for r in RATINGS
            ],
            [InlineKeyboardButton(text="🏁 Finish session", callback_data="ui:review.finish")],
        ]
    )


def round_end_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="🔁 Next round", callback_data="round:repeat"),
                InlineKeyboardButton(text="📖 Reading", callback_data="ui:reading"),
            ],
            [InlineKeyboardButton(text="◀️ Back", callback_data="ui:menu")],
        ]
    )


def kb_reading_done() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="✅ Done reading", callback_data="ui:reading.done")],
            [InlineKeyboardButton(text="◀️ Back", callback_data="ui:menu")],
        ]
    )


def kb_back_to_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text="◀️ Back", callback_data="ui:menu")]]
    )
