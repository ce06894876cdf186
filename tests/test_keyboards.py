from vocabbot.keyboards import kb_card_front, kb_main_menu, kb_rating


def test_rating_keyboard_has_four_grades():
    kb = kb_rating("42")
    first = kb.inline_keyboard[0]
    assert [b.text for b in first] == ["Again", "Hard", "Good", "Easy"]
    assert [b.callback_data for b in first] == ["ans:again:42", "ans:hard:42", "ans:good:42", "ans:easy:42"]
    assert kb.inline_keyboard[1][0].callback_data == "ui:review.finish"


def test_card_front_reveals():
    kb = kb_card_front("42")
    assert kb.inline_keyboard[0][0].callback_data == "flip:42"


def test_main_menu_entries():
    data = {b.callback_data for row in kb_main_menu().inline_keyboard for b in row}
    assert data == {"ui:review", "ui:reading", "ui:stats"}
