from app.services.publishing.captions import (
    ELLIPSIS,
    MAX_CAPTION_LENGTH,
    appeal_to_plain_text,
    build_caption,
    truncate_caption,
)


def test_truncate_caption_leaves_short_captions_untouched():
    assert truncate_caption("hello") == "hello"
    exact = "x" * MAX_CAPTION_LENGTH
    assert truncate_caption(exact) == exact


def test_truncate_caption_caps_length_with_ellipsis():
    result = truncate_caption("y" * (MAX_CAPTION_LENGTH + 500))
    assert len(result) == MAX_CAPTION_LENGTH
    assert result.endswith(ELLIPSIS)
    assert result[: MAX_CAPTION_LENGTH - len(ELLIPSIS)] == "y" * (MAX_CAPTION_LENGTH - len(ELLIPSIS))


def test_appeal_to_plain_text_renders_bullets():
    appeal = "<li>Fast</li>\n<li> Cheap </li><li><b>Open</b> source</li>"
    assert appeal_to_plain_text(appeal) == "• Fast\n• Cheap\n• <b>Open</b> source"


def test_appeal_to_plain_text_without_items_strips_list_tags():
    assert appeal_to_plain_text("<ul>Just a sentence</ul>") == "Just a sentence"


def test_build_caption_follows_template():
    caption = build_caption(
        "Acme AI",
        "Acme builds agents for accountants.",
        "<li>Great team</li><li>Real revenue</li>",
        "acme.ai",
    )
    assert caption.startswith("Today's Fix \U0001F48A⚡\n\nAcme AI\n\n")
    assert "Why we like it:\n• Great team\n• Real revenue\n\n" in caption
    assert "Learn more: acme.ai" in caption
    assert caption.endswith("#startupdose #startups #tech #innovation")


def test_build_caption_truncates_long_descriptions():
    caption = build_caption("Acme", "d" * 5000, "<li>x</li>", "acme.ai")
    assert len(caption) == MAX_CAPTION_LENGTH
    assert caption.endswith(ELLIPSIS)
