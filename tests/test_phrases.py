from voicecraft.practice.phrases import prepare_phrases, split_into_phrases, strip_comments


def test_split_keeps_terminal_punctuation():
    text = "Hello there.  How are you?\nI am fine! Thanks"
    assert split_into_phrases(text) == [
        "Hello there.",
        "How are you?",
        "I am fine!",
        "Thanks",
    ]


def test_split_ignores_blank_input():
    assert split_into_phrases("") == []
    assert split_into_phrases("   \n ") == []


def test_abbreviation_without_space_is_not_split():
    assert split_into_phrases("Version 1.5 is out. Try it.") == ["Version 1.5 is out.", "Try it."]


def test_strip_comments_drops_markers():
    text = "// heading\nFirst line.\n/* note\nspanning */\n== Section ==\nSecond line."
    assert strip_comments(text) == "First line.\nSecond line."


def test_prepare_phrases_optionally_strips_comments():
    text = "// intro\nGood morning. See you."
    assert prepare_phrases(text, drop_comments=True) == ["Good morning.", "See you."]
    assert prepare_phrases(text, drop_comments=False)[0].startswith("// intro")
