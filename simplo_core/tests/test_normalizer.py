import random
import re

import pytest

from simplo_core.rendering.normalizer import normalize_text, split_paragraphs


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("**Hi** there", "Hi there"),
        ("# Title\n\nBody", "Title\n\nBody"),
        ("### Step 1\nDo it", "Step 1\nDo it"),
        ("Use *care* here", "Use care here"),
        ("***both***", "both"),
        ("Run `pip install`", "Run pip install"),
        ("See [the docs](https://example.com/docs) now", "See the docs now"),
        ("above\n\n---\n\nbelow", "above\n\nbelow"),
        ("above\n***\nbelow", "above\n\nbelow"),
        ("a\n\n\n\n\nb", "a\n\nb"),
        ("a\n  \n\t\n \nb", "a\n\nb"),
        ("a\r\n\r\n\r\nb", "a\n\nb"),
        ("   padded   \n\n", "padded"),
        ("plain prose stays", "plain prose stays"),
        ("", ""),
    ],
)
def test_normalize_text_scenarios(raw, expected):
    assert normalize_text(raw) == expected


def test_normalize_text_none_is_empty():
    assert normalize_text(None) == ""


@pytest.mark.parametrize(
    "raw",
    [
        "## ## Title",
        "[[a](b)](c)",
        "  # indented heading",
        "****",
        "`` `x` ``",
        "a\n\n \n#\tb\n\n\nc",
    ],
)
def test_normalize_text_nested_markup_is_idempotent(raw):
    once = normalize_text(raw)
    assert normalize_text(once) == once


_TOKENS = [
    "#", "## ", "###### ", "**", "*", "`", "[", "]", "(", ")", "](", "---", "***", "___",
    "\n", "\n\n\n", "\r\n", " ", "\t", "_", "-", "word", "x", "https://e.x",
]

_BLANK_RUN = re.compile(r"\n[ \t]*\n[ \t]*\n")


def _random_markup(rng: random.Random) -> str:
    return "".join(rng.choice(_TOKENS) for _ in range(rng.randint(0, 40)))


def test_normalize_text_idempotent_on_random_markup():
    rng = random.Random(20240917)
    for _ in range(500):
        raw = _random_markup(rng)
        once = normalize_text(raw)
        assert normalize_text(once) == once, repr(raw)


def test_normalize_text_never_leaves_more_than_one_blank_line():
    rng = random.Random(7)
    for _ in range(500):
        raw = _random_markup(rng)
        out = normalize_text(raw)
        assert not _BLANK_RUN.search(out), repr(raw)
        assert out == out.strip()


def test_split_paragraphs():
    assert split_paragraphs("## Hi\n\nFirst **para**\n\n\n\nSecond") == ["Hi", "First para", "Second"]
    assert split_paragraphs("") == []
