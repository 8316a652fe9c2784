"""Tests for title slugs."""
import pytest

from bookledger.slugify import slugify


def test_turkish_letters_fold():
    """Test the Turkish folding table in both cases."""
    assert slugify("Çölde Öykü") == "colde-oyku"
    assert slugify("ĞŞİı çğıöşü") == "gsii-cgiosu"


def test_title_to_slug():
    """Test a typical title."""
    assert slugify("Yüzüklerin Efendisi") == "yuzuklerin-efendisi"


def test_other_accents_fold_to_ascii():
    """Test that accents outside the Turkish table are folded too."""
    assert slugify("Café Crème") == "cafe-creme"


def test_punctuation_and_hyphen_runs():
    """Test stripping of punctuation and collapsing of hyphens."""
    assert slugify("  Harry Potter: & the -- Stone!  ") == "harry-potter-the-stone"
    assert slugify("---a---") == "a"
    assert slugify("snake_case stays") == "snake_case-stays"


def test_empty_input():
    """Test that empty and None give an empty slug."""
    assert slugify("") == ""
    assert slugify(None) == ""
    assert slugify("?!") == ""


@pytest.mark.parametrize("text", [
    "Çölde Öykü",
    "  Harry Potter: & the -- Stone!  ",
    "Sefiller — Les Misérables",
    "1984",
    "İstanbul Hatırası",
])
def test_idempotent(text):
    """Test that slugifying a slug changes nothing."""
    once = slugify(text)
    assert slugify(once) == once
