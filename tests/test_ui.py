import pytest

from exdrill.ui import no_emoji, style, success, warn


def test_no_emoji_follows_environment(monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "1")
    assert no_emoji() is True
    monkeypatch.delenv("NO_EMOJI")
    assert no_emoji() is False


def test_style_without_attributes_is_plain_text():
    assert style("hello") == "hello"
    assert style(42) == "42"


def test_style_color_wraps_text():
    styled = style("hello", "red")
    assert "hello" in styled
    assert styled.startswith("\x1b[")
    assert styled.endswith("\x1b[0m")
    assert styled != style("hello", "green")


def test_style_bold_and_color_differs_from_color_only():
    both = style("x", "blue", bold=True)
    assert "x" in both
    assert len(both) > len(style("x", "blue"))


def test_style_rejects_unknown_color():
    with pytest.raises(ValueError):
        style("x", "chartreuse")


def test_warn_without_emoji(monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    warn("something broke")
    out = capsys.readouterr().out
    assert "something broke" in out
    assert "!" in out
    assert "⚠" not in out
    assert out.endswith("\n")


def test_warn_with_emoji(monkeypatch, capsys):
    monkeypatch.delenv("NO_EMOJI", raising=False)
    warn("careful")
    out = capsys.readouterr().out
    assert "⚠" in out
    assert "careful" in out


def test_success_without_emoji(monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    success("all good")
    out = capsys.readouterr().out
    assert "✓" in out
    assert "✅" not in out
    assert "all good" in out


def test_success_with_emoji(monkeypatch, capsys):
    monkeypatch.delenv("NO_EMOJI", raising=False)
    success("all good")
    out = capsys.readouterr().out
    assert "✅" in out
    assert "all good" in out