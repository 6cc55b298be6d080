"""
Signature generation: code point safe prefixes.
"""

import pytest

from tiered_memory.core.signature import DEFAULT_SIGNATURE_LENGTH, make_signature


def test_short_text_unchanged():
    assert make_signature("panic: nil map") == "panic: nil map"


def test_text_at_limit_unchanged():
    text = "x" * DEFAULT_SIGNATURE_LENGTH
    assert make_signature(text) == text


def test_empty_text():
    assert make_signature("") == ""


def test_ascii_truncation():
    assert make_signature("abcdefgh", 5) == "abcde"


def test_multibyte_text_cut_on_code_points():
    text = "空指针异常" * 11  # 55 CJK code points, 165 bytes in UTF-8
    assert len(text) == DEFAULT_SIGNATURE_LENGTH + 5

    signature = make_signature(text)

    assert len(signature) == DEFAULT_SIGNATURE_LENGTH
    assert text.startswith(signature)
    # Re-encoding succeeds, so no character was split
    assert signature.encode("utf-8").decode("utf-8") == signature


def test_one_code_point_over_limit():
    text = "错" * (DEFAULT_SIGNATURE_LENGTH + 1)
    assert make_signature(text) == "错" * DEFAULT_SIGNATURE_LENGTH


def test_emoji_are_single_code_points():
    assert make_signature("🔥🐛✅", 2) == "🔥🐛"


def test_bytes_input_decoded_before_cut():
    raw = ("日本語" * 20).encode("utf-8")
    signature = make_signature(raw, 4)
    assert signature == "日本語日"


def test_invalid_utf8_bytes_raise():
    with pytest.raises(UnicodeDecodeError):
        make_signature(b"\xe6\x97")


@pytest.mark.parametrize("max_len", [0, -3])
def test_non_positive_limit(max_len):
    assert make_signature("anything", max_len) == ""
