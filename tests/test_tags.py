"""タグ語彙と上限規則のテスト。"""

from __future__ import annotations

import pytest

from adofai_gg.errors import InvalidArgumentError
from adofai_gg.tags import MAX_TAGS, Tag, decode_tag, limit_tags


@pytest.mark.light
def test_tag_vocabulary_order_and_labels():
    """22個のタグが定義順に並び、ラベルから逆引きできることを確認する。"""
    tags = list(Tag)
    assert len(tags) == 22
    assert tags[0] is Tag.Pseudo
    assert tags[-1] is Tag.SuddenAcceleration
    assert Tag.Swing.label == "#스윙"
    for tag in tags:
        assert decode_tag(tag.label) is tag


@pytest.mark.light
def test_decode_tag_examples():
    assert decode_tag("#2+동타") is Tag.Pseudo2
    assert decode_tag("#64+비트") is Tag.Beat64
    assert decode_tag("#배속변경X") is Tag.NoSpeedChange
    assert decode_tag(" #NSFW ") is Tag.NSFW


@pytest.mark.light
@pytest.mark.parametrize("label", [None, "", "#없는태그", "스윙"])
def test_decode_tag_rejects_empty_or_unknown_label(label):
    with pytest.raises(InvalidArgumentError):
        decode_tag(label)


@pytest.mark.light
def test_limit_tags_keeps_five_or_fewer_unchanged():
    tags = [Tag.Swing, Tag.Gallop, Tag.Triplet, Tag.Long, Tag.Slow]
    assert limit_tags(tags) == tuple(tags)


@pytest.mark.light
def test_limit_tags_drops_default_order_first():
    """通常は Tresillo から除外されることを確認する。"""
    tags = [Tag.Pseudo, Tag.Swing, Tag.Tresillo, Tag.Beat64, Tag.Long, Tag.Slow]
    assert limit_tags(tags) == (Tag.Pseudo, Tag.Swing, Tag.Beat64, Tag.Long, Tag.Slow)


@pytest.mark.light
def test_limit_tags_default_order_continues_with_swing():
    tags = [Tag.Tresillo, Tag.Swing, Tag.Beat64, Tag.Long, Tag.Slow, Tag.NSFW, Tag.DLC]
    assert limit_tags(tags) == (Tag.Beat64, Tag.Long, Tag.Slow, Tag.NSFW, Tag.DLC)


@pytest.mark.light
def test_limit_tags_drops_gimmick_when_memorization_present():
    tags = [Tag.Memorization, Tag.Gimmick, Tag.Triplet, Tag.Long, Tag.Slow, Tag.NSFW]
    assert limit_tags(tags) == (Tag.Memorization, Tag.Triplet, Tag.Long, Tag.Slow, Tag.NSFW)


@pytest.mark.light
def test_limit_tags_uses_funky_beat_order():
    """FunkyBeat がある場合は Swing を残し Tresillo → Triplet の順に除外することを確認する。"""
    tags = [Tag.FunkyBeat, Tag.Tresillo, Tag.Swing, Tag.Triplet, Tag.Long, Tag.Slow, Tag.NSFW]
    assert limit_tags(tags) == (Tag.FunkyBeat, Tag.Swing, Tag.Long, Tag.Slow, Tag.NSFW)


@pytest.mark.light
def test_limit_tags_falls_back_to_source_order():
    """除外対象が無い場合は先頭から MAX_TAGS 個を残すことを確認する。"""
    tags = [Tag.Pseudo, Tag.Pseudo2, Tag.Beat64, Tag.Long, Tag.Slow, Tag.NSFW]
    result = limit_tags(tags)
    assert len(result) == MAX_TAGS
    assert result == tuple(tags[:MAX_TAGS])


@pytest.mark.light
def test_limit_tags_collapses_duplicates():
    assert limit_tags([Tag.Swing, Tag.Swing, Tag.Long]) == (Tag.Swing, Tag.Long)
