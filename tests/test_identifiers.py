import time

import pytest

from pipeweaver.identifiers import Ulid

MIC_ID = "01JKMZFMP9A8J92S631RF3AP3W"


def test_string_round_trip():
    assert str(Ulid.from_string(MIC_ID)) == MIC_ID


def test_lowercase_is_accepted_and_normalised():
    assert str(Ulid.from_string(MIC_ID.lower())) == MIC_ID


def test_default_is_nil():
    assert str(Ulid()) == "0" * 26
    assert Ulid() == Ulid.from_string("0" * 26)


def test_wrong_length_rejected():
    with pytest.raises(ValueError):
        Ulid.from_string(MIC_ID[:-1])


def test_invalid_character_rejected():
    with pytest.raises(ValueError):
        Ulid.from_string("U" + MIC_ID[1:])


def test_overflow_rejected():
    with pytest.raises(ValueError):
        Ulid.from_string("8" + MIC_ID[1:])


def test_non_string_rejected():
    with pytest.raises(TypeError):
        Ulid.from_string(12345)


def test_value_out_of_range_rejected():
    with pytest.raises(ValueError):
        Ulid(1 << 128)


def test_new_carries_current_timestamp():
    before = time.time_ns() // 1_000_000
    ulid = Ulid.new()
    after = time.time_ns() // 1_000_000
    assert before <= ulid.timestamp_ms() <= after


def test_new_identifiers_are_unique():
    ids = {Ulid.new() for _ in range(100)}
    assert len(ids) == 100


def test_new_round_trips_through_text():
    ulid = Ulid.new()
    assert Ulid.from_string(str(ulid)) == ulid


def test_ordering_matches_text_ordering():
    texts = [
        "01JKMZFMP9XRDWX1QWBED7BB4W",
        "01JKMZFMP940258X2W86A1FQMT",
        "01JKMZFMP9EMT8MFS30M8KP2FZ",
        MIC_ID,
    ]
    by_ulid = [str(u) for u in sorted(Ulid.from_string(t) for t in texts)]
    assert by_ulid == sorted(texts)


def test_usable_as_dict_key():
    table = {Ulid.from_string(MIC_ID): "mic"}
    assert table[Ulid.from_string(MIC_ID.lower())] == "mic"