import pytest

from xdplab.lookup3 import hashlittle

PHRASE = b"Four score and seven years ago"


def test_empty_key_returns_initial_state():
    assert hashlittle(b"", 0) == 0xDEADBEEF
    assert hashlittle(b"", 1) == 0xDEADBEEF + 1


def test_reference_phrase_seed_zero():
    assert hashlittle(PHRASE, 0) == 0x17770551


def test_reference_phrase_seed_one():
    assert hashlittle(PHRASE, 1) == 0xCD628161


def test_result_is_32_bit():
    for n in range(40):
        value = hashlittle(bytes(range(n)), 7)
        assert 0 <= value < 1 << 32


def test_trailing_zero_bytes_change_hash():
    hashes = {hashlittle(b"\x00" * n, 0) for n in range(1, 30)}
    assert len(hashes) == 29


def test_initval_changes_hash():
    assert hashlittle(PHRASE, 0) != hashlittle(PHRASE, 2)


@pytest.mark.parametrize("n", [11, 12, 13, 24, 25])
def test_block_boundaries_are_distinct(n):
    data = bytes(range(1, n + 1))
    assert hashlittle(data, 0) != hashlittle(data[:-1], 0)


def test_bytes_like_inputs_agree():
    assert hashlittle(bytearray(PHRASE), 3) == hashlittle(PHRASE, 3)
    assert hashlittle(memoryview(PHRASE), 3) == hashlittle(PHRASE, 3)


def test_rejects_text():
    with pytest.raises(TypeError):
        hashlittle("text", 0)