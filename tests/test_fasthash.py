import pytest

from xdplab.fasthash import fasthash32, fasthash64, fasthash_mix


def test_mix_of_zero_is_zero():
    assert fasthash_mix(0) == 0


def test_mix_is_injective_on_sample():
    inputs = list(range(1, 2000)) + [1 << 63, (1 << 64) - 1]
    outputs = {fasthash_mix(v) for v in inputs}
    assert len(outputs) == len(inputs)
    assert all(0 <= v < 1 << 64 for v in outputs)


def test_empty_input_with_zero_seed():
    assert fasthash64(b"", 0) == 0
    assert fasthash32(b"", 0) == 0


@pytest.mark.parametrize("seed", [1, 77, 0xDEADBEEF, (1 << 64) - 1])
def test_empty_input_is_mix_of_seed(seed):
    assert fasthash64(b"", seed) == fasthash_mix(seed)


def test_deterministic_and_in_range():
    data = b"hello fasthash world"
    first = fasthash64(data, 77)
    assert fasthash64(data, 77) == first
    assert 0 <= first < 1 << 64
    assert 0 <= fasthash32(data, 77) < 1 << 32


def test_seed_changes_result():
    data = b"\x0a\x00\x00\x01\xc0\xa8\x00\x01\x00\x50\x1f\x90\x06"
    assert fasthash64(data, 77) != fasthash64(data, 78)


def test_length_is_part_of_hash():
    assert fasthash64(b"a", 0) != fasthash64(b"a\x00", 0)
    assert fasthash64(b"\x00" * 8, 0) != fasthash64(b"\x00" * 16, 0)


def test_accepts_bytes_like_objects():
    data = b"0123456789abcdefXYZ"
    assert fasthash64(bytearray(data), 5) == fasthash64(data, 5)
    assert fasthash64(memoryview(data), 5) == fasthash64(data, 5)


def test_distinct_inputs_distinct_hashes():
    hashes = {fasthash64(bytes([i]) * (i % 20 + 1), 77) for i in range(256)}
    assert len(hashes) == 256


def test_rejects_text():
    with pytest.raises(TypeError):
        fasthash64("text", 0)