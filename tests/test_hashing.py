import pytest

from ztools.hashing import OFFSET_BASIS, Fnv32Hash, default_hash


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("", 0x811C9DC5),
        ("a", 0x050C5D7E),
        ("foobar", 0x31F0B262),
    ],
)
def test_known_fnv1_vectors(key, expected):
    assert Fnv32Hash().sum(key) == expected


def test_empty_key_is_offset_basis():
    assert default_hash().sum("") == OFFSET_BASIS


def test_bytes_and_str_agree():
    hasher = Fnv32Hash()
    assert hasher.sum("ABC") == hasher.sum(b"ABC")


def test_default_hash_matches_fnv32():
    assert default_hash().sum("ABC") == Fnv32Hash().sum("ABC")


@pytest.mark.parametrize("key", ["ABC", "zinx", "x" * 1000, "ключ"])
def test_result_fits_in_32_bits(key):
    value = Fnv32Hash().sum(key)
    assert 0 <= value < 2**32


def test_different_keys_hash_differently():
    hasher = Fnv32Hash()
    assert hasher.sum("ABC") != hasher.sum("ABD")