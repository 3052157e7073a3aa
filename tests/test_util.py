import pytest

from famicore.util import get_bit, read_file, to_hex


@pytest.mark.parametrize("pos", range(8))
def test_get_bit_single_bit_set(pos):
    value = 1 << pos
    assert get_bit(value, pos) == 1
    assert all(get_bit(value, other) == 0 for other in range(8) if other != pos)


def test_get_bit_reassembles_value():
    value = 0b10110010
    assert sum(get_bit(value, pos) << pos for pos in range(8)) == value


def test_read_file_round_trip(tmp_path):
    data = bytes(range(256)) * 3
    path = tmp_path / "blob.bin"
    path.write_bytes(data)
    assert read_file(path) == data
    assert read_file(str(path)) == data


def test_read_file_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_file(tmp_path / "absent.nes")


def test_to_hex_one_byte_is_padded_upper_case():
    assert to_hex(0xAB, 1) == "AB"
    assert to_hex(0x0, 1) == "00"


def test_to_hex_two_bytes():
    assert to_hex(0xC000, 2) == "C000"


@pytest.mark.parametrize("value", [0, 1, 0x7F, 0x80, 0xFF])
def test_to_hex_one_byte_round_trip(value):
    text = to_hex(value, 1)
    assert len(text) == 2
    assert int(text, 16) == value
    assert text == text.upper()


@pytest.mark.parametrize("value", [0, 0x12, 0x1234, 0xFFFC, 0xFFFF])
def test_to_hex_two_byte_round_trip(value):
    text = to_hex(value, 2)
    assert len(text) == 4
    assert int(text, 16) == value


@pytest.mark.parametrize("nbytes", [0, 3, -1])
def test_to_hex_unsupported_width_is_empty(nbytes):
    assert to_hex(0x12, nbytes) == ""