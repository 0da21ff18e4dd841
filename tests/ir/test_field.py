"""
필드 인터페이스 테스트: 모듈러스, 바이트 폭, 리틀엔디안 인코딩.
"""
import pytest
from py_ecc.fields import bn128_FQ as FQ
from zkir.ir.field import (
    FR, CURVE_ORDER,
    modulus, max_value, byte_width,
    to_bytes_le, from_bytes_le, parse_element, coerce, to_compact_dec_string,
)


class SmallField(FQ):
    """테스트용 작은 소수체 (p = 251)."""
    field_modulus = 251


class TestModulus:
    def test_fr(self):
        assert modulus(FR) == CURVE_ORDER
        assert max_value(FR) == CURVE_ORDER - 1

    def test_byte_width(self):
        assert byte_width(FR) == 32
        assert byte_width(SmallField) == 1


class TestEncoding:
    def test_zero_padded_little_endian(self):
        assert to_bytes_le(FR(1), 4) == b"\x01\x00\x00\x00"
        assert to_bytes_le(0x0201, 3) == b"\x01\x02\x00"

    def test_modulus_bytes(self):
        data = to_bytes_le(CURVE_ORDER, 32)
        assert data[:4] == bytes([0x01, 0x00, 0x00, 0xf0])
        assert data[-4:] == bytes([0x72, 0x4e, 0x64, 0x30])

    def test_too_wide(self):
        with pytest.raises(ValueError):
            to_bytes_le(256, 1)

    def test_negative(self):
        with pytest.raises(ValueError):
            to_bytes_le(-1, 4)

    def test_decode(self):
        assert from_bytes_le(FR, b"\x05\x00") == FR(5)


class TestParsing:
    def test_parse_element(self):
        assert parse_element(FR, "42") == FR(42)

    def test_parse_out_of_range(self):
        with pytest.raises(ValueError):
            parse_element(FR, str(CURVE_ORDER))
        with pytest.raises(ValueError):
            parse_element(FR, "-1")

    def test_coerce(self):
        assert coerce(FR, 7) == FR(7)
        x = FR(3)
        assert coerce(FR, x) is x
        assert coerce(SmallField, 300) == SmallField(49)

    def test_compact(self):
        assert to_compact_dec_string(FR(5)) == "5"
        assert to_compact_dec_string(FR(-5)) == "(-5)"
        assert to_compact_dec_string(7) == "7"
