"""
IR 유한체(Finite Field) 인터페이스
====================================

IR과 R1CS 내보내기(exporter)가 필드 원소에 요구하는 최소한의 기능을 정의한다.

**유한체 FR**:
  bn128 타원곡선의 스칼라 필드 (scalar field). 별도 지정이 없으면
  모든 계수와 위트니스 값은 이 필드의 원소로 취급된다.
  - 위수(order) p ≈ 2^254, 소수체(prime field)
  - 정규 바이트 폭 W = 32

**필드 백엔드 요구사항**:
  정수 `field_modulus` 클래스 속성을 가지고, 원소를 `int()`로 변환할 수 있으면
  어떤 클래스든 필드로 사용할 수 있다 (py_ecc의 FQ 계열이 대표적).
  - 모듈러스 조회: modulus(field), max_value(field)
  - 고정 폭 리틀엔디안 인코딩/디코딩: to_bytes_le, from_bytes_le
  - 동등 비교 및 정수 변환

사용 예시:
    >>> from zkir.ir.field import FR, byte_width, to_bytes_le
    >>> byte_width(FR)               # 32
    >>> to_bytes_le(FR(1), 4)        # b'\\x01\\x00\\x00\\x00'
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import bn128


# ─────────────────────────────────────────────────────────────────────
# 유한체(Finite Field) FR
# ─────────────────────────────────────────────────────────────────────

class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    py_ecc의 FQ 클래스를 상속하여 +, -, *, /, ** 등의 필드 연산을 제공한다.

    속성:
        field_modulus: bn128 곡선 위수 (소수 p)
    """
    field_modulus = bn128.curve_order


# 곡선 위수 (필드 크기)
CURVE_ORDER = bn128.curve_order


# ─────────────────────────────────────────────────────────────────────
# 필드 기능(capability)
# ─────────────────────────────────────────────────────────────────────

def modulus(field):
    """필드의 소수 모듈러스 p를 반환한다."""
    return int(field.field_modulus)


def max_value(field):
    """필드에서 표현 가능한 가장 큰 값 (p - 1)."""
    return modulus(field) - 1


def byte_width(field):
    """필드 원소의 정규(canonical) 바이트 폭 W.

    W = ceil(bits(max_value + 1) / 8). bn128의 경우 32.
    """
    return (modulus(field).bit_length() + 7) // 8


def to_int(value):
    """필드 원소 또는 정수를 정규 정수 표현으로 변환한다."""
    return int(value)


def to_bytes_le(value, width):
    """값을 width 바이트 리틀엔디안 부호 없는 정수로 인코딩한다.

    상위 바이트는 0으로 채워진다.

    Raises:
        ValueError: 값이 음수이거나 width 바이트에 들어가지 않을 때
    """
    n = to_int(value)
    if n < 0:
        raise ValueError(f"음수는 인코딩할 수 없습니다: {n}")
    try:
        return n.to_bytes(width, "little")
    except OverflowError as e:
        raise ValueError(f"{n}은 {width}바이트에 들어가지 않습니다") from e


def from_bytes_le(field, data):
    """리틀엔디안 바이트열을 필드 원소로 디코딩한다."""
    return field(int.from_bytes(bytes(data), "little"))


def to_dec_string(value):
    """필드 원소 → 10진수 문자열."""
    return str(to_int(value))


def parse_element(field, text):
    """10진수 문자열 → 필드 원소.

    Raises:
        ValueError: 정수가 아니거나 필드 범위를 벗어날 때
    """
    n = int(text)
    if not 0 <= n < modulus(field):
        raise ValueError(f"필드 범위를 벗어난 값입니다: {text}")
    return field(n)


def coerce(field, value):
    """정수나 같은 필드의 원소를 field 원소로 맞춘다."""
    if isinstance(value, field):
        return value
    return field(to_int(value))


def to_compact_dec_string(value):
    """사람이 읽기 쉬운 10진수 표현.

    (p-1)/2 이하는 그대로, 그보다 큰 값은 p를 뺀 음수 "(-k)"로 표시한다.
    """
    n = to_int(value)
    field_modulus = getattr(value, "field_modulus", None)
    if field_modulus is None or n <= (field_modulus - 1) // 2:
        return str(n)
    return f"(-{field_modulus - n})"
