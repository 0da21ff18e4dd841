"""
R1CS 바이너리 읽기
===================

writer 가 만든 파일 (또는 같은 형식의 외부 파일)을 파싱한다.
섹션은 어떤 순서로 나와도 된다. 주로 내보낸 결과를 검증하는 데 쓰인다.

사용 예시:
    >>> r = read_r1cs(io.BytesIO(r1cs_bytes(prog)))
    >>> r.n_wires, r.wire_labels
"""

import struct

from zkir.r1cs.writer import (
    CONSTRAINT_SECTION, HEADER_SECTION, MAGIC, VERSION, WIRE2LABEL_SECTION,
)


class R1csFormatError(ValueError):
    """R1CS 바이너리 형식이 잘못되었을 때."""


class R1csFile:
    """파싱된 R1CS 파일.

    속성:
        field_size, prime, n_wires, n_pub_out, n_pub_in, n_prv_in,
        n_labels, n_constraints: 헤더 필드 (prime 은 정수)
        constraints: [(A, B, C), ...], 각 선형 결합은 [(배선, 계수 정수), ...]
        wire_labels: 배선 → 레이블 목록
        section_sizes: 섹션 type → 선언된 크기
    """

    def __init__(self):
        self.version = None
        self.field_size = None
        self.prime = None
        self.n_wires = None
        self.n_pub_out = None
        self.n_pub_in = None
        self.n_prv_in = None
        self.n_labels = None
        self.n_constraints = None
        self.constraints = []
        self.wire_labels = []
        self.section_sizes = {}


class _Cursor:
    def __init__(self, data):
        self.data = data
        self.pos = 0

    def take(self, n):
        if self.pos + n > len(self.data):
            raise R1csFormatError(
                f"파일이 잘렸습니다: offset {self.pos}에서 {n}바이트 필요"
            )
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def u32(self):
        return struct.unpack("<I", self.take(4))[0]

    def u64(self):
        return struct.unpack("<Q", self.take(8))[0]

    def at_end(self):
        return self.pos >= len(self.data)


def _read_header(cur, result):
    result.field_size = cur.u32()
    result.prime = int.from_bytes(cur.take(result.field_size), "little")
    result.n_wires = cur.u32()
    result.n_pub_out = cur.u32()
    result.n_pub_in = cur.u32()
    result.n_prv_in = cur.u32()
    result.n_labels = cur.u64()
    result.n_constraints = cur.u32()


def _read_lincomb(cur, field_size):
    n = cur.u32()
    terms = []
    for _ in range(n):
        wire = cur.u32()
        coeff = int.from_bytes(cur.take(field_size), "little")
        terms.append((wire, coeff))
    return terms


def _read_constraints(cur, result):
    while not cur.at_end():
        a = _read_lincomb(cur, result.field_size)
        b = _read_lincomb(cur, result.field_size)
        c = _read_lincomb(cur, result.field_size)
        result.constraints.append((a, b, c))


def _read_labels(cur, result):
    while not cur.at_end():
        result.wire_labels.append(cur.u64())


def read_r1cs(stream):
    """바이너리 스트림에서 R1CS 파일을 읽는다.

    Raises:
        R1csFormatError: 매직/버전/섹션이 잘못되었거나 데이터가 잘렸을 때
    """
    cur = _Cursor(stream.read())
    if cur.take(4) != MAGIC:
        raise R1csFormatError("r1cs 매직 바이트가 아닙니다")

    result = R1csFile()
    result.version = cur.u32()
    if result.version != VERSION:
        raise R1csFormatError(f"지원하지 않는 버전입니다: {result.version}")

    n_sections = cur.u32()
    sections = {}
    for _ in range(n_sections):
        section_type = cur.u32()
        size = cur.u64()
        if section_type in sections:
            raise R1csFormatError(f"섹션 {section_type}이 중복되었습니다")
        sections[section_type] = cur.take(size)
        result.section_sizes[section_type] = size

    if not cur.at_end():
        raise R1csFormatError("마지막 섹션 뒤에 남은 데이터가 있습니다")
    for required in (HEADER_SECTION, CONSTRAINT_SECTION, WIRE2LABEL_SECTION):
        if required not in sections:
            raise R1csFormatError(f"섹션 {required}이 없습니다")

    # 제약 섹션을 읽으려면 헤더의 field_size 가 먼저 필요하다
    header = _Cursor(sections[HEADER_SECTION])
    _read_header(header, result)
    if not header.at_end():
        raise R1csFormatError("헤더 섹션 크기가 맞지 않습니다")
    _read_constraints(_Cursor(sections[CONSTRAINT_SECTION]), result)
    _read_labels(_Cursor(sections[WIRE2LABEL_SECTION]), result)

    if len(result.constraints) != result.n_constraints:
        raise R1csFormatError(
            f"제약 개수 불일치: 헤더 {result.n_constraints}, 실제 {len(result.constraints)}"
        )
    if len(result.wire_labels) != result.n_labels:
        raise R1csFormatError(
            f"레이블 개수 불일치: 헤더 {result.n_labels}, 실제 {len(result.wire_labels)}"
        )
    return result
