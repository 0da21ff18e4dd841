"""
R1CS 바이너리 내보내기 (exporter)
==================================

IR 프로그램을 외부 R1CS 도구들이 읽는 섹션 기반 바이너리 파일로 직렬화한다.

**파일 구조** (모든 정수는 리틀엔디안):

  ┌──────────────────────────────────────────────────────────┐
  │ "r1cs" (4) │ version = 1 (4) │ section count = 3 (4)     │
  ├──────────────────────────────────────────────────────────┤
  │ 제약 섹션    type 2 (4) │ size (8)                        │
  │   제약마다: A, B, C 선형 결합                              │
  │     [항 개수 (4)] [배선 (4) │ 계수 (W)] ...                │
  ├──────────────────────────────────────────────────────────┤
  │ 헤더 섹션    type 1 (4) │ size = 32 + W (8)               │
  │   W (4) │ 소수 (W) │ n_wires (4) │ n_pub_out (4)          │
  │   n_pub_in (4) │ n_prv_in (4) │ n_labels (8) │ n_constraints (4) │
  ├──────────────────────────────────────────────────────────┤
  │ 배선-레이블 섹션  type 3 (4) │ size = 8·n_wires (8)        │
  │   배선 번호 오름차순, 각 8바이트 (레이블 = 배선 번호)        │
  └──────────────────────────────────────────────────────────┘

**배선 번호 변환**: Variable.to_wire(shift), shift = n_pub_out + n_pub_in.

**두 번의 순회**:
  1. 크기 계산: 배선 집합, 제약 섹션 바이트 수, 제약 개수
  2. 바이트 출력
  바이트를 쓰기 전에 크기 계산이 끝나야 하므로 문장 공급원은 다시 순회할 수 있어야 한다.

Block, Directive, Log 문장은 파일에 아무것도 기여하지 않는다.
Block 은 상위 단계(Prog.clean)에서 이미 평탄화되었다고 가정한다.

같은 프로그램은 항상 바이트 단위로 같은 파일을 만든다.
쓰기 오류는 그대로 호출자에게 전파되며, 부분적으로 쓰인 출력은 정리하지 않는다.

사용 예시:
    >>> with open("out.r1cs", "wb") as f:
    ...     write_r1cs(f, prog)
"""

import io
import logging
import struct

from zkir.ir.field import FR, byte_width, modulus, to_bytes_le
from zkir.ir.program import ProgIterator
from zkir.ir.statement import Constraint

logger = logging.getLogger(__name__)

MAGIC = b"r1cs"
VERSION = 1
SECTION_COUNT = 3

HEADER_SECTION = 1
CONSTRAINT_SECTION = 2
WIRE2LABEL_SECTION = 3


class Header:
    """헤더 섹션 필드."""

    def __init__(self, field_size, prime, n_wires, n_pub_out, n_pub_in,
                 n_prv_in, n_labels, n_constraints):
        self.field_size = field_size
        self.prime = prime
        self.n_wires = n_wires
        self.n_pub_out = n_pub_out
        self.n_pub_in = n_pub_in
        self.n_prv_in = n_prv_in
        self.n_labels = n_labels
        self.n_constraints = n_constraints

    def section_size(self):
        return 4 + self.field_size + 4 * 4 + 8 + 4


class Sizing:
    """크기 계산 결과.

    속성:
        header: Header
        shift: n_pub_out + n_pub_in
        wires: 참조된 배선 번호 집합 (상수 배선 0 포함)
        constraints_size: 제약 섹션 바이트 수
    """

    def __init__(self, header, shift, wires, constraints_size):
        self.header = header
        self.shift = shift
        self.wires = wires
        self.constraints_size = constraints_size


def shift_variable(variable, shift):
    """IR 변수 → R1CS 배선 번호. 공개 변수가 범위를 넘으면 InvariantViolation."""
    return variable.to_wire(shift)


def _constraint_size(constraint, width):
    terms = len(constraint.quad.left) + len(constraint.quad.right) + len(constraint.lin)
    # 선형 결합마다 항 개수 4바이트, 항마다 배선 4바이트 + 계수 W바이트
    return 3 * 4 + terms * (width + 4)


def compute_sizing(prog, field=FR):
    """문장 열을 한 번 순회하여 헤더, 배선 집합, 제약 섹션 크기를 구한다."""
    width = byte_width(field)

    n_pub_out = prog.return_count
    n_pub_in = sum(1 for a in prog.arguments if not a.private)
    n_prv_in = sum(1 for a in prog.arguments if a.private)
    shift = n_pub_out + n_pub_in

    wires = {0}
    constraints_size = 0
    n_constraints = 0
    for s in prog.statements:
        if not isinstance(s, Constraint):
            continue
        n_constraints += 1
        constraints_size += _constraint_size(s, width)
        for lc in (s.quad.left, s.quad.right, s.lin):
            wires.update(shift_variable(v, shift) for v, _ in lc)

    header = Header(
        field_size=width,
        prime=to_bytes_le(modulus(field), width),
        n_wires=len(wires),
        n_pub_out=n_pub_out,
        n_pub_in=n_pub_in,
        n_prv_in=n_prv_in,
        n_labels=len(wires),
        n_constraints=n_constraints,
    )
    return Sizing(header, shift, wires, constraints_size)


# ─────────────────────────────────────────────────────────────────────
# 바이트 출력
# ─────────────────────────────────────────────────────────────────────

def _u32(writer, value):
    writer.write(struct.pack("<I", value))


def _u64(writer, value):
    writer.write(struct.pack("<Q", value))


def write_section_header(writer, section_type, size):
    _u32(writer, section_type)
    _u64(writer, size)


def write_header(writer, header):
    _u32(writer, header.field_size)
    writer.write(header.prime)
    _u32(writer, header.n_wires)
    _u32(writer, header.n_pub_out)
    _u32(writer, header.n_pub_in)
    _u32(writer, header.n_prv_in)
    _u64(writer, header.n_labels)
    _u32(writer, header.n_constraints)


def write_lincomb(writer, lincomb, shift, width):
    _u32(writer, len(lincomb))
    for variable, coeff in lincomb:
        _u32(writer, shift_variable(variable, shift))
        writer.write(to_bytes_le(coeff, width))


def write_constraints(writer, statements, shift, width):
    for s in statements:
        if isinstance(s, Constraint):
            write_lincomb(writer, s.quad.left, shift, width)
            write_lincomb(writer, s.quad.right, shift, width)
            write_lincomb(writer, s.lin, shift, width)


def write_table(writer, wires):
    # 별도 심볼 테이블 없이 배선 번호를 그대로 레이블로 쓴다
    for wire in sorted(wires):
        _u64(writer, wire)


def write_r1cs(writer, prog, field=FR):
    """프로그램을 R1CS 바이너리로 writer 에 쓴다.

    Args:
        writer: write(bytes) 를 지원하는 바이너리 싱크
        prog: Prog 또는 ProgIterator (문장 공급원은 두 번 순회 가능해야 함)
        field: 계수 필드 (기본값 FR)

    Raises:
        InvariantViolation: 공개 변수가 공개 구역을 벗어날 때 (출력 전에 검출)
        OSError: 싱크 쓰기 실패
    """
    if not isinstance(prog, ProgIterator):
        raise TypeError(f"ProgIterator 가 필요합니다: {type(prog).__name__}")

    sizing = compute_sizing(prog, field)
    header = sizing.header
    width = header.field_size
    logger.debug(
        "r1cs sizing: wires=%d pub_out=%d pub_in=%d prv_in=%d constraints=%d size=%d",
        header.n_wires, header.n_pub_out, header.n_pub_in, header.n_prv_in,
        header.n_constraints, sizing.constraints_size,
    )

    writer.write(MAGIC)
    _u32(writer, VERSION)
    _u32(writer, SECTION_COUNT)

    write_section_header(writer, CONSTRAINT_SECTION, sizing.constraints_size)
    write_constraints(writer, prog.statements, sizing.shift, width)

    write_section_header(writer, HEADER_SECTION, header.section_size())
    write_header(writer, header)

    write_section_header(writer, WIRE2LABEL_SECTION, header.n_wires * 8)
    write_table(writer, sizing.wires)


def r1cs_bytes(prog, field=FR):
    """R1CS 파일 내용을 bytes 로 반환한다."""
    buf = io.BytesIO()
    write_r1cs(buf, prog, field)
    return buf.getvalue()


def export_r1cs(path, prog, field=FR):
    """R1CS 파일을 path 에 쓴다. 실패 시 파일이 불완전하게 남을 수 있다."""
    # open(..., "wb") 는 이미 버퍼링된 싱크를 돌려준다
    with open(path, "wb") as f:
        write_r1cs(f, prog, field)
    logger.info("wrote r1cs to %s", path)
