"""
R1CS 내보내기 테스트.

테스트 대상:
  - golden 바이트: 빈 프로그램, "1 == ~out_0" 한 제약 프로그램
  - 결정론성, 섹션 크기 공식, 배선 집합, 배선 번호 변환
  - Block / Directive / Log 는 파일에 기여하지 않음
  - 불변식 위반과 쓰기 실패의 전파
"""

import io
import struct
import pytest

from py_ecc.fields import bn128_FQ as FQ

from zkir.ir.field import FR
from zkir.ir.variable import Variable, InvariantViolation
from zkir.ir.expression import LinComb, QuadComb
from zkir.ir.statement import Block, Constraint, Directive, Log, Solver, Statement
from zkir.ir.program import Parameter, Prog, ProgIterator
from zkir.r1cs.writer import (
    compute_sizing, r1cs_bytes, write_r1cs, export_r1cs, shift_variable,
)
from zkir.r1cs.reader import read_r1cs


# bn128 스칼라 필드 모듈러스 (리틀엔디안)
MODULUS = [
    0x01, 0x00, 0x00, 0xf0, 0x93, 0xf5, 0xe1, 0x43, 0x91, 0x70, 0xb9, 0x79, 0x48, 0xe8, 0x33, 0x28,
    0x5d, 0x58, 0x81, 0x81, 0xb6, 0x45, 0x50, 0xb8, 0x29, 0xa0, 0x31, 0xe1, 0x72, 0x4e, 0x64, 0x30,
]

COEFF_ONE = [0x01] + [0x00] * 31


def return_one_prog():
    return Prog(
        [],
        [Constraint(QuadComb.of(LinComb.one()), LinComb.of(Variable.public(0)), None)],
        return_count=1,
    )


class TestGolden:
    def test_empty(self):
        expected = bytes(
            # magic
            [0x72, 0x31, 0x63, 0x73]
            # version
            + [0x01, 0x00, 0x00, 0x00]
            # section count
            + [0x03, 0x00, 0x00, 0x00]
            # constraints section (empty)
            + [0x02, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
            # header
            + [0x01, 0x00, 0x00, 0x00, 0x40, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
            # modulus size in bytes
            + [0x20, 0x00, 0x00, 0x00]
            + MODULUS
            # n wires
            + [0x01, 0x00, 0x00, 0x00]
            # n pub outputs
            + [0x00, 0x00, 0x00, 0x00]
            # n pub inputs
            + [0x00, 0x00, 0x00, 0x00]
            # n priv
            + [0x00, 0x00, 0x00, 0x00]
            # n labels
            + [0x01, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
            # n constraints
            + [0x00, 0x00, 0x00, 0x00]
            # wire map (constant one)
            + [0x03, 0x00, 0x00, 0x00, 0x08, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
            + [0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
        )

        assert r1cs_bytes(Prog()) == expected

    def test_return_one(self):
        expected = bytes(
            [0x72, 0x31, 0x63, 0x73]
            + [0x01, 0x00, 0x00, 0x00]
            + [0x03, 0x00, 0x00, 0x00]
            # size = 3 * 4 + 3 * (4 + 32) = 120
            + [0x02, 0x00, 0x00, 0x00, 0x78, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
            # left: 1 term, wire 0, coeff 1
            + [0x01, 0x00, 0x00, 0x00] + [0x00, 0x00, 0x00, 0x00] + COEFF_ONE
            # right: 1 term, wire 0, coeff 1
            + [0x01, 0x00, 0x00, 0x00] + [0x00, 0x00, 0x00, 0x00] + COEFF_ONE
            # output: 1 term, wire 1, coeff 1
            + [0x01, 0x00, 0x00, 0x00] + [0x01, 0x00, 0x00, 0x00] + COEFF_ONE
            # header
            + [0x01, 0x00, 0x00, 0x00, 0x40, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
            + [0x20, 0x00, 0x00, 0x00]
            + MODULUS
            + [0x02, 0x00, 0x00, 0x00]
            + [0x01, 0x00, 0x00, 0x00]
            + [0x00, 0x00, 0x00, 0x00]
            + [0x00, 0x00, 0x00, 0x00]
            + [0x02, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
            + [0x01, 0x00, 0x00, 0x00]
            # wire map (one, pub0)
            + [0x03, 0x00, 0x00, 0x00, 0x10, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
            + [0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
            + [0x01, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
        )

        assert r1cs_bytes(return_one_prog()) == expected

    def test_golden_files_parse(self):
        for prog in (Prog(), return_one_prog()):
            parsed = read_r1cs(io.BytesIO(r1cs_bytes(prog)))
            assert parsed.n_labels == parsed.n_wires


class TestSizing:
    def test_counts(self, cubic_prog):
        sizing = compute_sizing(cubic_prog)
        h = sizing.header
        assert (h.n_pub_out, h.n_pub_in, h.n_prv_in) == (1, 0, 1)
        assert sizing.shift == 1
        assert h.n_constraints == 3

    def test_wire_set(self, cubic_prog):
        # ~one → 0, ~out_0 → 1, _1 → 2, _2 → 3, _3 → 4 (_4 는 Directive 에만 등장)
        assert compute_sizing(cubic_prog).wires == {0, 1, 2, 3, 4}
        assert compute_sizing(cubic_prog).header.n_wires == 5

    def test_constant_wire_counted_once(self):
        prog = Prog([], [
            Statement.constraint(LinComb.one() + LinComb.one(), LinComb.one()),
        ], 0)
        assert compute_sizing(prog).wires == {0}

    def test_size_formula(self, cubic_prog):
        expected = 0
        for s in cubic_prog.statement_list:
            if isinstance(s, Constraint):
                terms = len(s.quad.left) + len(s.quad.right) + len(s.lin)
                expected += 3 * 4 + terms * (32 + 4)
        assert compute_sizing(cubic_prog).constraints_size == expected

    def test_size_field_matches_emitted_bytes(self, cubic_prog):
        data = r1cs_bytes(cubic_prog)
        (size,) = struct.unpack("<Q", data[16:24])
        assert size == compute_sizing(cubic_prog).constraints_size
        parsed = read_r1cs(io.BytesIO(data))
        assert parsed.section_sizes[2] == size


class TestShift:
    def test_shift_variable(self):
        assert shift_variable(Variable.one(), 2) == 0
        assert shift_variable(Variable.public(1), 2) == 2
        assert shift_variable(Variable.new(1), 2) == 3

    def test_public_argument_wires(self):
        """반환값 다음에 공개 입력이 온다."""
        arg = Variable.public(1)
        local = Variable.new(1)
        prog = Prog(
            [Parameter.public(arg), Parameter.private(local)],
            [Statement.definition(Variable.public(0), QuadComb(LinComb.of(arg), LinComb.of(local)))],
            return_count=1,
        )
        parsed = read_r1cs(io.BytesIO(r1cs_bytes(prog)))
        a, b, c = parsed.constraints[0]
        assert a == [(2, 1)]
        assert b == [(3, 1)]
        assert c == [(1, 1)]
        assert parsed.wire_labels == [0, 1, 2, 3]
        assert (parsed.n_pub_out, parsed.n_pub_in, parsed.n_prv_in) == (1, 1, 1)

    def test_invariant_violation_before_any_output(self):
        prog = Prog([], [Statement.constraint(LinComb.one(), Variable.public(3))], 1)
        buf = io.BytesIO()
        with pytest.raises(InvariantViolation):
            write_r1cs(buf, prog)
        assert buf.getvalue() == b""


class TestStatementsIgnored:
    def test_non_constraints_contribute_nothing(self):
        base = return_one_prog()
        noisy = Prog([], [
            Log("{}", [("field", [LinComb.of(Variable.new(9))])]),
            base.statement_list[0],
            Directive([LinComb.of(Variable.new(7))], [Variable.new(8)], Solver("Custom")),
        ], 1)
        assert r1cs_bytes(noisy) == r1cs_bytes(base)

    def test_blocks_are_not_traversed(self):
        base = return_one_prog()
        nested = Prog([], [
            base.statement_list[0],
            Block([Statement.definition(Variable.new(5), LinComb.of(Variable.new(6)))]),
        ], 1)
        assert r1cs_bytes(nested) == r1cs_bytes(base)

    def test_clean_then_export_includes_block_contents(self):
        inner = Statement.definition(Variable.new(5), LinComb.of(Variable.new(6)))
        nested = Prog([], [Block([inner])], 0)
        parsed = read_r1cs(io.BytesIO(r1cs_bytes(nested.clean())))
        assert parsed.n_constraints == 1
        assert parsed.wire_labels == [0, 5, 6]


class TestDeterminism:
    def test_same_prog_same_bytes(self, cubic_prog):
        assert r1cs_bytes(cubic_prog) == r1cs_bytes(cubic_prog)

    def test_streaming_source_matches_materialized(self, cubic_prog):
        stmts = cubic_prog.statement_list
        streaming = ProgIterator(cubic_prog.arguments, lambda: iter(stmts), 1)
        assert r1cs_bytes(streaming) == r1cs_bytes(cubic_prog)

    def test_single_use_iterator_is_buffered(self, cubic_prog):
        one_shot = ProgIterator(cubic_prog.arguments, iter(cubic_prog.statement_list), 1)
        assert r1cs_bytes(one_shot) == r1cs_bytes(cubic_prog)


class SmallField(FQ):
    field_modulus = 251


class TestOtherField:
    def test_byte_width_follows_field(self):
        prog = Prog([], [
            Constraint(QuadComb.of(LinComb.one(SmallField), SmallField),
                       LinComb.summand(250, Variable.public(0), SmallField)),
        ], 1)
        data = r1cs_bytes(prog, SmallField)
        parsed = read_r1cs(io.BytesIO(data))
        assert parsed.field_size == 1
        assert parsed.prime == 251
        assert parsed.section_sizes[1] == 33
        assert parsed.section_sizes[2] == 3 * 4 + 3 * (1 + 4)
        assert parsed.constraints[0][2] == [(1, 250)]


class FailingSink:
    def __init__(self, fail_after):
        self.writes = 0
        self.fail_after = fail_after

    def write(self, data):
        self.writes += 1
        if self.writes > self.fail_after:
            raise OSError("disk full")
        return len(data)


class TestFailures:
    def test_write_error_propagates(self):
        sink = FailingSink(fail_after=3)
        with pytest.raises(OSError, match="disk full"):
            write_r1cs(sink, return_one_prog())
        assert sink.writes == 4

    def test_requires_prog(self):
        with pytest.raises(TypeError):
            write_r1cs(io.BytesIO(), [])

    def test_export_to_file(self, tmp_path):
        path = tmp_path / "out.r1cs"
        export_r1cs(path, return_one_prog())
        assert path.read_bytes() == r1cs_bytes(return_one_prog())
