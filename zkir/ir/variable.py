"""
IR 변수(Variable)
==================

회로의 배선(wire)을 식별하는 변수. 세 가지 서로소(disjoint) 종류가 있다:

  | 종류    | 원시 id      | 텍스트    | 의미                                  |
  |---------|--------------|-----------|---------------------------------------|
  | ONE     | 0            | ~one      | 항상 1인 상수 배선                     |
  | PUBLIC  | -(i+1)       | ~out_i    | 공개 변수 (반환값, 공개 인자)           |
  | LOCAL   | i (i ≥ 1)    | _i        | 비공개 인자와 보조(intermediate) 변수  |

공개 구역에서는 반환값 배선이 먼저 (index 0..return_count-1),
그 다음 공개 입력 배선이 인자 순서대로 온다.

**배선 번호 변환 (shift)**:
  R1CS 파일은 0..n_wires 의 평평한 배선 공간을 쓴다.
  shift = n_pub_out + n_pub_in 일 때

    ONE        → 0
    PUBLIC(i)  → i + 1          (i + 1 ≤ shift 이어야 함)
    LOCAL(i)   → i + shift

  두 구역은 서로 겹치지 않으므로 이 변환은 단사(injective)이다.

사용 예시:
    >>> Variable.public(0).to_wire(shift=1)   # 1
    >>> Variable.new(3).to_wire(shift=1)      # 4
    >>> str(Variable.new(42))                 # '_42'
"""

import enum
import re


class InvariantViolation(AssertionError):
    """상위 단계가 만든 IR이 내부 일관성 규칙을 어겼을 때.

    사용자 입력 오류가 아니라 버그를 의미하므로 복구하지 않는다.
    """


class VariableKind(enum.Enum):
    ONE = "one"
    PUBLIC = "public"
    LOCAL = "local"


_TEXT_PATTERN = re.compile(r"^(?:(~one)|~out_(\d+)|_(\d+))$")


class Variable:
    """회로 배선을 가리키는 변수.

    속성:
        kind: VariableKind
        index: PUBLIC이면 0부터 시작하는 공개 구역 인덱스,
               LOCAL이면 1 이상의 id, ONE이면 0
    """

    __slots__ = ("kind", "index")

    def __init__(self, kind, index):
        if kind is VariableKind.ONE and index != 0:
            raise ValueError(f"상수 배선의 인덱스는 0이어야 합니다: {index}")
        if kind is VariableKind.PUBLIC and index < 0:
            raise ValueError(f"공개 변수 인덱스는 0 이상이어야 합니다: {index}")
        if kind is VariableKind.LOCAL and index < 1:
            raise ValueError(f"로컬 변수 id는 1 이상이어야 합니다: {index}")
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "index", index)

    def __setattr__(self, name, value):
        raise AttributeError("Variable은 불변(immutable) 객체입니다")

    # ── 생성자 ──

    @classmethod
    def one(cls):
        return cls(VariableKind.ONE, 0)

    @classmethod
    def public(cls, index):
        return cls(VariableKind.PUBLIC, index)

    @classmethod
    def new(cls, index):
        return cls(VariableKind.LOCAL, index)

    @classmethod
    def from_raw(cls, raw):
        """부호 있는 원시 id로부터 변수를 만든다."""
        if raw == 0:
            return cls.one()
        if raw < 0:
            return cls.public(-raw - 1)
        return cls.new(raw)

    @classmethod
    def parse(cls, text):
        """텍스트 표현(~one, ~out_i, _i)을 변수로 되돌린다.

        Raises:
            ValueError: 형식이 맞지 않을 때
        """
        m = _TEXT_PATTERN.match(text.strip())
        if m is None:
            raise ValueError(f"변수 형식이 아닙니다: {text!r}")
        one, out, local = m.groups()
        if one:
            return cls.one()
        if out is not None:
            return cls.public(int(out))
        return cls.new(int(local))

    # ── 조회 ──

    @property
    def raw(self):
        """부호 있는 원시 id (0 / 음수 / 양수)."""
        if self.kind is VariableKind.ONE:
            return 0
        if self.kind is VariableKind.PUBLIC:
            return -(self.index + 1)
        return self.index

    def is_one(self):
        return self.kind is VariableKind.ONE

    def is_public(self):
        return self.kind is VariableKind.PUBLIC

    def is_local(self):
        return self.kind is VariableKind.LOCAL

    def to_wire(self, shift):
        """R1CS 배선 번호로 변환한다.

        Args:
            shift: n_pub_out + n_pub_in

        Returns:
            int: 0..n_wires 범위의 배선 번호

        Raises:
            InvariantViolation: 공개 변수가 공개 구역 밖을 가리킬 때
        """
        if self.kind is VariableKind.ONE:
            return 0
        if self.kind is VariableKind.LOCAL:
            return self.index + shift
        wire = self.index + 1
        if wire > shift:
            raise InvariantViolation(
                f"공개 변수 {self}의 배선 {wire}이 공개 구역 크기 {shift}를 넘습니다"
            )
        return wire

    # ── 비교 / 해시 ──

    def __eq__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.raw == other.raw

    def __lt__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.raw < other.raw

    def __le__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.raw <= other.raw

    def __gt__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.raw > other.raw

    def __ge__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.raw >= other.raw

    def __hash__(self):
        return hash(self.raw)

    def __str__(self):
        if self.kind is VariableKind.ONE:
            return "~one"
        if self.kind is VariableKind.PUBLIC:
            return f"~out_{self.index}"
        return f"_{self.index}"

    def __repr__(self):
        return f"Variable({self})"
