"""
선형/이차 결합 (Linear / Quadratic Combination)
================================================

**선형 결합 LinComb**:
  (변수, 계수) 쌍의 순서 있는 목록으로 Σ cᵢ·wᵢ 를 나타낸다.
  정규화 전에는 같은 변수가 여러 번 나올 수 있다.

**정규형 CanonicalLinComb**:
  같은 변수의 계수를 모두 더하고, 합이 0인 항은 버린 변수 → 계수 사상.

**이차 결합 QuadComb**:
  두 선형 결합의 곱 left · right.
  R1CS 제약 한 개는 "QuadComb == LinComb" 형태이다.

사용 예시:
    >>> x = Variable.new(1)
    >>> lc = LinComb.summand(3, x) + LinComb.one()   # 3·x + 1
    >>> str(lc)                                       # '3 * _1 + 1 * ~one'
    >>> q = QuadComb.from_linear_combinations(lc, LinComb.of(x))
"""

from zkir.ir.field import FR, coerce, to_int, to_compact_dec_string
from zkir.ir.variable import Variable


def _coefficient(value, field):
    # 이미 필드 원소면 그대로 둔다 (다른 필드 백엔드 허용)
    if hasattr(value, "field_modulus"):
        return value
    return field(to_int(value))


class LinComb:
    """선형 결합 Σ coefficient·variable.

    속성:
        terms: (Variable, 계수) 튜플의 튜플
    """

    __slots__ = ("terms",)

    def __init__(self, terms=(), field=FR):
        object.__setattr__(self, "terms", tuple(
            (variable, _coefficient(coeff, field)) for variable, coeff in terms
        ))

    def __setattr__(self, name, value):
        raise AttributeError("LinComb은 불변(immutable) 객체입니다")

    # ── 생성자 ──

    @classmethod
    def zero(cls):
        return cls()

    @classmethod
    def one(cls, field=FR):
        return cls.summand(1, Variable.one(), field)

    @classmethod
    def summand(cls, coeff, variable, field=FR):
        return cls([(variable, coeff)], field)

    @classmethod
    def of(cls, value, field=FR):
        """Variable 또는 LinComb를 LinComb로 변환한다."""
        if isinstance(value, LinComb):
            return value
        if isinstance(value, Variable):
            return cls.summand(1, value, field)
        raise TypeError(f"LinComb로 변환할 수 없습니다: {value!r}")

    # ── 조회 ──

    def is_zero(self):
        return len(self.terms) == 0

    def __len__(self):
        return len(self.terms)

    def __iter__(self):
        return iter(self.terms)

    def variables(self):
        return [variable for variable, _ in self.terms]

    # ── 연산 ──

    def __add__(self, other):
        other = LinComb.of(other)
        return LinComb(self.terms + other.terms)

    def __sub__(self, other):
        other = LinComb.of(other)
        return LinComb(self.terms + tuple((v, -c) for v, c in other.terms))

    def __neg__(self):
        return LinComb((v, -c) for v, c in self.terms)

    def __mul__(self, scalar):
        return LinComb((v, c * scalar) for v, c in self.terms)

    __rmul__ = __mul__

    def into_canonical(self):
        return CanonicalLinComb.from_terms(self.terms)

    def evaluate(self, witness, field=FR):
        """위트니스 아래에서 결합의 값을 계산한다.

        상수 배선 ~one 은 위트니스에 없어도 1로 평가한다.

        Raises:
            KeyError: 위트니스에 없는 변수가 있을 때
        """
        total = field(0)
        for variable, coeff in self.terms:
            value = field(1) if variable.is_one() else coerce(field, witness[variable])
            total = total + coerce(field, coeff) * value
        return total

    # ── 비교 / 표시 ──

    def __eq__(self, other):
        if not isinstance(other, LinComb):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def _key(self):
        return tuple((v.raw, to_int(c)) for v, c in self.terms)

    def __str__(self):
        if self.is_zero():
            return "0"
        return " + ".join(
            f"{to_compact_dec_string(c)} * {v}" for v, c in self.terms
        )

    def __repr__(self):
        return f"LinComb({self})"


class CanonicalLinComb:
    """정규화된 선형 결합: 변수마다 한 번, 0 계수 없음."""

    __slots__ = ("coefficients",)

    def __init__(self, coefficients=None):
        self.coefficients = dict(coefficients or {})

    @classmethod
    def from_terms(cls, terms):
        acc = {}
        for variable, coeff in terms:
            # 0배 항은 무시한다
            if to_int(coeff) == 0:
                continue
            if variable in acc:
                total = acc.pop(variable) + coeff
                if to_int(total) != 0:
                    acc[variable] = total
            else:
                acc[variable] = coeff
        return cls(acc)

    def into_lin_comb(self):
        return LinComb(sorted(self.coefficients.items(), key=lambda t: t[0]))

    def __len__(self):
        return len(self.coefficients)

    def __getitem__(self, variable):
        return self.coefficients[variable]

    def __contains__(self, variable):
        return variable in self.coefficients

    def __eq__(self, other):
        if not isinstance(other, CanonicalLinComb):
            return NotImplemented
        return {v: to_int(c) for v, c in self.coefficients.items()} == {
            v: to_int(c) for v, c in other.coefficients.items()
        }

    def __hash__(self):
        return hash(frozenset((v, to_int(c)) for v, c in self.coefficients.items()))

    def __repr__(self):
        return f"CanonicalLinComb({self.into_lin_comb()})"


class QuadComb:
    """이차 결합 left · right."""

    __slots__ = ("left", "right")

    def __init__(self, left, right):
        object.__setattr__(self, "left", left)
        object.__setattr__(self, "right", right)

    def __setattr__(self, name, value):
        raise AttributeError("QuadComb은 불변(immutable) 객체입니다")

    @classmethod
    def from_linear_combinations(cls, left, right):
        return cls(left, right)

    @classmethod
    def of(cls, value, field=FR):
        """QuadComb, LinComb, Variable을 QuadComb로 변환한다.

        선형 결합 l 은 1 · l 로 표현된다.
        """
        if isinstance(value, QuadComb):
            return value
        return cls(LinComb.one(field), LinComb.of(value, field))

    def evaluate(self, witness, field=FR):
        return self.left.evaluate(witness, field) * self.right.evaluate(witness, field)

    def __eq__(self, other):
        if not isinstance(other, QuadComb):
            return NotImplemented
        return self.left == other.left and self.right == other.right

    def __hash__(self):
        return hash((self.left, self.right))

    def __str__(self):
        return f"({self.left}) * ({self.right})"

    def __repr__(self):
        return f"QuadComb({self})"
