"""
IR 문장(Statement)
===================

제약 언어의 문장 종류:

  | 종류        | 의미                                                   |
  |-------------|--------------------------------------------------------|
  | Constraint  | quad == lin 을 강제하는 rank-1 제약                     |
  | Directive   | 외부 솔버로 출력 변수를 계산하라는 힌트 (제약 아님)      |
  | Log         | 위트니스 계산 중 출력할 진단 메시지                      |
  | Block       | 문장 묶음 (구조용 컨테이너, R1CS로 직접 내보내지 않음)   |

모든 문장은 생성 후 변경할 수 없다.

Constraint의 error 태그는 진단용 메타데이터일 뿐이다.
동등 비교와 해시에서는 의도적으로 제외된다.

사용 예시:
    >>> x = Variable.new(1)
    >>> s = Statement.definition(x, QuadComb.of(Variable.new(2)))
    >>> str(s)       # '(1 * ~one) * (1 * _2) == 1 * _1'
"""

from zkir.ir.field import FR
from zkir.ir.expression import LinComb, QuadComb


class ErrorTag:
    """제약이 불만족될 때 보고할 진단 태그.

    속성:
        kind: 오류 종류 이름 (예: "Bitness", "SourceAssertion")
        message: 부가 설명 (선택)
    """

    __slots__ = ("kind", "message")

    def __init__(self, kind, message=None):
        self.kind = kind
        self.message = message

    def __eq__(self, other):
        if not isinstance(other, ErrorTag):
            return NotImplemented
        return (self.kind, self.message) == (other.kind, other.message)

    def __hash__(self):
        return hash((self.kind, self.message))

    def __str__(self):
        if self.message is None:
            return self.kind
        return f"{self.kind}: {self.message}"

    def __repr__(self):
        return f"ErrorTag({self})"


# 알려진 솔버의 (입력 수, 출력 수). Bits는 매개변수 n에 따라 출력 수가 정해진다.
_SOLVER_SIGNATURES = {
    "ConditionEq": lambda: (1, 2),
    "Bits": lambda n: (1, n),
    "Div": lambda: (2, 1),
    "Xor": lambda: (2, 1),
    "Or": lambda: (2, 1),
    "ShaAndXorAndXorAnd": lambda: (3, 1),
    "ShaCh": lambda: (3, 1),
    "EuclideanDiv": lambda: (2, 2),
}


class Solver:
    """외부 솔버 식별자. 코어는 이름과 매개변수만 기록하고 실행하지 않는다."""

    __slots__ = ("name", "params")

    def __init__(self, name, *params):
        self.name = name
        self.params = tuple(params)

    @classmethod
    def bits(cls, n):
        return cls("Bits", n)

    def signature(self):
        """(입력 수, 출력 수). 알 수 없는 솔버면 None."""
        factory = _SOLVER_SIGNATURES.get(self.name)
        if factory is None:
            return None
        try:
            return factory(*self.params)
        except TypeError as e:
            raise ValueError(f"솔버 {self.name}의 매개변수가 맞지 않습니다: {self.params}") from e

    def __eq__(self, other):
        if not isinstance(other, Solver):
            return NotImplemented
        return (self.name, self.params) == (other.name, other.params)

    def __hash__(self):
        return hash((self.name, self.params))

    def __str__(self):
        if not self.params:
            return self.name
        return f"{self.name}({', '.join(str(p) for p in self.params)})"

    def __repr__(self):
        return f"Solver({self})"


class Statement:
    """모든 문장의 기반 클래스."""

    __slots__ = ()

    @staticmethod
    def definition(variable, quad, field=FR):
        """quad 로 계산한 값이 변수 하나와 같다는 제약."""
        return Constraint(QuadComb.of(quad, field), LinComb.of(variable, field), None)

    @staticmethod
    def constraint(quad, lin, field=FR):
        return Constraint(QuadComb.of(quad, field), LinComb.of(lin, field), None)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__}은 불변(immutable) 객체입니다")

    def _init(self, **fields):
        for name, value in fields.items():
            object.__setattr__(self, name, value)


class Block(Statement):
    """중첩 문장 묶음.

    R1CS 내보내기는 Block 안으로 들어가지 않는다.
    내보내기 전에 Prog.clean()으로 평탄화되어 있어야 한다.
    """

    __slots__ = ("statements",)

    def __init__(self, statements):
        self._init(statements=tuple(statements))

    def __eq__(self, other):
        if not isinstance(other, Block):
            return NotImplemented
        return self.statements == other.statements

    def __hash__(self):
        return hash(("block", self.statements))

    def __str__(self):
        lines = ["{"]
        lines.extend(str(s) for s in self.statements)
        lines.append("}")
        return "\n".join(lines)


class Constraint(Statement):
    """rank-1 제약 quad == lin."""

    __slots__ = ("quad", "lin", "error")

    def __init__(self, quad, lin, error=None):
        self._init(quad=quad, lin=lin, error=error)

    def is_satisfied(self, witness, field=FR):
        return self.quad.evaluate(witness, field) == self.lin.evaluate(witness, field)

    # error 태그는 진단 메타데이터이므로 비교/해시에서 제외한다
    def __eq__(self, other):
        if not isinstance(other, Constraint):
            return NotImplemented
        return self.quad == other.quad and self.lin == other.lin

    def __hash__(self):
        return hash(("constraint", self.quad, self.lin))

    def __str__(self):
        suffix = "" if self.error is None else f" // {self.error}"
        return f"{self.quad} == {self.lin}{suffix}"

    def __repr__(self):
        return f"Constraint({self})"


class Directive(Statement):
    """외부 솔버 호출 힌트.

    위트니스 계산 시 inputs 의 각 이차 결합을 평가하고,
    solver 를 호출해 그 결과를 outputs 에 할당한다.
    나눗셈, 비트 분해처럼 닫힌 형태의 다항식 제약이 없는 연산에 쓰인다.
    """

    __slots__ = ("inputs", "outputs", "solver")

    def __init__(self, inputs, outputs, solver):
        inputs = tuple(QuadComb.of(i) for i in inputs)
        outputs = tuple(outputs)
        signature = solver.signature()
        if signature is not None and signature != (len(inputs), len(outputs)):
            raise ValueError(
                f"솔버 {solver}는 입력 {signature[0]}개, 출력 {signature[1]}개를 "
                f"받습니다 (입력 {len(inputs)}개, 출력 {len(outputs)}개 주어짐)"
            )
        self._init(inputs=inputs, outputs=outputs, solver=solver)

    def __eq__(self, other):
        if not isinstance(other, Directive):
            return NotImplemented
        return (self.inputs, self.outputs, self.solver) == (
            other.inputs, other.outputs, other.solver
        )

    def __hash__(self):
        return hash(("directive", self.inputs, self.outputs, self.solver))

    def __str__(self):
        outputs = ", ".join(str(o) for o in self.outputs)
        inputs = ", ".join(str(i) for i in self.inputs)
        return f"# {outputs} = {self.solver}({inputs})"


class Log(Statement):
    """진단 로그.

    속성:
        format_string: "{}" 자리표시자를 가진 형식 문자열
        expressions: (선언 타입 이름, [LinComb, ...]) 튜플의 튜플
    """

    __slots__ = ("format_string", "expressions")

    def __init__(self, format_string, expressions=()):
        expressions = tuple(
            (type_name, tuple(lcs)) for type_name, lcs in expressions
        )
        self._init(format_string=format_string, expressions=expressions)

    def __eq__(self, other):
        if not isinstance(other, Log):
            return NotImplemented
        return (self.format_string, self.expressions) == (
            other.format_string, other.expressions
        )

    def __hash__(self):
        return hash(("log", self.format_string, self.expressions))

    def __str__(self):
        groups = ", ".join(
            "[" + ", ".join(str(lc) for lc in lcs) + "]"
            for _, lcs in self.expressions
        )
        return f'log("{self.format_string}", {groups})'
