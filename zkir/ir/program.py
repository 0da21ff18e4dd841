"""
IR 프로그램 컨테이너
=====================

프로그램은 인자(Parameter) 목록, 반환값 개수, 그리고 순서 있는 문장 열로 이루어진다.

**문장 공급원 (StatementSource)**:
  "유한하고 다시 시작할 수 있는(restartable) 문장 열"을 만드는 능력.
  - InMemoryStatements: 메모리의 리스트를 그대로 순회
  - StreamingStatements: 호출할 때마다 새 이터레이터를 만드는 팩토리를 감싼다

  R1CS 내보내기는 문장 열을 두 번 (크기 계산, 바이트 출력) 순회한다.
  따라서 공급원은 여러 번 순회할 수 있어야 한다.
  한 번만 소비되는 이터러블을 넘기면 as_statement_source 가 내부에서 버퍼링한다.

**공개 값 벡터**:
  검증자에게 제시되는 값 순서 =
    공개 인자 값 (인자 순서) + 반환값 (반환 순서)

사용 예시:
    >>> prog = Prog([Parameter.private(Variable.new(1))], [stmt], return_count=1)
    >>> prog.public_count()        # 1
    >>> prog.constraint_count()    # 1
"""

import abc
from collections.abc import Iterable

from zkir.ir.field import FR
from zkir.ir.statement import Block, Constraint
from zkir.ir.variable import InvariantViolation, Variable


class Parameter:
    """프로그램 인자 하나. private 이면 공개 인터페이스에서 숨겨진다."""

    def __init__(self, id, private):
        self.id = id
        self.private = private

    @classmethod
    def public(cls, variable):
        return cls(variable, False)

    @classmethod
    def private(cls, variable):
        return cls(variable, True)

    def __eq__(self, other):
        if not isinstance(other, Parameter):
            return NotImplemented
        return (self.id, self.private) == (other.id, other.private)

    def __hash__(self):
        return hash((self.id, self.private))

    def __str__(self):
        visibility = "private " if self.private else ""
        return f"{visibility}{self.id}"

    def __repr__(self):
        return f"Parameter({self})"


# ─────────────────────────────────────────────────────────────────────
# 문장 공급원
# ─────────────────────────────────────────────────────────────────────

class StatementSource(abc.ABC):
    """유한하고 다시 순회 가능한 문장 열.

    __iter__ 는 호출될 때마다 처음부터 시작하는 새 이터레이터를 반환해야 한다.
    """

    @abc.abstractmethod
    def __iter__(self):
        ...


class InMemoryStatements(StatementSource):
    """메모리 리스트 기반 공급원. 리스트를 복사하지 않고 공유한다."""

    def __init__(self, statements):
        self.statements = statements

    def __iter__(self):
        return iter(self.statements)

    def __len__(self):
        return len(self.statements)


class StreamingStatements(StatementSource):
    """팩토리 기반 공급원. 순회할 때마다 factory() 로 새 스트림을 연다."""

    def __init__(self, factory):
        self.factory = factory

    def __iter__(self):
        return iter(self.factory())


def as_statement_source(statements):
    """리스트, 팩토리, 공급원, 일회성 이터러블을 StatementSource 로 맞춘다."""
    if isinstance(statements, StatementSource):
        return statements
    if isinstance(statements, list):
        return InMemoryStatements(statements)
    if callable(statements):
        return StreamingStatements(statements)
    if isinstance(statements, Iterable):
        # 일회성 이터러블은 두 번 순회할 수 있도록 버퍼링한다
        return InMemoryStatements(list(statements))
    raise TypeError(f"문장 열로 사용할 수 없습니다: {statements!r}")


# ─────────────────────────────────────────────────────────────────────
# ProgIterator / Prog
# ─────────────────────────────────────────────────────────────────────

class ProgIterator:
    """문장 공급원 위의 프로그램.

    속성:
        arguments: Parameter 리스트
        return_count: 반환값 개수
        statements: StatementSource
    """

    def __init__(self, arguments, statements, return_count):
        self.arguments = list(arguments)
        self.return_count = return_count
        self.statements = as_statement_source(statements)

    def collect(self):
        """문장을 모두 메모리로 가져온 Prog 를 만든다."""
        return Prog(self.arguments, list(self.statements), self.return_count)

    def returns(self):
        return [Variable.public(i) for i in range(self.return_count)]

    def public_count(self):
        return sum(1 for a in self.arguments if not a.private) + self.return_count

    def private_input_count(self):
        return sum(1 for a in self.arguments if a.private)

    def public_inputs(self):
        return {a.id for a in self.arguments if not a.private}

    def public_inputs_values(self, witness):
        """검증자에게 제시할 공개 값 벡터.

        공개 인자 값 (인자 순서) 다음에 반환값 (반환 순서).

        Raises:
            InvariantViolation: 위트니스에 공개 변수 값이 없을 때. 솔버나
                      프로그램이 잘못 만들어졌다는 뜻이므로 복구하지 않는다.
        """
        public = [p.id for p in self.arguments if not p.private] + self.returns()
        try:
            return [witness[v] for v in public]
        except KeyError as e:
            raise InvariantViolation(f"위트니스에 공개 변수 {e.args[0]}의 값이 없습니다") from e

    def __eq__(self, other):
        if not isinstance(other, ProgIterator):
            return NotImplemented
        return (
            self.arguments == other.arguments
            and self.return_count == other.return_count
            and list(self.statements) == list(other.statements)
        )

    __hash__ = None


class Prog(ProgIterator):
    """문장을 메모리 리스트로 가진 프로그램."""

    def __init__(self, arguments=(), statements=(), return_count=0):
        super().__init__(arguments, InMemoryStatements(list(statements)), return_count)

    @property
    def statement_list(self):
        return self.statements.statements

    def constraint_count(self):
        """최상위 Constraint 문장의 개수. Directive, Log, Block 은 세지 않는다."""
        return sum(1 for s in self.statement_list if isinstance(s, Constraint))

    def into_prog_iter(self):
        """같은 문장 저장소를 공유하는 ProgIterator 로 넘긴다 (복사 없음)."""
        return ProgIterator(self.arguments, self.statements, self.return_count)

    def clean(self):
        """중첩 Block 을 순서대로 펼친 새 프로그램을 반환한다."""
        return Prog(self.arguments, _flatten(self.statement_list), self.return_count)

    def unsatisfied_constraints(self, witness, field=FR):
        """위트니스 아래에서 성립하지 않는 (인덱스, 제약) 목록."""
        return [
            (i, s)
            for i, s in enumerate(self.statement_list)
            if isinstance(s, Constraint) and not s.is_satisfied(witness, field)
        ]

    def __str__(self):
        returns = ", ".join(str(v) for v in self.returns())
        arguments = ", ".join(str(a) for a in self.arguments)
        lines = [f"def main({arguments}) -> ({returns}) {{"]
        for s in self.statement_list:
            lines.append(f"\t{s}")
        lines.append(f"\treturn {returns}")
        lines.append("}")
        return "\n".join(lines) + "\n"


def _flatten(statements):
    out = []
    for s in statements:
        if isinstance(s, Block):
            out.extend(_flatten(s.statements))
        else:
            out.append(s)
    return out
