import sys
import os
import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from zkir.ir.field import FR
from zkir.ir.variable import Variable
from zkir.ir.expression import LinComb, QuadComb
from zkir.ir.statement import Constraint, Directive, Log, Solver, Statement
from zkir.ir.program import Parameter, Prog
from zkir.ir.witness import Witness


# ── 테스트 상수 ──
# x³ + x + 5 = 35 (x = 3), 반환값 ~out_0 = 35
X = Variable.new(1)
X2 = Variable.new(2)
X3 = Variable.new(3)
OUT = Variable.public(0)


@pytest.fixture
def cubic_prog():
    """x를 비공개 인자로 받아 x³ + x + 5 를 반환하는 프로그램."""
    return Prog(
        [Parameter.private(X)],
        [
            Statement.definition(X2, QuadComb(LinComb.of(X), LinComb.of(X))),
            Statement.definition(X3, QuadComb(LinComb.of(X2), LinComb.of(X))),
            Directive([LinComb.of(X3)], [Variable.new(4)], Solver("Identity")),
            Log("x = {}", [("field", [LinComb.of(X)])]),
            Statement.constraint(
                LinComb.of(X3) + LinComb.of(X) + LinComb.summand(5, Variable.one()),
                LinComb.of(OUT),
            ),
        ],
        return_count=1,
    )


@pytest.fixture
def cubic_witness():
    return Witness({
        X: FR(3),
        X2: FR(9),
        X3: FR(27),
        Variable.new(4): FR(27),
        OUT: FR(35),
    })
