"""
IR 데이터 직렬화/역직렬화 헬퍼
================================

TinyDB에 저장 가능한 (JSON 호환) 형태로 IR 객체를 변환한다.
FR, Variable, LinComb, QuadComb, Statement, Parameter, Prog, Witness.

Block 문장은 중첩된 그대로 저장된다. R1CS 로 내보내기 전에는 Prog.clean()으로 평탄화해야 한다.
"""

from zkir.ir.field import FR, parse_element, to_dec_string
from zkir.ir.variable import Variable
from zkir.ir.expression import LinComb, QuadComb
from zkir.ir.statement import Block, Constraint, Directive, ErrorTag, Log, Solver
from zkir.ir.program import Parameter, Prog
from zkir.ir.witness import Witness


def _expect(data, kind, what):
    """JSON 입력의 타입을 확인한다. 맞지 않으면 TypeError."""
    if not isinstance(data, kind):
        raise TypeError(f"{what}는 {kind.__name__} 이어야 합니다: {data!r}")
    return data


# ─── FR ───

def serialize_fr(val):
    """FR → str(int)"""
    return to_dec_string(val)


def deserialize_fr(s, field=FR):
    """str(int) → FR"""
    return parse_element(field, s)


def serialize_fr_list(lst):
    """list[FR] → list[str]"""
    return [serialize_fr(v) for v in lst]


def deserialize_fr_list(data, field=FR):
    """list[str] → list[FR]"""
    return [deserialize_fr(s, field) for s in data]


# ─── Variable ───

def serialize_variable(v):
    """Variable → "~one" / "~out_i" / "_i" """
    return str(v)


def deserialize_variable(s):
    return Variable.parse(_expect(s, str, "변수"))


# ─── LinComb / QuadComb ───

def serialize_lincomb(lc):
    """LinComb → [[변수, 계수], ...]"""
    return [[serialize_variable(v), serialize_fr(c)] for v, c in lc]


def deserialize_lincomb(data, field=FR):
    return LinComb(
        [(deserialize_variable(v), deserialize_fr(c, field)) for v, c in data],
        field,
    )


def serialize_quadcomb(q):
    return {"left": serialize_lincomb(q.left), "right": serialize_lincomb(q.right)}


def deserialize_quadcomb(data, field=FR):
    _expect(data, dict, "이차 결합")
    return QuadComb(
        deserialize_lincomb(data["left"], field),
        deserialize_lincomb(data["right"], field),
    )


# ─── Statement ───

def serialize_error(error):
    if error is None:
        return None
    return {"kind": error.kind, "message": error.message}


def deserialize_error(data):
    if data is None:
        return None
    _expect(data, dict, "오류 태그")
    return ErrorTag(data["kind"], data.get("message"))


def serialize_statement(s):
    """Statement → {"type": ..., ...}"""
    if isinstance(s, Constraint):
        return {
            "type": "constraint",
            "quad": serialize_quadcomb(s.quad),
            "lin": serialize_lincomb(s.lin),
            "error": serialize_error(s.error),
        }
    if isinstance(s, Directive):
        return {
            "type": "directive",
            "inputs": [serialize_quadcomb(i) for i in s.inputs],
            "outputs": [serialize_variable(o) for o in s.outputs],
            "solver": {"name": s.solver.name, "params": list(s.solver.params)},
        }
    if isinstance(s, Log):
        return {
            "type": "log",
            "format": s.format_string,
            "expressions": [
                [type_name, [serialize_lincomb(lc) for lc in lcs]]
                for type_name, lcs in s.expressions
            ],
        }
    if isinstance(s, Block):
        return {
            "type": "block",
            "statements": [serialize_statement(inner) for inner in s.statements],
        }
    raise TypeError(f"알 수 없는 문장입니다: {s!r}")


def deserialize_statement(data, field=FR):
    _expect(data, dict, "문장")
    kind = data.get("type")
    if kind == "constraint":
        return Constraint(
            deserialize_quadcomb(data["quad"], field),
            deserialize_lincomb(data["lin"], field),
            deserialize_error(data.get("error")),
        )
    if kind == "directive":
        solver = _expect(data["solver"], dict, "솔버")
        return Directive(
            [deserialize_quadcomb(i, field) for i in data["inputs"]],
            [deserialize_variable(o) for o in data["outputs"]],
            Solver(solver["name"], *solver.get("params", [])),
        )
    if kind == "log":
        return Log(
            data["format"],
            [
                (type_name, [deserialize_lincomb(lc, field) for lc in lcs])
                for type_name, lcs in data.get("expressions", [])
            ],
        )
    if kind == "block":
        return Block([deserialize_statement(inner, field) for inner in data["statements"]])
    raise ValueError(f"알 수 없는 문장 type 입니다: {kind!r}")


# ─── Parameter / Prog ───

def serialize_parameter(p):
    return {"id": serialize_variable(p.id), "private": p.private}


def deserialize_parameter(data):
    _expect(data, dict, "인자")
    return Parameter(deserialize_variable(data["id"]), bool(data["private"]))


def serialize_prog(prog):
    """Prog → dict"""
    return {
        "arguments": [serialize_parameter(p) for p in prog.arguments],
        "return_count": prog.return_count,
        "statements": [serialize_statement(s) for s in prog.statements],
    }


def deserialize_prog(data, field=FR):
    """dict → Prog"""
    _expect(data, dict, "프로그램")
    return_count = data.get("return_count", 0)
    if not isinstance(return_count, int) or return_count < 0:
        raise ValueError(f"return_count 가 잘못되었습니다: {return_count!r}")
    return Prog(
        [deserialize_parameter(p) for p in data.get("arguments", [])],
        [deserialize_statement(s, field) for s in data.get("statements", [])],
        return_count,
    )


# ─── Witness ───

def serialize_witness(witness):
    """Witness → {변수: 값}"""
    return {serialize_variable(v): serialize_fr(x) for v, x in witness.items()}


def deserialize_witness(data, field=FR):
    _expect(data, dict, "위트니스")
    return Witness(
        {deserialize_variable(v): deserialize_fr(x, field) for v, x in data.items()}
    )
