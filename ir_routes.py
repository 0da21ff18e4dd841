"""
IR Flask Blueprint: 프로그램 저장, R1CS 내보내기, 공개 값 계산
=================================================================

  | 메서드 | 경로                              | 동작                          |
  |--------|-----------------------------------|-------------------------------|
  | GET    | /ir/programs                      | 저장된 프로그램 이름 목록       |
  | POST   | /ir/programs/<name>               | 프로그램 저장 (JSON)           |
  | GET    | /ir/programs/<name>               | 프로그램 요약 + 텍스트 표현     |
  | DELETE | /ir/programs/<name>               | 프로그램 삭제                  |
  | POST   | /ir/programs/<name>/clean         | Block 평탄화 후 다시 저장       |
  | GET    | /ir/programs/<name>/r1cs          | R1CS 바이너리 다운로드          |
  | POST   | /ir/programs/<name>/witness       | 공개 값 벡터 + 불만족 제약      |

Block 이 남은 프로그램은 /r1cs, /witness 에서 409 로 거절된다 (먼저 /clean).
저장할 때 Block 을 펼친 모습으로 공개 변수 범위를 확인한다.
"""

import io
import logging

from flask import Blueprint, jsonify, request, send_file
from tinydb import Query

from zkir.ir.statement import Block
from zkir.ir.variable import InvariantViolation
from zkir.r1cs.writer import compute_sizing, r1cs_bytes

from ir_serializers import (
    serialize_fr_list,
    serialize_prog, deserialize_prog,
    deserialize_witness,
)

logger = logging.getLogger(__name__)

ir_bp = Blueprint('ir', __name__, url_prefix='/ir')

DATA = Query()

# DB는 app.py에서 주입
DB = None


def init_ir_bp(db):
    """app.py에서 DB를 주입받는다."""
    global DB
    DB = db


# ─── DB 헬퍼 ───

def db_get(key):
    """DB에서 키로 데이터를 조회한다."""
    result = DB.search(DATA.type == key)
    if not result:
        return None
    return result[0].get("data")


def db_set(key, data):
    """DB에 키로 데이터를 저장한다."""
    DB.upsert({"type": key, "data": data}, DATA.type == key)


def db_remove(key):
    """DB에서 키를 삭제한다."""
    DB.remove(DATA.type == key)


def program_key(name):
    return f"ir.program.{name}"


def load_program(name):
    """저장된 프로그램을 Prog 로. 없으면 None."""
    data = db_get(program_key(name))
    if data is None:
        return None
    return deserialize_prog(data)


def bad_request(message):
    return jsonify({"error": message}), 400


def not_found(name):
    return jsonify({"error": f"프로그램이 없습니다: {name}"}), 404


def nested_blocks(name):
    return jsonify({
        "error": f"프로그램 {name}에 Block 이 남아 있습니다. 먼저 /ir/programs/{name}/clean 을 호출하세요"
    }), 409


def has_blocks(prog):
    return any(isinstance(s, Block) for s in prog.statement_list)


def check_wires(prog):
    """Block 을 펼친 모습으로 배선 번호를 미리 계산해 본다.

    Raises:
        InvariantViolation: 공개 변수가 공개 구역을 넘을 때
    """
    compute_sizing(prog.clean())


# ──────────────────────────────────────────────────────────────
# 프로그램
# ──────────────────────────────────────────────────────────────

@ir_bp.route("/programs")
def list_programs():
    """저장된 프로그램 이름 목록."""
    prefix = program_key("")
    names = sorted(
        row["type"][len(prefix):]
        for row in DB.search(DATA.type.test(lambda t: t.startswith(prefix)))
    )
    return jsonify({"programs": names})


@ir_bp.route("/programs/<name>", methods=["POST"])
def save_program(name):
    """요청 본문의 JSON 프로그램을 검증한 뒤 저장한다."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return bad_request("JSON 객체가 필요합니다")
    try:
        prog = deserialize_prog(payload)
    except (KeyError, TypeError, ValueError) as e:
        return bad_request(f"프로그램 형식이 잘못되었습니다: {e}")
    try:
        check_wires(prog)
    except InvariantViolation as e:
        return bad_request(f"공개 변수 범위가 잘못되었습니다: {e}")

    db_set(program_key(name), serialize_prog(prog))
    logger.info("saved program %s (%d constraints)", name, prog.constraint_count())
    return jsonify(summarize(name, prog)), 201


@ir_bp.route("/programs/<name>")
def show_program(name):
    prog = load_program(name)
    if prog is None:
        return not_found(name)
    return jsonify(summarize(name, prog))


@ir_bp.route("/programs/<name>", methods=["DELETE"])
def delete_program(name):
    if load_program(name) is None:
        return not_found(name)
    db_remove(program_key(name))
    return "", 204


@ir_bp.route("/programs/<name>/clean", methods=["POST"])
def clean_program(name):
    prog = load_program(name)
    if prog is None:
        return not_found(name)
    prog = prog.clean()
    db_set(program_key(name), serialize_prog(prog))
    return jsonify(summarize(name, prog))


def summarize(name, prog):
    """프로그램 요약 (UI 표시용)."""
    return {
        "name": name,
        "arguments": len(prog.arguments),
        "return_count": prog.return_count,
        "public_count": prog.public_count(),
        "private_input_count": prog.private_input_count(),
        "constraint_count": prog.constraint_count(),
        "text": str(prog),
    }


# ──────────────────────────────────────────────────────────────
# 내보내기 / 위트니스
# ──────────────────────────────────────────────────────────────

@ir_bp.route("/programs/<name>/r1cs")
def download_r1cs(name):
    """R1CS 바이너리 파일을 내려준다."""
    prog = load_program(name)
    if prog is None:
        return not_found(name)
    if has_blocks(prog):
        return nested_blocks(name)
    data = r1cs_bytes(prog)
    return send_file(
        io.BytesIO(data),
        mimetype="application/octet-stream",
        as_attachment=True,
        download_name=f"{name}.r1cs",
    )


@ir_bp.route("/programs/<name>/witness", methods=["POST"])
def check_witness(name):
    """위트니스를 받아 공개 값 벡터와 불만족 제약을 돌려준다.

    요청 본문: {"~out_0": "35", "_1": "3", ...}
    """
    prog = load_program(name)
    if prog is None:
        return not_found(name)
    if has_blocks(prog):
        return nested_blocks(name)
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return bad_request("JSON 객체가 필요합니다")
    try:
        witness = deserialize_witness(payload)
    except (TypeError, ValueError) as e:
        return bad_request(f"위트니스 형식이 잘못되었습니다: {e}")

    missing = [str(v) for v in prog.public_inputs() | set(prog.returns()) if v not in witness]
    if missing:
        return bad_request(f"공개 변수 값이 없습니다: {', '.join(sorted(missing))}")

    try:
        failing = prog.unsatisfied_constraints(witness)
    except KeyError as e:
        return bad_request(f"제약에 쓰인 변수 값이 없습니다: {e.args[0]}")

    unsatisfied = []
    for index, constraint in failing:
        unsatisfied.append({
            "index": index,
            "constraint": str(constraint),
            "error": None if constraint.error is None else str(constraint.error),
        })
    return jsonify({
        "public_inputs": serialize_fr_list(prog.public_inputs_values(witness)),
        "unsatisfied": unsatisfied,
    })
