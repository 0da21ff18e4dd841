"""
zkir 웹 애플리케이션
=====================

IR 프로그램을 저장하고, R1CS 파일로 내보내고, 위트니스로부터
공개 값 벡터를 계산하는 Flask 앱.

설정 (환경 변수로 덮어쓸 수 있음):
  | 키          | 환경 변수         | 기본값    |
  |-------------|-------------------|-----------|
  | DB_PATH     | ZKIR_DB_PATH      | db.json   |
  | SECRET_KEY  | ZKIR_SECRET_KEY   | key       |

DB_PATH 가 ":memory:" 이면 TinyDB MemoryStorage 를 쓴다.

실행:
    $ flask --app app run
"""

import logging
import os

from flask import Flask
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from ir_routes import ir_bp, init_ir_bp

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "DB_PATH": "db.json",
    "SECRET_KEY": "key",
}


def load_config(overrides=None):
    """기본값 → 환경 변수(ZKIR_*) → overrides 순서로 설정을 합친다."""
    config = dict(DEFAULT_CONFIG)
    for key in DEFAULT_CONFIG:
        value = os.environ.get(f"ZKIR_{key}")
        if value is not None:
            config[key] = value
    config.update(overrides or {})
    return config


def open_db(path):
    if path == ":memory:":
        return TinyDB(storage=MemoryStorage)  # Memory DB
    return TinyDB(path)                       # Storage DB


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.update(load_config(overrides))
    app.secret_key = app.config["SECRET_KEY"]

    db = open_db(app.config["DB_PATH"])
    app.extensions["zkir_db"] = db

    init_ir_bp(db.table("ir"))
    app.register_blueprint(ir_bp)

    logger.info("zkir app ready (db=%s)", app.config["DB_PATH"])
    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(debug=True)
