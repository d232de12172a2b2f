import os, json, logging, time, uuid
from enum import Enum

from flask import has_request_context
from flask import Flask, request, jsonify, g
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS
import simplejson
from werkzeug.exceptions import BadRequest

from dotenv import load_dotenv

# ---- SQLAlchemy Core (no ORM) ----
from sqlalchemy import text

from prometheus_flask_exporter import PrometheusMetrics

from auth import init_auth
from db import build_engine, init_schema
from errors import register_error_handlers
from teams import teams_bp


# ----------------------------
# Pull local env
# ----------------------------
if os.path.exists(".env"):
    load_dotenv(override=False)  # never override the real runtime env


def _env_flag(name, default):
    return os.getenv(name, default).lower() == "true"


# ----------------------------
# Config
# ----------------------------
class Config:
    PROFILE = os.getenv("APP_PROFILE", "prod").lower()  # dev | test | prod
    DEBUG = PROFILE == "dev"
    TESTING = PROFILE == "test"

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8080"))

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Database URL, e.g. mysql+pymysql://user:pw@host/soccer or sqlite:///soccer.db
    DATABASE_URL = os.getenv("DATABASE_URL")
    DB_CREATE_SCHEMA = _env_flag("DB_CREATE_SCHEMA", "true" if PROFILE in ("dev", "test") else "false")

    # DB timeouts. Enforced at the DB level via connection options.
    DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "8000"))  # 8s
    DB_CONNECT_TIMEOUT_S = int(os.getenv("DB_CONNECT_TIMEOUT_S", "5"))

    # SQLAlchemy pool settings
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
    DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    DB_POOL_RECYCLE_S = int(os.getenv("DB_POOL_RECYCLE_S", "300"))

    # Request settings
    REQUEST_MAX_BODY_BYTES = int(os.getenv("REQUEST_MAX_BODY_BYTES", "1048576"))  # 1 MB

    # Basic auth for writes; dev/test fall back to admin/admin
    _DEFAULT_CRED = "admin" if PROFILE in ("dev", "test") else None
    BASIC_AUTH_USERNAME = os.getenv("BASIC_AUTH_USERNAME", _DEFAULT_CRED)
    BASIC_AUTH_PASSWORD = os.getenv("BASIC_AUTH_PASSWORD", _DEFAULT_CRED)
    BASIC_AUTH_REALM = os.getenv("BASIC_AUTH_REALM", "soccer")

    # Feature flags
    ENABLE_PROMETHEUS = _env_flag("ENABLE_PROMETHEUS", "true")


# ----------------------------
# JSON: decimals travel as exact numbers both ways
# ----------------------------
class TeamsJSONProvider(DefaultJSONProvider):
    sort_keys = False

    @staticmethod
    def default(obj):
        if isinstance(obj, Enum):
            return obj.value
        return DefaultJSONProvider.default(obj)

    def dumps(self, obj, **kwargs):
        kwargs.setdefault("default", self.default)
        kwargs.setdefault("ensure_ascii", self.ensure_ascii)
        kwargs.setdefault("sort_keys", self.sort_keys)
        return simplejson.dumps(obj, use_decimal=True, **kwargs)

    def loads(self, s, **kwargs):
        # budgets must not pass through a binary float
        return simplejson.loads(s, use_decimal=True, **kwargs)


# ----------------------------
# Logging (JSON)
# ----------------------------
class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pid": os.getpid(),
        }

        # Only touch request/g if we actually have a request context
        if has_request_context():
            payload["path"] = request.path
            payload["method"] = request.method
            rid = getattr(g, "request_id", None)
            if rid:
                payload["request_id"] = rid

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging():
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    formatter = JsonFormatter()
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        h = logging.StreamHandler()
        h.setFormatter(formatter)
        root.addHandler(h)
    else:
        for h in root.handlers:
            if isinstance(h, logging.StreamHandler):
                h.setFormatter(formatter)


# ----------------------------
# App Factory
# ----------------------------
def create_app(config_object=Config):
    setup_logging()
    log = logging.getLogger("app")
    log.info("stage: flask_start")

    app = Flask(__name__)
    app.config.from_object(config_object)
    app.json = TeamsJSONProvider(app)
    log.info(
        "stage: config_loaded profile=%s DATABASE_URL set=%s",
        app.config["PROFILE"], bool(app.config.get("DATABASE_URL")),
    )

    # Error handlers first so the auth gate's errors get the JSON envelope
    register_error_handlers(app)

    # Request ID middleware
    @app.before_request
    def attach_request_id():
        g.request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

    @app.after_request
    def echo_request_id(resp):
        rid = getattr(g, "request_id", None)
        if rid:
            resp.headers["X-Request-ID"] = rid
        return resp

    # auth runs before the size guard: anonymous writes get 401 whatever their size
    init_auth(app)
    log.info("stage: auth_ok")

    @app.before_request
    def guard_body_size():
        # lightweight body size guard
        cl = request.headers.get("Content-Length")
        if cl and cl.isdigit() and int(cl) > app.config["REQUEST_MAX_BODY_BYTES"]:
            raise BadRequest("Request body too large")

    app.register_blueprint(teams_bp)
    log.info("stage: teams_bp_ok")

    # CORS
    CORS(app, resources={r"/*": {"origins": app.config["CORS_ORIGINS"]}})
    log.info("stage: cors_ok")

    # Database engine (SQLAlchemy Core)
    engine = build_engine(app.config)
    if engine is None:
        log.warning("DATABASE_URL not set. /readyz and /api/teams will fail.")
    elif app.config["DB_CREATE_SCHEMA"]:
        init_schema(engine)
    log.info("stage: engine_ok")

    # make the engine visible to blueprints
    app.engine = engine
    app.extensions["sqlalchemy_engine"] = engine

    # Prometheus metrics
    if app.config["ENABLE_PROMETHEUS"]:
        try:
            PrometheusMetrics(app, group_by="endpoint")
            log.info("Prometheus metrics enabled at /metrics")
        except ValueError:
            # collectors already registered by an earlier app in this process
            log.exception("prometheus_init_failed")

    # -------- Health / Readiness --------
    @app.get("/healthz")
    def healthz():
        return jsonify(status="ok", time=time.time())

    @app.get("/readyz")
    def readyz():
        if engine is None:
            return jsonify(status="degraded", error="no_engine"), 503
        # quick DB ping
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return jsonify(status="ready")
        except Exception as e:
            log.warning("readyz_db_ping_failed: %s", e)
            return jsonify(status="degraded", error=str(e)), 503

    log.info("stage: routes_ok")
    return app


# ----------------------------
# Entrypoint
# ----------------------------
if __name__ == "__main__":
    app = create_app()
    # For local dev only; use gunicorn in production
    app.run(host=app.config["HOST"], port=app.config["PORT"], threaded=True)
