import os
import yaml
from dotenv import load_dotenv

load_dotenv()


DEFAULTS = {
    "api": {"base_url": "http://localhost:8000", "timeout": None},
    "editing": {"window_days": 2},
    "export": {"directory": "exports"},
    "notifications": {"enabled": True},
    "session": {"file": ".backoffice_session.json"},
}


def _config_path() -> str:
    """Resolved on every call so tests can point BACKOFFICE_CONFIG elsewhere."""
    default = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "config", "backoffice.yml")
    return os.getenv("BACKOFFICE_CONFIG", default)


def load_config() -> dict:
    try:
        with open(_config_path(), "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except FileNotFoundError:
        cfg = {}

    # shallow merge defaults
    merged = {k: dict(v) for k, v in DEFAULTS.items()}
    for k, v in cfg.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            mv = dict(merged[k])
            mv.update(v)
            merged[k] = mv
        else:
            merged[k] = v

    # environment wins over the file
    base_url = os.getenv("BACKOFFICE_API_URL")
    if base_url:
        merged["api"]["base_url"] = base_url
    session_file = os.getenv("BACKOFFICE_SESSION_FILE")
    if session_file:
        merged["session"]["file"] = session_file
    merged["api"]["base_url"] = str(merged["api"]["base_url"]).rstrip("/")
    return merged
