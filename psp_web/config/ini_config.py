########## ini_config.py

import os
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

INI_DEFAULT_NAME = "PspWeb.ini"

REQUEST_VERSIONS = ("legacy", "v2")
ALLOWED_VARIANTS = (1, 3)


@dataclass(frozen=True)
class AppSettings:
    supabase_url: str
    supabase_anon_key: str

    hooks_function: str
    knowledge_pack_function: str
    request_version: str
    mode: str
    brand_domain: str
    variants: int

    reset_redirect_url: str
    copy_feedback_ms: int

    log_level: str
    log_file: Optional[Path]

    flask_host: str
    flask_port: int
    flask_debug: bool
    secret_key: str


class IniConfig:
    """
    Adapter around ConfigParser and filesystem resolution.
    Keeps INI handling out of your app/service code.
    """

    def __init__(self, ini_path: Path):
        self._ini_path = ini_path
        self._cfg = ConfigParser(interpolation=None)
        read_ok = self._cfg.read(str(ini_path), encoding="utf-8-sig")
        if not read_ok:
            raise FileNotFoundError(f"INI file not found or unreadable: {ini_path}")

    @staticmethod
    def from_env_or_default() -> "IniConfig":
        ini_raw = (os.getenv("APP_INI") or "").strip()
        # If APP_INI is not set, default to repo-root-relative ini location
        ini_path = Path(ini_raw) if ini_raw else (Path(__file__).resolve().parents[2] / INI_DEFAULT_NAME)
        return IniConfig(ini_path)

    def _cfg_str(self, section: str, key: str, fallback: str = "") -> str:
        """Reads a string and expands ${ENV} references, so secrets can stay out of the file."""
        raw = (self._cfg.get(section, key, fallback=fallback) or "").strip()
        return os.path.expandvars(raw).strip() or fallback

    def _cfg_required(self, section: str, key: str) -> str:
        value = self._cfg_str(section, key)
        if not value or value.startswith("$"):
            raise ValueError(f"Missing INI value for {key} in section [{section}] of {self._ini_path}")
        return value

    def _cfg_path(self, section: str, key: str) -> Optional[Path]:
        raw = self._cfg_str(section, key)
        if not raw:
            return None
        return Path(os.path.expanduser(raw)).resolve()

    def load_settings(self) -> AppSettings:
        # Supabase project
        supabase_url = self._cfg_required("supabase", "url")
        supabase_anon_key = self._cfg_required("supabase", "anon_key")

        # Generation functions
        hooks_function = self._cfg_str("generation", "hooks_function", "generate-content")
        knowledge_pack_function = self._cfg_str("generation", "knowledge_pack_function", "generate-psp-script")
        request_version = self._cfg_str("generation", "request_version", "legacy")
        mode = self._cfg_str("generation", "mode", "ESTRATEGICO")
        brand_domain = self._cfg_str("generation", "brand_domain", "general")
        variants = self._cfg.getint("generation", "variants", fallback=1)

        # Auth + UI
        reset_redirect_url = self._cfg_str("auth", "reset_redirect_url", "http://127.0.0.1:5000/")
        copy_feedback_ms = self._cfg.getint("ui", "copy_feedback_ms", fallback=1200)

        # Logging
        log_level = self._cfg_str("logging", "level", "INFO").upper()
        log_file = self._cfg_path("logging", "file")

        # Flask
        flask_host = self._cfg_str("flask", "host", "127.0.0.1")
        flask_port = self._cfg.getint("flask", "port", fallback=5000)
        flask_debug = self._cfg.getboolean("flask", "debug", fallback=True)
        secret_key = self._cfg_required("flask", "secret_key")

        # Validate
        if request_version not in REQUEST_VERSIONS:
            raise ValueError(f"request_version must be one of {REQUEST_VERSIONS}, got {request_version!r}")
        if variants not in ALLOWED_VARIANTS:
            raise ValueError(f"variants must be one of {ALLOWED_VARIANTS}, got {variants!r}")

        return AppSettings(
            supabase_url=supabase_url,
            supabase_anon_key=supabase_anon_key,
            hooks_function=hooks_function,
            knowledge_pack_function=knowledge_pack_function,
            request_version=request_version,
            mode=mode,
            brand_domain=brand_domain,
            variants=variants,
            reset_redirect_url=reset_redirect_url,
            copy_feedback_ms=copy_feedback_ms,
            log_level=log_level,
            log_file=log_file,
            flask_host=flask_host,
            flask_port=flask_port,
            flask_debug=flask_debug,
            secret_key=secret_key,
        )
