from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import yaml

from fixturedb.errors import ConfigError


@dataclass(frozen=True)
class Settings:
    # Database
    db_url: str | None = None
    db_username: str | None = None
    db_password: str | None = None

    # Logging
    log_level: str = "INFO"
    log_dir: str = "./logs"


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


# ключ файла конфигурации -> поле Settings
CONFIG_KEYS = {
    "db.url": "db_url",
    "db.username": "db_username",
    "db.password": "db_password",
    "log.level": "log_level",
    "log.dir": "log_dir",
}

ENV_KEYS = {
    "db_url": "FIXTUREDB_DB_URL",
    "db_username": "FIXTUREDB_DB_USERNAME",
    "db_password": "FIXTUREDB_DB_PASSWORD",
    "log_level": "FIXTUREDB_LOG_LEVEL",
    "log_dir": "FIXTUREDB_LOG_DIR",
}

YAML_SUFFIXES = (".yml", ".yaml")


def _require_file(path: Path) -> None:
    if not path.exists() or not path.is_file():
        raise ConfigError(f"Config file not found: {path}", details={"path": str(path)})


PROPERTY_WHITESPACE = " \t\f"
PROPERTY_SEPARATORS = "=:"
PROPERTY_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _logical_lines(lines):
    # строка, оканчивающаяся нечётным числом '\', продолжается следующей
    pending: str | None = None
    for raw in lines:
        line = raw.rstrip("\r\n").lstrip(PROPERTY_WHITESPACE)
        if pending is None:
            if not line or line[0] in "#!":
                continue
            pending = ""
        slashes = len(line) - len(line.rstrip("\\"))
        if slashes % 2 == 1:
            pending += line[:-1]
            continue
        yield pending + line
        pending = None
    if pending is not None:
        yield pending


def _unescape(text: str) -> str:
    out: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char != "\\":
            out.append(char)
            index += 1
            continue
        if index + 1 >= len(text):
            break
        code = text[index + 1]
        if code == "u":
            digits = text[index + 2:index + 6]
            if len(digits) != 4 or any(d not in "0123456789abcdefABCDEF" for d in digits):
                raise ValueError(f"Malformed \\uxxxx escape: \\u{digits}")
            out.append(chr(int(digits, 16)))
            index += 6
            continue
        out.append(PROPERTY_ESCAPES.get(code, code))
        index += 2
    return "".join(out)


def _split_property(line: str) -> tuple[str, str]:
    index = 0
    while index < len(line):
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in PROPERTY_SEPARATORS or char in PROPERTY_WHITESPACE:
            break
        index += 1
    key = line[:index]
    rest = line[index:].lstrip(PROPERTY_WHITESPACE)
    if rest[:1] and rest[0] in PROPERTY_SEPARATORS:
        rest = rest[1:].lstrip(PROPERTY_WHITESPACE)
    return _unescape(key), _unescape(rest)


def loadDatabaseConfig(configPath: str) -> dict[str, str]:
    """
    Назначение:
        Читает файл свойств вида "db.url=jdbc:sqlite:test.db" по правилам
        java.util.Properties.load.

    Входные данные:
        configPath: str
            Путь к .properties файлу (UTF-8).

    Выходные данные:
        dict[str, str]

    Поведение:
        - Пустые строки и комментарии (# или !) пропускаются.
        - Ключ заканчивается на первом неэкранированном '=', ':' или пробеле.
        - Экранирование: \\:, \\=, \\\\, \\t, \\n, \\uXXXX; '\\' в конце строки
          склеивает её со следующей.
        - Строка без разделителя трактуется как ключ с пустым значением.
        - Файл не найден или битое \\uXXXX -> ConfigError.
    """
    path = Path(configPath)
    _require_file(path)
    props: dict[str, str] = {}
    with path.open("r", encoding="utf-8") as f:
        try:
            for line in _logical_lines(f):
                key, value = _split_property(line)
                props[key] = value
        except ValueError as exc:
            raise ConfigError(f"Invalid properties file {path}: {exc}", details={"path": str(path)}) from exc
    return props


def _flatten(data: dict, prefix: str = "") -> dict:
    flat: dict = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat


def _read_yaml_config(path: Path) -> dict:
    _require_file(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML config {path}: {exc}", details={"path": str(path)}) from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}", details={"path": str(path)})
    return _flatten(data)


def readConfigFile(configPath: str) -> dict:
    """
    Назначение:
        Читает файл конфигурации (.properties или YAML) и приводит его
        к плоским ключам вида "db.url".
    """
    path = Path(configPath)
    if path.suffix.lower() in YAML_SUFFIXES:
        return _read_yaml_config(path)
    return loadDatabaseConfig(configPath)


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _as_text(value) -> str | None:
    if value is None:
        return None
    return str(value)


def loadSettings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = readConfigFile(config_path)
        if cfg:
            sources.append("config")

    merged = {
        "db_url": defaults.db_url,
        "db_username": defaults.db_username,
        "db_password": defaults.db_password,
        "log_level": defaults.log_level,
        "log_dir": defaults.log_dir,
    }
    for key, fieldName in CONFIG_KEYS.items():
        if key in cfg:
            merged[fieldName] = _as_text(cfg[key])

    # 2) env
    env = {fieldName: _env_get(envName) for fieldName, envName in ENV_KEYS.items()}
    if any(v is not None for v in env.values()):
        sources.append("env")
    for fieldName, value in env.items():
        if value is not None:
            merged[fieldName] = value

    # 3) apply CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")

    for k, v in cli_overrides.items():
        if v is None:
            continue
        if k not in merged:
            raise ConfigError(f"Unknown setting: {k}")
        merged[k] = v

    settings = Settings(
        db_url=merged["db_url"],
        db_username=merged["db_username"],
        db_password=merged["db_password"],
        log_level=merged["log_level"] or defaults.log_level,
        log_dir=merged["log_dir"] or defaults.log_dir,
    )

    return LoadedSettings(settings=settings, sources_used=sources)
