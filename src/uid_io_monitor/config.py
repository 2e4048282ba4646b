"""Configuration system for uid-io-monitor."""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

import tomlkit

from uid_io_monitor.report import DEFAULT_THRESHOLD
from uid_io_monitor.resolver import APP_UID_START


@dataclass
class IoStatsConfig:
    """Report and diagnostics options.

    These are also settable at runtime through IoUsage.set_option().
    """

    read_min: int = DEFAULT_THRESHOLD  # Skip read top list below this many bytes
    write_min: int = DEFAULT_THRESHOLD  # Skip write top list below this many bytes
    debug: bool = False  # Verbose resolution and timing logs
    disabled: bool = False  # Skip sampling entirely


@dataclass
class SourceConfig:
    """Where the counters and process table are read from."""

    stats_path: str = "/proc/uid_io/stats"
    proc_root: str = "/proc"
    app_uid_start: int = APP_UID_START  # UIDs at or above this are apps


@dataclass
class SystemConfig:
    """Daemon loop configuration."""

    sample_interval: float = 10.0  # Seconds between cycles
    log_max_bytes: int = 5 * 1024 * 1024  # Rotate daemon.log past this size
    log_backup_count: int = 3  # Rotated daemon.log files kept


def _section_table(section: object) -> tomlkit.items.Table:
    """One flat [section] table from a section dataclass."""
    table = tomlkit.table()
    for key, value in asdict(section).items():  # type: ignore[call-overload]
        table.add(key, value)
    return table


@dataclass
class Config:
    """All sections of config.toml."""

    iostats: IoStatsConfig = field(default_factory=IoStatsConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    @property
    def config_dir(self) -> Path:
        return Path.home() / ".config" / "uid-io-monitor"

    @property
    def config_path(self) -> Path:
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs and reports."""
        return Path.home() / ".local" / "state" / "uid-io-monitor"

    @property
    def log_path(self) -> Path:
        """Daemon log path (JSON Lines)."""
        return self.state_dir / "daemon.log"

    @property
    def report_path(self) -> Path:
        """File the per-cycle reports are appended to."""
        return self.state_dir / "io_usage.log"

    def save(self, path: Path | None = None) -> None:
        """Write every section to path (default: config_path)."""
        target = path or self.config_path
        target.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        doc.add(tomlkit.comment("uid-io-monitor configuration"))
        for section in fields(self):
            doc.add(tomlkit.nl())
            doc.add(section.name, _section_table(getattr(self, section.name)))

        target.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Read config.toml, filling absent keys from dataclass defaults.

        A missing file yields defaults. Unparsable TOML or out-of-range
        values raise ValueError.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f).unwrap()
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            iostats=_load_iostats_config(data.get("iostats", {})),
            source=_load_source_config(data.get("source", {})),
            system=_load_system_config(data.get("system", {})),
        )


def _require_uint(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return int(value)


def _require_bool(name: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false, got {value!r}")
    return value


def _load_iostats_config(data: dict) -> IoStatsConfig:
    """Load iostats config from TOML data, using dataclass defaults for missing fields."""
    d = IoStatsConfig()
    return IoStatsConfig(
        read_min=_require_uint("read_min", data.get("read_min", d.read_min)),
        write_min=_require_uint("write_min", data.get("write_min", d.write_min)),
        debug=_require_bool("debug", data.get("debug", d.debug)),
        disabled=_require_bool("disabled", data.get("disabled", d.disabled)),
    )


def _load_source_config(data: dict) -> SourceConfig:
    """Load source config from TOML data."""
    d = SourceConfig()
    return SourceConfig(
        stats_path=str(data.get("stats_path", d.stats_path)),
        proc_root=str(data.get("proc_root", d.proc_root)),
        app_uid_start=_require_uint("app_uid_start", data.get("app_uid_start", d.app_uid_start)),
    )


def _load_system_config(data: dict) -> SystemConfig:
    """Load system config from TOML data."""
    d = SystemConfig()
    sample_interval = data.get("sample_interval", d.sample_interval)
    if (
        isinstance(sample_interval, bool)
        or not isinstance(sample_interval, (int, float))
        or sample_interval <= 0
    ):
        raise ValueError(f"sample_interval must be a number > 0, got {sample_interval!r}")
    return SystemConfig(
        sample_interval=float(sample_interval),
        log_max_bytes=_require_uint("log_max_bytes", data.get("log_max_bytes", d.log_max_bytes)),
        log_backup_count=_require_uint(
            "log_backup_count", data.get("log_backup_count", d.log_backup_count)
        ),
    )
