"""Run options, validation, and YAML profile loading.

Handles:
- The read-only ``Options`` object shared by every component of a run.
- Validating options before any command is spawned.
- Loading benchmark profiles from YAML files and merging CLI overrides.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

log = logging.getLogger("cmdbench")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ExecutorKind(enum.Enum):
    """How commands are spawned."""

    RAW = "raw"  # exec the program directly, no shell
    SHELL = "shell"  # pass the command string to a shell
    MOCK = "mock"  # deterministic fake timings, nothing is spawned


class SortOrder(enum.Enum):
    """Ordering of results in comparisons and exports."""

    COMMAND = "command"
    MEAN_TIME = "mean-time"


class OutputStyle(enum.Enum):
    """Terminal output style."""

    BASIC = "basic"  # no colors
    FULL = "full"  # colors
    NOCOLOR = "nocolor"
    COLOR = "color"
    NONE = "none"  # print nothing but errors

    @property
    def use_color(self) -> bool:
        return self in (OutputStyle.FULL, OutputStyle.COLOR)


class CommandFailureAction(enum.Enum):
    """What the scheduler does when one command's benchmark fails."""

    ABORT = "abort"
    SKIP = "skip"


class TimeUnit(enum.Enum):
    """Unit used for exported and printed times."""

    SECOND = "second"
    MILLISECOND = "millisecond"

    @property
    def short_name(self) -> str:
        return "s" if self is TimeUnit.SECOND else "ms"

    @property
    def factor(self) -> float:
        """Multiplier converting seconds into this unit."""
        return 1.0 if self is TimeUnit.SECOND else 1000.0


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Options:
    """Resolved, read-only configuration for a benchmark run."""

    # Run-count policy
    warmup: int = 0  # Warm-up runs per command, timings discarded
    min_runs: int = 10
    max_runs: int | None = None  # None = unbounded
    runs: int | None = None  # Exact run count, overrides the adaptive rule
    min_benchmarking_time: float = 3.0  # Seconds of cumulative wall time; 0 disables

    # Executor
    executor_kind: ExecutorKind = ExecutorKind.SHELL
    shell: str = "sh"
    calibration_runs: int = 50
    show_output: bool = False

    # Auxiliary commands (never timed)
    setup_command: str | None = None
    prepare_commands: tuple[str, ...] = ()
    cleanup_command: str | None = None

    # Failure policy
    ignore_failure: bool = False  # Permit non-zero exit codes
    command_failure_action: CommandFailureAction = CommandFailureAction.ABORT

    # Reporting
    output_style: OutputStyle = OutputStyle.FULL
    sort_order_speed_comparison: SortOrder = SortOrder.MEAN_TIME
    sort_order_exports: SortOrder = SortOrder.COMMAND
    time_unit: TimeUnit | None = None  # None = chosen from the first result
    fast_threshold: float = 0.005  # Mean wall time below this is flagged

    def prepare_command_for(self, number: int) -> str | None:
        """Return the prepare command for the benchmark at index *number*.

        A single prepare command applies to every benchmark; otherwise
        there is one per command, in declaration order.
        """
        if not self.prepare_commands:
            return None
        if len(self.prepare_commands) == 1:
            return self.prepare_commands[0]
        return self.prepare_commands[number]


def sort_orders(sort: str) -> tuple[SortOrder, SortOrder]:
    """Map a ``--sort`` value to (speed comparison order, export order).

    ``auto`` ranks the printed comparison by mean time but keeps exports
    in command order.
    """
    if sort == "auto":
        return SortOrder.MEAN_TIME, SortOrder.COMMAND
    order = SortOrder(sort)
    return order, order


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_options(
    options: Options,
    *,
    command_count: int | None = None,
) -> list[ValidationError]:
    """Validate run options.

    Args:
        options: The options to check.
        command_count: Number of commands in the run, used to check the
            number of prepare commands.  Skipped when None.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if options.warmup < 0:
        errors.append(
            ValidationError(
                field="warmup",
                message=f"Warmup runs cannot be negative (got {options.warmup}).",
            )
        )

    if options.min_runs < 1:
        errors.append(
            ValidationError(
                field="min_runs",
                message=f"Need at least one run per command (got {options.min_runs}).",
            )
        )

    if options.max_runs is not None and options.max_runs < options.min_runs:
        errors.append(
            ValidationError(
                field="max_runs",
                message=(
                    f"Maximum runs ({options.max_runs}) cannot be smaller than "
                    f"minimum runs ({options.min_runs})."
                ),
            )
        )

    if options.runs is not None and options.runs < 1:
        errors.append(
            ValidationError(
                field="runs",
                message=f"Number of runs must be at least 1 (got {options.runs}).",
            )
        )

    if options.runs == 1:
        errors.append(
            ValidationError(
                field="runs",
                message="A single run gives no standard deviation.",
                severity="warning",
            )
        )

    if options.min_benchmarking_time < 0:
        errors.append(
            ValidationError(
                field="min_benchmarking_time",
                message=(
                    "Minimum benchmarking time cannot be negative "
                    f"(got {options.min_benchmarking_time})."
                ),
            )
        )

    if options.executor_kind is ExecutorKind.SHELL and not options.shell.strip():
        errors.append(
            ValidationError(
                field="shell",
                message="Shell must be non-empty. Use --shell=none to run without a shell.",
            )
        )

    if options.calibration_runs < 1:
        errors.append(
            ValidationError(
                field="calibration_runs",
                message=f"Calibration needs at least one run (got {options.calibration_runs}).",
            )
        )

    if options.fast_threshold < 0:
        errors.append(
            ValidationError(
                field="fast_threshold",
                message=f"Fast threshold cannot be negative (got {options.fast_threshold}).",
            )
        )

    n_prepare = len(options.prepare_commands)
    if command_count is not None and n_prepare > 1 and n_prepare != command_count:
        errors.append(
            ValidationError(
                field="prepare_commands",
                message=(
                    f"Got {n_prepare} prepare commands for {command_count} benchmarks. "
                    "Give either one prepare command or one per command."
                ),
            )
        )

    return errors


def check_options(options: Options, *, command_count: int | None = None) -> None:
    """Validate *options*, logging warnings and raising on errors.

    Raises:
        ValueError: If any validation error has severity "error".
    """
    errors = validate_options(options, command_count=command_count)
    for w in errors:
        if w.severity == "warning":
            log.warning("Option warning: %s: %s", w.field, w.message)
    fatal = [e for e in errors if e.severity == "error"]
    if fatal:
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ValueError("Invalid benchmark options:\n" + "\n".join(messages))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a benchmark profile from a YAML file.

    Profile format::

        commands:
          - "sleep 0.1"
          - command: "grep -r foo ."
            name: "grep"
        parameters:
          threads: [1, 2, 4]
        warmup: 3
        min_runs: 20
        shell: "bash --norc"
        prepare: "sync"
        sort: mean-time
        exports:
          markdown: results.md
          json: results.json

    Returns:
        The parsed YAML as a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid YAML or not a mapping.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    try:
        data = yaml.safe_load(profile_path.read_text())
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in profile {profile_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


_ENUM_FIELDS: dict[str, type[enum.Enum]] = {
    "executor_kind": ExecutorKind,
    "command_failure_action": CommandFailureAction,
    "output_style": OutputStyle,
    "sort_order_speed_comparison": SortOrder,
    "sort_order_exports": SortOrder,
    "time_unit": TimeUnit,
}

# Profile keys that are spelled differently from the Options fields.
_PROFILE_ALIASES: dict[str, str] = {
    "setup": "setup_command",
    "cleanup": "cleanup_command",
    "prepare": "prepare_commands",
    "on_failure": "command_failure_action",
    "style": "output_style",
}


def options_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> Options:
    """Build an Options object from a parsed profile.

    CLI overrides take precedence over profile values.  Override keys
    are Options field names; a value of None means "not given on the
    command line" and leaves the profile value in place.

    Raises:
        ValueError: On unknown keys or invalid enum values.
    """
    known = {f.name for f in fields(Options)}
    values: dict[str, Any] = {}

    for key, value in profile_data.items():
        if key in ("commands", "parameters", "exports"):
            continue
        name = _PROFILE_ALIASES.get(key, key)
        if name == "shell" and str(value).strip().lower() == "none":
            values["executor_kind"] = ExecutorKind.RAW
            continue
        if name == "sort":
            values["sort_order_speed_comparison"], values["sort_order_exports"] = sort_orders(
                str(value)
            )
            continue
        if name not in known:
            raise ValueError(f"Unknown profile key '{key}'.")
        values[name] = value

    for key, value in (cli_overrides or {}).items():
        if value is not None:
            values[key] = value

    for name, enum_cls in _ENUM_FIELDS.items():
        value = values.get(name)
        if value is not None and not isinstance(value, enum_cls):
            try:
                values[name] = enum_cls(value)
            except ValueError as exc:
                valid = ", ".join(m.value for m in enum_cls)
                raise ValueError(f"Invalid value '{value}' for {name}. Valid: {valid}") from exc

    prepare = values.get("prepare_commands")
    if isinstance(prepare, str):
        values["prepare_commands"] = (prepare,)
    elif prepare is not None:
        values["prepare_commands"] = tuple(prepare)

    return Options(**values)
