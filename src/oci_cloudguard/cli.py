from __future__ import annotations

import logging
import sys
from datetime import datetime
from time import perf_counter
from typing import Any, Dict, Optional

from .auth.providers import AuthContext, AuthError, resolve_auth
from .config import USAGE_HINT, RunConfig, build_activity_filter, dump_config, load_run_config
from .export.csv import write_csv
from .logging import LogConfig, get_logger, setup_logging
from .oci.clients import get_cloud_guard_client
from .oci.problems import CloudGuardProblemSource, fetch_problems
from .report import print_summary
from .summary import summarize
from .util.errors import AuthResolutionError, ConfigError, ExitCode, as_exit_code
from .util.rich_progress import FetchProgress
from .util.time import utc_now

LOG = get_logger(__name__)


class _StepTimers:
    def __init__(self) -> None:
        self._starts: Dict[str, float] = {}

    def start(self, key: str) -> None:
        self._starts[key] = perf_counter()

    def finish(self, key: str) -> Optional[int]:
        started = self._starts.pop(key, None)
        if started is None:
            return None
        return int((perf_counter() - started) * 1000)


def _log_event(
    logger: Any,
    level: int,
    message: str,
    *,
    step: str,
    phase: str,
    timers: Optional[_StepTimers] = None,
    **extra: Any,
) -> None:
    duration_ms = None
    if timers is not None:
        if phase == "start":
            timers.start(step)
        elif phase in {"complete", "error", "skipped"}:
            duration_ms = timers.finish(step)
    payload: Dict[str, Any] = {"step": step, "phase": phase, "event": f"{step}.{phase}"}
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    payload.update(extra)
    logger.log(level, message, extra=payload)


def _resolve_auth(cfg: RunConfig) -> AuthContext:
    try:
        return resolve_auth(cfg.auth, cfg.profile)
    except AuthError as e:
        raise AuthResolutionError(str(e)) from e


def _make_client(cfg: RunConfig) -> Any:
    ctx = _resolve_auth(cfg)
    try:
        return get_cloud_guard_client(ctx, region=cfg.client_region)
    except AuthError as e:
        raise AuthResolutionError(str(e)) from e


def _print_scope(cfg: RunConfig, start: datetime, end: datetime) -> None:
    print(f"Searching Cloud Guard activity from {start:%Y-%m-%d} to {end:%Y-%m-%d}")
    print(f"Compartment: {cfg.compartment_id}")
    if cfg.region:
        print(f"Region: {cfg.region}")
    if cfg.resource_type:
        print(f"Resource Type: {cfg.resource_type}")
    if cfg.problem_id:
        print(f"Problem ID: {cfg.problem_id}")
    if cfg.risk_level:
        print(f"Risk Level: {cfg.risk_level}")


def cmd_report(cfg: RunConfig, *, client: Any = None, now: Optional[datetime] = None) -> int:
    """
    Fetch, filter, enrich, summarize and export Cloud Guard problems.

    The run time is captured once and used for both the search window and the
    days-since-detection column. A pre-built client may be injected.
    """
    now = now or utc_now()
    flt = build_activity_filter(cfg, now)
    _print_scope(cfg, flt.start_time, flt.end_time)  # type: ignore[arg-type]

    if client is None:
        client = _make_client(cfg)
    source = CloudGuardProblemSource(client)

    timers = _StepTimers()
    _log_event(
        LOG,
        logging.INFO,
        "Fetching detected problems",
        step="fetch",
        phase="start",
        timers=timers,
        config=dump_config(cfg),
    )
    with FetchProgress(enabled=cfg.progress and not cfg.json_logs) as progress:
        try:
            problems = fetch_problems(source, flt, now=now, progress=progress)
        except Exception as e:
            _log_event(LOG, logging.ERROR, "Fetch failed", step="fetch", phase="error", timers=timers, error=str(e))
            raise
    _log_event(
        LOG,
        logging.INFO,
        f"Fetched {len(problems)} problems",
        step="fetch",
        phase="complete",
        timers=timers,
        problems=len(problems),
    )

    summary = summarize(problems)
    print_summary(summary)

    if cfg.summary_only:
        _log_event(LOG, logging.DEBUG, "CSV export skipped", step="export", phase="skipped", reason="summary_only")
        print("\nSummary only mode - skipping CSV export")
        return int(ExitCode.OK)

    _log_event(LOG, logging.DEBUG, "Writing CSV", step="export", phase="start", timers=timers, path=str(cfg.output))
    try:
        write_csv(problems, cfg.output)
    except Exception as e:
        _log_event(LOG, logging.ERROR, "CSV export failed", step="export", phase="error", timers=timers, error=str(e))
        raise
    _log_event(LOG, logging.DEBUG, "CSV written", step="export", phase="complete", timers=timers, rows=len(problems))
    print(f"\nActivity report saved to: {cfg.output}")
    return int(ExitCode.OK)


def main(argv: Optional[list[str]] = None) -> None:
    try:
        cfg = load_run_config(argv=argv)
        setup_logging(LogConfig(level=cfg.log_level, json_logs=cfg.json_logs))
        sys.exit(cmd_report(cfg))
    except SystemExit:
        raise
    except BrokenPipeError:
        # Piping into `head` closes stdout early; treat as a normal exit.
        sys.exit(int(ExitCode.OK))
    except Exception as e:
        setup_logging(LogConfig())
        if isinstance(e, ConfigError):
            print(f"Error: {e}")
            print(USAGE_HINT)
        LOG.error("Execution failed", extra={"error": str(e)})
        sys.exit(as_exit_code(e))


if __name__ == "__main__":
    main()
