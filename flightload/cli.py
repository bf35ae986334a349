"""CLI entrypoint for the OpenFlights document store loader."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from flightload.common.config_loader import load_pipeline_config, resolve_entities, resolve_secret
from flightload.common.constants import ENTITIES, EXIT_SUCCESS, WRITER_MODES
from flightload.common.ids import generate_run_id
from flightload.common.logging import build_logger, log_event
from flightload.common.models import PipelineConfig
from flightload.pipeline.error_sink import ErrorSink
from flightload.pipeline.reports import write_run_summary
from flightload.pipeline.runner import run_entities
from flightload.store.fauna import FaunaStore, TimeoutConfig


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("entity", choices=[*ENTITIES, "all"])
    parser.add_argument("--config", default="./config/pipeline.yml")
    parser.add_argument("--overlay-config", default=None)
    parser.add_argument("--data-dir", default=None)
    parser.add_argument("--error-log", default=None)
    parser.add_argument("--mode", default=None, choices=list(WRITER_MODES))
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def apply_overrides(config: PipelineConfig, args: argparse.Namespace) -> PipelineConfig:
    if args.data_dir:
        data_dir = Path(args.data_dir)
        input_paths = {
            entity: path if path.is_absolute() else data_dir / path.relative_to(config.data_dir)
            for entity, path in config.input_paths.items()
        }
        config = replace(config, data_dir=data_dir, input_paths=input_paths)
    if args.error_log:
        config = replace(config, error_log=Path(args.error_log))
    if args.mode:
        writers = {entity: replace(writer, mode=args.mode) for entity, writer in config.writers.items()}
        config = replace(config, writers=writers)
    return config


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    overlay_path = Path(args.overlay_config) if args.overlay_config else None
    config = apply_overrides(load_pipeline_config(Path(args.config), overlay_path=overlay_path), args)

    logger = build_logger(run_id, data_dir=config.data_dir, level=args.log_level)
    sink = ErrorSink(config.error_log)
    entities = resolve_entities(args.entity, config)
    timeout = TimeoutConfig(connect=config.store.connect_timeout, read=config.store.read_timeout)

    log_event(logger, "run start", run_id=run_id, stage="run", event="RUN_START", status="ok")
    with FaunaStore(resolve_secret(config.store), endpoint=config.store.endpoint, timeout=timeout) as store:
        results = run_entities(
            entities,
            config.input_paths,
            config.writers,
            store,
            sink,
            logger,
            run_id,
        )

    summary_path = write_run_summary(config.data_dir, run_id=run_id, results=results, error_count=sink.count)
    log_event(logger, f"run summary written to {summary_path}", run_id=run_id, stage="run", event="RUN_END", status="ok")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None, *, error_log: Path = Path("errors.log")) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except Exception as exc:
        # A run never re-raises; the failure is logged and the exit is clean.
        ErrorSink(Path(args.error_log) if args.error_log else error_log).record(f"General error: {exc}")
        print(f"{getattr(exc, 'error_code', 'UNEXPECTED_ERROR')}: {exc}", file=sys.stderr)
        return EXIT_SUCCESS


if __name__ == "__main__":
    raise SystemExit(main())
