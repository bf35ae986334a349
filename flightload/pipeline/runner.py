"""Per-entity stream orchestration with fail-soft semantics."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Callable

from flightload.common.errors import RowProcessingError, SourceReadError
from flightload.common.logging import log_event
from flightload.common.models import WriterConfig
from flightload.ingest.entities import EntitySchema, get_schema
from flightload.ingest.references import build_document
from flightload.ingest.sanitize import sanitize_record
from flightload.ingest.source import read_records
from flightload.pipeline.batch_writer import build_writer
from flightload.pipeline.error_sink import ErrorSink
from flightload.store.base import DocumentStore


def run_entity_stream(
    entity: str,
    input_path: Path,
    store: DocumentStore,
    sink: ErrorSink,
    writer_config: WriterConfig,
    logger: logging.Logger,
    run_id: str,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> dict:
    schema: EntitySchema = get_schema(entity)
    writer = build_writer(
        writer_config,
        store,
        schema.collection,
        sink,
        logger=logger,
        entity=entity,
        sleep=sleep,
    )
    rows_read = 0
    rows_dropped = 0
    source_failed = False

    log_event(logger, f"loading {input_path}", run_id=run_id, stage="load", entity=entity, event="STREAM_START", status="ok")

    try:
        for position, raw in enumerate(read_records(input_path, schema.fields), start=1):
            rows_read += 1
            try:
                document = build_document(sanitize_record(raw, schema), schema)
            except RowProcessingError as exc:
                rows_dropped += 1
                sink.record(f"Error processing row {position}: {json.dumps(raw, ensure_ascii=False)} - {exc}")
                log_event(
                    logger,
                    f"row {position} dropped",
                    run_id=run_id,
                    stage="transform",
                    entity=entity,
                    event="ROW_DROPPED",
                    status="error",
                    error_code=exc.error_code,
                )
                continue
            writer.add(document, position)
    except SourceReadError as exc:
        source_failed = True
        sink.record(f"Error reading the {entity} file: {exc}")
        log_event(
            logger,
            f"source ended early after {rows_read} rows",
            run_id=run_id,
            stage="read",
            entity=entity,
            event="SOURCE_FAIL",
            status="error",
            rows_in=rows_read,
            error_code=exc.error_code,
        )
    finally:
        stats = writer.close()

    log_event(
        logger,
        f"finished processing {entity} file",
        run_id=run_id,
        stage="load",
        entity=entity,
        event="STREAM_END",
        status="error" if source_failed or stats.units_failed else "ok",
        rows_in=rows_read,
        rows_out=stats.documents_written,
    )
    return {
        "entity": entity,
        "input_path": str(input_path),
        "mode": writer_config.mode,
        "rows_read": rows_read,
        "rows_dropped": rows_dropped,
        "source_failed": source_failed,
        **stats.to_dict(),
    }


def run_entities(
    entities: list[str],
    input_paths: dict[str, Path],
    writer_configs: dict[str, WriterConfig],
    store: DocumentStore,
    sink: ErrorSink,
    logger: logging.Logger,
    run_id: str,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, dict]:
    results: dict[str, dict] = {}
    for entity in entities:
        try:
            results[entity] = run_entity_stream(
                entity,
                input_paths[entity],
                store,
                sink,
                writer_configs[entity],
                logger,
                run_id,
                sleep=sleep,
            )
        except Exception as exc:
            sink.record(f"General error loading {entity}: {exc}")
            log_event(
                logger,
                f"unexpected failure for entity {entity}",
                run_id=run_id,
                stage="load",
                entity=entity,
                event="STREAM_FAIL",
                status="error",
                error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
            )
            results[entity] = {"entity": entity, "status": "failed", "error": str(exc)}
    return results
