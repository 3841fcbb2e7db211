"""Kafka transport adapters for consuming and publishing notification events.

Mental model refresher:
- This module is transport glue to Kafka itself.
- It owns the partition subscription and the consumption loop, and maps Kafka
  records into the consumer-handler flow.
- Routing and persistence rules still live in the domain/handler layers.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from functools import partial
from typing import Any, Callable, Mapping, NamedTuple

from ..domain.models import Channel
from ..errors import SubscriptionError
from ..settings import START_OFFSET_NEWEST, KafkaSettings, Settings
from ..types import CommitFn, HandleFn, Notifier, Record
from .consumer_handler import handle_message
from .real_senders import build_notifiers
from .store import NotificationStore

logger = logging.getLogger(__name__)


class KafkaBindings(NamedTuple):
    """kafka-python classes the runtime needs, injectable for tests."""

    consumer_cls: Any
    producer_cls: Any
    topic_partition_cls: Any
    offset_and_metadata_cls: Any
    error_cls: type[Exception]


def open_partition_consumer(settings: KafkaSettings, bindings: KafkaBindings) -> Any:
    """Open the stream and attach to the configured partition.

    Raises `SubscriptionError` if either step fails; the consumer is closed
    before raising.
    """
    bootstrap_servers = _require_bootstrap_servers(settings)
    try:
        consumer = bindings.consumer_cls(
            bootstrap_servers=bootstrap_servers,
            group_id=settings.group_id,
            enable_auto_commit=False,
            auto_offset_reset="latest",
        )
    except bindings.error_cls as exc:
        raise SubscriptionError(f"unable to open stream {bootstrap_servers}: {exc}") from exc

    try:
        partitions = consumer.partitions_for_topic(settings.topic)
        if not partitions or settings.partition not in partitions:
            raise SubscriptionError(
                f"partition {settings.partition} not available for topic {settings.topic!r}"
            )
        topic_partition = bindings.topic_partition_cls(settings.topic, settings.partition)
        consumer.assign([topic_partition])
        if settings.start_offset == START_OFFSET_NEWEST:
            consumer.seek_to_end(topic_partition)
    except bindings.error_cls as exc:
        consumer.close()
        raise SubscriptionError(
            f"unable to attach to {settings.topic}[{settings.partition}]: {exc}"
        ) from exc
    except SubscriptionError:
        consumer.close()
        raise

    return consumer


def consume_until_stopped(
    consumer: Any,
    *,
    handle: HandleFn,
    stop_event: threading.Event,
    stream_errors: tuple[type[BaseException], ...],
    poll_timeout_ms: int = 1000,
    max_records: int = 50,
    drain_seconds: float = 5.0,
    on_processed: CommitFn | None = None,
    monotonic: Callable[[], float] = time.monotonic,
) -> int:
    """Process polled records one at a time until `stop_event` is set.

    Records already fetched when a stop is requested keep being handled until
    `drain_seconds` have passed. Returns the number of records handled.
    """
    handled = 0
    drain_deadline: float | None = None

    while not stop_event.is_set():
        try:
            batches = consumer.poll(timeout_ms=poll_timeout_ms, max_records=max_records)
        except stream_errors as exc:
            logger.error("[STREAM ERROR] %s", exc)
            stop_event.wait(poll_timeout_ms / 1000)
            continue
        if not batches:
            continue

        for _topic_partition, records in batches.items():
            for message in records:
                if stop_event.is_set():
                    if drain_deadline is None:
                        drain_deadline = monotonic() + drain_seconds
                    if monotonic() > drain_deadline:
                        logger.warning(
                            "[DRAIN TIMEOUT] stopping before topic=%s partition=%s offset=%s",
                            message.topic,
                            message.partition,
                            message.offset,
                        )
                        return handled

                record = {
                    "topic": message.topic,
                    "partition": int(message.partition),
                    "offset": int(message.offset),
                    "value": message.value,
                }
                _handle_one(record, handle)
                handled += 1
                if on_processed is not None:
                    on_processed(record)

    return handled


def run_dispatch_worker(
    settings: Settings,
    *,
    store: NotificationStore,
    stop_event: threading.Event,
    notifiers: Mapping[Channel, Notifier] | None = None,
    bindings: KafkaBindings | None = None,
) -> int:
    """Run the notification dispatch worker until stopped.

    Returns 1 if the subscription cannot be established, 0 after a stop.
    """
    kafka = bindings or _import_kafka_python()
    channel_notifiers = build_notifiers(settings) if notifiers is None else notifiers
    kafka_settings = settings.kafka

    try:
        consumer = open_partition_consumer(kafka_settings, kafka)
    except SubscriptionError as exc:
        logger.critical("[WORKER ERROR] %s", exc)
        return 1

    logger.info(
        "[WORKER START] topic=%s partition=%s start_offset=%s channels=%s status_policy=%s",
        kafka_settings.topic,
        kafka_settings.partition,
        kafka_settings.start_offset,
        sorted(channel.value for channel in channel_notifiers),
        settings.status_policy.value,
    )

    handle = partial(
        handle_message,
        notifiers=channel_notifiers,
        store=store,
        status_policy=settings.status_policy,
    )
    commit = None
    if kafka_settings.start_offset != START_OFFSET_NEWEST:
        commit = partial(_commit_offset, consumer, kafka)

    try:
        handled = consume_until_stopped(
            consumer,
            handle=handle,
            stop_event=stop_event,
            stream_errors=(kafka.error_cls,),
            poll_timeout_ms=kafka_settings.poll_timeout_ms,
            max_records=kafka_settings.max_records,
            drain_seconds=kafka_settings.drain_seconds,
            on_processed=commit,
        )
    finally:
        consumer.close()

    logger.info("[WORKER STOP] handled=%s", handled)
    return 0


def publish_notification_event(
    payload: Mapping[str, Any],
    *,
    settings: KafkaSettings,
    bindings: KafkaBindings | None = None,
) -> dict[str, Any]:
    """Publish one inbound notification event to the configured topic."""
    kafka = bindings or _import_kafka_python()
    producer = kafka.producer_cls(
        bootstrap_servers=_require_bootstrap_servers(settings),
        value_serializer=_serialize_json_object,
        acks="all",
    )
    try:
        future = producer.send(settings.topic, value=dict(payload), partition=settings.partition)
        metadata = future.get(timeout=settings.send_timeout_seconds)
        producer.flush(timeout=settings.send_timeout_seconds)
    finally:
        producer.close()

    return {
        "topic": metadata.topic,
        "partition": metadata.partition,
        "offset": metadata.offset,
    }


def _handle_one(record: Record, handle: HandleFn) -> None:
    try:
        result = handle(record)
    except Exception:
        logger.exception(
            "[HANDLER ERROR] topic=%s partition=%s offset=%s",
            record["topic"],
            record["partition"],
            record["offset"],
        )
        return

    logger.info(
        "[RESULT] topic=%s partition=%s offset=%s status=%s error=%s",
        record["topic"],
        record["partition"],
        record["offset"],
        result["status"],
        result["error"],
    )


def _commit_offset(consumer: Any, kafka: KafkaBindings, record: Record) -> None:
    offsets = {
        kafka.topic_partition_cls(record["topic"], record["partition"]): _offset_and_metadata(
            kafka.offset_and_metadata_cls, int(record["offset"]) + 1
        )
    }
    try:
        consumer.commit(offsets=offsets)
    except kafka.error_cls as exc:
        logger.error(
            "[COMMIT ERROR] topic=%s partition=%s offset=%s error=%s",
            record["topic"],
            record["partition"],
            record["offset"],
            exc,
        )


def _import_kafka_python() -> KafkaBindings:
    try:
        from kafka import KafkaConsumer, KafkaProducer, TopicPartition
        from kafka.errors import KafkaError
        from kafka.structs import OffsetAndMetadata
    except Exception as exc:
        raise RuntimeError(
            "Kafka support requires `kafka-python`. Install with: pip install kafka-python"
        ) from exc
    return KafkaBindings(KafkaConsumer, KafkaProducer, TopicPartition, OffsetAndMetadata, KafkaError)


def _require_bootstrap_servers(settings: KafkaSettings) -> list[str]:
    if not settings.bootstrap_servers:
        raise RuntimeError("KAFKA_BOOTSTRAP_SERVERS must include at least one host:port")
    return list(settings.bootstrap_servers)


def _serialize_json_object(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def _offset_and_metadata(offset_and_metadata_type: Any, offset: int) -> Any:
    """Build kafka-python OffsetAndMetadata across version signatures."""
    try:
        return offset_and_metadata_type(offset, "", -1)
    except TypeError:
        return offset_and_metadata_type(offset, "")
