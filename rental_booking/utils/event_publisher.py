from __future__ import annotations

import asyncio
import json

import boto3

from rental_booking.core.config import Config
from rental_booking.core.middlewares import logger


def _build_sqs_client():
    client_kwargs: dict[str, str] = {}
    if Config.AWS_REGION:
        client_kwargs["region_name"] = Config.AWS_REGION
    if Config.AWS_ACCESS_KEY and Config.AWS_SECRET_KEY:
        client_kwargs["aws_access_key_id"] = Config.AWS_ACCESS_KEY
        client_kwargs["aws_secret_access_key"] = Config.AWS_SECRET_KEY
    return boto3.client("sqs", **client_kwargs)


def _send_event(event_data: dict, deduplication_id: str) -> None:
    if not Config.NOTIFICATION_QUEUE_URL:
        raise ValueError("NOTIFICATION_QUEUE_URL is not configured")

    message = {
        "QueueUrl": Config.NOTIFICATION_QUEUE_URL,
        "MessageBody": json.dumps(event_data, default=str),
    }
    if Config.NOTIFICATION_QUEUE_URL.endswith(".fifo"):
        message["MessageGroupId"] = "booking-notifications"
        message["MessageDeduplicationId"] = deduplication_id
    try:
        _build_sqs_client().send_message(**message)
    except Exception:
        logger.exception("SQS send_message failed for event %s", event_data.get("kind"))
        raise


async def publish_notification_event(event_data: dict, deduplication_id: str) -> None:
    await asyncio.to_thread(_send_event, event_data, deduplication_id)
