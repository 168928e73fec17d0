import asyncio
import json
import logging
import ssl

from aiomqtt import Client

from app import config

# strong references to in-flight publish tasks
_pending = set()


def topic(name: str) -> str:
    return f"{config.MQTT_TOPIC_PREFIX}/{name}"


def _tls_context():
    if not config.MQTT_TLS_ENABLED:
        return None

    logging.info("TLS is enabled. Setting up SSL context.")
    tls_context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    if config.MQTT_CA_CERT:
        tls_context.load_verify_locations(cafile=config.MQTT_CA_CERT)
    if config.MQTT_CLIENT_CERT and config.MQTT_CLIENT_KEY:
        tls_context.load_cert_chain(certfile=config.MQTT_CLIENT_CERT, keyfile=config.MQTT_CLIENT_KEY)
    return tls_context


async def publish_mqtt(topic_name: str, message: str):
    try:
        tls_context = _tls_context()
        port = config.MQTT_TLS_PORT if config.MQTT_TLS_ENABLED else config.MQTT_PORT
        logging.info(f"Connecting to MQTT broker at {config.MQTT_HOST}:{port}")

        async with Client(
            hostname=config.MQTT_HOST,
            port=port,
            username=config.MQTT_USERNAME,
            password=config.MQTT_PASSWORD,
            tls_context=tls_context,
        ) as client:
            await client.publish(topic_name, message.encode())
            logging.info(f"Published event to '{topic_name}'")
    except Exception as e:
        logging.error(f"MQTT publish failed: {e}")


def publish_event(name: str, payload):
    """Schedule a best-effort publish and return immediately.

    ``payload`` must be JSON serializable. Nothing is sent when no broker is
    configured, and publish failures are only logged.
    """
    if not config.MQTT_HOST:
        logging.debug(f"MQTT disabled, dropping '{name}' event")
        return None

    message = json.dumps(payload, default=str)
    task = asyncio.create_task(publish_mqtt(topic(name), message))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def drain(timeout: float = 5.0):
    """Wait for in-flight publishes, used on shutdown."""
    if not _pending:
        return
    done, not_done = await asyncio.wait(set(_pending), timeout=timeout)
    for task in not_done:
        task.cancel()
