"""Transports for fleet events: in-process, MQTT and AMQP.

Delivery is at most once. A transport that cannot hand an event to its
broker logs the drop and carries on, so a broker outage never stalls a
robot mid-route.
"""

from __future__ import annotations

import asyncio
import json
import ssl
from collections import defaultdict
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

import aio_pika
from aio_pika.abc import AbstractIncomingMessage
from aio_pika.exceptions import AMQPError
import paho.mqtt.client as mqtt
import structlog

from restaurant_fleet.enterprise.config.settings import MessagingSettings

logger = structlog.get_logger(__name__)

MessageHandler = Callable[[dict], Awaitable[None] | None]


@dataclass
class MessageEnvelope:
	"""One JSON payload addressed to one topic."""

	topic: str
	payload: dict
	qos: int = 0


class MessageBus:
	"""Publish/subscribe transport keyed by topic."""

	async def connect(self) -> None:  # pragma: no cover - interface
		raise NotImplementedError

	async def publish(self, envelope: MessageEnvelope) -> None:  # pragma: no cover - interface
		raise NotImplementedError

	async def subscribe(self, topic: str, handler: MessageHandler) -> None:  # pragma: no cover - interface
		raise NotImplementedError

	async def close(self) -> None:  # pragma: no cover - interface
		raise NotImplementedError


async def _invoke(handler: MessageHandler, payload: dict) -> None:
	result = handler(payload)
	if asyncio.iscoroutine(result):
		await result


class InMemoryMessageBus(MessageBus):
	"""Delivers envelopes to local subscribers and keeps a publish log."""

	def __init__(self) -> None:
		self.published: List[MessageEnvelope] = []
		self._subscriptions: Dict[str, List[MessageHandler]] = defaultdict(list)

	async def connect(self) -> None:
		return None

	async def publish(self, envelope: MessageEnvelope) -> None:
		self.published.append(envelope)
		for handler in list(self._subscriptions.get(envelope.topic, ())):
			await _invoke(handler, envelope.payload)

	async def subscribe(self, topic: str, handler: MessageHandler) -> None:
		self._subscriptions[topic].append(handler)

	async def close(self) -> None:
		self._subscriptions.clear()

	def events(self, topic: Optional[str] = None) -> List[dict]:
		"""Return published payloads, optionally restricted to one topic."""

		return [env.payload for env in self.published if topic is None or env.topic == topic]


def _tls_context(settings: MessagingSettings) -> ssl.SSLContext:
	context = ssl.create_default_context(cafile=settings.ca_path)
	if settings.client_cert_path and settings.client_key_path:
		context.load_cert_chain(settings.client_cert_path, settings.client_key_path)
	return context


class MQTTMessageBus(MessageBus):
	"""Fleet events over MQTT using a paho client with its own network thread.

	paho callbacks run on that thread; anything they hand to asyncio goes
	through ``call_soon_threadsafe`` or ``run_coroutine_threadsafe``.
	"""

	def __init__(self, settings: MessagingSettings) -> None:
		self.settings = settings
		self.client = mqtt.Client(
			callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
			client_id=settings.client_id,
		)
		if settings.username:
			self.client.username_pw_set(settings.username, settings.password)
		if settings.use_tls:
			self.client.tls_set_context(_tls_context(settings))
		self.client.on_connect = self._on_connect
		self.client.on_message = self._on_message
		self._loop: Optional[asyncio.AbstractEventLoop] = None
		self._connected: Optional[asyncio.Future] = None
		self._handlers: Dict[str, MessageHandler] = {}

	async def connect(self) -> None:
		self._loop = asyncio.get_running_loop()
		self._connected = self._loop.create_future()
		self.client.connect_async(self.settings.broker_host, self.settings.port, keepalive=60)
		self.client.loop_start()
		try:
			await asyncio.wait_for(self._connected, self.settings.connect_timeout_seconds)
		except (asyncio.TimeoutError, ConnectionError):
			await self._loop.run_in_executor(None, self.client.loop_stop)
			raise
		logger.info("mqtt_connected", host=self.settings.broker_host, port=self.settings.port)

	def _on_connect(self, client: mqtt.Client, _userdata, _flags, reason_code, _properties=None) -> None:
		if self._loop is None:
			return
		if reason_code.is_failure:
			error = ConnectionError(f"MQTT broker refused the connection: {reason_code}")
			self._loop.call_soon_threadsafe(self._settle_connect, error)
			return
		# paho does not restore subscriptions after a reconnect
		for topic in self._handlers:
			client.subscribe(topic, qos=self.settings.qos)
		self._loop.call_soon_threadsafe(self._settle_connect, None)

	def _settle_connect(self, error: Optional[Exception]) -> None:
		if self._connected is None or self._connected.done():
			return
		if error is None:
			self._connected.set_result(None)
		else:
			self._connected.set_exception(error)

	def _on_message(self, _client: mqtt.Client, _userdata, message: mqtt.MQTTMessage) -> None:
		handler = self._handlers.get(message.topic)
		if handler is None or self._loop is None:
			return
		asyncio.run_coroutine_threadsafe(_invoke(handler, json.loads(message.payload)), self._loop)

	async def publish(self, envelope: MessageEnvelope) -> None:
		qos = envelope.qos or self.settings.qos
		info = self.client.publish(envelope.topic, json.dumps(envelope.payload), qos=qos)
		if info.rc != mqtt.MQTT_ERR_SUCCESS:
			logger.warning("event_dropped", topic=envelope.topic, reason=mqtt.error_string(info.rc))

	async def subscribe(self, topic: str, handler: MessageHandler) -> None:
		self._handlers[topic] = handler
		if self.client.is_connected():
			self.client.subscribe(topic, qos=self.settings.qos)

	async def close(self) -> None:
		self.client.disconnect()
		await asyncio.get_running_loop().run_in_executor(None, self.client.loop_stop)


class AMQPMessageBus(MessageBus):
	"""Fleet events on an :mod:`aio_pika` topic exchange.

	Topics use ``/`` separators and AMQP routing keys use ``.``, so
	``restaurant/table/4`` travels as ``restaurant.table.4``.
	"""

	def __init__(self, url: str, exchange_name: str = "restaurant") -> None:
		self.url = url
		self.exchange_name = exchange_name
		self._connection: Optional[aio_pika.abc.AbstractRobustConnection] = None
		self._channel: Optional[aio_pika.abc.AbstractChannel] = None
		self._exchange: Optional[aio_pika.abc.AbstractExchange] = None
		self._queues: List[aio_pika.abc.AbstractQueue] = []

	@staticmethod
	def routing_key(topic: str) -> str:
		return topic.replace("/", ".")

	async def connect(self) -> None:
		self._connection = await aio_pika.connect_robust(self.url)
		self._channel = await self._connection.channel()
		self._exchange = await self._channel.declare_exchange(
			self.exchange_name, aio_pika.ExchangeType.TOPIC, durable=True
		)
		logger.info("amqp_connected", exchange=self.exchange_name)

	def _require_channel(self) -> tuple[aio_pika.abc.AbstractChannel, aio_pika.abc.AbstractExchange]:
		if self._channel is None or self._exchange is None:
			raise RuntimeError("AMQPMessageBus.connect() has not completed")
		return self._channel, self._exchange

	async def publish(self, envelope: MessageEnvelope) -> None:
		_channel, exchange = self._require_channel()
		message = aio_pika.Message(
			body=json.dumps(envelope.payload).encode("utf-8"),
			content_type="application/json",
			type=envelope.payload.get("event"),
		)
		try:
			await exchange.publish(message, routing_key=self.routing_key(envelope.topic))
		except (AMQPError, ConnectionError) as exc:
			logger.warning("event_dropped", topic=envelope.topic, error=str(exc))

	async def subscribe(self, topic: str, handler: MessageHandler) -> None:
		channel, exchange = self._require_channel()
		queue = await channel.declare_queue(exclusive=True)
		await queue.bind(exchange, routing_key=self.routing_key(topic))

		async def consume(message: AbstractIncomingMessage) -> None:
			async with message.process():
				await _invoke(handler, json.loads(message.body))

		await queue.consume(consume)
		self._queues.append(queue)

	async def close(self) -> None:
		if self._connection is not None:
			await self._connection.close()
		self._connection = None
		self._channel = None
		self._exchange = None
		self._queues.clear()


def create_message_bus(settings: MessagingSettings) -> MessageBus:
	"""Build the bus selected by ``settings.backend``."""

	if settings.backend == "mqtt":
		return MQTTMessageBus(settings)
	if settings.backend == "amqp":
		if not settings.amqp_url:
			raise ValueError("messaging.amqp_url is required for the amqp backend")
		return AMQPMessageBus(settings.amqp_url, exchange_name=settings.topic_prefix)
	return InMemoryMessageBus()
