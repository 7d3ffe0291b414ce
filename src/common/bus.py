import json
from aiokafka import AIOKafkaProducer, AIOKafkaConsumer

class Bus:
    """Thin wrapper over one Kafka producer and (optionally) one consumer."""

    def __init__(self, brokers: str):
        self._brokers = brokers
        self.producer: AIOKafkaProducer | None = None
        self.consumer: AIOKafkaConsumer | None = None

    async def start_producer(self):
        self.producer = AIOKafkaProducer(
            bootstrap_servers=self._brokers,
            value_serializer=lambda v: json.dumps(v, ensure_ascii=False).encode(),
            key_serializer=lambda k: (k or "").encode()
        )
        await self.producer.start()

    async def start_consumer(self, topic: str, group_id: str):
        self.consumer = AIOKafkaConsumer(
            topic,
            bootstrap_servers=self._brokers,
            group_id=group_id,
            enable_auto_commit=True,
            value_deserializer=_loads,
            key_deserializer=lambda k: k.decode() if k else None
        )
        await self.consumer.start()

    async def events(self):
        """Yield (key, value) for each consumed record; undecodable ones come through as None."""
        assert self.consumer, "consumer not started"
        async for rec in self.consumer:
            yield rec.key, rec.value

    async def publish(self, topic: str, key: str | None, value: dict):
        assert self.producer, "producer not started"
        await self.producer.send_and_wait(topic, key=key, value=value)

    async def stop(self):
        if self.consumer:
            await self.consumer.stop()
        if self.producer:
            await self.producer.stop()


def _loads(raw: bytes):
    try:
        return json.loads(raw.decode())
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
