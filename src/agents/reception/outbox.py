"""
Outbound delivery of engine actions

Immediate sends go out in order within the turn. Delayed sends (the
re-menu after a completed flow) are scheduled as background tasks so one
contact's delay never holds up the next inbound event.
"""
import asyncio
import logging
import time
import uuid

from common.bus import Bus
from common.mcp_client import ChannelError
from .engine import Notify, SendText

log = logging.getLogger(__name__)


class KafkaChannel:
    """Channel that publishes outbound messages and alerts to a Kafka topic"""

    def __init__(self, bus: Bus, topic: str):
        self.bus = bus
        self.topic = topic

    async def _publish(self, key: str | None, etype: str, data: dict) -> dict:
        evt = {
            "type": etype,
            "id": str(uuid.uuid4()),
            "time": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "data": data,
        }
        try:
            await self.bus.publish(self.topic, key=key, value=evt)
        except Exception as e:
            raise ChannelError(f"publish {etype} failed: {e}") from e
        return evt

    async def send_message(self, to: str, text: str) -> dict:
        return await self._publish(to, "wa.outbound.v1", {"to": to, "text": text})

    async def notify(self, title: str, message: str, audible: bool = True, wait: bool = True) -> dict:
        return await self._publish(None, "reception.alert.v1", {
            "title": title, "message": message, "sound": audible, "wait": wait,
        })


class Outbox:
    def __init__(self, channel):
        self.channel = channel
        self._pending: set[asyncio.Task] = set()

    async def deliver(self, actions) -> list[str]:
        """
        Deliver actions in order; returns the texts sent during this turn.

        A failed send raises ChannelError and the rest of the turn is dropped.
        """
        sent = []
        for action in actions:
            if isinstance(action, SendText):
                if action.delay > 0:
                    self._schedule(action)
                    continue
                await self._send(action)
                sent.append(action.text)
            elif isinstance(action, Notify):
                await self._notify(action)
            else:
                raise TypeError(f"unknown outbound action: {action!r}")
        return sent

    async def _send(self, action: SendText):
        try:
            await self.channel.send_message(action.contact_id, action.text)
        except ChannelError:
            log.error(f"[OUTBOX] Failed to send message to {action.contact_id}", exc_info=True)
            raise
        except Exception as e:
            log.error(f"[OUTBOX] Failed to send message to {action.contact_id}: {e}", exc_info=True)
            raise ChannelError(f"send to {action.contact_id} failed: {e}") from e

    async def _notify(self, action: Notify):
        # the alert is best-effort; the contact already got the acknowledgement
        try:
            await self.channel.notify(action.title, action.message, audible=action.audible, wait=action.wait)
            log.info(f"[OUTBOX] Human alert raised: {action.message}")
        except Exception as e:
            log.error(f"[OUTBOX] Failed to raise human alert: {e}", exc_info=True)

    def _schedule(self, action: SendText):
        async def _later():
            await asyncio.sleep(action.delay)
            try:
                await self._send(action)
            except ChannelError:
                pass  # already logged by _send

        task = asyncio.create_task(_later())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self):
        """Wait for every scheduled send (shutdown and tests)"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def cancel_pending(self):
        for task in list(self._pending):
            task.cancel()
