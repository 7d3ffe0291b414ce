"""
WhatsApp Reception Agent - inbound loop and runtime wiring

Inbound messages arrive on Kafka as `wa.inbound.v1` events. Each event is
processed to completion (engine turn + immediate sends) before the next
one is read; turns for the same contact are additionally serialized by
the session store's per-contact lock.
"""
import asyncio
import logging
from dataclasses import dataclass

import jsonschema
from jsonschema import ValidationError

from common.bus import Bus
from common.mcp_client import ChannelError, MCPClient
from .config import Settings, settings as default_settings
from .engine import DialogEngine
from .menu import menu_for
from .normalizers import first_name, format_entry, normalize_phone
from .oncall import local_now
from .outbox import KafkaChannel, Outbox
from .reference import load_reference_data
from .sessions import SessionStore

log = logging.getLogger(__name__)

INBOUND_EVENT_SCHEMA = {
    "type": "object",
    "required": ["type", "data"],
    "properties": {
        "type": {"const": "wa.inbound.v1"},
        "data": {
            "type": "object",
            "required": ["from", "text"],
            "properties": {
                "from": {"type": "string"},
                "text": {"type": "string"},
                "name": {"type": ["string", "null"]},
            },
        },
    },
}


@dataclass
class Reception:
    engine: DialogEngine
    outbox: Outbox
    contacts: MCPClient | None = None
    contact_suffix: str = ""
    bus: Bus | None = None


def build_engine(cfg: Settings = default_settings) -> DialogEngine:
    """Load reference data and build the engine; raises ReferenceDataError on empty tables"""
    reference = load_reference_data(cfg.PRICES_CSV, cfg.ROSTER_CSV)
    return DialogEngine(
        reference,
        SessionStore(idle_timeout=cfg.SESSION_IDLE_TIMEOUT_SECONDS),
        menu_for(cfg.MENU_VARIANT),
        now=lambda: local_now(cfg.TIMEZONE),
        remenu_delay=cfg.REMENU_DELAY_SECONDS,
        assistant_name=cfg.ASSISTANT_NAME,
        default_contact_name=cfg.DEFAULT_CONTACT_NAME,
        endoscopy_days=cfg.endoscopy_days,
    )


def build_reception(cfg: Settings = default_settings, bus: Bus | None = None) -> Reception:
    """Wire engine, session store, outbox and channel from settings"""
    engine = build_engine(cfg)
    mcp = MCPClient(base=cfg.MCP_BASE)

    if cfg.OUTBOUND_MODE == "kafka":
        bus = bus or Bus(brokers=cfg.KAFKA_BROKERS)
        channel = KafkaChannel(bus, cfg.TOPIC_WA_OUT)
    elif cfg.OUTBOUND_MODE == "mcp":
        channel = mcp
    else:
        raise ValueError(f"unknown OUTBOUND_MODE {cfg.OUTBOUND_MODE!r}")

    log.info(f"[START] Reception ready: menu={cfg.MENU_VARIANT}, outbound={cfg.OUTBOUND_MODE}")
    return Reception(engine=engine, outbox=Outbox(channel), contacts=mcp,
                     contact_suffix=cfg.CONTACT_SUFFIX, bus=bus)


def is_contact_address(address: str, suffix: str) -> bool:
    """Only one-to-one chats are served (groups and broadcasts are ignored)"""
    return not suffix or address.endswith(suffix)


async def resolve_display_name(reception: Reception, contact_id: str, name: str | None) -> str:
    """
    First name of the contact, casing-normalized

    Falls back to the channel's contact lookup when the event carries no
    name; a failed lookup raises ChannelError and aborts the turn.
    """
    raw = name
    if not raw and reception.contacts is not None:
        contact = await reception.contacts.contact_get(contact_id)
        raw = contact.get("pushname") or contact.get("name")
    first = first_name(raw)
    return format_entry(first) if first else reception.engine.default_contact_name


async def handle_inbound(reception: Reception, contact_id: str, text: str, name: str | None = None) -> list[str]:
    """Run one turn for a contact and deliver its replies; returns the texts sent now"""
    engine = reception.engine
    store = engine.store
    async with store.lock(contact_id):
        display = await resolve_display_name(reception, contact_id, name)
        before = store.get(contact_id)
        before = before.copy() if before else None
        actions = engine.handle(contact_id, text, display)
        try:
            return await reception.outbox.deliver(actions)
        except ChannelError:
            # the reply never reached the contact; the step is retried next time
            if before is None:
                store.delete(contact_id)
            else:
                store.set(contact_id, before)
            raise


async def process_event(reception: Reception, evt) -> bool:
    """Handle one consumed event; returns False when it was skipped"""
    try:
        jsonschema.validate(evt, INBOUND_EVENT_SCHEMA)
    except ValidationError as e:
        if isinstance(evt, dict) and evt.get("type") == "wa.inbound.v1":
            log.warning(f"[KAFKA] Malformed inbound event skipped: {e.message}")
        return False

    data = evt["data"]
    address = data["from"]
    text = data["text"].strip()
    if not text or not is_contact_address(address, reception.contact_suffix):
        return False

    contact_id = normalize_phone(address)
    log.info(f"[KAFKA] Received from {contact_id}: '{text[:30]}'")
    reception.engine.store.purge_expired()
    try:
        await handle_inbound(reception, contact_id, text, data.get("name"))
    except ChannelError as e:
        log.error(f"[KAFKA] Channel error for {contact_id}, turn aborted: {e}")
    return True


# ---------- Kafka Loop ----------
async def wa_loop(reception: Reception, cfg: Settings = default_settings):
    """
    Main Kafka consumer loop for WhatsApp messages
    """
    bus = reception.bus or Bus(brokers=cfg.KAFKA_BROKERS)
    if cfg.OUTBOUND_MODE == "kafka":
        await bus.start_producer()
    await bus.start_consumer(cfg.TOPIC_WA_IN, group_id=cfg.GROUP_ID)

    log.info("[KAFKA] Consumer started, listening for WhatsApp messages...")

    try:
        async for _key, evt in bus.events():
            try:
                await process_event(reception, evt)
            except Exception as e:
                # keep consuming; one bad turn must not stop the agent
                log.error(f"[KAFKA] Error handling event: {e}", exc_info=True)
    except asyncio.CancelledError:
        log.info("[KAFKA] Consumer cancelled")
        raise
    finally:
        await reception.outbox.drain()
        await bus.stop()
        log.info("[KAFKA] Consumer stopped")
