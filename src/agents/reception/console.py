import asyncio

from common.aconsole import ainput
from common.logging import setup_logging
from .config import settings
from .engine import DialogEngine
from .outbox import Outbox
from .wa_loop import build_engine

CONSOLE_CONTACT = "console"


class ConsoleChannel:
    """Prints outbound messages and alerts to stdout"""

    async def send_message(self, to: str, text: str):
        print(f"\n[bot -> {to}]\n{text}\n", flush=True)

    async def notify(self, title: str, message: str, audible: bool = True, wait: bool = True):
        print(f"\n*** {title}: {message} ***\n", flush=True)


async def chat(engine: DialogEngine, outbox: Outbox, name: str | None = None, read=ainput):
    """Local chat loop; ends on EOF or 'sair'"""
    while True:
        text = await read("> ")
        if text is None or text.strip().lower() == "sair":
            break
        text = text.strip()
        if not text:
            continue
        async with engine.store.lock(CONSOLE_CONTACT):
            await outbox.deliver(engine.handle(CONSOLE_CONTACT, text, name))
    await outbox.drain()


async def main():
    setup_logging(settings.LOG_LEVEL)
    engine = build_engine(settings)
    # avoid emoji to keep Windows CP1252 happy
    print(f"[Console] Reception agent ({settings.MENU_VARIANT} menu). Type 'sair' to quit.")
    await chat(engine, Outbox(ConsoleChannel()))

if __name__ == "__main__":
    asyncio.run(main())
