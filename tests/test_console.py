import asyncio

from agents.reception.console import CONSOLE_CONTACT, chat
from agents.reception.outbox import Outbox


def scripted(lines):
    it = iter(lines)

    async def read(prompt=""):
        return next(it, None)

    return read


def test_console_chat_runs_until_eof(engine, make_channel):
    channel = make_channel()
    engine.remenu_delay = 0.01

    asyncio.run(chat(engine, Outbox(channel), "Maria", read=scripted(["4", "", "ultrassom"])))

    texts = [text for _, text in channel.sent]
    assert texts[0].startswith("Digite o nome do procedimento")
    assert "Ultrassom Abdominal" in texts[1]
    assert texts[2].startswith("Olá Maria!")
    assert all(to == CONSOLE_CONTACT for to, _ in channel.sent)


def test_console_stops_on_sair(engine, make_channel):
    channel = make_channel()
    asyncio.run(chat(engine, Outbox(channel), read=scripted(["sair", "1"])))
    assert channel.sent == []
