import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure the src/ packages are importable when running tests from repo root
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from agents.reception.engine import DialogEngine
from agents.reception.reference import build_reference_data
from agents.reception.sessions import SessionStore

PROCEDURE_ROWS = [
    {"Procedimento": "Ultrassom Abdominal", "Valor": "150"},
    {"Procedimento": "Ultrassom Transvaginal", "Valor": "180"},
    {"Procedimento": "Endoscopia Digestiva Alta", "Valor": "350"},
    {"Procedimento": "Eletrocardiograma", "Valor": "90"},
]

ROSTER_ROWS = [
    {"Dia da Semana": "segunda", "Horário": "8H-14H", "Médico": "Dr. Carlos"},
    {"Dia da Semana": "segunda", "Horário": "22H-0H", "Médico": "Dr. Silva"},
    {"Dia da Semana": "Terça", "Horário": "8H-20H", "Médico": "Dra. Ana"},
]

# 2024-03-25 is a Monday
MONDAY_2330 = datetime(2024, 3, 25, 23, 30)


class FakeChannel:
    """Records outbound traffic instead of talking to WhatsApp"""

    def __init__(self, fail_send: bool = False, contacts: dict | None = None):
        self.sent: list[tuple[str, str]] = []
        self.alerts: list[dict] = []
        self.fail_send = fail_send
        self.contacts = contacts or {}

    async def send_message(self, to: str, text: str):
        if self.fail_send:
            raise RuntimeError("socket closed")
        self.sent.append((to, text))
        return {"ok": True}

    async def notify(self, title: str, message: str, audible: bool = True, wait: bool = True):
        self.alerts.append({"title": title, "message": message, "sound": audible, "wait": wait})
        return {"ok": True}

    async def contact_get(self, contact_id: str):
        if contact_id not in self.contacts:
            from common.mcp_client import ChannelError
            raise ChannelError(f"contact {contact_id} unavailable")
        return self.contacts[contact_id]


@pytest.fixture
def reference():
    return build_reference_data(PROCEDURE_ROWS, ROSTER_ROWS)


@pytest.fixture
def clock():
    return {"now": MONDAY_2330}


@pytest.fixture
def engine(reference, clock):
    return DialogEngine(reference, SessionStore(), now=lambda: clock["now"], remenu_delay=2.0)


@pytest.fixture
def make_channel():
    return FakeChannel
