import pytest
from fastapi.testclient import TestClient

from agents.reception.app import build_app
from agents.reception.outbox import Outbox
from agents.reception.wa_loop import Reception


@pytest.fixture
def channel(make_channel):
    return make_channel()


@pytest.fixture
def client(engine, channel):
    engine.remenu_delay = 0
    reception = Reception(engine=engine, outbox=Outbox(channel))
    app = build_app(reception, start_loop=False)
    with TestClient(app) as test_client:
        yield test_client


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": True}


def test_inbound_turns(client, channel):
    r = client.post("/agents/reception/inbound", json={"phone": "+5511999990000", "text": "4", "name": "Maria"})
    assert r.json() == {"ok": True, "replies": ["Digite o nome do procedimento que deseja consultar o preço."]}

    r = client.post("/agents/reception/inbound", json={"phone": "5511999990000", "text": "endoscopia", "name": "Maria"})
    replies = r.json()["replies"]
    assert "- Endoscopia Digestiva Alta: R$ 350" in replies[0]
    assert replies[1].startswith("Olá Maria!")
    assert channel.sent[0][0] == "5511999990000"


def test_inbound_requires_phone_and_text(client):
    r = client.post("/agents/reception/inbound", json={"phone": "", "text": "oi"})
    assert r.json()["ok"] is False


def test_inbound_channel_error(engine, make_channel):
    reception = Reception(engine=engine, outbox=Outbox(make_channel(fail_send=True)))
    with TestClient(build_app(reception, start_loop=False)) as client:
        r = client.post("/agents/reception/inbound", json={"phone": "5511", "text": "oi"})
    assert r.json()["ok"] is False


def test_oncall(client):
    assert client.get("/agents/reception/oncall").json() == {
        "doctor": "Dr. Silva",
        "message": "O médico de plantão agora é o Dr. Silva.",
    }


def test_procedures(client):
    r = client.get("/agents/reception/procedures", params={"q": "ultrassom"})
    assert r.json() == [
        {"name": "Ultrassom Abdominal", "price": "150"},
        {"name": "Ultrassom Transvaginal", "price": "180"},
    ]
    assert client.get("/agents/reception/procedures", params={"q": "tomografia"}).json() == []


def test_end_session(client, engine):
    client.post("/agents/reception/inbound", json={"phone": "5511", "text": "1"})
    assert engine.store.get("5511") is not None
    assert client.delete("/agents/reception/sessions/5511").json() == {"ok": True, "ended": True}
    assert engine.store.get("5511") is None
