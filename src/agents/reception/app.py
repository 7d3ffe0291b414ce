import asyncio, logging
from fastapi import FastAPI
from pydantic import BaseModel

from common.logging import setup_logging
from common.mcp_client import ChannelError
from .config import settings
from .normalizers import normalize_phone
from .wa_loop import Reception, build_reception, handle_inbound, wa_loop

log = logging.getLogger(__name__)


class InboundRequest(BaseModel):
    phone: str
    text: str
    name: str | None = None


class ProcedureOut(BaseModel):
    name: str
    price: str


def build_app(reception: Reception | None = None, start_loop: bool = True) -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    # refuses to start on empty reference data (ReferenceDataError)
    reception = reception or build_reception(settings)

    app = FastAPI(title="vm-agent-reception")
    app.state.reception = reception
    engine = reception.engine

    @app.get("/healthz")
    def healthz(): return {"ok": True}

    @app.post("/agents/reception/inbound")
    async def inbound(request: InboundRequest):
        """Run one conversation turn, as if the message came from WhatsApp"""
        phone = normalize_phone(request.phone)
        text = (request.text or "").strip()
        if not phone or not text:
            return {"ok": False, "error": "phone and text required"}
        try:
            replies = await handle_inbound(reception, phone, text, request.name)
        except ChannelError as e:
            log.error(f"[API] Channel error for {phone}: {e}")
            return {"ok": False, "error": str(e)}
        return {"ok": True, "replies": replies}

    @app.get("/agents/reception/oncall")
    def oncall():
        return {"doctor": engine.on_call_doctor(), "message": engine.on_call_message()}

    @app.get("/agents/reception/procedures", response_model=list[ProcedureOut])
    def procedures(q: str):
        return [ProcedureOut(name=p.name, price=p.price) for p in engine.find_procedures(q)]

    @app.delete("/agents/reception/sessions/{phone}")
    def end_session(phone: str):
        return {"ok": True, "ended": engine.store.delete(normalize_phone(phone))}

    @app.on_event("startup")
    async def startup():
        if start_loop:
            app.state.t = asyncio.create_task(wa_loop(reception, settings))

    @app.on_event("shutdown")
    async def shutdown():
        t = getattr(app.state, "t", None)
        if t:
            t.cancel()
        else:
            reception.outbox.cancel_pending()

    return app
