"""
Dialog Engine - menu-driven reception state machine

For every inbound message the engine decides between:
- continuing the contact's active flow (the text is the answer to the current step)
- dispatching a main-menu action (the text is exactly a menu key)
- re-presenting the main menu (anything else)

The engine does no I/O. It returns outbound actions; the outbox delivers them.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .menu import FULL_MENU, MenuAction, MenuConfig
from .messages import (
    ASK_PATIENT_NAME, ASK_DOCTOR, ASK_TIME, ASK_DAY,
    ASK_FOLLOWUP_PATIENT_NAME, ASK_FOLLOWUP_DOCTOR, ASK_FOLLOWUP_TIME, ASK_FOLLOWUP_DAY,
    APPOINTMENT_CONFIRM, FOLLOWUP_CONFIRM,
    ASK_PRICE_PROCEDURE, ASK_OFFERED_PROCEDURE,
    PRICE_NOT_FOUND, PROCEDURE_NOT_OFFERED,
    ONCALL_DOCTOR, ONCALL_NONE,
    ENDOSCOPY_DAYS, EXAM_PICKUP,
    HUMAN_ACK, HUMAN_ALERT_TITLE, HUMAN_ALERT_MESSAGE,
    SESSION_CLOSED, PROCESSING_ERROR,
    format_message, format_procedure_list,
)
from .normalizers import format_query, title_name, first_name
from .oncall import resolve_duty_doctor
from .procedures import find_procedures
from .reference import ReferenceData
from .sessions import Flow, Session, SessionStore, Step

log = logging.getLogger(__name__)

DEFAULT_ENDOSCOPY_DAYS = ["07/03", "08/03", "14/03", "15/03", "28/03", "31/03"]


# ---------- Outbound actions ----------
@dataclass(frozen=True)
class SendText:
    contact_id: str
    text: str
    delay: float = 0.0  # > 0: scheduled follow-up, not part of the current turn


@dataclass(frozen=True)
class Notify:
    title: str
    message: str
    audible: bool = True
    wait: bool = True


# ---------- Flow definitions ----------
@dataclass(frozen=True)
class StepSpec:
    step: Step
    field: str
    prompt: str
    normalize: Callable[[str], str] = str.strip


@dataclass(frozen=True)
class FlowSpec:
    steps: tuple[StepSpec, ...]
    confirmation: str | None = None  # scheduling flows only

    def index(self, step: Step) -> int:
        for i, spec in enumerate(self.steps):
            if spec.step is step:
                return i
        raise KeyError(step)

    @property
    def first(self) -> StepSpec:
        return self.steps[0]


def _scheduling_flow(prompts: tuple[str, str, str, str], confirmation: str) -> FlowSpec:
    name_prompt, doctor_prompt, time_prompt, day_prompt = prompts
    return FlowSpec(
        steps=(
            StepSpec(Step.NAME, "patient", name_prompt, title_name),
            StepSpec(Step.DOCTOR, "doctor", doctor_prompt, title_name),
            StepSpec(Step.TIME, "time", time_prompt),
            StepSpec(Step.DAY, "day", day_prompt),
        ),
        confirmation=confirmation,
    )


FLOWS: dict[Flow, FlowSpec] = {
    Flow.SCHEDULE_APPOINTMENT: _scheduling_flow(
        (ASK_PATIENT_NAME, ASK_DOCTOR, ASK_TIME, ASK_DAY), APPOINTMENT_CONFIRM),
    Flow.SCHEDULE_FOLLOW_UP: _scheduling_flow(
        (ASK_FOLLOWUP_PATIENT_NAME, ASK_FOLLOWUP_DOCTOR, ASK_FOLLOWUP_TIME, ASK_FOLLOWUP_DAY), FOLLOWUP_CONFIRM),
    Flow.PRICE_LOOKUP: FlowSpec(steps=(StepSpec(Step.QUERY, "query", ASK_PRICE_PROCEDURE, format_query),)),
    Flow.PROCEDURE_LOOKUP: FlowSpec(steps=(StepSpec(Step.QUERY, "query", ASK_OFFERED_PROCEDURE, format_query),)),
}


class DialogEngine:
    def __init__(
        self,
        reference: ReferenceData,
        store: SessionStore | None = None,
        menu: MenuConfig = FULL_MENU,
        *,
        now: Callable[[], datetime] = datetime.now,
        remenu_delay: float = 2.0,
        assistant_name: str = "Hospital",
        default_contact_name: str = "Usuário",
        endoscopy_days: list[str] | None = None,
    ):
        self.reference = reference
        self.store = store if store is not None else SessionStore()
        self.menu = menu
        self.remenu_delay = remenu_delay
        self.assistant_name = assistant_name
        self.default_contact_name = default_contact_name
        self.endoscopy_days = list(endoscopy_days or DEFAULT_ENDOSCOPY_DAYS)
        self._now = now

        self.action_handlers: dict[MenuAction, Callable[[str, str], list]] = {
            MenuAction.SCHEDULE_APPOINTMENT: self._start_appointment,
            MenuAction.SCHEDULE_FOLLOW_UP: self._start_follow_up,
            MenuAction.TALK_TO_HUMAN: self._talk_to_human,
            MenuAction.PRICE_LOOKUP: self._start_price_lookup,
            MenuAction.ON_CALL_DOCTOR: self._on_call_doctor,
            MenuAction.PROCEDURE_LOOKUP: self._start_procedure_lookup,
            MenuAction.ENDOSCOPY_DAYS: self._endoscopy_days,
            MenuAction.EXAM_PICKUP: self._exam_pickup,
            MenuAction.FINISH_SESSION: self._finish_session,
        }
        missing = set(MenuAction) - set(self.action_handlers)
        if missing:
            raise RuntimeError(f"menu actions without handler: {sorted(a.name for a in missing)}")

    # ========== Entry point ==========

    def handle(self, contact_id: str, text: str, display_name: str | None = None) -> list:
        """
        Process one inbound message and return the outbound actions.

        Any failure inside a step or menu handler is answered with an apology;
        the session is only written back after a step succeeds, so the same
        step is retried on the next message.
        """
        name = display_name or self.default_contact_name
        text = text or ""
        sess = self.store.get(contact_id)
        action = self.menu.resolve(text)

        log.info(
            f"[ENGINE] contact={contact_id} flow={sess.flow.value if sess else None} "
            f"step={sess.step.value if sess else None} text='{text[:30]}'"
        )
        try:
            if action is MenuAction.FINISH_SESSION:
                return self._finish_session(contact_id, name)
            if sess is not None:
                return self._continue_flow(contact_id, sess, text, name)
            if action is None:
                return [self.menu_message(contact_id, name)]
            return self.action_handlers[action](contact_id, name)
        except Exception as e:
            log.error(f"[ENGINE] Error processing message from {contact_id}: {e}", exc_info=True)
            return [SendText(contact_id, PROCESSING_ERROR)]

    def menu_message(self, contact_id: str, name: str, delay: float = 0.0) -> SendText:
        return SendText(contact_id, self.menu.render(name, self.assistant_name), delay)

    # ========== Flow continuation ==========

    def _continue_flow(self, contact_id: str, sess: Session, text: str, name: str) -> list:
        spec = FLOWS[sess.flow]
        idx = spec.index(sess.step)
        current = spec.steps[idx]

        if not text.strip():
            return [SendText(contact_id, current.prompt)]

        work = sess.copy()
        work.collected[current.field] = current.normalize(text)

        if idx + 1 < len(spec.steps):
            nxt = spec.steps[idx + 1]
            work.step = nxt.step
            self.store.set(contact_id, work)
            return [SendText(contact_id, nxt.prompt)]

        reply = self._complete(work, spec)
        self.store.delete(contact_id)
        log.info(f"[ENGINE] Flow {work.flow.value} completed for {contact_id}")

        menu_name = first_name(work.collected.get("patient")) or name
        return [
            SendText(contact_id, reply),
            self.menu_message(contact_id, menu_name, delay=self.remenu_delay),
        ]

    def _complete(self, sess: Session, spec: FlowSpec) -> str:
        c = sess.collected
        if spec.confirmation:
            return format_message(
                spec.confirmation,
                patient=c["patient"], doctor=c["doctor"], time=c["time"], day=c["day"],
            )

        query = c["query"]
        matches = find_procedures(self.reference.procedures, query)
        if matches:
            return format_procedure_list(matches)
        if sess.flow is Flow.PROCEDURE_LOOKUP:
            return format_message(PROCEDURE_NOT_OFFERED, query=query)
        return PRICE_NOT_FOUND

    def _start(self, contact_id: str, flow: Flow) -> list:
        first = FLOWS[flow].first
        self.store.set(contact_id, Session(flow=flow, step=first.step))
        log.info(f"[ENGINE] Starting {flow.value} for {contact_id}")
        return [SendText(contact_id, first.prompt)]

    # ========== Menu actions ==========

    def _start_appointment(self, contact_id: str, name: str) -> list:
        return self._start(contact_id, Flow.SCHEDULE_APPOINTMENT)

    def _start_follow_up(self, contact_id: str, name: str) -> list:
        return self._start(contact_id, Flow.SCHEDULE_FOLLOW_UP)

    def _start_price_lookup(self, contact_id: str, name: str) -> list:
        return self._start(contact_id, Flow.PRICE_LOOKUP)

    def _start_procedure_lookup(self, contact_id: str, name: str) -> list:
        return self._start(contact_id, Flow.PROCEDURE_LOOKUP)

    def _talk_to_human(self, contact_id: str, name: str) -> list:
        log.info(f"[ENGINE] Human requested by {contact_id}")
        return [
            SendText(contact_id, HUMAN_ACK),
            Notify(HUMAN_ALERT_TITLE, HUMAN_ALERT_MESSAGE, audible=True, wait=True),
        ]

    def _on_call_doctor(self, contact_id: str, name: str) -> list:
        return [SendText(contact_id, self.on_call_message())]

    def _endoscopy_days(self, contact_id: str, name: str) -> list:
        return [SendText(contact_id, ENDOSCOPY_DAYS.format(days=", ".join(self.endoscopy_days)))]

    def _exam_pickup(self, contact_id: str, name: str) -> list:
        return [SendText(contact_id, EXAM_PICKUP)]

    def _finish_session(self, contact_id: str, name: str) -> list:
        if self.store.delete(contact_id):
            log.info(f"[ENGINE] Session finished by {contact_id}")
        return [SendText(contact_id, SESSION_CLOSED)]

    # ========== Lookups ==========

    def on_call_doctor(self) -> str | None:
        return resolve_duty_doctor(self.reference.roster, self._now())

    def on_call_message(self) -> str:
        doctor = self.on_call_doctor()
        return format_message(ONCALL_DOCTOR, doctor=doctor) if doctor else ONCALL_NONE

    def find_procedures(self, query: str):
        return find_procedures(self.reference.procedures, format_query(query))
