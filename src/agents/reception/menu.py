"""
Main menu: the closed set of top-level actions and the configurations
that number them.

Keys are assigned by position ("1", "2", ...) so the reduced menu simply
omits actions and renumbers the rest.
"""
from dataclasses import dataclass
from enum import Enum

from .messages import MENU_HEADER, MENU_LINE, format_message


class MenuAction(Enum):
    SCHEDULE_APPOINTMENT = "Agendar Consulta"
    SCHEDULE_FOLLOW_UP = "Marcar Retorno"
    TALK_TO_HUMAN = "Outras Perguntas"
    PRICE_LOOKUP = "Consultar Preços"
    ON_CALL_DOCTOR = "Médico de Plantão"
    PROCEDURE_LOOKUP = "Ver Procedimentos"
    ENDOSCOPY_DAYS = "Dias de Endoscopia"
    EXAM_PICKUP = "Pegar Exame"
    FINISH_SESSION = "Finalizar Atendimento"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class MenuConfig:
    actions: tuple[MenuAction, ...]

    def __post_init__(self):
        if len(set(self.actions)) != len(self.actions):
            raise ValueError("menu actions must be unique")

    @property
    def keys(self) -> dict[str, MenuAction]:
        return {str(i): action for i, action in enumerate(self.actions, start=1)}

    def resolve(self, text: str) -> MenuAction | None:
        """Exact key match only; "1 " or "01" are not menu keys"""
        return self.keys.get(text)

    def key_for(self, action: MenuAction) -> str | None:
        for key, candidate in self.keys.items():
            if candidate is action:
                return key
        return None

    def render(self, name: str, assistant: str = "Hospital") -> str:
        lines = [format_message(MENU_HEADER, name=name, assistant=assistant)]
        lines += [MENU_LINE.format(key=key, label=action.label) for key, action in self.keys.items()]
        return "\n".join(lines)


FULL_MENU = MenuConfig(tuple(MenuAction))

REDUCED_MENU = MenuConfig(tuple(a for a in MenuAction if a is not MenuAction.SCHEDULE_FOLLOW_UP))

MENU_VARIANTS = {
    "full": FULL_MENU,
    "reduced": REDUCED_MENU,
}


def menu_for(variant: str) -> MenuConfig:
    try:
        return MENU_VARIANTS[variant.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown menu variant {variant!r}; expected one of {sorted(MENU_VARIANTS)}") from None
