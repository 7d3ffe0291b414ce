"""
Message Templates for the Reception Agent

All conversational messages are defined here for easy modification and consistency.
"""

# ---------- Main Menu ----------
MENU_HEADER = """Olá {name}! Sou o assistente virtual do {assistant}. Como posso ajudá-lo hoje?
Opções:"""

MENU_LINE = "{key}) {label}"


# ---------- Scheduling ----------
ASK_PATIENT_NAME = "Por favor, informe o nome completo do paciente."
ASK_DOCTOR = "Qual médico deseja consultar?"
ASK_TIME = "Qual horário deseja marcar?"
ASK_DAY = "Qual dia você deseja que a consulta seja realizada?"

ASK_FOLLOWUP_PATIENT_NAME = "Por favor, informe o nome completo do paciente para o retorno."
ASK_FOLLOWUP_DOCTOR = "Qual médico deseja consultar para o retorno?"
ASK_FOLLOWUP_TIME = "Qual horário deseja marcar para o retorno?"
ASK_FOLLOWUP_DAY = "Qual dia você deseja que o retorno seja realizado?"

APPOINTMENT_CONFIRM = """Consulta agendada:
Paciente: {patient}
Médico: {doctor}
Horário: {time}
Dia: {day}
Se precisar de algo mais, estou à disposição."""

FOLLOWUP_CONFIRM = """Retorno agendado:
Paciente: {patient}
Médico: {doctor}
Horário: {time}
Dia: {day}
Se precisar de algo mais, estou à disposição."""


# ---------- Lookups ----------
ASK_PRICE_PROCEDURE = "Digite o nome do procedimento que deseja consultar o preço."
ASK_OFFERED_PROCEDURE = "Digite o nome do procedimento que deseja verificar se é realizado na clínica."

PROCEDURES_FOUND = "Aqui estão os procedimentos que encontrei:"
PROCEDURE_LINE = "- {name}: R$ {price}"
PRICE_NOT_FOUND = "Desculpe, não encontrei nenhum procedimento com esse nome."
PROCEDURE_NOT_OFFERED = "Desculpe, o procedimento *{query}* não é realizado na clínica."

ONCALL_DOCTOR = "O médico de plantão agora é o {doctor}."
ONCALL_NONE = "Não há médicos de plantão no momento."


# ---------- Informational ----------
ENDOSCOPY_DAYS = "Aqui estão os dias disponíveis para endoscopia: {days}."
EXAM_PICKUP = ("Para pegar seu exame, é necessário apresentar o papel entregue após a realização do exame. "
               "A retirada pode ser feita a partir das 9 horas do dia indicado no papel.")


# ---------- Escalation / Closing ----------
HUMAN_ACK = "Se precisar de algo mais, estou à disposição."
HUMAN_ALERT_TITLE = "Alerta"
HUMAN_ALERT_MESSAGE = "Uma pessoa humana precisa responder!"

SESSION_CLOSED = "Atendimento encerrado. Para retornar, basta enviar uma mensagem."

PROCESSING_ERROR = "Desculpe, ocorreu um erro ao processar sua solicitação."


def format_message(template: str, **kwargs) -> str:
    """
    Format message template with provided values

    Missing placeholders fall back to neutral defaults instead of raising.
    """
    defaults = {
        "name": "",
        "assistant": "Hospital",
        "patient": "",
        "doctor": "",
        "time": "",
        "day": "",
        "query": "",
    }
    data = {**defaults, **kwargs}
    return template.format(**data)


def format_procedure_list(records) -> str:
    """Render matched procedures as one header line plus one bullet per record"""
    lines = [PROCEDURES_FOUND]
    for rec in records:
        lines.append(PROCEDURE_LINE.format(name=rec.name, price=rec.price))
    return "\n".join(lines)
