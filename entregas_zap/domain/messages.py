"""WhatsApp message templates

The wording (including the Portuguese text and emoji) is what residents
receive, so templates are kept verbatim. Every function takes the moment to
print so callers control the clock.
"""
from datetime import datetime

from entregas_zap.domain.clock import format_date, format_time

SERVICE_PACKAGE = "Encomendas/Produtos"

SERVICES = (
    SERVICE_PACKAGE,
    "Delivery",
    "Gás",
    "Visita",
    "Uber",
    "99",
    "Taxi",
)

DEFAULT_PICKUP_PERSON = "O proprio(a)"

PICKUP_OPTIONS = (
    DEFAULT_PICKUP_PERSON,
    "Filho(a)",
    "Irmão(a)",
    "Domestica do Lar",
    "Pai",
    "Mãe",
    "Avó",
    "Avô",
    "Tio(a)",
    "Marido",
    "Esposa",
    "Visita",
    "Vizinho(a)",
)


def service_detail(service: str) -> str:
    key = service.lower()
    if key == "delivery":
        return "seu Delivery chegou"
    if key == "gás":
        return "Seu gás chegou"
    if key == "visita":
        return "Sua visita chegou"
    if key in ("uber", "99", "taxi"):
        return f"Seu {service} chegou"
    return f"Sua encomenda ({service}) chegou"


def package_message(condo: str, resident_name: str, code: str, now: datetime) -> str:
    return (
        f"🏢 *{condo}*\n"
        f"\n"
        f"Olá *{resident_name}*, você tem uma nova encomenda!\n"
        f"\n"
        f"📦 Sua Encomenda Chegou!\n"
        f"\n"
        f"📅 Data: {format_date(now)}\n"
        f"⏰ Hora: {format_time(now)}\n"
        f"\n"
        f"🔑 Código de retirada na portaria: *{code}*\n"
        f"\n"
        f"Esta é uma mensagem de atendimento automático, Entregas ZAP."
    )


def service_message(condo: str, resident_name: str, service: str, now: datetime) -> str:
    return (
        f"🏢 *{condo}*\n"
        f"\n"
        f"Olá *{resident_name}*, Passando só pra te dizer que \n"
        f"\n"
        f"📦 *{service_detail(service)}*\n"
        f"\n"
        f"📅 Data: {format_date(now)}\n"
        f"⏰ Hora: {format_time(now)}\n"
        f"\n"
        f"Este é um atendimento automático, Entregas ZAP."
    )


def pickup_message(condo: str, resident_name: str, code: str, picked_up_by: str, now: datetime) -> str:
    return (
        f"🏢 *{condo}*\n"
        f"\n"
        f"Olá *{resident_name}*, informamos que sua encomenda foi retirada!\n"
        f"\n"
        f"✅ *Encomenda Retirada*\n"
        f"\n"
        f"🔑 Código: *{code}*\n"
        f"👤 Retirada por: *{picked_up_by}*\n"
        f"\n"
        f"📅 Data: {format_date(now)}\n"
        f"⏰ Hora: {format_time(now)}\n"
        f"\n"
        f"Esta é uma mensagem de confirmação automática, Entregas ZAP."
    )


def reminder_message(condo: str, resident_name: str, code: str, received_at: datetime) -> str:
    """received_at must already be in local time"""
    return (
        f"🏢 {condo}\n"
        f"\n"
        f"Olá *{resident_name}*, Passando para te lembrar que seu pedido ja chegou.\n"
        f"\n"
        f"*Está aqui na portaria Des do dia !*\n"
        f"📅 {format_date(received_at)}\n"
        f"⏰ Hora: {format_time(received_at)}\n"
        f"\n"
        f"Aguardamos sua presença, E não se esqueça do código para retirada do produto "
        f"aqui está novamente: *{code}*\n"
        f"\n"
        f"Este é um atendimento automático, Entregas ZAP, não responder."
    )


def manager_message(condo: str, resident_name: str, sindico: str, text: str, now: datetime) -> str:
    return (
        f"🏢 *{condo}*\n"
        f"\n"
        f"Olá *{resident_name}*,\n"
        f"\n"
        f"{text.strip()}\n"
        f"\n"
        f"👤 Síndico(a): *{sindico}*\n"
        f"📅 {format_date(now)} ⏰ {format_time(now)}\n"
        f"\n"
        f"Este é um atendimento automático, Entregas ZAP."
    )
