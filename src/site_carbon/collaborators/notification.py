"""Internal e-mail notification of new leads."""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol, runtime_checkable

from site_carbon.errors import NotificationFailure
from site_carbon.schemas import EmissionReport

LOGGER = logging.getLogger(__name__)

SUBJECT = "Novo lead - Calculadora de Carbono"


@dataclass(frozen=True, slots=True)
class LeadNotification:
    """Contact details and the estimate they received."""

    nome: str
    celular: str
    email: str
    url: str
    report: EmissionReport
    energy_kwh: float
    server_intensity: float
    user_intensity: float
    user_country: str
    model_version: str


@runtime_checkable
class LeadNotifier(Protocol):
    """Deliver a lead notification; raise ``NotificationFailure`` on error."""

    async def send(self, notification: LeadNotification) -> None:
        """Deliver ``notification``."""


def render_html(notification: LeadNotification) -> str:
    """Render the lead e-mail body."""

    report = notification.report
    esc = html.escape
    green = "Sim" if report.green else "Não"
    lines = [
        "<h2>Novo lead - Calculadora de Carbono</h2>",
        f"<p><strong>Nome:</strong> {esc(notification.nome)}</p>",
        f"<p><strong>Celular:</strong> {esc(notification.celular)}</p>",
        f"<p><strong>Email:</strong> {esc(notification.email)}</p>",
        f"<p><strong>URL:</strong> {esc(notification.url)}</p>",
        "<hr>",
        f"<p><strong>Emissão estimada:</strong> {report.emissao:.3f} g CO₂/visita</p>",
        f"<p><strong>Energia estimada:</strong> {notification.energy_kwh:.5f} kWh</p>",
        f"<p><strong>Classificação:</strong> {report.rating}</p>",
        f"<p><strong>Equivalente a:</strong> {report.arvores} árvores/ano</p>",
        f"<p><strong>Ou:</strong> {report.km} km dirigidos</p>",
        "<hr>",
        f"<p><strong>Peso da página:</strong> {report.pageWeightMB} MB</p>",
        f"<p><strong>Scripts externos:</strong> {report.externalScripts}</p>",
        f"<p><strong>Domínios pesados:</strong> {report.heavyDomains}</p>",
        f"<p><strong>Penalidade total:</strong> {report.totalPenalty} g CO₂</p>",
        (
            "<p><strong>Localização do servidor:</strong> "
            f"{esc(report.servidor.cidade)}, {esc(report.servidor.pais)} "
            f"(Intensidade: {notification.server_intensity:g} g/kWh)</p>"
        ),
        (
            "<p><strong>Localização do usuário:</strong> "
            f"{esc(notification.user_country)} "
            f"(Intensidade: {notification.user_intensity:g} g/kWh)</p>"
        ),
        f"<p><strong>Provedor:</strong> {esc(report.servidor.org)}</p>",
        (
            f"<p><strong>Hospedagem verde:</strong> {green} – "
            f"{esc(report.hostedby)} ({esc(report.hostedbywebsite)})</p>"
        ),
        f"<p><small>Modelo: {esc(notification.model_version)}</small></p>",
    ]
    return "\n".join(lines)


def build_message(notification: LeadNotification, sender: str) -> EmailMessage:
    """Build the MIME message sent to the internal inbox."""

    message = EmailMessage()
    message["Subject"] = SUBJECT
    message["From"] = sender
    message["To"] = sender
    message.set_content(
        f"Novo lead: {notification.nome} <{notification.email}> - {notification.url}"
    )
    message.add_alternative(render_html(notification), subtype="html")
    return message


class SmtpLeadNotifier:
    """Send lead e-mails through an SMTP-over-SSL server.

    The account named by ``user`` is both sender and recipient.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        user: str,
        password: str,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._timeout = timeout_seconds

    def _deliver(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(
            self._host, self._port, timeout=self._timeout, context=context
        ) as client:
            client.login(self._user, self._password)
            client.send_message(message)

    async def send(self, notification: LeadNotification) -> None:
        """Deliver ``notification`` without blocking the event loop.

        Raises:
            NotificationFailure: If the SMTP conversation fails.
        """

        message = build_message(notification, self._user)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationFailure(f"SMTP delivery failed: {exc}") from exc
        LOGGER.info("Lead notification sent", extra={"url": notification.url})


class LoggingLeadNotifier:
    """Record leads in the log when no SMTP account is configured."""

    async def send(self, notification: LeadNotification) -> None:
        LOGGER.info(
            "Lead received without SMTP configuration",
            extra={
                "url": notification.url,
                "contact_email": notification.email,
                "rating": notification.report.rating,
            },
        )


async def notify_safely(notifier: LeadNotifier, notification: LeadNotification) -> bool:
    """Send ``notification`` and log, never raise, on failure.

    Returns:
        ``True`` when delivery succeeded.
    """

    try:
        await notifier.send(notification)
    except NotificationFailure as exc:
        LOGGER.error(
            "Failed to send lead notification",
            extra={"url": notification.url, "error": str(exc)},
        )
        return False
    except Exception as exc:  # pragma: no cover - defensive
        LOGGER.error(
            "Unexpected lead notification failure",
            extra={"url": notification.url, "error_type": type(exc).__name__},
            exc_info=exc,
        )
        return False
    return True
