import html
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email import encoders
from email.header import Header
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import List, Optional

from config import Settings
from errors import MailDeliveryError

logger = logging.getLogger("voice-relay")

NO_SUMMARY = "No summary provided."
NO_TRANSCRIPT = "No transcript provided."
DEFAULT_RECORDING_NAME = "recording.webm"
DEFAULT_RECORDING_TYPE = "audio/webm"

HTML_TEMPLATE = """
<div style="font-family: Arial, sans-serif; line-height:1.5; color:#111;">
  <h1>Mortgage Inquiry — Call Summary</h1>
  <p style="color:#666;">Summary, transcript{recording_note} attached.</p>

  <h2>Summary</h2>
  <div style="background:#f8f9fa; padding:12px; border-radius:6px; white-space:pre-wrap;">
    {summary}
  </div>

  <h2>Full Transcript</h2>
  <div style="background:#f8f9fa; padding:12px; border-radius:6px; max-height:500px; overflow:auto; white-space:pre-wrap;">
    {transcript}
  </div>

  <p style="margin-top:1.5rem; color:#666; font-size:0.9em;">
    Sent from Omni Mortgage Voice Agent
  </p>
</div>
"""


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str


@dataclass
class Recording:
    """Uploaded audio, already read into memory."""
    content: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None


def escape_html(text: str) -> str:
    """Escapes & < > " and ' for interpolation into the HTML body."""
    return html.escape(text or "", quote=True)


def render_html_body(transcript: str, summary: str, has_recording: bool) -> str:
    return HTML_TEMPLATE.format(
        recording_note=" and recording" if has_recording else "",
        summary=escape_html(summary) or NO_SUMMARY,
        transcript=escape_html(transcript) or NO_TRANSCRIPT,
    )


def build_attachments(transcript: str, summary: str, recording: Optional[Recording] = None) -> List[Attachment]:
    """Recording first (if any), then summary.txt and transcript.txt with the raw text."""
    attachments = [
        Attachment("summary.txt", (summary or NO_SUMMARY).encode("utf-8"), "text/plain"),
        Attachment("transcript.txt", (transcript or NO_TRANSCRIPT).encode("utf-8"), "text/plain"),
    ]
    if recording is not None and recording.content:
        attachments.insert(0, Attachment(
            recording.filename or DEFAULT_RECORDING_NAME,
            recording.content,
            recording.content_type or DEFAULT_RECORDING_TYPE,
        ))
    return attachments


def _mime_part(attachment: Attachment) -> MIMEBase:
    maintype, _, subtype = attachment.content_type.partition("/")
    if maintype == "text":
        part = MIMEText(attachment.content.decode("utf-8"), subtype or "plain", "utf-8")
    else:
        part = MIMEBase(maintype or "application", subtype or "octet-stream")
        part.set_payload(attachment.content)
        encoders.encode_base64(part)
    part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
    return part


def compose_message(
    transcript: str,
    summary: str,
    recording: Optional[Recording],
    *,
    from_addr: str,
    to_addr: str,
    subject: str,
) -> MIMEMultipart:
    attachments = build_attachments(transcript, summary, recording)
    has_recording = len(attachments) > 2

    msg = MIMEMultipart()
    msg["From"] = from_addr
    msg["To"] = to_addr
    msg["Subject"] = Header(subject, "utf-8")
    msg["Message-ID"] = make_msgid()

    msg.attach(MIMEText(render_html_body(transcript, summary, has_recording), "html", "utf-8"))
    for attachment in attachments:
        msg.attach(_mime_part(attachment))
    return msg


class SMTPMailer:
    """Sends one message per call through the configured SMTP relay."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def send(self, msg: MIMEMultipart) -> str:
        s = self._settings
        logger.info(f"Sending email via SMTP {s.SMTP_HOST}:{s.SMTP_PORT} secure={s.SMTP_SECURE}")
        context = ssl.create_default_context()
        try:
            if s.SMTP_SECURE:
                server = smtplib.SMTP_SSL(s.SMTP_HOST, s.SMTP_PORT, context=context)
            else:
                server = smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT)
            with server:
                server.ehlo()
                if not s.SMTP_SECURE and server.has_extn("starttls"):
                    server.starttls(context=context)
                    server.ehlo()
                server.login(s.SMTP_USER, s.SMTP_PASS)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(str(e) or "Failed to send email") from e
        message_id = msg["Message-ID"]
        logger.info(f"Email sent: {message_id}")
        return message_id
