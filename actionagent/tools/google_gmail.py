from __future__ import annotations

import base64
from email.message import EmailMessage
from email.utils import formatdate

from .base import DispatchResult, EmailParams, MailDispatcher, ResolvedAttachment
from .google_api import api_request_json, require_access_token


class GmailDispatcher(MailDispatcher):
    GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"

    def __init__(self, timeout_seconds: int = 8) -> None:
        self._timeout_seconds = max(1, timeout_seconds)

    def send(
        self,
        access_token: str,
        params: EmailParams,
        attachments: list[ResolvedAttachment] | None = None,
    ) -> DispatchResult:
        try:
            token = require_access_token(access_token)
            raw = build_rfc822_raw(params, attachments or [])
            sent = api_request_json(
                url=self.GMAIL_SEND_URL,
                method="POST",
                access_token=token,
                timeout=self._timeout_seconds,
                service_name="Gmail",
                body={"raw": raw},
            )
        except RuntimeError as exc:
            return DispatchResult(success=False, error=str(exc))

        message_id = str(sent.get("id") or "").strip()
        thread_id = str(sent.get("threadId") or "").strip()
        if not message_id:
            return DispatchResult(success=False, error="Gmail returned an unexpected send payload.")
        thread_link = (
            f"https://mail.google.com/mail/u/0/#sent/{thread_id}"
            if thread_id
            else "https://mail.google.com/mail/u/0/#sent"
        )
        return DispatchResult(success=True, resource_id=message_id, link=thread_link)


def build_rfc822_raw(params: EmailParams, attachments: list[ResolvedAttachment]) -> str:
    msg = EmailMessage()
    msg["To"] = ", ".join(params.to)
    msg["Subject"] = (params.subject or "").strip() or "(no subject)"
    msg["Date"] = formatdate(localtime=True)
    msg.set_content(_body_with_attachment_links(params.body, attachments))
    raw = msg.as_bytes()
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _body_with_attachment_links(body: str, attachments: list[ResolvedAttachment]) -> str:
    if not attachments:
        return body
    lines = [body.rstrip(), "", "Archivos adjuntos:"]
    for row in attachments:
        label = row.file_name or row.reference_text
        lines.append(f"- {label}: https://drive.google.com/file/d/{row.resolved_id}/view")
    return "\n".join(lines)
