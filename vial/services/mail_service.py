# Copyright 2025 thestill.me
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Outgoing mail over SMTP (welcome emails)."""

import html
import smtplib
from email.message import EmailMessage
from typing import Optional

from structlog import get_logger

from ..utils.config import Config

logger = get_logger(__name__)

WELCOME_SUBJECT = "Welcome to Vial, intentional listening begins"

WELCOME_TEXT = """Welcome{greeting},

Thank you for joining Vial. You now have access to our complete library of
episodes, each designed for intentional listening and deep reflection.

Begin listening: {app_url}/subscriber
"""

WELCOME_HTML = """\
<div style="font-family:Inter, Arial, sans-serif; max-width:640px; margin:0 auto;">
  <h1 style="font-weight:300; letter-spacing:0.15em;">V I A L</h1>
  <h2 style="font-weight:500;">Welcome{greeting},</h2>
  <p>Thank you for joining Vial. You now have access to our complete library of
  episodes, each designed for intentional listening and deep reflection.</p>
  <p><a href="{app_url}/subscriber">Begin Listening</a></p>
</div>
"""


class MailService:
    """
    Sends mail through the configured SMTP server.

    Port 465 uses implicit TLS; any other port uses STARTTLS when the server
    offers it. Without SMTP_HOST and MAIL_FROM every send is skipped.
    """

    def __init__(self, config: Config, timeout: float = 10.0):
        self.config = config
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.config.mail_enabled

    def send_welcome_email(self, email: str, name: Optional[str] = None) -> bool:
        """
        Send the welcome email to a new listener.

        Returns:
            True if sent, False if mail is not configured

        Raises:
            smtplib.SMTPException, OSError: If the SMTP exchange failed
            ValueError: If the address can't be used as a header
        """
        greeting = f", {name}" if name else ""
        message = EmailMessage()
        message["Subject"] = WELCOME_SUBJECT
        message["From"] = f"Vial Podcast <{self.config.mail_from}>"
        message["To"] = email
        message.set_content(WELCOME_TEXT.format(greeting=greeting, app_url=self.config.app_url))
        message.add_alternative(
            WELCOME_HTML.format(greeting=html.escape(greeting), app_url=self.config.app_url),
            subtype="html",
        )
        return self.send(message)

    def send(self, message: EmailMessage) -> bool:
        if not self.enabled:
            logger.info("Mail not configured, skipping send", to=message["To"], subject=message["Subject"])
            return False

        implicit_tls = self.config.smtp_port == 465
        smtp_class = smtplib.SMTP_SSL if implicit_tls else smtplib.SMTP

        with smtp_class(self.config.smtp_host, self.config.smtp_port, timeout=self.timeout) as smtp:
            if not implicit_tls:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            if self.config.smtp_username:
                smtp.login(self.config.smtp_username, self.config.smtp_password)
            smtp.send_message(message)

        logger.info("Email sent", to=message["To"], subject=message["Subject"])
        return True
