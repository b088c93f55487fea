"""In-memory stand-in for the email notification queue."""

from typing import Any, Dict, List, NamedTuple, Optional

from app.core.enums import EmailTemplateCode


class SentEmail(NamedTuple):
    to: str
    template_code: str
    params: Dict[str, Any]
    language: str


class RecordingNotifier:
    """Records ``send_templated`` calls so tests can assert on them."""

    def __init__(self):
        self.sent: List[SentEmail] = []

    def send_templated(self, to, template_code, params, language="en") -> bool:
        code = (
            template_code.value
            if isinstance(template_code, EmailTemplateCode)
            else template_code
        )
        if not to:
            return False
        self.sent.append(SentEmail(to, code, dict(params), language))
        return True

    def codes(self) -> List[str]:
        return [email.template_code for email in self.sent]

    def last(self, template_code: EmailTemplateCode) -> Optional[SentEmail]:
        """Most recent email of the given template, if any."""
        for email in reversed(self.sent):
            if email.template_code == template_code.value:
                return email
        return None

    def clear(self) -> None:
        self.sent.clear()
