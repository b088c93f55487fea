"""Email templates, rendering and delivery."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml
from azure.communication.email import EmailClient
from jinja2 import Environment, TemplateSyntaxError, meta, select_autoescape

from app.core.enums import Language
from app.core.logging import get_logger
from app.core.observability.metrics import log_counter_increment
from app.models.email_template import EmailTemplate
from app.repositories.email_template_repo import EmailTemplateRepo

logger = get_logger(__name__)

BULK_CHUNK_SIZE = 10
DEFAULT_TEMPLATES_PATH = (
    Path(__file__).parent.parent.parent / "config" / "email_templates.yaml"
)

# HTML bodies are autoescaped, subjects and plain text bodies are not
_html_env = Environment(autoescape=select_autoescape(default_for_string=True))
_text_env = Environment(autoescape=False)


def extract_template_params(*sources: Optional[str]) -> List[str]:
    """Names of the variables referenced by the given template sources."""
    names: set = set()
    for source in sources:
        if not source:
            continue
        try:
            names |= meta.find_undeclared_variables(_text_env.parse(source))
        except TemplateSyntaxError as e:
            raise ValueError(f"Invalid template syntax: {e.message}") from e
    return sorted(names)


class EmailSender:
    """Delivers rendered messages through Azure Communication Services Email.

    Without a connection string messages are logged instead of sent, which is
    how local development and tests run.
    """

    def __init__(
        self,
        connection_string: str,
        sender_address: str,
        client: Optional[EmailClient] = None,
    ):
        self.sender_address = sender_address
        self._client = client
        if self._client is None and connection_string:
            self._client = EmailClient.from_connection_string(connection_string)

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def send(
        self, to: str, subject: str, html_body: str, text_body: Optional[str] = None
    ) -> Dict[str, Any]:
        if self._client is None:
            logger.warning(
                f"Email delivery not configured - email to {to} not sent: {subject}"
            )
            return {"status": "logged", "message_id": None}

        message = {
            "senderAddress": self.sender_address,
            "recipients": {"to": [{"address": to}]},
            "content": {
                "subject": subject,
                "html": html_body,
                "plainText": text_body or "",
            },
        }
        poller = self._client.begin_send(message)
        result = poller.result()
        logger.info(f"Email sent to {to}: {subject}")
        return {"status": result.get("status"), "message_id": result.get("id")}


class EmailService:
    """Template management plus render-and-send."""

    def __init__(self, template_repo: EmailTemplateRepo, sender: EmailSender):
        self.template_repo = template_repo
        self.sender = sender

    # Template management

    def create_template(
        self,
        template_code: str,
        translations: List[Dict[str, Any]],
        description: Optional[str] = None,
        required_params: Optional[List[str]] = None,
    ) -> EmailTemplate:
        """Create a template; required params default to every referenced variable."""
        self._validate_translations(translations)
        if required_params is None:
            required_params = self._params_from_translations(translations)
        else:
            # Still reject templates that do not parse
            self._params_from_translations(translations)

        return self.template_repo.create_template(
            template_code,
            {
                "description": description,
                "translations": translations,
                "required_params": required_params,
            },
        )

    def update_template(
        self,
        template_code: str,
        translations: Optional[List[Dict[str, Any]]] = None,
        description: Optional[str] = None,
        required_params: Optional[List[str]] = None,
    ) -> EmailTemplate:
        changes: Dict[str, Any] = {}
        if translations is not None:
            self._validate_translations(translations)
            changes["translations"] = translations
            if required_params is None:
                changes["required_params"] = self._params_from_translations(
                    translations
                )
        if required_params is not None:
            changes["required_params"] = required_params
        if description is not None:
            changes["description"] = description
        return self.template_repo.update_template(template_code, changes)

    def get_template(self, template_code: str) -> EmailTemplate:
        template = self.template_repo.get_by_code(template_code)
        if template is None:
            raise ValueError(f"Email template {template_code} not found")
        return template

    def list_templates(self) -> List[EmailTemplate]:
        return self.template_repo.list_templates()

    def delete_template(self, template_code: str) -> None:
        if not self.template_repo.soft_delete(template_code):
            raise ValueError(f"Email template {template_code} not found")

    def seed_default_templates(self, path: Path = DEFAULT_TEMPLATES_PATH) -> int:
        """Create any default template whose code does not exist yet."""
        with open(path, "r", encoding="utf-8") as f:
            defaults = yaml.safe_load(f) or {}

        existing = set(self.template_repo.list_codes())
        created = 0
        for code, spec in defaults.get("templates", {}).items():
            if code in existing:
                continue
            self.create_template(
                code,
                translations=spec["translations"],
                description=spec.get("description"),
                required_params=spec.get("required_params"),
            )
            created += 1

        if created:
            logger.info(f"Seeded {created} default email templates")
        return created

    # Rendering and delivery

    def render(
        self, template: EmailTemplate, params: Dict[str, Any], language: str = "en"
    ) -> Dict[str, str]:
        """Render one translation of ``template`` after checking required params."""
        translation = template.translation_for(language)
        if translation is None:
            raise ValueError(
                f"Translation '{language}' for template {template.template_code} not found"
            )

        missing = [
            name
            for name in template.required_params or []
            if params.get(name) in (None, "")
        ]
        if missing:
            raise ValueError(f"Missing required parameters: {', '.join(missing)}")

        text_source = translation.get("text_body")
        return {
            "subject": _text_env.from_string(translation["subject"]).render(params),
            "html_body": _html_env.from_string(translation["html_body"]).render(params),
            "text_body": (
                _text_env.from_string(text_source).render(params) if text_source else ""
            ),
        }

    def send_templated_email(
        self,
        to: str,
        template_code: str,
        params: Dict[str, Any],
        language: str = Language.EN.value,
    ) -> Dict[str, Any]:
        """Render ``template_code`` and deliver it to ``to``.

        Raises:
            ValueError: unknown template/translation or missing parameters
        """
        if not to:
            raise ValueError("Recipient email is required")

        template = self.get_template(template_code)
        rendered = self.render(template, params, language)
        result = self.sender.send(
            to, rendered["subject"], rendered["html_body"], rendered["text_body"]
        )
        log_counter_increment(
            "emails_delivered_total",
            labels={"template_code": template_code, "status": str(result["status"])},
        )
        return {"to": to, "template_code": template_code, **result}

    def send_bulk_templated_email(
        self,
        recipients: Iterable[str],
        template_code: str,
        params: Dict[str, Any],
        language: str = Language.EN.value,
    ) -> Dict[str, List[Any]]:
        """Send the same template to many recipients, ten at a time in parallel."""
        template = self.get_template(template_code)
        rendered = self.render(template, params, language)
        recipients = [r for r in recipients if r]

        sent: List[str] = []
        failed: List[Dict[str, str]] = []

        def send_one(to: str) -> None:
            try:
                self.sender.send(
                    to,
                    rendered["subject"],
                    rendered["html_body"],
                    rendered["text_body"],
                )
                sent.append(to)
            except Exception as e:
                logger.error(f"Bulk email to {to} failed: {e}")
                failed.append({"to": to, "error": str(e)})

        with ThreadPoolExecutor(
            max_workers=BULK_CHUNK_SIZE, thread_name_prefix="email_bulk"
        ) as executor:
            for start in range(0, len(recipients), BULK_CHUNK_SIZE):
                chunk = recipients[start : start + BULK_CHUNK_SIZE]
                list(executor.map(send_one, chunk))

        logger.info(
            f"Bulk {template_code}: {len(sent)} sent, {len(failed)} failed"
        )
        return {"sent": sent, "failed": failed}

    def _validate_translations(self, translations: List[Dict[str, Any]]) -> None:
        if not translations:
            raise ValueError("At least one translation is required")
        languages = [t.get("language") for t in translations]
        if len(set(languages)) != len(languages):
            raise ValueError("Duplicate translation language")
        for translation in translations:
            if not translation.get("subject") or not translation.get("html_body"):
                raise ValueError("Each translation needs a subject and an HTML body")

    def _params_from_translations(self, translations: List[Dict[str, Any]]) -> List[str]:
        sources: List[Optional[str]] = []
        for translation in translations:
            sources += [
                translation.get("subject"),
                translation.get("html_body"),
                translation.get("text_body"),
            ]
        return extract_template_params(*sources)
