import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Callable, List, Tuple

import requests

from pdf_rendering import PdfRenderError, read_template_text, render_html_to_pdf, render_template_html

logger = logging.getLogger(__name__)

CERTIFICATE_RENDERER = os.environ.get("CERTIFICATE_RENDERER", "auto").strip().lower()
CERTIFICATE_API_URL = os.environ.get("CERTIFICATE_API_URL", "https://api.aspose.cloud/v4.0/pdf/create/latex")
ASPOSE_TOKEN_URL = os.environ.get("ASPOSE_TOKEN_URL", "https://api.aspose.cloud/connect/token")
ASPOSE_CLIENT_ID = os.environ.get("ASPOSE_CLIENT_ID")
ASPOSE_CLIENT_SECRET = os.environ.get("ASPOSE_CLIENT_SECRET")
EVENT_NAME = os.environ.get("EVENT_NAME", "HackAbhigna")

LATEX_MAX_ATTEMPTS = 3
LATEX_RETRY_DELAY_SECONDS = 1.0
RENDERERS = ("html", "latex", "auto")

LATEX_SPECIAL_RE = re.compile(r"[\\%&#{}_$^~]")
LATEX_WORD_REPLACEMENTS = {
    "\\": r"\textbackslash{}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}
FILENAME_UNSAFE_RE = re.compile(r"[^a-z0-9._-]", re.IGNORECASE)


class CertificateRenderError(RuntimeError):
    pass


@dataclass
class CertificateResult:
    content: bytes
    method: str


def escape_latex(value: str) -> str:
    def _escape(match):
        char = match.group(0)
        return LATEX_WORD_REPLACEMENTS.get(char, "\\" + char)

    return LATEX_SPECIAL_RE.sub(_escape, str(value or ""))


def sanitize_certificate_filename(name: str) -> str:
    cleaned = FILENAME_UNSAFE_RE.sub("_", str(name or "").strip())
    cleaned = re.sub(r"_+", "_", cleaned)[:120]
    return f"{cleaned or 'certificate'}.pdf"


def _render_html(participant_name: str, team_name: str, domain: str) -> bytes:
    html_content = render_template_html(
        "certificate.html",
        event_name=EVENT_NAME,
        participant_name=participant_name,
        team_name=team_name,
        domain=domain,
    )
    return render_html_to_pdf(html_content)


def _with_retries(
    call: Callable[[], requests.Response],
    label: str = "LaTeX API",
    attempts: int = LATEX_MAX_ATTEMPTS,
    delay: float = LATEX_RETRY_DELAY_SECONDS,
) -> requests.Response:
    for attempt in range(1, attempts + 1):
        try:
            response = call()
            response.raise_for_status()
            return response
        except requests.RequestException as exc:
            logger.warning("%s call failed (attempt %s/%s): %s", label, attempt, attempts, exc)
            if attempt == attempts:
                raise CertificateRenderError(f"{label} failed after {attempts} attempts: {exc}") from exc
            time.sleep(delay)


def _aspose_access_token() -> str:
    if not ASPOSE_CLIENT_ID or not ASPOSE_CLIENT_SECRET:
        raise CertificateRenderError("ASPOSE_CLIENT_ID and ASPOSE_CLIENT_SECRET are required for LaTeX rendering")
    response = _with_retries(lambda: requests.post(
        ASPOSE_TOKEN_URL,
        data={
            "grant_type": "client_credentials",
            "client_id": ASPOSE_CLIENT_ID,
            "client_secret": ASPOSE_CLIENT_SECRET,
        },
        timeout=30,
    ), label="Aspose token request")
    try:
        token = response.json().get("access_token")
    except ValueError as exc:
        raise CertificateRenderError("Aspose token response is not valid JSON") from exc
    if not token:
        raise CertificateRenderError("Failed to obtain access token from Aspose")
    return token


def _render_latex(participant_name: str, team_name: str, domain: str) -> bytes:
    template = read_template_text("certificate.tex")
    latex_content = (
        template
        .replace("__PARTICIPANT__", escape_latex(participant_name))
        .replace("__TEAM__", escape_latex(team_name))
        .replace("__DOMAIN__", escape_latex(domain))
        .replace("__EVENT__", escape_latex(EVENT_NAME))
    )
    token = _aspose_access_token()
    response = _with_retries(lambda: requests.post(
        CERTIFICATE_API_URL,
        json={"latexContent": latex_content},
        headers={"Authorization": f"Bearer {token}"},
        timeout=60,
    ))
    if not response.content:
        raise CertificateRenderError("No data received from LaTeX API")
    return response.content


def _renderer_chain() -> List[Tuple[str, Callable[[str, str, str], bytes]]]:
    if CERTIFICATE_RENDERER == "html":
        return [("html", _render_html)]
    if CERTIFICATE_RENDERER == "latex":
        return [("latex", _render_latex)]
    return [("html", _render_html), ("latex", _render_latex)]


def generate_certificate_pdf(participant_name: str, team_name: str, domain: str = "") -> CertificateResult:
    """Render one participation certificate.

    ``CERTIFICATE_RENDERER`` selects ``html`` (Jinja2 + xhtml2pdf),
    ``latex`` (remote LaTeX API) or ``auto``, which tries them in that order.
    """
    errors = []
    for method, renderer in _renderer_chain():
        try:
            content = renderer(participant_name, team_name, domain)
        except (PdfRenderError, CertificateRenderError) as exc:
            logger.warning("Certificate %s renderer failed for %s: %s", method, participant_name, exc)
            errors.append(f"{method}: {exc}")
            continue
        logger.info("Certificate rendered for %s (%s, %s bytes)", participant_name, method, len(content))
        return CertificateResult(content=content, method=method)
    raise CertificateRenderError("; ".join(errors) or "No certificate renderer available")


def renderer_summary() -> dict:
    return {
        "renderer": CERTIFICATE_RENDERER if CERTIFICATE_RENDERER in RENDERERS else "auto",
        "chain": [method for method, _ in _renderer_chain()],
        "latex_api_url": CERTIFICATE_API_URL,
        "latex_credentials_configured": bool(ASPOSE_CLIENT_ID and ASPOSE_CLIENT_SECRET),
    }
