"""
i_mail_reports.py

Mails each responsible owner the access workbook of their matrix, and the
script admin a summary of the whole run.

Mails go through Microsoft Graph (POST /users/<sender>/sendMail) with the
token from the logged-in Azure CLI session (see helpers.get_msgraph_token).
Bodies are rendered with jinja2.
"""

import os
import base64

import requests
from jinja2 import Environment

from MatrixAccessAudit.errors import MailError
from MatrixAccessAudit.helpers import get_msgraph_token

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_env = Environment(autoescape=True)

MATRIX_MAIL_TEMPLATE = _env.from_string("""\
<p>Dear matrix responsible,</p>
<p>Please review who has access to the folder
<a href="{{ matrix.folder_path }}">{{ matrix.folder_display_name or matrix.folder_path }}</a>.
The attached file lists every user and group granted access by matrix
<a href="{{ matrix.file_path }}">{{ matrix.file_name }}</a>.</p>
<table>
  <tr><th>Category</th><td>{{ matrix.category }}</td></tr>
  <tr><th>Subcategory</th><td>{{ matrix.sub_category }}</td></tr>
  <tr><th>Unique users</th><td>{{ report.unique_user_count }}</td></tr>
  <tr><th>Unique groups</th><td>{{ report.unique_group_count }}</td></tr>
</table>
<p>Report anything that looks wrong to the matrix administrators.</p>
""")

ADMIN_MAIL_TEMPLATE = _env.from_string("""\
<p>Matrix access audit finished.</p>
<table>
  <tr><th>Matrix</th><th>Responsible</th><th>Unique users</th><th>Unique groups</th></tr>
  {% for item in summary.reportable %}
  <tr><td>{{ item.matrix }}</td><td>{{ item.responsible | join(", ") }}</td>
      <td>{{ item.unique_users }}</td><td>{{ item.unique_groups }}</td></tr>
  {% endfor %}
</table>
{% if summary.skipped_without_responsible %}
<p>Skipped, no responsible: {{ summary.skipped_without_responsible | join(", ") }}</p>
{% endif %}
{% if summary.warnings or errors %}
<p>Warnings and errors:</p>
<ul>
  {% for w in summary.warnings %}<li>{{ w }}</li>{% endfor %}
  {% for e in errors %}<li>{{ e }}</li>{% endfor %}
</ul>
{% endif %}
""")


def matrix_mail_subject(report):
    return (
        f"Matrix '{report.matrix.file_name}': {report.unique_user_count} unique users, "
        f"{report.unique_group_count} unique groups"
    )


def render_matrix_mail(report):
    return MATRIX_MAIL_TEMPLATE.render(matrix=report.matrix, report=report)


def render_admin_mail(summary, errors=()):
    return ADMIN_MAIL_TEMPLATE.render(summary=summary, errors=list(errors))


def file_attachment(path):
    with open(path, "rb") as f:
        content = base64.b64encode(f.read()).decode("ascii")
    return {
        "@odata.type": "#microsoft.graph.fileAttachment",
        "name": os.path.basename(path),
        "contentType": XLSX_CONTENT_TYPE,
        "contentBytes": content,
    }


class GraphMailer:
    """Sends HTML mail as `sender` through Microsoft Graph."""

    def __init__(self, sender, token_provider=get_msgraph_token, timeout=30):
        if not sender:
            raise MailError("No mail sender configured (mail.sender)")
        self.sender = sender
        self.token_provider = token_provider
        self.timeout = timeout
        self._token = None
        self._token_error = None

    def _headers(self):
        # The token is requested once; a failed request is not retried per mail.
        if self._token_error is not None:
            raise MailError(f"No Graph token: {self._token_error}")
        if self._token is None:
            try:
                self._token = self.token_provider()
            except MailError as e:
                self._token_error = e
                raise
        return {"Authorization": f"Bearer {self._token}", "Content-Type": "application/json"}

    def send(self, to, subject, html, attachments=()):
        payload = {
            "message": {
                "subject": subject,
                "body": {"contentType": "HTML", "content": html},
                "toRecipients": [{"emailAddress": {"address": a}} for a in to],
                "attachments": [file_attachment(p) for p in attachments],
            },
            "saveToSentItems": True,
        }
        url = f"{GRAPH_BASE_URL}/users/{self.sender}/sendMail"
        try:
            resp = requests.post(url, headers=self._headers(), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise MailError(f"Failed to send '{subject}': {e}") from e
        if not resp.ok:
            raise MailError(f"Failed to send '{subject}': {resp.status_code} {resp.text}")


def mail_reports(reports, exported, mailer):
    """
    Sends one mail per report. A failed delivery does not stop the others;
    returns the list of error messages.
    """
    errors = []
    for report in reports:
        attachments = [exported[report.matrix.file_name]] if report.matrix.file_name in exported else []
        try:
            mailer.send(
                list(report.matrix.responsible),
                matrix_mail_subject(report),
                render_matrix_mail(report),
                attachments,
            )
        except MailError as e:
            errors.append(str(e))
    return errors


def mail_admin_summary(summary, admin, mailer, errors=()):
    subject = (
        f"Matrix access audit: {len(summary['reportable'])} matrices reported, "
        f"{len(summary['skipped_without_responsible'])} skipped"
    )
    mailer.send([admin], subject, render_admin_mail(summary, errors))
