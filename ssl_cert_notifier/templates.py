"""
Rendering of email reports and webhook alerts.
"""

from datetime import datetime
from html import escape
from typing import Any, Dict, List, Sequence

from ssl_cert_notifier.models import CertificateRecord
from ssl_cert_notifier.severity import SeverityBand, count_by_band

ALERT_TITLE = "SSL Certificates Expiring Soon"

_STYLE = """
body { font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif;
       background: #f4f5fb; padding: 20px; color: #333; }
.container { max-width: 900px; margin: 0 auto; background: #fff; border-radius: 12px;
             overflow: hidden; }
.header { background: #667eea; color: #fff; padding: 32px; text-align: center; }
.content { padding: 32px; }
.stats { display: flex; flex-wrap: wrap; gap: 16px; margin-bottom: 24px; }
.stat-card { flex: 1; min-width: 140px; color: #fff; padding: 16px; border-radius: 10px;
             text-align: center; }
.stat-number { font-size: 32px; font-weight: 700; }
.alert-section { background: #fff5f5; border: 2px solid #dc3545; padding: 20px;
                 border-radius: 10px; margin-bottom: 24px; }
.cert-card { background: #f8f9fa; border-left: 4px solid; padding: 14px; margin-bottom: 12px;
             border-radius: 6px; }
.cert-name { font-size: 17px; font-weight: 700; }
.badge { display: inline-block; padding: 4px 12px; border-radius: 14px; color: #fff;
         font-size: 13px; font-weight: 600; }
.detail-label { font-weight: 600; }
.footer { background: #f8f9fa; padding: 20px; text-align: center; color: #666;
          font-size: 13px; }
"""


def format_long_date(value: datetime) -> str:
    """Format as 'January 2, 2006'."""
    return f"{value:%B} {value.day}, {value.year}"


def _badge_text(days_remaining: int) -> str:
    if days_remaining < 0:
        return f"expired {-days_remaining} days ago"
    return f"{days_remaining} days remaining"


def _render_card(record: CertificateRecord) -> str:
    band = record.severity
    return (
        f'<div class="cert-card {band.value}" style="border-left-color: {band.color};">'
        f'<div><span class="cert-name">{escape(record.label)}</span> '
        f'<span class="badge" style="background: {band.color};">'
        f"{escape(_badge_text(record.days_remaining))}</span></div>"
        f'<div><span class="detail-label">URL:</span> {escape(record.host_port)}</div>'
        f'<div><span class="detail-label">Certificate:</span> {escape(record.common_name)}</div>'
        f'<div><span class="detail-label">Expires:</span> '
        f"{escape(format_long_date(record.expiry))}</div>"
        "</div>"
    )


def _render_stat(number: int, label: str, color: str) -> str:
    return (
        f'<div class="stat-card" style="background: {color};">'
        f'<div class="stat-number">{number}</div><div>{escape(label)}</div></div>'
    )


def render_email_report(
    all_certs: Sequence[CertificateRecord],
    expiring: Sequence[CertificateRecord],
    generated_at: datetime,
) -> str:
    """
    Render the full HTML report.

    Args:
        all_certs: Every successfully inspected certificate
        expiring: Subset of ``all_certs`` that is expiring soon
        generated_at: Report generation time

    Returns:
        HTML document
    """
    counts = count_by_band(all_certs)
    parts: List[str] = [
        "<!DOCTYPE html>",
        '<html><head><meta charset="UTF-8">',
        f"<style>{_STYLE}</style></head><body>",
        '<div class="container">',
        '<div class="header"><h1>SSL Certificate Monitor</h1>',
        f"<p>Generated: {escape(generated_at.strftime('%A, %B %d, %Y at %I:%M %p'))}</p></div>",
        '<div class="content">',
        '<div class="stats">',
        _render_stat(len(all_certs), "Total Certificates", "#667eea"),
    ]
    for band in SeverityBand:
        if counts[band]:
            parts.append(_render_stat(counts[band], band.title, band.color))
    parts.append("</div>")

    if expiring:
        parts.append('<div class="alert-section">')
        parts.append(f"<h2>{ALERT_TITLE}</h2>")
        parts.append("<p>The following certificates need immediate attention:</p>")
        parts.extend(_render_card(record) for record in expiring)
        parts.append("</div>")

    parts.append("<h2>All Monitored Certificates</h2>")
    for band in SeverityBand:
        group = [record for record in all_certs if record.severity is band]
        if not group:
            continue
        parts.append(f"<h3>{escape(band.title)}: {len(group)}</h3>")
        parts.extend(_render_card(record) for record in group)

    parts.extend(
        [
            "</div>",
            '<div class="footer"><p>Automated SSL Certificate Monitoring System</p>',
            "<p>This is an automated notification. Please do not reply to this email.</p></div>",
            "</div></body></html>",
        ]
    )
    return "\n".join(parts)


def escape_mrkdwn(value: str) -> str:
    """Escape the control characters of Slack mrkdwn text."""
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def render_alert_text(expiring: Sequence[CertificateRecord]) -> str:
    """Render the condensed alert message for the chat webhook."""
    lines = [f":rotating_light: *{ALERT_TITLE}*", ""]
    for record in expiring:
        lines.extend(
            [
                f"{record.severity.emoji} *{escape_mrkdwn(record.label)}* "
                f"({escape_mrkdwn(record.host_port)})",
                f"• Certificate: {escape_mrkdwn(record.common_name)}",
                f"• Days Remaining: *{record.days_remaining}*",
                f"• Expires: {record.expiry:%Y-%m-%d}",
                "",
            ]
        )
    return "\n".join(lines).rstrip("\n")


def build_alert_payload(expiring: Sequence[CertificateRecord]) -> Dict[str, Any]:
    """Build the webhook JSON body: plain text plus an equivalent block list."""
    message = render_alert_text(expiring)
    return {
        "text": message,
        "blocks": [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": f":rotating_light: {ALERT_TITLE}"},
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": message},
            },
        ],
    }
