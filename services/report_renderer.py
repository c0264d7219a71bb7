"""
Inspection report rendering: status summary, defect list and the
certificate as HTML (Jinja2) or PDF (reportlab).
"""

import io
import os
import logging
from datetime import datetime
from typing import Dict, List, Any, Optional
from xml.sax.saxutils import escape

from jinja2 import Environment, FileSystemLoader, select_autoescape
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle

from services.inspection_templates import get_template, get_item_template, visible_fields
from services.inspection_service import parse_timestamp

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'templates')
DEFAULT_REPORT_TITLE = 'Certificate of Inspection'

PASS_VALUES = {'pass', 'completed', 'true', 'yes', 'ok', 'compliant'}
FAIL_VALUES = {'fail', 'false', 'no', 'non-compliant'}
DEFECT_STATUSES = ('fail', 'needs-attention')

_jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(['html'])
)


def categorize_status(value) -> str:
    """Map a status or answer to pass, fail or advisory."""
    s = str(value).strip().lower()
    if s in PASS_VALUES:
        return 'pass'
    if s in FAIL_VALUES:
        return 'fail'
    return 'advisory'


def format_duration(start: Optional[datetime], end: Optional[datetime]) -> str:
    if not start or not end:
        return 'N/A'
    minutes = int((end - start).total_seconds() // 60)
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def status_counts(data: Dict[str, Any]) -> Dict[str, int]:
    """
    Count pass/fail/advisory results.

    Items are categorised by their status (falling back to the 'compliant'
    answer). Without items, only Pass/Fail answers and booleans in the form
    data are counted.
    """
    counts = {'pass': 0, 'fail': 0, 'advisory': 0}
    items = data.get('items')
    if isinstance(items, list):
        for item in items:
            value = item.get('status') or (item.get('data') or {}).get('compliant') or 'advisory'
            counts[categorize_status(value)] += 1
    else:
        for value in data.values():
            if value in ('Pass', 'Fail') or isinstance(value, bool):
                category = categorize_status(value)
                if category != 'advisory':
                    counts[category] += 1
    counts['total'] = counts['pass'] + counts['fail'] + counts['advisory']
    return counts


def defect_list(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    defects = []
    for item in items or []:
        if item.get('status') not in DEFECT_STATUSES:
            continue
        item_data = item.get('data') or {}
        if item.get('type') == 'fire_door':
            detail = item_data.get('remedials') or item_data.get('other_defects') or 'Visual failure'
        else:
            detail = item_data.get('notes') or 'Requires maintenance or repair.'
        defects.append({
            'id': item.get('id'),
            'label': item.get('label') or item.get('type'),
            'status': item['status'].replace('-', ' '),
            'detail': detail,
        })
    return defects


def _display(value) -> str:
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    return str(value)


def _item_rows(item: Dict[str, Any]) -> List[Dict[str, str]]:
    item_template = get_item_template(item.get('type'))
    values = item.get('data') or {}
    if not item_template:
        return [{'label': k, 'value': _display(v)} for k, v in values.items() if v not in (None, '')]
    return [
        {'label': f.get('label') or f['name'], 'value': _display(values[f['name']])}
        for f in visible_fields(item_template['fields'], values)
        if values.get(f['name']) not in (None, '')
    ]


def build_report(inspection: Dict[str, Any], company_name: str = None) -> Dict[str, Any]:
    """Everything the HTML and PDF renderers need, as plain data."""
    data = inspection.get('data') or {}
    items = data.get('items') or []
    template = get_template(inspection.get('template_id'))

    details = []
    if template:
        for step in template['steps']:
            for f in step.get('fields') or []:
                if data.get(f['name']) not in (None, ''):
                    details.append({'label': f['label'], 'value': _display(data[f['name']])})

    counts = status_counts(data)
    defects = defect_list(items)
    start = parse_timestamp(inspection.get('start_time'))
    end = parse_timestamp(inspection.get('end_time'))

    return {
        'id': inspection.get('id'),
        'reference': (inspection.get('id') or '')[:8].upper(),
        'title': inspection.get('report_title') or DEFAULT_REPORT_TITLE,
        'template_title': inspection.get('title'),
        'company_name': company_name,
        'address': inspection.get('address'),
        'engineer_name': inspection.get('engineer_name') or data.get('operative'),
        'date': (end or start or datetime.utcnow()).strftime('%d/%m/%Y'),
        'duration': format_duration(start, end),
        'details': details,
        'counts': counts,
        'defects': defects,
        'certification': 'ACTION REQUIRED' if defects else 'PASS',
        'items': [
            {
                'label': item.get('label') or item.get('type'),
                'type': item.get('type'),
                'status': item.get('status') or 'advisory',
                'category': categorize_status(item.get('status') or (item.get('data') or {}).get('compliant')),
                'rows': _item_rows(item),
            }
            for item in items
        ],
        'signatures': inspection.get('signatures') or {},
    }


def render_html(report: Dict[str, Any]) -> str:
    return _jinja_env.get_template('inspection_report.html').render(report=report)


def render_pdf(report: Dict[str, Any]) -> bytes:
    """Render the certificate to PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=15 * mm, rightMargin=15 * mm,
                            topMargin=15 * mm, bottomMargin=15 * mm)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ReportTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#1f2937'),
        spaceAfter=12,
    )
    alert_colour = colors.HexColor('#dc2626') if report['defects'] else colors.HexColor('#16a34a')
    status_style = ParagraphStyle('Status', parent=styles['Heading3'], textColor=alert_colour)

    story = []
    if report.get('company_name'):
        story.append(Paragraph(escape(report['company_name']), styles['Heading2']))
    story.append(Paragraph(escape(report['title']), title_style))
    story.append(Paragraph(f"Ref: {report['reference']} &nbsp; Date: {report['date']} &nbsp; "
                           f"Duration: {report['duration']}", styles['Normal']))
    if report.get('address'):
        story.append(Paragraph(f"Site: {escape(report['address'])}", styles['Normal']))
    story.append(Spacer(1, 6 * mm))
    story.append(Paragraph(f"Certification Status: {report['certification']}", status_style))

    counts = report['counts']
    summary = Table(
        [['Compliant', 'Fail / Action', 'Advisory', 'Total'],
         [str(counts['pass']), str(counts['fail']), str(counts['advisory']), str(counts['total'])]],
        colWidths=[40 * mm] * 4
    )
    summary.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#374151')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    story.append(summary)
    story.append(Spacer(1, 6 * mm))

    if report['defects']:
        story.append(Paragraph('Defects / Remedials Required', styles['Heading3']))
        rows = [['Item', 'Status', 'Detail']]
        rows += [[d['label'], d['status'].upper(), Paragraph(escape(str(d['detail'])), styles['Normal'])]
                 for d in report['defects']]
        defects = Table(rows, colWidths=[50 * mm, 30 * mm, 100 * mm])
        defects.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#fee2e2')),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#fecaca')),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        story.append(defects)
        story.append(Spacer(1, 6 * mm))

    for item in report['items']:
        story.append(Paragraph(escape(f"{item['label']} ({item['status']})"), styles['Heading4']))
        if item['rows']:
            table = Table([[r['label'], r['value']] for r in item['rows']], colWidths=[80 * mm, 100 * mm])
            table.setStyle(TableStyle([
                ('GRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ('FONTSIZE', (0, 0), (-1, -1), 8),
            ]))
            story.append(table)
        story.append(Spacer(1, 3 * mm))

    doc.build(story)
    logger.info(f"Rendered inspection report PDF {report['reference']}")
    return buffer.getvalue()
