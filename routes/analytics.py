from datetime import date, datetime
from io import BytesIO

from flask import Blueprint, render_template, request, current_app, session, send_file
from auth_utils import login_required
from routes.transactions import fetch_transactions
from services.analytics import (category_insights, financial_kpis, monthly_totals, period_comparison,
                                spending_trends)
from services.dates import (RANGE_PRESETS, date_range, parse_iso_date, previous_range, range_label,
                            year_over_year)
from services.reports import (REPORT_FORMATS, REPORT_TYPES, build_report, category_insights_csv,
                              export_filename, financial_summary_csv, report_json, transactions_csv)

analytics_bp = Blueprint('analytics', __name__, url_prefix='/analytics')

COMPARISONS = ('previous', 'year-over-year')
REPORT_SECTIONS = ('include_kpis', 'include_transactions', 'include_categories')


def resolve_period(args, today=None):
    """Current window from explicit from/to dates, else from the range preset."""
    start = parse_iso_date(args.get('from'))
    end = parse_iso_date(args.get('to'))
    if start and end and start <= end:
        return start, end, f"{start.isoformat()} to {end.isoformat()}"
    preset = args.get('range', 'month')
    if preset not in RANGE_PRESETS:
        preset = 'month'
    start, end = date_range(preset, today)
    return start, end, range_label(preset)


def comparison_window(start, end, compare):
    if compare == 'year-over-year':
        return year_over_year(start, end)
    return previous_range(start, end)


def load_periods(user_id, start, end, compare):
    prev_start, prev_end = comparison_window(start, end, compare)
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            current = fetch_transactions(cur, user_id, start, end)
            previous = fetch_transactions(cur, user_id, prev_start, prev_end)
    finally:
        conn.close()
    return current, previous, (prev_start, prev_end)


@analytics_bp.route('/')
@login_required
def index():
    start, end, label = resolve_period(request.args)
    compare = request.args.get('compare', 'previous')
    if compare not in COMPARISONS:
        compare = 'previous'
    tx_type = request.args.get('type', 'expense')
    if tx_type not in ('income', 'expense', 'all'):
        tx_type = 'expense'

    current, previous, previous_window = load_periods(session['user_id'], start, end, compare)

    return render_template(
        'analytics.html',
        start=start,
        end=end,
        label=label,
        compare=compare,
        tx_type=tx_type,
        presets=RANGE_PRESETS,
        previous_window=previous_window,
        kpis=financial_kpis(current, previous, start, end),
        comparison=period_comparison(current, previous),
        trends=spending_trends(current, start, end),
        insights=category_insights(current, previous, start, end, tx_type),
        monthly=monthly_totals(current),
    )


def _report_config(args, start, end, label):
    report_type = args.get('type', 'financial-summary')
    if report_type not in REPORT_TYPES:
        report_type = 'financial-summary'

    # With no section toggles in the request every section is included.
    explicit = any(name in args for name in REPORT_SECTIONS)
    config = {
        'type': report_type,
        'title': (args.get('title') or '').strip() or 'Financial Report',
        'description': (args.get('description') or '').strip(),
        'period_label': label,
        'start_date': start,
        'end_date': end,
        'generated_at': datetime.now(),
    }
    for name in REPORT_SECTIONS:
        config[name] = (args.get(name, '').lower() in ('on', 'true', '1', 'yes')) if explicit else True
    return config


def _download(data, mimetype, filename):
    return send_file(BytesIO(data.encode('utf-8')), mimetype=mimetype,
                     as_attachment=True, download_name=filename)


@analytics_bp.route('/report')
@login_required
def report():
    start, end, label = resolve_period(request.args)
    fmt = request.args.get('format', 'html')
    if fmt not in REPORT_FORMATS:
        fmt = 'html'
    config = _report_config(request.args, start, end, label)

    current, previous, _ = load_periods(session['user_id'], start, end, 'previous')
    kpis = financial_kpis(current, previous, start, end)
    insights = category_insights(current, previous, start, end, 'all')
    now = datetime.now()

    if fmt == 'csv':
        if config['type'] == 'transaction-detail':
            data = transactions_csv(current)
        elif config['type'] == 'category-analysis':
            data = category_insights_csv(insights)
        else:
            data = financial_summary_csv(kpis)
        return _download(data, 'text/csv', export_filename(config['type'], 'csv', now))

    report_data = build_report(config, kpis=kpis, transactions=current, insights=insights,
                               limit=current_app.config.get('REPORT_TRANSACTION_LIMIT', 100))
    if fmt == 'json':
        return _download(report_json(report_data), 'application/json',
                         export_filename(config['type'], 'json', now))

    current_app.logger.info("HTML report generated for user %s (%s)", session['user_id'], config['type'])
    return render_template('reports/financial_report.html', report=report_data, today=date.today())
