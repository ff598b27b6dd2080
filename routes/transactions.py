from datetime import date, datetime
from io import BytesIO

from flask import (Blueprint, render_template, request, redirect, url_for, current_app,
                   session, flash, send_file)
from auth_utils import login_required
from services.filters import (FILTER_PRESETS, SORT_FIELDS, apply_filters, has_active_filters,
                              paginate, parse_filters, parse_id_list, select_transactions,
                              sort_transactions, summarize)
from services.reports import (EXPORT_SCOPES, TRANSACTION_COLUMNS, default_columns,
                              transactions_csv, transactions_export_filename)
from validators import validate_transaction

transactions_bp = Blueprint('transactions', __name__, url_prefix='/transactions')

TRANSACTION_SELECT = """
    SELECT t.id, t.amount, t.description, t.date, t.type, t.category_id,
           t.created_at, t.updated_at,
           c.name AS category_name, c.color AS category_color, c.icon AS category_icon
    FROM transactions t
    LEFT JOIN categories c ON c.id = t.category_id
    WHERE t.user_id = %s
"""


def fetch_transactions(cur, user_id, start=None, end=None):
    """All of a user's transactions, optionally limited to [start, end]."""
    query = TRANSACTION_SELECT
    params = [user_id]
    if start and end:
        query += " AND t.date BETWEEN %s AND %s"
        params.extend([start, end])
    cur.execute(query + " ORDER BY t.date DESC, t.created_at DESC", params)
    return cur.fetchall()


def fetch_categories(cur, user_id):
    cur.execute(
        "SELECT id, name, type, color, icon FROM categories WHERE user_id=%s ORDER BY name",
        (user_id,)
    )
    return cur.fetchall()


def category_owned(cur, category_id, user_id):
    cur.execute("SELECT id FROM categories WHERE id=%s AND user_id=%s", (category_id, user_id))
    return cur.fetchone() is not None


def _selected_ids(source):
    ids = []
    for raw in source.getlist('ids'):
        ids.extend(parse_id_list(raw))
    return sorted(set(ids))


@transactions_bp.route('/')
@login_required
def index():
    filters = parse_filters(request.args)
    sort_by = request.args.get('sort', 'date')
    order = request.args.get('order', 'desc')
    page = request.args.get('page', 1, type=int)

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            transactions = fetch_transactions(cur, session['user_id'])
            categories = fetch_categories(cur, session['user_id'])
    finally:
        conn.close()

    filtered = sort_transactions(apply_filters(transactions, filters), sort_by, order)
    pagination = paginate(filtered, page, current_app.config.get('TRANSACTIONS_PER_PAGE', 25))

    return render_template(
        'transactions/index.html',
        pagination=pagination,
        transactions=pagination['items'],
        summary=summarize(filtered),
        filters=filters,
        filters_active=has_active_filters(filters),
        presets=FILTER_PRESETS,
        sort_fields=SORT_FIELDS,
        sort_by=sort_by,
        order=order,
        categories=categories,
        columns=TRANSACTION_COLUMNS,
        page_args={k: v for k, v in request.args.items() if k != 'page'},
    )


@transactions_bp.route('/add', methods=['GET', 'POST'])
@login_required
def add():
    if request.method == 'POST':
        data, error = validate_transaction(request.form)
        if error:
            flash(error, "error")
            return redirect(url_for('transactions.add'))

        conn = current_app.db_pool.get_connection()
        try:
            with conn.cursor(dictionary=True) as cur:
                if not category_owned(cur, data['category_id'], session['user_id']):
                    flash("Invalid category", "error")
                    return redirect(url_for('transactions.add'))
                cur.execute(
                    "INSERT INTO transactions (user_id, category_id, amount, description, date, type) "
                    "VALUES (%s, %s, %s, %s, %s, %s)",
                    (session['user_id'], data['category_id'], data['amount'],
                     data['description'], data['date'], data['type'])
                )
                conn.commit()
        finally:
            conn.close()
        flash("Transaction added", "success")
        return redirect(url_for('transactions.index'))

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            categories = fetch_categories(cur, session['user_id'])
    finally:
        conn.close()
    return render_template('transactions/form.html', transaction=None,
                           categories=categories, current_date=date.today())


@transactions_bp.route('/edit/<int:id>', methods=['GET', 'POST'])
@login_required
def edit(id):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            cur.execute(
                "SELECT id, amount, description, date, type, category_id FROM transactions "
                "WHERE id=%s AND user_id=%s",
                (id, session['user_id'])
            )
            transaction = cur.fetchone()
            if not transaction:
                return "Transaction not found", 404

            if request.method == 'POST':
                data, error = validate_transaction(request.form)
                if error:
                    flash(error, "error")
                    return redirect(url_for('transactions.edit', id=id))
                if not category_owned(cur, data['category_id'], session['user_id']):
                    flash("Invalid category", "error")
                    return redirect(url_for('transactions.edit', id=id))
                cur.execute(
                    "UPDATE transactions SET category_id=%s, amount=%s, description=%s, date=%s, type=%s "
                    "WHERE id=%s AND user_id=%s",
                    (data['category_id'], data['amount'], data['description'], data['date'],
                     data['type'], id, session['user_id'])
                )
                conn.commit()
                flash("Transaction updated", "success")
                return redirect(url_for('transactions.index'))

            categories = fetch_categories(cur, session['user_id'])
    finally:
        conn.close()

    return render_template('transactions/form.html', transaction=transaction,
                           categories=categories, current_date=date.today())


@transactions_bp.route('/<int:id>')
@login_required
def view(id):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            cur.execute(TRANSACTION_SELECT + " AND t.id = %s", (session['user_id'], id))
            transaction = cur.fetchone()
    finally:
        conn.close()

    if not transaction:
        return "Transaction not found", 404
    return render_template('transactions/view.html', transaction=transaction)


@transactions_bp.route('/delete/<int:id>', methods=['POST'])
@login_required
def delete(id):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT id FROM transactions WHERE id=%s AND user_id=%s", (id, session['user_id']))
            if not cur.fetchone():
                return "Transaction not found", 404
            cur.execute("DELETE FROM transactions WHERE id=%s AND user_id=%s", (id, session['user_id']))
            conn.commit()
    finally:
        conn.close()
    flash("Transaction deleted", "success")
    return redirect(url_for('transactions.index'))


@transactions_bp.route('/bulk', methods=['POST'])
@login_required
def bulk():
    ids = _selected_ids(request.form)
    action = request.form.get('action', '')

    if not ids:
        flash("No transactions selected", "error")
        return redirect(url_for('transactions.index'))
    if action not in ('delete', 'categorize'):
        flash("Unknown bulk action", "error")
        return redirect(url_for('transactions.index'))

    placeholders = ', '.join(['%s'] * len(ids))
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            if action == 'delete':
                cur.execute(
                    f"DELETE FROM transactions WHERE user_id=%s AND id IN ({placeholders})",
                    [session['user_id']] + ids
                )
                message = "Deleted {} transaction(s)"
            else:
                category_id = request.form.get('category_id', type=int)
                if not category_id or not category_owned(cur, category_id, session['user_id']):
                    flash("Invalid category", "error")
                    return redirect(url_for('transactions.index'))
                cur.execute(
                    f"UPDATE transactions SET category_id=%s WHERE user_id=%s AND id IN ({placeholders})",
                    [category_id, session['user_id']] + ids
                )
                message = "Updated category for {} transaction(s)"
            affected = cur.rowcount
            conn.commit()
    finally:
        conn.close()

    current_app.logger.info("Bulk %s by user %s affected %s rows", action, session['user_id'], affected)
    flash(message.format(affected), "success")
    return redirect(url_for('transactions.index'))


@transactions_bp.route('/export')
@login_required
def export():
    scope = request.args.get('scope', 'all')
    if scope not in EXPORT_SCOPES:
        scope = 'all'

    columns = []
    for raw in request.args.getlist('columns'):
        columns.extend(part.strip() for part in raw.split(',') if part.strip())

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            transactions = fetch_transactions(cur, session['user_id'])
    finally:
        conn.close()

    if scope == 'filtered':
        transactions = apply_filters(transactions, parse_filters(request.args))
    elif scope == 'selected':
        transactions = select_transactions(transactions, _selected_ids(request.args))

    if not transactions:
        flash("No transactions to export", "error")
        return redirect(url_for('transactions.index'))

    data = transactions_csv(transactions, columns or default_columns())
    return send_file(
        BytesIO(data.encode('utf-8')),
        mimetype='text/csv',
        as_attachment=True,
        download_name=transactions_export_filename(scope, datetime.now()),
    )
