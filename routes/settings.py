from datetime import datetime
from io import BytesIO

from flask import (Blueprint, render_template, request, redirect, url_for, current_app, session,
                   flash, send_file)
from auth_utils import login_required
from services.currency import DEFAULT_CURRENCY, get_currency_options
from services.preferences import (DEFAULT_SETTINGS, PREFERENCE_CHOICES, USER_DATA_TABLES,
                                  dump_preferences, merge_preferences, split_updates, timezone_options)
from services.reports import export_filename, to_json
from validators import validate_preferences

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


def _fetch_user(cur):
    cur.execute(
        "SELECT id, full_name, email, currency, timezone, preferences, created_at FROM users WHERE id=%s",
        (session['user_id'],)
    )
    return cur.fetchone()


@settings_bp.route('/')
@login_required
def index():
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            user = _fetch_user(cur)
    finally:
        conn.close()

    if not user:
        return "User not found", 404
    return render_template(
        'settings.html',
        user=user,
        settings=merge_preferences(user),
        currencies=get_currency_options(),
        timezones=timezone_options(),
        choices=PREFERENCE_CHOICES,
    )


@settings_bp.route('/update', methods=['POST'])
@login_required
def update():
    updates, error = validate_preferences(request.form)
    if error:
        flash(error, "error")
        return redirect(url_for('settings.index'))

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            user = _fetch_user(cur)
            if not user:
                return "User not found", 404
            settings = merge_preferences(user)
            settings.update(updates)
            columns, _ = split_updates(settings)
            cur.execute(
                "UPDATE users SET currency=%s, timezone=%s, preferences=%s WHERE id=%s",
                (columns['currency'], columns['timezone'], dump_preferences(settings), session['user_id'])
            )
            conn.commit()
    finally:
        conn.close()

    session['currency'] = columns['currency']
    flash("Settings saved", "success")
    return redirect(url_for('settings.index'))


@settings_bp.route('/reset', methods=['POST'])
@login_required
def reset():
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(
                "UPDATE users SET currency=%s, timezone=%s, preferences=NULL WHERE id=%s",
                (DEFAULT_SETTINGS['currency'], DEFAULT_SETTINGS['timezone'], session['user_id'])
            )
            conn.commit()
    finally:
        conn.close()

    session['currency'] = DEFAULT_CURRENCY
    flash("Settings reset to defaults", "success")
    return redirect(url_for('settings.index'))


@settings_bp.route('/export')
@login_required
def export():
    user_id = session['user_id']
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            user = _fetch_user(cur)
            if not user:
                return "User not found", 404
            data = {}
            for table in USER_DATA_TABLES:
                cur.execute(f"SELECT * FROM {table} WHERE user_id=%s ORDER BY id", (user_id,))
                data[table] = cur.fetchall()
    finally:
        conn.close()

    payload = {
        'exported_at': datetime.now(),
        'profile': {k: user[k] for k in ('full_name', 'email', 'created_at')},
        'settings': merge_preferences(user),
    }
    payload.update(data)
    body = to_json(payload)
    return send_file(
        BytesIO(body.encode('utf-8')),
        mimetype='application/json',
        as_attachment=True,
        download_name=export_filename('moneytor-data', 'json'),
    )


@settings_bp.route('/delete-account', methods=['POST'])
@login_required
def delete_account():
    user_id = session['user_id']
    if request.form.get('confirmation', '').strip() != f"DELETE_{user_id}":
        flash(f"Type DELETE_{user_id} to confirm account deletion", "error")
        return redirect(url_for('settings.index'))

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor() as cur:
            for table in USER_DATA_TABLES:
                cur.execute(f"DELETE FROM {table} WHERE user_id=%s", (user_id,))
            cur.execute("DELETE FROM users WHERE id=%s", (user_id,))
            conn.commit()
    finally:
        conn.close()

    current_app.logger.warning("Account %s deleted", user_id)
    session.clear()
    flash("Your account has been deleted", "info")
    return redirect(url_for('auth.login'))
