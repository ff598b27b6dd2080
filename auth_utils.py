from functools import wraps
from flask import session, redirect, url_for, flash

from services.currency import DEFAULT_CURRENCY


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if 'user_id' not in session:
            flash("Please log in to continue.", "info")
            return redirect(url_for('auth.login'))
        return fn(*args, **kwargs)
    return wrapper


def start_user_session(user):
    """Store the signed-in user's id, display name and currency in the session."""
    session.clear()
    session['user_id'] = user['id']
    session['user_name'] = user.get('full_name') or user.get('email')
    session['currency'] = user.get('currency') or DEFAULT_CURRENCY
    if user.get('avatar_filename'):
        session['avatar'] = user['avatar_filename']


def allowed_extension(filename, extensions):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in extensions
