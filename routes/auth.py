import os
from flask import Blueprint, render_template, request, redirect, url_for, current_app, session, flash
from werkzeug.security import generate_password_hash, check_password_hash
from werkzeug.utils import secure_filename
from auth_utils import login_required, start_user_session, allowed_extension
from routes.categories import DEFAULT_CATEGORIES
from validators import validate_signup, validate_login, validate_profile

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

ALLOWED_AVATAR_EXT = {'png', 'jpg', 'jpeg'}


def allowed_avatar(filename):
    return allowed_extension(filename, ALLOWED_AVATAR_EXT)


@auth_bp.route('/signup', methods=['GET', 'POST'])
def signup():
    if request.method == 'POST':
        data, error = validate_signup(request.form)
        if error:
            flash(error, "error")
            return redirect(url_for('auth.signup'))

        conn = current_app.db_pool.get_connection()
        try:
            with conn.cursor(dictionary=True) as cur:
                cur.execute("SELECT id FROM users WHERE email=%s", (data['email'],))
                if cur.fetchone():
                    return "Email already exists", 400
                cur.execute(
                    "INSERT INTO users (full_name, email, password_hash) VALUES (%s, %s, %s)",
                    (data['full_name'], data['email'], generate_password_hash(data['password']))
                )
                user_id = cur.lastrowid
                cur.executemany(
                    "INSERT INTO categories (user_id, name, type, color, icon) VALUES (%s, %s, %s, %s, %s)",
                    [(user_id, name, cat_type, color, icon) for name, cat_type, color, icon in DEFAULT_CATEGORIES]
                )
                conn.commit()
        finally:
            conn.close()

        current_app.logger.info("New account created for user %s", user_id)
        flash("Account created. Please log in.", "success")
        return redirect(url_for('auth.login'))

    return render_template('auth/signup.html')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        data, error = validate_login(request.form)
        if error:
            flash(error, "error")
            return redirect(url_for('auth.login'))

        conn = current_app.db_pool.get_connection()
        try:
            with conn.cursor(dictionary=True) as cur:
                cur.execute(
                    "SELECT id, full_name, email, password_hash, currency, avatar_filename "
                    "FROM users WHERE email=%s",
                    (data['email'],)
                )
                user = cur.fetchone()
        finally:
            conn.close()

        if not user or not check_password_hash(user['password_hash'], data['password']):
            flash("Invalid credentials. Want to sign up?", "error")
            return redirect(url_for('auth.login'))

        start_user_session(user)
        return redirect(url_for('dashboard.index'))

    return render_template('auth/login.html')


@auth_bp.route('/logout')
def logout():
    session.clear()
    return redirect(url_for('auth.login'))


@auth_bp.route('/profile', methods=['GET', 'POST'])
@login_required
def profile():
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            if request.method == 'POST':
                data, error = validate_profile(request.form)
                if error:
                    flash(error, "error")
                    return redirect(url_for('auth.profile'))

                file = request.files.get('avatar')
                if file and file.filename and not allowed_avatar(file.filename):
                    flash("Avatar must be a PNG or JPEG image", "error")
                    return redirect(url_for('auth.profile'))

                cur.execute("UPDATE users SET full_name=%s WHERE id=%s", (data['full_name'], session['user_id']))
                filename = None
                if file and file.filename:
                    filename = f"user{session['user_id']}_{secure_filename(file.filename)}"
                    os.makedirs(current_app.config['AVATAR_FOLDER'], exist_ok=True)
                    file.save(os.path.join(current_app.config['AVATAR_FOLDER'], filename))
                    cur.execute("UPDATE users SET avatar_filename=%s WHERE id=%s", (filename, session['user_id']))
                conn.commit()

                session['user_name'] = data['full_name']
                if filename:
                    session['avatar'] = filename
                flash("Profile updated", "success")
                return redirect(url_for('auth.profile'))

            cur.execute(
                "SELECT id, full_name, email, avatar_filename, created_at FROM users WHERE id=%s",
                (session['user_id'],)
            )
            user = cur.fetchone()
    finally:
        conn.close()

    if not user:
        return "User not found", 404
    return render_template('profile.html', user=user)
