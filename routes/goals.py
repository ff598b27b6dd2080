from datetime import date
from flask import Blueprint, render_template, request, redirect, url_for, current_app, session, flash
from auth_utils import login_required
from routes.transactions import category_owned, fetch_categories
from services.goals import (completion_probability, filter_goals, goal_overview, goal_progress,
                            apply_contribution, milestones, projection_series)
from services.filters import parse_bool
from validators import GOAL_STATUSES, validate_contribution, validate_goal

goals_bp = Blueprint('goals', __name__, url_prefix='/goals')

GOAL_SELECT = """
    SELECT g.id, g.name, g.description, g.target_amount, g.current_amount, g.target_date,
           g.category_id, g.status, g.created_at, g.updated_at,
           c.name AS category_name, c.color AS category_color
    FROM saving_goals g
    LEFT JOIN categories c ON c.id = g.category_id
    WHERE g.user_id = %s
"""

PROJECTION_DAYS = 90


def fetch_goals(cur, user_id, today=None):
    cur.execute(GOAL_SELECT + " ORDER BY g.created_at DESC", (user_id,))
    return [goal_progress(g, today) for g in cur.fetchall()]


def _fetch_goal(cur, id):
    cur.execute(GOAL_SELECT + " AND g.id = %s", (session['user_id'], id))
    return cur.fetchone()


@goals_bp.route('/')
@login_required
def index():
    today = date.today()
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            goals = fetch_goals(cur, session['user_id'], today)
            categories = fetch_categories(cur, session['user_id'])
    finally:
        conn.close()

    status = request.args.get('status', '')
    filtered = filter_goals(
        goals,
        status=status if status in GOAL_STATUSES else None,
        category_id=request.args.get('category_id', type=int),
        completed=parse_bool(request.args.get('completed')),
        overdue=parse_bool(request.args.get('overdue')),
        today=today,
    )
    return render_template('goals/index.html', goals=filtered, overview=goal_overview(goals, today),
                           categories=categories, statuses=GOAL_STATUSES)


def _save(cur, data, goal_id=None):
    values = (data['name'], data['description'], data['target_amount'], data['current_amount'],
              data['target_date'], data['category_id'], data['status'])
    if goal_id is None:
        cur.execute(
            "INSERT INTO saving_goals (user_id, name, description, target_amount, current_amount, "
            "target_date, category_id, status) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)",
            (session['user_id'],) + values
        )
    else:
        cur.execute(
            "UPDATE saving_goals SET name=%s, description=%s, target_amount=%s, current_amount=%s, "
            "target_date=%s, category_id=%s, status=%s WHERE id=%s AND user_id=%s",
            values + (goal_id, session['user_id'])
        )


def _form_error(cur, data):
    if data['category_id'] and not category_owned(cur, data['category_id'], session['user_id']):
        return "Invalid category"
    return None


@goals_bp.route('/add', methods=['GET', 'POST'])
@login_required
def add():
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            if request.method == 'POST':
                data, error = validate_goal(request.form)
                error = error or _form_error(cur, data)
                if error:
                    flash(error, "error")
                    return redirect(url_for('goals.add'))
                _save(cur, data)
                conn.commit()
                flash("Goal created", "success")
                return redirect(url_for('goals.index'))

            categories = fetch_categories(cur, session['user_id'])
    finally:
        conn.close()

    return render_template('goals/form.html', goal=None, categories=categories, statuses=GOAL_STATUSES)


@goals_bp.route('/edit/<int:id>', methods=['GET', 'POST'])
@login_required
def edit(id):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            goal = _fetch_goal(cur, id)
            if not goal:
                return "Goal not found", 404

            if request.method == 'POST':
                data, error = validate_goal(request.form)
                error = error or _form_error(cur, data)
                if error:
                    flash(error, "error")
                    return redirect(url_for('goals.edit', id=id))
                _save(cur, data, id)
                conn.commit()
                flash("Goal updated", "success")
                return redirect(url_for('goals.view', id=id))

            categories = fetch_categories(cur, session['user_id'])
    finally:
        conn.close()

    return render_template('goals/form.html', goal=goal, categories=categories, statuses=GOAL_STATUSES)


@goals_bp.route('/<int:id>')
@login_required
def view(id):
    today = date.today()
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            goal = _fetch_goal(cur, id)
    finally:
        conn.close()

    if not goal:
        return "Goal not found", 404

    progress = goal_progress(goal, today)
    return render_template(
        'goals/view.html',
        goal=progress,
        projection=projection_series(goal, PROJECTION_DAYS, today),
        probability=completion_probability(progress, today),
        milestones=milestones(progress, today),
    )


@goals_bp.route('/<int:id>/contribute', methods=['POST'])
@login_required
def contribute(id):
    data, error = validate_contribution(request.form)
    if error:
        flash(error, "error")
        return redirect(url_for('goals.view', id=id))

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            cur.execute(
                "SELECT id, target_amount, current_amount, status FROM saving_goals WHERE id=%s AND user_id=%s",
                (id, session['user_id'])
            )
            goal = cur.fetchone()
            if not goal:
                return "Goal not found", 404
            new_amount, status = apply_contribution(goal, data['amount'])
            cur.execute(
                "UPDATE saving_goals SET current_amount=%s, status=%s WHERE id=%s AND user_id=%s",
                (new_amount, status, id, session['user_id'])
            )
            conn.commit()
    finally:
        conn.close()

    if status == 'completed' and goal['status'] != 'completed':
        flash("Goal reached! Congratulations.", "success")
    else:
        flash("Contribution added", "success")
    return redirect(url_for('goals.view', id=id))


@goals_bp.route('/delete/<int:id>', methods=['POST'])
@login_required
def delete(id):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT id FROM saving_goals WHERE id=%s AND user_id=%s", (id, session['user_id']))
            if not cur.fetchone():
                return "Goal not found", 404
            cur.execute("DELETE FROM saving_goals WHERE id=%s AND user_id=%s", (id, session['user_id']))
            conn.commit()
    finally:
        conn.close()
    flash("Goal deleted", "success")
    return redirect(url_for('goals.index'))
