from flask import Blueprint, render_template, request, redirect, url_for, current_app, session, flash
from auth_utils import login_required
from validators import validate_category, TRANSACTION_TYPES

categories_bp = Blueprint('categories', __name__, url_prefix='/categories')

# Seeded for every new account: (name, type, color, icon)
DEFAULT_CATEGORIES = [
    ('Food & Dining', 'expense', '#ef4444', 'utensils'),
    ('Transportation', 'expense', '#3b82f6', 'car'),
    ('Shopping', 'expense', '#f59e0b', 'shopping-bag'),
    ('Entertainment', 'expense', '#8b5cf6', 'film'),
    ('Bills & Utilities', 'expense', '#10b981', 'receipt'),
    ('Health & Fitness', 'expense', '#06b6d4', 'heart'),
    ('Travel', 'expense', '#f97316', 'plane'),
    ('Education', 'expense', '#6366f1', 'book'),
    ('Home & Garden', 'expense', '#84cc16', 'home'),
    ('Personal Care', 'expense', '#ec4899', 'user'),
    ('Salary', 'income', '#22c55e', 'banknote'),
    ('Freelance', 'income', '#84cc16', 'briefcase'),
    ('Investment', 'income', '#14b8a6', 'trending-up'),
    ('Business', 'income', '#f59e0b', 'building'),
    ('Other Income', 'income', '#a855f7', 'plus-circle'),
]


@categories_bp.route('/', methods=['GET', 'POST'])
@login_required
def index():
    if request.method == 'POST':
        data, error = validate_category(request.form)
        if error:
            flash(error, "error")
            return redirect(url_for('categories.index'))

    cat_type = request.args.get('type', '')
    if cat_type not in TRANSACTION_TYPES:
        cat_type = ''

    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            if request.method == 'POST':
                cur.execute(
                    "INSERT INTO categories (user_id, name, type, color, icon) VALUES (%s, %s, %s, %s, %s)",
                    (session['user_id'], data['name'], data['type'], data['color'], data['icon'])
                )
                conn.commit()
                flash("Category created", "success")
                return redirect(url_for('categories.index'))

            query = """
                SELECT c.id, c.name, c.type, c.color, c.icon,
                       COUNT(t.id) AS transaction_count,
                       COALESCE(SUM(t.amount), 0) AS total_amount
                FROM categories c
                LEFT JOIN transactions t ON t.category_id = c.id AND t.user_id = c.user_id
                WHERE c.user_id = %s
            """
            params = [session['user_id']]
            if cat_type:
                query += " AND c.type = %s"
                params.append(cat_type)
            query += " GROUP BY c.id, c.name, c.type, c.color, c.icon ORDER BY c.name"
            cur.execute(query, params)
            rows = cur.fetchall()
    finally:
        conn.close()

    for row in rows:
        row['total_amount'] = float(row['total_amount'] or 0)
    return render_template('categories/index.html', categories=rows, selected_type=cat_type)


@categories_bp.route('/edit/<int:id>', methods=['GET', 'POST'])
@login_required
def edit(id):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            cur.execute(
                "SELECT id, name, type, color, icon FROM categories WHERE id=%s AND user_id=%s",
                (id, session['user_id'])
            )
            category = cur.fetchone()
            if not category:
                return "Category not found", 404

            if request.method == 'POST':
                data, error = validate_category(request.form)
                if error:
                    flash(error, "error")
                    return redirect(url_for('categories.edit', id=id))
                cur.execute(
                    "UPDATE categories SET name=%s, type=%s, color=%s, icon=%s WHERE id=%s AND user_id=%s",
                    (data['name'], data['type'], data['color'], data['icon'], id, session['user_id'])
                )
                conn.commit()
                flash("Category updated", "success")
                return redirect(url_for('categories.index'))
    finally:
        conn.close()

    return render_template('categories/edit.html', category=category)


@categories_bp.route('/delete/<int:id>', methods=['POST'])
@login_required
def delete(id):
    conn = current_app.db_pool.get_connection()
    try:
        with conn.cursor(dictionary=True) as cur:
            cur.execute("SELECT id FROM categories WHERE id=%s AND user_id=%s", (id, session['user_id']))
            if not cur.fetchone():
                return "Category not found", 404

            cur.execute(
                "SELECT COUNT(*) AS count FROM transactions WHERE category_id=%s AND user_id=%s",
                (id, session['user_id'])
            )
            if cur.fetchone()['count'] > 0:
                flash("Cannot delete category with existing transactions. "
                      "Please reassign or delete those transactions first.", "error")
                return redirect(url_for('categories.index'))

            cur.execute(
                "SELECT COUNT(*) AS count FROM budgets WHERE category_id=%s AND user_id=%s",
                (id, session['user_id'])
            )
            if cur.fetchone()['count'] > 0:
                flash("Cannot delete category with budgets. Please delete those budgets first.", "error")
                return redirect(url_for('categories.index'))

            cur.execute("DELETE FROM categories WHERE id=%s AND user_id=%s", (id, session['user_id']))
            conn.commit()
    finally:
        conn.close()
    flash("Category deleted", "success")
    return redirect(url_for('categories.index'))
