"""
Savings-goal progress, projection and completion estimates.

All projections are linear: the amount still missing is spread evenly
over the days left before the target date.
"""

import math
from datetime import date, timedelta

from services.dates import as_date

ON_TRACK_RATIO = 0.8
MILESTONE_PERCENTAGES = (25, 50, 75, 90, 100)
OPTIMISTIC_FACTOR = 1.5
PESSIMISTIC_FACTOR = 0.7
DEFAULT_HORIZON_DAYS = 365


def _created(goal, today):
    return as_date(goal.get('created_at')) or today


def goal_progress(goal, today=None):
    today = today or date.today()
    target = float(goal['target_amount'])
    current = float(goal['current_amount'] or 0)
    status = goal.get('status') or 'active'

    progress = (current / target * 100) if target > 0 else 0.0
    remaining = max(0.0, target - current)

    days_remaining = None
    daily_target = None
    monthly_target = None
    projected_completion = None
    expected_progress = None
    is_on_track = True

    target_date = as_date(goal.get('target_date'))
    if target_date:
        created = _created(goal, today)
        days_remaining = max(0, (target_date - today).days)

        if days_remaining > 0 and remaining > 0:
            daily_target = remaining / days_remaining
            monthly_target = daily_target * 30

        span = (target_date - created).days
        if days_remaining > 0 and target > 0 and span > 0:
            expected_progress = (span - days_remaining) / span * 100
            is_on_track = progress >= expected_progress * ON_TRACK_RATIO

        if daily_target and current > 0:
            elapsed = max(1, (today - created).days)
            days_to_complete = remaining / (current / elapsed)
            projected_completion = today + timedelta(days=math.ceil(days_to_complete))

    result = dict(goal)
    result.update({
        'status': status,
        'target_date': target_date,
        'progress_percentage': min(100.0, progress),
        'remaining_amount': remaining,
        'is_completed': current >= target or status == 'completed',
        'days_remaining': days_remaining,
        'daily_target': daily_target,
        'monthly_target': monthly_target,
        'projected_completion': projected_completion,
        'expected_progress': expected_progress,
        'is_on_track': is_on_track,
    })
    return result


def is_overdue(goal, today=None):
    today = today or date.today()
    target_date = as_date(goal.get('target_date'))
    return bool(target_date and today > target_date and (goal.get('status') or 'active') == 'active')


def filter_goals(goals, status=None, category_id=None, completed=None,
                 overdue=None, today=None):
    result = []
    for goal in goals:
        goal_status = goal.get('status') or 'active'
        if status and goal_status != status:
            continue
        if category_id and goal.get('category_id') != category_id:
            continue
        if completed is not None and goal_status != ('completed' if completed else 'active'):
            continue
        if overdue is not None and is_overdue(goal, today) != overdue:
            continue
        result.append(goal)
    return result


def goal_overview(goals, today=None):
    """Totals across goals that already carry ``progress_percentage``."""
    count = len(goals)
    return {
        'total_goals': count,
        'active_goals': sum(1 for g in goals if g['status'] == 'active'),
        'completed_goals': sum(1 for g in goals if g['status'] == 'completed'),
        'total_target_amount': sum(float(g['target_amount']) for g in goals),
        'total_current_amount': sum(float(g['current_amount'] or 0) for g in goals),
        'total_progress': (sum(g['progress_percentage'] for g in goals) / count) if count else 0.0,
        'overdue': sum(1 for g in goals if is_overdue(g, today)),
    }


def apply_contribution(goal, amount):
    """Return the (current_amount, status) pair after adding ``amount``."""
    new_amount = float(goal['current_amount'] or 0) + float(amount)
    status = goal.get('status') or 'active'
    if new_amount >= float(goal['target_amount']):
        status = 'completed'
    return new_amount, status


def projection_series(goal, days=90, today=None):
    today = today or date.today()
    target = float(goal['target_amount'])
    current = float(goal['current_amount'] or 0)
    end = as_date(goal.get('target_date')) or today + timedelta(days=days)

    days_to_target = (end - today).days
    daily_rate = (target - current) / days_to_target if days_to_target > 0 else 0.0
    optimistic_rate = daily_rate * OPTIMISTIC_FACTOR
    pessimistic_rate = daily_rate * PESSIMISTIC_FACTOR

    points = min(days, days_to_target + 1)
    series = []
    for index in range(max(0, points)):
        series.append({
            'date': today + timedelta(days=index),
            'projected': current + daily_rate * index,
            'optimistic': min(target, current + optimistic_rate * index),
            'pessimistic': current + pessimistic_rate * index,
            'milestone': index > 0 and index % 30 == 0,
        })
    return series


def consistency_score(progress):
    """60..100 depending on how close actual progress is to the time-elapsed share."""
    expected = progress.get('expected_progress')
    actual = progress['progress_percentage']
    if expected and expected > 0:
        ratio = min(1.0, actual / expected)
    else:
        ratio = actual / 100
    return 60 + 40 * max(0.0, ratio)


def completion_probability(goal, today=None):
    today = today or date.today()
    progress = goal if 'progress_percentage' in goal else goal_progress(goal, today)

    target_date = as_date(progress.get('target_date'))
    days_remaining = max(0, (target_date - today).days) if target_date else DEFAULT_HORIZON_DAYS

    current_pace = min(100.0, progress['progress_percentage'] * 2)
    time_remaining = max(0.0, min(100.0, days_remaining / 365 * 100))
    consistency = consistency_score(progress)

    on_time = round(min(95, (current_pace + time_remaining + consistency) / 3))
    late = round(max(0, min(100 - on_time, 25)))
    unlikely = 100 - on_time - late

    return {
        'on_time': on_time,
        'late': late,
        'unlikely': unlikely,
        'factors': {
            'current_pace': round(current_pace),
            'time_remaining': round(time_remaining),
            'consistency_score': round(consistency),
        },
    }


def milestones(goal, today=None):
    today = today or date.today()
    progress = goal if 'progress_percentage' in goal else goal_progress(goal, today)
    current = progress['progress_percentage']
    has_deadline = as_date(progress.get('target_date')) is not None

    result = []
    for percentage in MILESTONE_PERCENTAGES:
        achieved = current >= percentage
        projected = None
        if has_deadline and not achieved:
            projected = today + timedelta(days=round((percentage - current) / 100 * 90))
        result.append({
            'percentage': percentage,
            'amount': float(progress['target_amount']) * percentage / 100,
            'achieved': achieved,
            'current': not achieved and current >= percentage - 10,
            'projected_date': projected,
        })
    return result
