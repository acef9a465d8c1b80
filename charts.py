"""Chart geometry for the dashboards.

Pure functions over lists of issue dicts (as produced by ``Issue.to_dict``).
Nothing here touches the database.
"""
import math
from collections import OrderedDict
from datetime import date, datetime, timedelta


def count_by(records, key, keys=None):
    """Count records per value of ``key``.

    With ``keys`` the result has exactly those buckets, zero-filled, in that
    order. Otherwise buckets appear in first-seen order.
    """
    counts = OrderedDict((k, 0) for k in keys) if keys else OrderedDict()
    for record in records:
        value = record.get(key) or 'unassigned'
        if keys and value not in counts:
            continue
        counts[value] = counts.get(value, 0) + 1
    return counts


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value).date()


def count_by_day(records, days=7, today=None, date_key='created_at'):
    today = today or date.today()
    start = today - timedelta(days=days - 1)
    counts = OrderedDict((start + timedelta(days=offset), 0) for offset in range(days))
    for record in records:
        value = record.get(date_key)
        if not value:
            continue
        day = _as_date(value)
        if day in counts:
            counts[day] += 1
    return OrderedDict((day.isoformat(), count) for day, count in counts.items())


def bar_rows(counts):
    """Horizontal bar rows sized as a percentage of the largest bucket."""
    max_count = max(counts.values(), default=0)
    rows = []
    for label, count in counts.items():
        percent = round(count / max_count * 100, 1) if max_count else 0.0
        rows.append({'label': label, 'count': count, 'percent': percent})
    return rows


def donut_segments(counts, radius=40):
    """Arc segments for an SVG donut drawn with stroke-dasharray.

    Each segment starts where the previous one ended; empty buckets are
    skipped.
    """
    total = sum(counts.values())
    circumference = 2 * math.pi * radius
    segments = []
    if not total:
        return segments

    cumulative = 0.0
    for label, count in counts.items():
        if not count:
            continue
        fraction = count / total
        length = circumference * fraction
        segments.append({
            'label': label,
            'count': count,
            'percent': round(fraction * 100, 1),
            'offset_percent': round(cumulative / circumference * 100, 1),
            'dash_array': f'{length:.2f} {circumference - length:.2f}',
            'dash_offset': round(-cumulative, 2),
        })
        cumulative += length
    return segments


def line_points(values, width=300, height=100, padding=10):
    """Scale a series into SVG coordinates, y growing downwards."""
    values = list(values)
    if not values:
        return []

    inner_width = width - 2 * padding
    inner_height = height - 2 * padding
    max_value = max(values)
    step = inner_width / (len(values) - 1) if len(values) > 1 else 0

    points = []
    for index, value in enumerate(values):
        x = padding + index * step if len(values) > 1 else width / 2
        scaled = value / max_value * inner_height if max_value else 0
        points.append((round(x, 2), round(height - padding - scaled, 2)))
    return points


def polyline(points):
    return ' '.join(f'{x},{y}' for x, y in points)


def resolution_rate(total, resolved):
    if not total:
        return 0.0
    return round(resolved / total * 100, 2)


def dashboard_charts(issues, statuses, priorities, categories, departments=None, days=14, today=None):
    """Everything the overview dashboard draws, from one list of issues."""
    department_names = departments or {}
    by_department = OrderedDict()
    for label, count in count_by(issues, 'department_id').items():
        name = department_names.get(label, 'Unassigned')
        by_department[name] = by_department.get(name, 0) + count

    daily = count_by_day(issues, days=days, today=today)
    status_counts = count_by(issues, 'status', keys=statuses)

    return {
        'byStatus': donut_segments(status_counts),
        'byPriority': bar_rows(count_by(issues, 'priority', keys=priorities)),
        'byCategory': bar_rows(count_by(issues, 'category', keys=categories)),
        'byDepartment': bar_rows(by_department),
        'daily': {
            'labels': list(daily.keys()),
            'counts': list(daily.values()),
            'points': polyline(line_points(daily.values())),
        },
        'resolutionRate': resolution_rate(len(issues), status_counts.get('resolved', 0)),
    }
