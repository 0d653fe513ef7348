"""HTML rendering for the daily digest email."""

from datetime import date
from html import escape

from dining_planner.domain.digest import DigestPayload
from dining_planner.domain.models import UserRecord
from dining_planner.domain.recommendations import DayPlan, MealPlan, PlannedItem

FALLBACK_MESSAGE = "No menu data available for tomorrow yet. Check back later!"

_CELL = "padding:6px 12px;border-bottom:1px solid #e4e4e7;"
_EXTRA_CELL = "padding:4px 12px;border-bottom:1px solid #e4e4e7;"
_HEAD_CELL = "padding:8px 12px;"
_FALLBACK_HTML = f"<p>{FALLBACK_MESSAGE}</p>"


def digest_subject(target_date: date) -> str:
    """Return the subject line for a digest date."""
    return f"Your NAV Meal Plan for {target_date:%A, %B} {target_date.day}"


def render_digest(
    user: UserRecord, target_date: date, day_plan: DayPlan | None
) -> DigestPayload:
    """Render a digest payload; a missing plan yields the fallback body."""
    return DigestPayload(
        recipient=user.email,
        subject=digest_subject(target_date),
        html=_document(user.name, target_date, day_plan),
        target_date=target_date,
        day_plan=day_plan,
    )


def _document(name: str | None, target_date: date, day_plan: DayPlan | None) -> str:
    formatted = f"{target_date:%A, %B} {target_date.day}, {target_date.year}"
    body = _FALLBACK_HTML if day_plan is None else _day_html(day_plan)
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;\
color:#18181b;max-width:600px;margin:0 auto;padding:24px;">
  <h1 style="color:#1d4ed8;font-size:24px;margin-bottom:4px;">NAV Meal Planner</h1>
  <p style="color:#71717a;margin-top:0;">North Avenue Dining Hall, Georgia Tech</p>
  <p>Hey {escape(name or "there")}! Here are your personalized meal \
recommendations for <strong>{formatted}</strong>:</p>
  {body}
  <hr style="border:none;border-top:1px solid #e4e4e7;margin:32px 0 16px;">
  <p style="color:#a1a1aa;font-size:12px;">You're receiving this because you \
opted in on the NAV Meal Planner. Visit the site to update your preferences.</p>
</body>
</html>"""


def _day_html(day_plan: DayPlan) -> str:
    sections = [
        _meal_html(meal_type.value.capitalize(), meal)
        for meal_type, meal in day_plan.meals().items()
        if meal.meal_plan
    ]
    totals = day_plan.day_totals
    sections.append(
        '<div style="margin-top:20px;padding:12px;background:#eff6ff;'
        'border-radius:8px;">'
        '<strong style="color:#1d4ed8;">Full Day Totals:</strong>'
        f'<span style="margin-left:12px;">{totals.calories} cal</span>'
        f'<span style="margin-left:12px;">{totals.protein}g protein</span>'
        f'<span style="margin-left:12px;">{totals.carbs}g carbs</span>'
        f'<span style="margin-left:12px;">{totals.fat}g fat</span>'
        "</div>"
    )
    return "\n".join(sections)


def _row(item: PlannedItem) -> str:
    return (
        "<tr>"
        f'<td style="{_CELL}">{escape(item.name)}</td>'
        f'<td style="{_CELL}">{escape(item.quantity)}</td>'
        f'<td style="{_CELL}text-align:right;">{item.calories}</td>'
        f'<td style="{_CELL}text-align:right;">{item.protein}g</td>'
        "</tr>"
    )


def _extra_row(item: PlannedItem) -> str:
    return (
        "<tr>"
        f'<td style="{_EXTRA_CELL}color:#3b82f6;">{escape(item.name)}</td>'
        f'<td style="{_EXTRA_CELL}">{escape(item.quantity)}</td>'
        f'<td style="{_EXTRA_CELL}text-align:right;">{item.calories} cal</td>'
        f'<td style="{_EXTRA_CELL}text-align:right;">{item.protein}g P</td>'
        "</tr>"
    )


def _meal_html(label: str, meal: MealPlan) -> str:
    rows = "".join(_row(item) for item in meal.meal_plan)
    totals = meal.totals
    extras = ""
    if meal.extras:
        extras = (
            '<p style="margin:12px 0 4px;font-size:13px;font-weight:600;'
            'color:#71717a;">Good Add-Ons &amp; Alternatives</p>'
            '<table style="width:100%;border-collapse:collapse;font-size:13px;">'
            f"<tbody>{''.join(_extra_row(item) for item in meal.extras)}</tbody>"
            "</table>"
        )
    return (
        f'<h2 style="color:#b59410;margin:24px 0 8px;font-size:20px;">{label}</h2>'
        '<table style="width:100%;border-collapse:collapse;font-size:14px;">'
        '<thead><tr style="background:#f4f4f5;">'
        f'<th style="{_HEAD_CELL}text-align:left;">Item</th>'
        f'<th style="{_HEAD_CELL}text-align:left;">Qty</th>'
        f'<th style="{_HEAD_CELL}text-align:right;">Cal</th>'
        f'<th style="{_HEAD_CELL}text-align:right;">Protein</th>'
        "</tr></thead>"
        f"<tbody>{rows}</tbody>"
        '<tfoot><tr style="font-weight:bold;background:#f4f4f5;">'
        f'<td style="{_HEAD_CELL}" colspan="2">Total</td>'
        f'<td style="{_HEAD_CELL}text-align:right;">{totals.calories} cal</td>'
        f'<td style="{_HEAD_CELL}text-align:right;">{totals.protein}g</td>'
        "</tr></tfoot>"
        f"</table>{extras}"
    )
