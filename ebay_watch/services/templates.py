# ebay_watch/services/templates.py
import html
import traceback
from datetime import datetime, timezone
from typing import Optional

import humanize

from ebay_watch.schemas import Listing, SearchCriteria


def _parse_end(end_time: Optional[str]) -> Optional[datetime]:
    if not end_time:
        return None
    try:
        dt = datetime.fromisoformat(end_time.replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def time_left(end_time: Optional[str], now: Optional[datetime] = None) -> str:
    end = _parse_end(end_time)
    if end is None:
        return "unknown"
    now = now or datetime.now(timezone.utc)
    if end <= now:
        return "ended"
    return f"ends in {humanize.naturaldelta(end - now)}"


def _money(value) -> str:
    if isinstance(value, (int, float)) or (isinstance(value, str) and value.replace(".", "", 1).isdigit()):
        return f"${value}"
    return str(value)


def subject_line(listings: list[Listing], criteria: SearchCriteria) -> str:
    what = f" for \"{criteria.keyword}\"" if criteria.keyword else ""
    noun = "listing" if len(listings) == 1 else "listings"
    return f"eBay Monitor: {len(listings)} {noun}{what} ending soon"


def criteria_summary(criteria: SearchCriteria) -> str:
    lo = criteria.min_price or 0
    hi = criteria.max_price or "∞"
    parts = [f"keyword: {criteria.keyword or '(any)'}"]
    if criteria.category:
        parts.append(f"category: {criteria.category}")
    if criteria.condition:
        parts.append(f"condition: {criteria.condition}")
    parts.append(f"price: {lo} - {hi}")
    if criteria.min_bids:
        parts.append(f"min bids: {criteria.min_bids}")
    return ", ".join(parts)


def results_text(listings: list[Listing], criteria: SearchCriteria, now: Optional[datetime] = None) -> str:
    lines = [
        f"Found {len(listings)} listing(s) ending within the next hour.",
        f"Search: {criteria_summary(criteria)}",
        "",
    ]
    for i, l in enumerate(listings, 1):
        lines.append(f"{i}. {l.title or '(untitled)'}")
        lines.append(f"   Price: {_money(l.price)} | Bids: {l.bids} | Condition: {l.condition}")
        lines.append(f"   Shipping: {_money(l.shipping)} | {time_left(l.end_time, now)}")
        if l.url:
            lines.append(f"   {l.url}")
        lines.append("")
    return "\n".join(lines)


def results_html(listings: list[Listing], criteria: SearchCriteria, now: Optional[datetime] = None) -> str:
    rows = []
    for l in listings:
        title = html.escape(l.title or "(untitled)")
        if l.url:
            title = f'<a href="{html.escape(l.url, quote=True)}">{title}</a>'
        thumb = ""
        if l.image:
            thumb = f'<img src="{html.escape(l.image, quote=True)}" width="80" alt="">'
        rows.append(
            "<tr>"
            f"<td>{thumb}</td>"
            f"<td><strong>{title}</strong><br>"
            f"{html.escape(l.condition)}"
            f"{' &middot; seller ' + html.escape(l.seller) if l.seller else ''}</td>"
            f"<td>{html.escape(_money(l.price))}</td>"
            f"<td>{html.escape(str(l.bids))} bids</td>"
            f"<td>{html.escape(_money(l.shipping))}</td>"
            f"<td>{html.escape(time_left(l.end_time, now))}</td>"
            "</tr>"
        )
    return (
        "<html><body>"
        f"<h2>{len(listings)} listing(s) ending within the next hour</h2>"
        f"<p>{html.escape(criteria_summary(criteria))}</p>"
        '<table cellpadding="6" border="0">'
        "<tr><th></th><th>Item</th><th>Price</th><th>Bids</th><th>Shipping</th><th>Time left</th></tr>"
        + "".join(rows)
        + "</table>"
        "<p><small>Powered by eBay Browse API</small></p>"
        "</body></html>"
    )


def error_text(error: BaseException) -> str:
    return f"Error in eBay listing monitor: {error}"


def error_html(error: BaseException) -> str:
    trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return (
        "<h2>eBay Monitor Error</h2>"
        f"<p>{html.escape(str(error))}</p>"
        f"<pre>{html.escape(trace)}</pre>"
    )
