from __future__ import annotations

import base64
from datetime import date
from io import BytesIO
from typing import Sequence

import matplotlib

matplotlib.use("Agg")

from matplotlib.figure import Figure  # noqa: E402

VERIFIED_COLOR = "#10b981"
UNVERIFIED_COLOR = "#ef4444"
BAR_COLOR = "#6366f1"
DOWNLOADS_COLOR = "#3b82f6"
NEW_USERS_COLOR = "#f59e0b"
_AXIS_COLOR = "#94a3b8"


def _to_data_uri(fig: Figure) -> str:
    buffer = BytesIO()
    fig.savefig(buffer, format="png", dpi=100, bbox_inches="tight")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def _empty(ax, message: str = "No data") -> None:
    ax.text(0.5, 0.5, message, ha="center", va="center", color=_AXIS_COLOR)
    ax.set_axis_off()


def pie_chart(verified: int, unverified: int) -> str:
    fig = Figure(figsize=(5, 4))
    ax = fig.add_subplot()
    if verified + unverified <= 0:
        _empty(ax)
        return _to_data_uri(fig)
    wedges, _texts, _autotexts = ax.pie(
        [verified, unverified],
        colors=[VERIFIED_COLOR, UNVERIFIED_COLOR],
        autopct="%1.2f%%",
        startangle=90,
        wedgeprops={"edgecolor": "white", "linewidth": 2},
        textprops={"fontsize": 10, "fontweight": "bold"},
    )
    ax.legend(
        wedges,
        [f"Verified ({verified})", f"Not verified ({unverified})"],
        loc="upper center",
        bbox_to_anchor=(0.5, -0.02),
        ncol=2,
        frameon=False,
    )
    ax.set_title("Verification status")
    ax.axis("equal")
    return _to_data_uri(fig)


def bar_chart(team_downloads: Sequence[dict]) -> str:
    fig = Figure(figsize=(6, 4))
    ax = fig.add_subplot()
    if not team_downloads or not any(item["downloads"] for item in team_downloads):
        _empty(ax, "No downloads yet")
        return _to_data_uri(fig)
    labels = [item["teamName"] for item in team_downloads]
    values = [item["downloads"] for item in team_downloads]
    ax.bar(range(len(values)), values, color=BAR_COLOR)
    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels, rotation=60, ha="right", fontsize=9)
    ax.set_ylabel("Downloads")
    ax.set_title("Downloads by team")
    ax.spines[["top", "right"]].set_visible(False)
    return _to_data_uri(fig)


def trend_chart(points: Sequence[dict], field: str, title: str, color: str) -> str:
    fig = Figure(figsize=(7, 3))
    ax = fig.add_subplot()
    if not points:
        _empty(ax, "Trend data will appear as downloads grow.")
        return _to_data_uri(fig)
    dates = [date.fromisoformat(point["date"]) for point in points]
    values = [point.get(field) or 0 for point in points]
    ax.plot(dates, values, color=color, linewidth=2, marker="o", markersize=3)
    ax.fill_between(dates, values, color=color, alpha=0.15)
    ax.set_title(title)
    ax.set_ylim(bottom=0)
    ax.tick_params(colors=_AXIS_COLOR, labelsize=8)
    ax.spines[["top", "right"]].set_visible(False)
    fig.autofmt_xdate()
    return _to_data_uri(fig)
