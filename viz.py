# viz.py
from typing import Dict

import matplotlib.pyplot as plt
import pandas as pd

INCOME_COLOR = "#16a34a"
EXPENSE_COLOR = "#dc2626"


def plot_time_series(ts: pd.DataFrame, ax=None, title="Income vs expenses over time"):
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 4))
    positions = range(len(ts))
    width = 0.4
    ax.bar([p - width / 2 for p in positions], ts["income"], width=width, label="Income", color=INCOME_COLOR)
    ax.bar([p + width / 2 for p in positions], ts["expense"], width=width, label="Expense", color=EXPENSE_COLOR)
    # dates stay as entered, so label by position
    ax.set_xticks(list(positions))
    ax.set_xticklabels(ts["date"], rotation=45, ha="right")
    ax.set_title(title)
    ax.set_ylabel("Amount")
    ax.set_xlabel("Date")
    ax.legend()
    plt.tight_layout()
    return ax


def plot_category_pie(breakdown: Dict[str, float], ax=None, title="By category"):
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 6))
    cat = pd.Series(breakdown, dtype=float).sort_values(ascending=False)
    if cat.empty:
        ax.text(0.5, 0.5, "No data", ha="center", va="center")
        ax.set_axis_off()
    else:
        ax.pie(cat.values, labels=cat.index, autopct="%1.1f%%")
    ax.set_title(title)
    return ax
