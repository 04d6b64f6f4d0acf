"""Demo ledger for a college student saving up for headphones.

The history spans the 60 days ending on the reference day and mixes
allowance income, recurring subscriptions and bills, everyday food and
transport spend, and post-exam shopping sprees.
"""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

from core.models import SavingsGoal, Transaction

HISTORY_DAYS = 60

# (day offset from the start of the window, merchant, amount, category)
SAMPLE_ROWS: Tuple[Tuple[int, str, float, str], ...] = (
    (0, "Dad - Monthly Allowance", 15000, "Income"),
    (15, "Freelance - Website Project", 5000, "Income"),
    (32, "Part-time - Tutoring", 8000, "Income"),
    (5, "Gold's Gym - Annual", -999, "Bills"),
    (4, "Netflix", -199, "Entertainment"),
    (9, "Spotify Premium", -119, "Entertainment"),
    (34, "Netflix", -199, "Entertainment"),
    (39, "Spotify Premium", -119, "Entertainment"),
    (7, "Airtel Postpaid", -399, "Bills"),
    (37, "Airtel Postpaid", -399, "Bills"),
    (12, "ACT Fibernet", -599, "Bills"),
    (8, "Chai Point", -60, "Food"),
    (10, "College Canteen", -85, "Food"),
    (11, "Domino's - Solo lunch", -249, "Food"),
    (13, "Chai Sutta Bar", -75, "Food"),
    (16, "McDonald's", -180, "Food"),
    (18, "Cafe Coffee Day", -220, "Food"),
    (21, "College Canteen", -95, "Food"),
    (24, "Chaayos", -140, "Food"),
    (28, "Subway", -189, "Food"),
    (31, "Local Dhaba", -120, "Food"),
    (35, "Starbucks - Solo", -285, "Food"),
    (40, "Biryani Blues", -320, "Food"),
    (44, "Chai Stall", -40, "Food"),
    (47, "KFC - Quick bite", -199, "Food"),
    (6, "Punjabi By Nature - Squad", -780, "Food"),
    (14, "Barbeque Nation - Birthday treat", -1200, "Food"),
    (22, "Swiggy - Late night with roomies", -640, "Food"),
    (27, "Hauz Khas Social - Weekend", -890, "Food"),
    (36, "Bercos - Chinese craving", -720, "Food"),
    (43, "Zomato - Friends over", -580, "Food"),
    (49, "Connaught Place - Dinner date", -950, "Food"),
    (53, "Pizza Hut - Movie night gang", -680, "Food"),
    (56, "Khan Chacha - Late night", -520, "Food"),
    (8, "Delhi Metro", -40, "Transport"),
    (10, "Uber - To college", -120, "Transport"),
    (13, "Delhi Metro", -30, "Transport"),
    (17, "Ola - Late night", -180, "Transport"),
    (20, "HP Petrol - Scooty", -800, "Transport"),
    (25, "Uber - Airport pickup", -450, "Transport"),
    (29, "Delhi Metro", -50, "Transport"),
    (33, "Ola Auto", -85, "Transport"),
    (38, "Uber - Date night", -220, "Transport"),
    (42, "Delhi Metro", -45, "Transport"),
    (48, "HP Petrol", -650, "Transport"),
    (52, "Ola - CP", -140, "Transport"),
    (26, "Last minute notes print", -45, "Shopping"),
    (27, "Amazon - Mechanical Keyboard", -1450, "Shopping"),
    (28, "Flipkart - Hoodie", -899, "Shopping"),
    (29, "Myntra - Sneakers (deserved it)", -2100, "Shopping"),
    (51, "Cafe - Study session", -180, "Food"),
    (52, "Amazon - PS5 Controller", -4299, "Shopping"),
    (53, "Reliance Digital - Mouse", -1200, "Shopping"),
    (54, "Swiggy - Comfort food", -480, "Food"),
    (19, "PVR - Movie with squad", -1100, "Entertainment"),
    (41, "Select Citywalk - Shopping", -1850, "Shopping"),
    (55, "Cyber Hub - Dinner", -980, "Food"),
    (13, "BookMyShow - Sunday show", -650, "Entertainment"),
    (34, "Big Bazaar - Groceries", -720, "Shopping"),
    (48, "PVR - Sunday movie", -580, "Entertainment"),
)


def _window_start(today: date) -> date:
    return today - timedelta(days=HISTORY_DAYS - 1)


def sample_transactions(today: Optional[date] = None) -> List[Transaction]:
    """Return the demo history with dates anchored so the last day is ``today``."""

    today = today or date.today()
    start = _window_start(today)
    return [
        Transaction(
            id=f"tx_{index}",
            date=start + timedelta(days=offset),
            merchant=merchant,
            amount=float(amount),
            category=category,
            type="income" if amount > 0 else "expense",
        )
        for index, (offset, merchant, amount, category) in enumerate(SAMPLE_ROWS, start=1)
    ]


def sample_goal(today: Optional[date] = None) -> SavingsGoal:
    """Demo goal created a month ago with a deadline two months out."""

    today = today or date.today()
    return SavingsGoal(
        id="goal_1",
        name="AirPods Pro (2nd Gen)",
        target_amount=25000.0,
        current_amount=4500.0,
        deadline=today + timedelta(days=60),
        created_at=today - timedelta(days=30),
    )


def write_sample_csv(path: str | Path, today: Optional[date] = None) -> Path:
    """Write the demo history as a CSV export readable by ``load_transactions``."""

    path = Path(path)
    frame = pd.DataFrame([txn.to_dict() for txn in sample_transactions(today)])
    frame.to_csv(path, index=False)
    return path
