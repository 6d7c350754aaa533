import pandas as pd

REQUIRED_COLUMNS = {"Scenario", "MonthIndex", "CalendarYear", "MonthInYear"}

# Per-month flows are summed over a period; every other column keeps its last value.
FLOW_COLUMNS = (
    "ConfiguredIncome",
    "ConfiguredExpenses",
    "ActualIncome",
    "ActualExpenses",
    "PredictedExpenses",
    "SavingsContributions",
    "NetCashflow",
    "Interest",
    "Principal",
    "Payment",
    "TotalInterest",
    "TotalPrincipal",
    "TotalPayment",
)


def _prepare(df: pd.DataFrame) -> pd.DataFrame:
    if "Scenario" not in df.columns:
        df = df.assign(Scenario="Base")
    missing = REQUIRED_COLUMNS.difference(df.columns)
    if missing:
        raise KeyError(f"Missing required columns: {', '.join(sorted(missing))}")
    return df.sort_values(["Scenario", "MonthIndex"]).copy()


def _roll_up(df: pd.DataFrame) -> pd.DataFrame:
    flows = [col for col in FLOW_COLUMNS if col in df.columns]
    grouped = df.groupby(["Scenario", "PeriodValue"], as_index=False)
    snapshot = grouped.last()
    if flows:
        sums = grouped[flows].sum()
        snapshot[flows] = sums[flows].to_numpy()
    return snapshot


def aggregate_period(df: pd.DataFrame, freq: str = "M") -> pd.DataFrame:
    """Aggregate monthly projection or debt output to monthly/quarterly/yearly snapshots."""
    if df.empty:
        return df

    freq = (freq or "M").upper()
    df = _prepare(df)

    if freq == "Q":
        df["PeriodValue"] = df["CalendarYear"] * 4 + (df["MonthInYear"] - 1) // 3
        quarter = ((df["MonthInYear"] - 1) // 3 + 1).astype(int)
        df["Period"] = df["CalendarYear"].astype(str) + " Q" + quarter.astype(str)
        return _roll_up(df)

    if freq == "Y":
        df["PeriodValue"] = df["CalendarYear"]
        df["Period"] = df["CalendarYear"].astype(str)
        return _roll_up(df)

    df["PeriodValue"] = df["MonthIndex"]
    df["Period"] = df.get("Month", df["MonthIndex"].astype(str))
    return df
