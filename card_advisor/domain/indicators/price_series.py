import numpy as np


def linear_trend(prices: list[float]) -> float:
    """
    Least-squares slope of prices over their index, normalized by the mean price.

    Args:
        prices: closing prices (oldest → newest)

    Returns:
        slope / mean price (0.0 for fewer than 2 points or a non-positive mean)
    """
    if len(prices) < 2:
        return 0.0

    series = np.asarray(prices, dtype=float)
    mean_price = float(series.mean())
    if mean_price <= 0:
        return 0.0

    index = np.arange(series.size, dtype=float)
    slope = np.polyfit(index, series, 1)[0]
    return float(slope) / mean_price


def volatility(prices: list[float]) -> float:
    """Population standard deviation of simple returns"""
    if len(prices) < 2:
        return 0.0

    series = np.asarray(prices, dtype=float)
    previous = series[:-1]
    # zero prices produce no meaningful return
    valid = previous != 0
    if not valid.any():
        return 0.0

    returns = (series[1:][valid] - previous[valid]) / previous[valid]
    return float(np.std(returns))
