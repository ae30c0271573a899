import warnings

import numpy as np


def measure_steps(tests, func, *args, **kwargs):
    """Run func on every test input, return (input length, steps) pairs."""
    steps = list(map(lambda x: func(x, *args, **kwargs), tests))
    return list(zip(map(lambda x: len(x), tests), steps))


def _leading_order(coefs, precision=6):
    i = 0
    while i < len(coefs) - 1 and round(coefs[i], precision) == 0:
        i += 1
    return len(coefs) - 1 - i, coefs[i:]


def estimate_order(results, max_pow=5, tolerance=1e-6):
    """Find the smallest polynomial degree that passes through every point.

    The first order + 1 points give a square system for np.linalg.solve,
    the remaining points have to agree with that polynomial.
    """
    for order in range(0, max_pow + 1):
        if len(results) < order + 1:
            break
        head = results[:order + 1]
        matrix = [[n ** k for k in range(order, -1, -1)] for n, _ in head]
        steps = [s for _, s in head]
        try:
            coefs = np.linalg.solve(matrix, steps)
        except np.linalg.LinAlgError:
            continue
        if all(abs(np.polyval(coefs, n) - s) <= tolerance
               for n, s in results[order + 1:]):
            return _leading_order(coefs)
    return None, None


def coef_function(coefs, func_type="polynomial"):
    if func_type == "log":
        return lambda n: np.polyval(coefs, np.log(n))
    elif func_type == "exp":
        return lambda n: np.exp(np.polyval(coefs, n))
    return lambda n: np.polyval(coefs, n)


def approximate(results, func_type="polynomial", max_pow=5):
    n, t = list(zip(*results))
    n = np.array(n, dtype=float)
    t = np.array(t, dtype=float)
    fits = []
    with warnings.catch_warnings():
        # polyfit warns when the degree is higher than the data supports
        warnings.simplefilter("ignore")
        if func_type == "polynomial":
            for pow in range(0, min(max_pow, len(n) - 1) + 1):
                fits.append(np.polyfit(n, t, pow))
        elif func_type == "log":
            if np.all(n > 0):
                fits.append(np.polyfit(np.log(n), t, 1))
        elif func_type == "exp":
            if np.all(t > 0):
                fits.append(np.polyfit(n, np.log(t), 1))
        else:
            raise ValueError(f"Unknown function type: {func_type}")
    return [(coef_function(coefs, func_type), coefs) for coefs in fits]


def best_approximation(results, check_results, max_pow=5):
    """Pick the fit with the smallest mean deviation on check_results."""
    best = None
    min_mid_dif = float("inf")
    for func_type in ("polynomial", "log", "exp"):
        for function, coefs in approximate(results, func_type, max_pow):
            mid_dif = sum(
                abs(function(n) - steps) for n, steps in check_results
            ) / len(check_results)
            if mid_dif < min_mid_dif:
                best = func_type, coefs
                min_mid_dif = mid_dif
    return best, min_mid_dif


def format_polynomial(coefs):
    string = ''
    for i, c in enumerate(coefs):
        i = len(coefs) - (i + 1)
        c = round(float(c), 2)
        string += f"({c})x^{i} + "
    return string[:-3]
