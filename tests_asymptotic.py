import os

import numpy as np
import pytest

from asymptotic import (
    approximate, best_approximation, estimate_order, format_polynomial,
    measure_steps)
from ram_machine import get_test_result, main
from ram_translator import RAMProgram

root = os.path.join(os.path.dirname(__file__), "train_ram")

tests = [
    [0],
    [1, 5],
    [2, 5, 6],
    [4, 1, 1, 1, 1],
]
check = [
    [9] + [3] * 9,
]


def sum_program():
    return RAMProgram.from_file(os.path.join(root, "sum.txt"))


def test_measure_steps():
    results = measure_steps(tests, get_test_result, sum_program())
    assert results == [(1, 5), (2, 14), (3, 23), (5, 41)]


def test_sum_program_is_linear():
    results = measure_steps(tests, get_test_result, sum_program())
    order, coefs = estimate_order(results)
    assert order == 1
    assert np.allclose(coefs, [9, -4])


def test_constant_steps():
    order, coefs = estimate_order([(1, 4), (2, 4), (7, 4)])
    assert order == 0
    assert np.allclose(coefs, [4])


def test_quadratic_steps():
    results = [(n, 2 * n * n + 3) for n in (1, 2, 3, 4, 6)]
    order, coefs = estimate_order(results)
    assert order == 2
    assert np.allclose(coefs, [2, 0, 3])


def test_undefined_order():
    results = [(n, 2 ** n) for n in range(1, 9)]
    assert estimate_order(results, max_pow=3) == (None, None)


def test_duplicate_sizes_are_skipped():
    order, _ = estimate_order([(2, 5), (2, 5), (3, 7)])
    assert order is None


def test_approximate_polynomial():
    results = [(n, 3 * n + 1) for n in range(1, 6)]
    fits = approximate(results, max_pow=2)
    assert len(fits) == 3
    function, coefs = fits[1]
    assert function(10) == pytest.approx(31)


def test_approximate_log_and_exp():
    log_results = [(n, 2 * np.log(n) + 1) for n in range(1, 6)]
    function, _ = approximate(log_results, "log")[0]
    assert function(20) == pytest.approx(2 * np.log(20) + 1)
    exp_results = [(n, np.exp(0.5 * n)) for n in range(1, 6)]
    function, _ = approximate(exp_results, "exp")[0]
    assert function(8) == pytest.approx(np.exp(4))


def test_approximate_unknown_type():
    with pytest.raises(ValueError):
        approximate([(1, 1), (2, 2)], "sqrt")


def test_best_approximation_on_ram_runs():
    program = sum_program()
    results = measure_steps(tests, get_test_result, program)
    check_results = measure_steps(check, get_test_result, program)
    (func_type, coefs), mid_dif = best_approximation(results, check_results)
    assert func_type == "polynomial"
    assert mid_dif == pytest.approx(0, abs=1e-6)


def test_format_polynomial():
    assert format_polynomial([9, -4]) == "(9.0)x^1 + (-4.0)x^0"


def test_cli_analyze(capsys, tmp_path):
    paths = []
    for i, tape in enumerate(tests):
        path = tmp_path / f"tape{i}.txt"
        path.write_text(" ".join(map(str, tape)), encoding="utf-8")
        paths.append(str(path))
    assert main(["analyze", os.path.join(root, "sum.txt")] + paths) == 0
    out = capsys.readouterr().out
    assert "Complexity: O(n^1)" in out
