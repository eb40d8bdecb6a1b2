import numpy as np
import pytest

from dftkit.solver import DFTSolver, IterationFailedError

TARGET = np.array([0.5, 2.0, 3.0])


def linear_residual(x, log):
    if log:
        return np.log(x) - np.log(TARGET)
    return x - TARGET


def cosine_residual(x, log):
    if log:
        return np.log(x) - np.log(np.cos(x))
    return x - np.cos(x)


def nan_residual(x, log):
    return np.full_like(x, np.nan)


def test_default_solver_string():
    expected = (
        "Anderson Mixing (mmax=100) max_iter: 50, tol: 0.00001, beta: 0.15\n"
        "Anderson Mixing (mmax=100) max_iter: 150, tol: 0.00000000001, beta: 0.15\n"
    )
    assert str(DFTSolver.default()) == expected


def test_default_solver_markdown_rows():
    md = DFTSolver.default()._repr_markdown_()
    lines = md.split("\n")
    assert lines[0] == "|solver|log|max_iter|tol|beta|mmax|max_rel|"
    assert len(lines) == 4
    assert lines[2] == "|Anderson Mixing|x|50|1e-5|0.15|100||"
    assert lines[3] == "|Anderson Mixing||150|1e-11|0.15|100||"


def test_builder_does_not_modify_original():
    base = DFTSolver()
    extended = base.picard_iteration()
    assert str(base) == ""
    assert str(extended).startswith("Picard Iteration (max_rel=1) max_iter: 500")
    assert len(extended.parameters) == 1


def test_builder_options_applied():
    solver = DFTSolver().anderson_mixing(mmax=7, log=True, max_iter=12, tol=1e-3, beta=0.4)
    stage = solver.parameters[0]
    assert stage.log is True
    assert stage.max_iter == 12
    assert stage.tol == 1e-3
    assert stage.beta == 0.4
    assert stage.solver.parameter == 7
    assert "|x|12|1e-3|0.4|7||" in solver._repr_markdown_()


def test_log_false_keeps_default():
    solver = DFTSolver().picard_iteration(max_rel=0.5, log=False)
    assert solver.parameters[0].log is False
    assert "|Picard Iteration||500|" in solver._repr_markdown_()
    assert str(solver).startswith("Picard Iteration (max_rel=0.5)")


def test_empty_solver_returns_input():
    x0 = np.array([1.0, 1.0, 1.0])
    x, converged, iterations = DFTSolver().solve(x0, linear_residual)
    assert converged is False
    assert iterations == 0
    np.testing.assert_array_equal(x, x0)


def test_default_solver_converges_linear():
    x, converged, iterations = DFTSolver.default().solve(np.ones(3), linear_residual)
    assert converged
    assert iterations >= 2
    np.testing.assert_allclose(x, TARGET, rtol=1e-9)


def test_picard_converges_linear():
    solver = DFTSolver().picard_iteration()
    x, converged, iterations = solver.solve(np.ones(3), linear_residual)
    assert converged
    assert 1 < iterations <= 500
    np.testing.assert_allclose(x, TARGET, atol=1e-9)


def test_picard_log_converges():
    solver = DFTSolver().picard_iteration(log=True, tol=1e-10)
    x, converged, _ = solver.solve(np.ones(3), linear_residual)
    assert converged
    np.testing.assert_allclose(x, TARGET, rtol=1e-8)


def test_anderson_solves_nonlinear_fixed_point():
    solver = DFTSolver().anderson_mixing()
    x, converged, _ = solver.solve(np.full(2, 0.2), cosine_residual)
    assert converged
    assert np.max(np.abs(x - np.cos(x))) < 1e-9


def test_anderson_with_single_history():
    solver = DFTSolver().anderson_mixing(mmax=1, max_iter=500)
    x, converged, _ = solver.solve(np.ones(3), linear_residual)
    assert converged
    np.testing.assert_allclose(x, TARGET, atol=1e-9)


def test_not_converged_reports_max_iter():
    solver = DFTSolver().picard_iteration(max_iter=3)
    _, converged, iterations = solver.solve(np.ones(3), linear_residual)
    assert converged is False
    assert iterations == 3


def test_iterations_are_summed_over_stages():
    solver = DFTSolver().picard_iteration(max_iter=2).picard_iteration(max_iter=4)
    _, converged, iterations = solver.solve(np.ones(3), linear_residual)
    assert converged is False
    assert iterations == 6


def test_picard_nan_raises():
    with pytest.raises(IterationFailedError, match="Picard Iteration"):
        DFTSolver().picard_iteration().solve(np.ones(3), nan_residual)


def test_anderson_nan_raises():
    with pytest.raises(IterationFailedError):
        DFTSolver().anderson_mixing().solve(np.ones(3), nan_residual)


def test_output_prints_progress(capsys):
    solver = DFTSolver(output=True).picard_iteration(max_iter=2)
    solver.solve(np.ones(3), linear_residual)
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "solver               | iter | residual "
    assert lines[1] == "-" * 43
    assert len(lines) == 4
    assert lines[2].startswith("Picard iteration     |    1 | ")


def test_input_array_not_modified():
    x0 = np.ones(3)
    DFTSolver.default().solve(x0, linear_residual)
    np.testing.assert_array_equal(x0, np.ones(3))