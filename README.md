# dftkit

Numerical building blocks for classical density functional theory (DFT) of
fluids. Every quantity is reduced (dimensionless) and held in NumPy arrays.

## Modules

- `dftkit.solver`: `DFTSolver`, a chain of Picard iteration and Anderson
  mixing stages that drives a residual function to zero. A residual that
  becomes NaN (or an Anderson system that cannot be solved) raises
  `IterationFailedError`.
- `dftkit.profile`: rules for the chemical potential during an iteration
  (`ChemicalPotentialSpecification`, `MolesSpecification`,
  `TotalMolesSpecification`, all derived from `DFTSpecification`), the
  residuals `euler_lagrange_residual` and `chemical_potential_residual`, the
  constants `MAX_POTENTIAL` and `CUTOFF_RADIUS`, and `NotConvergedError`.
- `dftkit.weight_functions`: `WeightFunction`, `WeightFunctionShape` and
  `WeightFunctionInfo` for Fourier-space weight functions and the weight
  constants of bulk convolutions, plus the spherical Bessel functions
  `sph_j0` and `sph_j2`.
- `dftkit.interface`: helpers for planar interfaces: `tanh_profile` for an
  initial guess, `interp` and `interp_symmetric` for moving a profile onto a
  new grid, and `scale_density` for reusing a profile at new bulk densities.
- `dftkit.solvation`: Lennard-Jones 12-6 external potentials of a solute on a
  3D grid (`external_potential_3d`, `lj_potential`, `squared_distances`,
  `center_coordinates`).

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Solving a fixed-point problem

A residual function receives the current solution vector and a flag that says
whether the logarithmic residual is wanted, and returns the residual vector.
`DFTSolver.solve` returns a `SolverResult` named tuple `(x, converged,
iterations)`; the input array is not modified.

```python
import numpy as np
from dftkit.solver import DFTSolver

target = np.array([0.2, 0.5, 0.8])

def residual(x, log):
    if log:
        return np.log(x) - np.log(target)
    return x - target

solver = DFTSolver().picard_iteration(beta=0.5).anderson_mixing(mmax=10)
result = solver.solve(np.full(3, 0.1), residual)
print(result.converged, result.iterations, result.x)
```

Builder methods (`picard_iteration`, `anderson_mixing`) return a new solver
with one more stage and accept `log`, `max_iter`, `tol` and `beta`; Picard
stages also take `max_rel`, Anderson stages `mmax`. `DFTSolver(output=True)`
prints the progress of every iteration. `DFTSolver.default()` returns the
standard chain: logarithmic Anderson mixing (50 iterations, tol 1e-5)
followed by Anderson mixing (150 iterations, tol 1e-11). `str(solver)` lists
the stages and `solver._repr_markdown_()` renders them as a table.

The convergence flag is that of the last stage; iteration counts are summed
over all stages.

## Chemical potential specifications

```python
import numpy as np
from dftkit.profile import MolesSpecification, chemical_potential_residual

spec = MolesSpecification(moles=np.array([2.0]))
mu = np.array([0.0])
mu_spec = spec.calculate_chemical_potential(m=np.array([1.0]), chemical_potential=mu, z=np.array([1.0]))
print(mu_spec, chemical_potential_residual(mu, mu_spec, log=True))
```

`euler_lagrange_residual` sets the residual to zero wherever the external
potential reaches `MAX_POTENTIAL`.

## Weight constants

```python
import numpy as np
from dftkit.weight_functions import WeightFunction, WeightFunctionInfo, WeightFunctionShape

r = np.array([0.5])
info = (
    WeightFunctionInfo(np.array([0]), local_density=False)
    .add(WeightFunction.new_unscaled(r, WeightFunctionShape.THETA), fmt=True)
    .add(WeightFunction.new_unscaled(r, WeightFunctionShape.DELTA), fmt=True)
)
print(info.weight_constants(0.0, 1))
```

Adding a weight function whose number of entries differs from the number of
segments raises `ValueError`.

## What the package does not do

dftkit provides the pieces around a DFT calculation, not a complete one. It
has no Helmholtz energy functionals, no convolutions of density profiles, no
grids or geometries, and no density profile object that puts the pieces
together. Surface tensions, pair correlation functions, solvation free
energies and adsorption isotherms are therefore not computed by the package;
the residual, potential and interpolation functions here are meant to be used
by code that supplies the functional derivatives itself.