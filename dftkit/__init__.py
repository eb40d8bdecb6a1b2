"""Building blocks for classical DFT: solvers, chemical potential rules, weight functions, interface profiles and solvation potentials."""

__version__ = "0.1.0"
__all__ = ["interface", "profile", "solvation", "solver", "weight_functions"]