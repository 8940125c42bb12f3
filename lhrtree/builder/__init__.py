from .beam import BeamManager, State, StateElement, StateStrategy
from .constraint_solver import DeprelConstraintSolver, InvalidConfiguration
from .constraints import (Condition, Constraint, DoubleConstraint, SingleConstraint, ValidationReport, find_violations,
                          load_constraints, validate_sentences)
from .cycles_fixer import CyclesFixer
from .deprel_selector import CompositeDeprelSelector, MorphoDeprelSelector, NoFilterSelector
from .labeler import DeprelLabeler, MatrixDeprelLabeler
from .tree_builder import ArcValue, BuilderConfig, DependencyTreeBuilder, TreeBuildError
