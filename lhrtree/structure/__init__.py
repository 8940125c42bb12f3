from .arc_scores import Arc, ArcScores
from .dependency_tree import CycleDetectedError, DependencyTree
from .deprel import UNKNOWN_DEPREL, Deprel, Direction, ScoredDeprel
from .sentence import Morphology, MorphoSynToken, ParsingSentence, ParsingToken, build_morpho_syn_tokens
