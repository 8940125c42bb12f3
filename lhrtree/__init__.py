import logging

from lhrtree.utility.logger import get_logger_func

__version__ = '0.3.0'

_warn, _info, _debug = get_logger_func('lhrtree')

# >>> setup logger

logging.getLogger('lhrtree').addHandler(logging.NullHandler())

# >>> setup root

# the virtual root every sentence hangs from
ROOT_ID = -1

# >>> setup inf

INF = 1e20


def setup_inf(v):
    """Change the magnitude used for impossible arcs, e.g. 1e4 when scores come from fp16 models."""
    global INF
    INF = v
