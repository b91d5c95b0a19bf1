"""
qheom: hierarchical equations of motion (HEOM) for open quantum systems
coupled to bosonic and fermionic baths.
"""

from qheom.settings import settings
import qheom.version
from qheom.version import version as __version__

from .parity import *
from .superoperator import *
from .bath import *
from .hierarchy import *
from .heom_matrix import *
from .ados import *
from .propagator import *
from .integrator import IntegratorException
from .evolution import *
from .steadystate import *
from .fileio import *
from .options import *
