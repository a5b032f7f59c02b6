from . import auth
from . import config
from . import errors
from . import kubeconfig
from . import settings

__version__ = "0.0.1"
